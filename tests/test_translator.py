# tests/test_translator.py

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from contracts.translator import TranslationError
from llm_stack.keyword import KeywordCommandTranslator
from llm_stack.presets import ACTIONS, UNDERSTANDING
from llm_stack.translator import LlmCommandTranslator, parse_command_lines
from orchestration.commands.registry import build_default_registry


class FakeBackend:
    """LLMBackend returning canned text per system prompt."""

    def __init__(self, understanding: str = "", actions: str = "", error: Optional[Exception] = None) -> None:
        self._replies: Dict[Optional[str], str] = {
            UNDERSTANDING.system_prompt: understanding,
            ACTIONS.system_prompt: actions,
        }
        self._error = error
        self.calls: List[Dict[str, object]] = []

    def generate(self, prompt, *, max_tokens, temperature, stop=None, system_prompt=None) -> str:
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "system_prompt": system_prompt})
        if self._error is not None:
            raise self._error
        return self._replies[system_prompt]


KNOWN = build_default_registry().names() + ["neutral"]


# ------------------------------------------------------------------
# parse_command_lines
# ------------------------------------------------------------------

def test_parse_strips_fences_bullets_and_blanks():
    raw = "```\n- goto 1 2 3\n\n2. mine iron_ore\n* `say hi`\n```"
    assert parse_command_lines(raw) == ["goto 1 2 3", "mine iron_ore", "say hi"]


def test_parse_drops_unknown_first_words():
    raw = "Sure! Here you go:\nup 3\njump 2\nThat should do it."
    assert parse_command_lines(raw, KNOWN) == ["up 3", "jump 2"]


# ------------------------------------------------------------------
# LlmCommandTranslator
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_llm_translator_uses_both_prompts():
    backend = FakeBackend(
        understanding="Go to the player Steve\nextra line",
        actions="goto Steve\nsay on my way",
    )
    translator = LlmCommandTranslator(backend, known_commands=KNOWN)

    result = await translator.translate("  come find Steve  ")

    assert result.understanding == "Go to the player Steve"
    assert result.commands == ["goto Steve", "say on my way"]
    assert [c["system_prompt"] for c in backend.calls] == [UNDERSTANDING.system_prompt, ACTIONS.system_prompt]
    assert backend.calls[0]["prompt"] == 'Request: "come find Steve"'


@pytest.mark.asyncio
async def test_llm_translator_respects_tuned_presets():
    backend = FakeBackend(understanding="ok", actions="pos")
    translator = LlmCommandTranslator(backend, actions=ACTIONS.tuned(max_tokens=32))

    await translator.translate("where are you")
    assert backend.calls[1]["max_tokens"] == 32


@pytest.mark.asyncio
async def test_llm_backend_failure_becomes_translation_error():
    translator = LlmCommandTranslator(FakeBackend(error=RuntimeError("out of memory")))
    with pytest.raises(TranslationError, match="out of memory"):
        await translator.translate("mine some coal")


@pytest.mark.asyncio
async def test_empty_request_is_rejected():
    translator = LlmCommandTranslator(FakeBackend())
    with pytest.raises(TranslationError):
        await translator.translate("   ")


# ------------------------------------------------------------------
# KeywordCommandTranslator
# ------------------------------------------------------------------

PLAYERS = {"Steve", "Alex"}
keyword = KeywordCommandTranslator(lambda name: name in PLAYERS)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("go forward 3", "up 3"),
        ("walk back", "down 5"),
        ("move left 2 blocks", "left 2"),
        ("go right", "right 5"),
        ("go to Steve", "goto Steve"),
        ("goto 10 64 -5", "goto 10 64 -5"),
        ("attack Alex", "kill Alex"),
        ("please mine some iron ore", "mine iron_ore"),
        ("dig redstone_ore", "mine redstone_ore"),
        ("equip the diamond sword", "equip diamond_sword"),
        ("hold a pickaxe", "equip pickaxe"),
        ("use your shield", "equip shield"),
        ("equip golden_apple", "equip golden_apple"),
        ("select slot 4", "slot 4"),
        ("follow Steve", "follow Steve"),
        ("patrol 0 64 0 and 10 64 10", "patrol 0 64 0 10 64 10"),
        ("where are you?", "pos"),
        ("come here", "come"),
    ],
)
def test_keyword_matches(text, expected):
    assert keyword.match(text) == expected


@pytest.mark.parametrize("text", ["hello there", "attack nobody", "patrol 1 2 3", "mine it", "hold on a second"])
def test_keyword_no_match(text):
    assert keyword.match(text) is None


@pytest.mark.asyncio
async def test_keyword_translate_shapes_result():
    result = await keyword.translate("go forward 2")
    assert result.commands == ["up 2"]
    assert result.understanding == "Interpreted as: up 2"

    empty = await keyword.translate("nice weather")
    assert empty.commands == []
    assert empty.understanding == ""
