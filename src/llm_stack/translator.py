# src/llm_stack/translator.py
"""
LlmCommandTranslator: free text -> canonical command lines via an LLMBackend.

Two prompts per request:
  1) UNDERSTANDING: one short line describing the interpretation
  2) ACTIONS: the command list, one per line

The backend is blocking (llama.cpp), so both calls run in a worker
thread; only the results come back to the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Iterable, List, Optional

from contracts.translator import Translation, TranslationError

from .backend import LLMBackend
from .presets import ACTIONS, UNDERSTANDING, RolePreset


log = logging.getLogger(__name__)

_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")
_FENCE_RE = re.compile(r"^\s*```")


def parse_command_lines(raw: str, known: Optional[Iterable[str]] = None) -> List[str]:
    """
    Clean model output into command lines.

    Drops code fences, blank lines and list markers. When `known` is
    given, lines whose first word is not a known command are dropped.
    """
    known_set = {k.lower() for k in known} if known is not None else None
    out: List[str] = []
    for line in raw.splitlines():
        if _FENCE_RE.match(line):
            continue
        line = _BULLET_RE.sub("", line).strip().strip("`").strip()
        if not line:
            continue
        if known_set is not None and line.split()[0].lower() not in known_set:
            log.debug("Dropping non-command line from model output: %r", line)
            continue
        out.append(line)
    return out


class LlmCommandTranslator:
    def __init__(
        self,
        backend: LLMBackend,
        *,
        understanding: RolePreset = UNDERSTANDING,
        actions: RolePreset = ACTIONS,
        known_commands: Optional[Iterable[str]] = None,
    ) -> None:
        self._backend = backend
        self._understanding = understanding
        self._actions = actions
        self._known = list(known_commands) if known_commands is not None else None

    async def translate(self, text: str) -> Translation:
        text = text.strip()
        if not text:
            raise TranslationError("empty request")

        understood = await self._generate(self._understanding, f'Request: "{text}"')
        understood = understood.splitlines()[0].strip() if understood.strip() else ""

        raw = await self._generate(self._actions, f'Request: "{text}"')
        commands = parse_command_lines(raw, self._known)
        log.info("Translated %r -> %s", text, commands)
        return Translation(understanding=understood, commands=commands)

    async def _generate(self, preset: RolePreset, prompt: str) -> str:
        try:
            return await asyncio.to_thread(
                self._backend.generate,
                prompt,
                max_tokens=preset.max_tokens,
                temperature=preset.temperature,
                stop=preset.stop,
                system_prompt=preset.system_prompt,
            )
        except Exception as exc:
            raise TranslationError(f"{preset.name} call failed: {exc}") from exc
