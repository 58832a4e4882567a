# tests/test_chat_sources.py

from __future__ import annotations

from typing import List, Tuple

import pytest

from contracts.settings import BotSettings
from contracts.types import Channel, Sender
from env.schema import CommandConfig
from orchestration.sources import NOT_WHITELISTED, ChatCommandSource
from storage.settings_store import MemorySettingsStore

from fakes.fake_orchestration import OWNER, RecordingNotifier, ScriptedTranslator, make_harness, settle, start_live


def make_source(*, natural_language: bool = False, whitelist=(OWNER, "Alice")):
    routed: List[Tuple[str, Sender]] = []
    notifier = RecordingNotifier()
    source = ChatCommandSource(
        lambda raw, sender: routed.append((raw, sender)),
        notifier,
        MemorySettingsStore(BotSettings(whitelisted_players=list(whitelist))),
        CommandConfig(owner=OWNER),
        own_name=lambda: "BOB101",
        natural_language=lambda: natural_language,
    )
    return source, routed, notifier


def test_whisper_routes_as_private():
    source, routed, _ = make_source()
    source("whisper", {"username": "Eve", "message": "pos"})
    assert routed == [("pos", Sender("Eve", Channel.PRIVATE))]


def test_relayed_private_message_in_public_chat():
    source, routed, _ = make_source()
    source("chat", {"username": "Server", "message": "✉ Eve -> me: goto 1 2 3"})
    assert routed == [("goto 1 2 3", Sender("Eve", Channel.PRIVATE))]


def test_prefixed_public_command_from_whitelisted_player():
    source, routed, _ = make_source()
    source("chat", {"username": "Alice", "message": "*up 3"})
    assert routed == [("up 3", Sender("Alice", Channel.PUBLIC))]


def test_prefixed_public_command_from_stranger_is_refused():
    source, routed, notifier = make_source()
    source("chat", {"username": "Eve", "message": "*kill Alice"})
    assert routed == []
    assert notifier.to("Eve") == [NOT_WHITELISTED]


def test_owner_chat_goes_to_translator_only_when_enabled():
    source, routed, _ = make_source(natural_language=False)
    source("chat", {"username": OWNER, "message": "come here please"})
    assert routed == []

    source, routed, _ = make_source(natural_language=True)
    source("chat", {"username": OWNER, "message": "come here please"})
    assert routed == [("ai come here please", Sender(OWNER, Channel.PUBLIC))]


def test_other_players_chat_and_own_lines_are_ignored():
    source, routed, _ = make_source(natural_language=True)
    source("chat", {"username": "Alice", "message": "nice base"})
    source("chat", {"username": "BOB101", "message": "*up 3"})
    source("whisper", {"username": "BOB101", "message": "pos"})
    source("message", {"text": "Server restarting"})
    assert routed == []


@pytest.mark.asyncio
async def test_session_chat_reaches_router():
    h = make_harness(whitelist=[OWNER, "Alice"])
    session = await start_live(h)

    session.emit("chat", {"username": "Alice", "message": "*pos"})
    assert session.messages_to("Alice") == ["Current position: x=0, y=64, z=0"]


@pytest.mark.asyncio
async def test_owner_natural_language_runs_through_translator():
    translator = ScriptedTranslator(commands=["pos"], understanding="report position")
    h = make_harness(translator=translator)
    session = await start_live(h)

    session.emit("chat", {"username": OWNER, "message": "where are you?"})
    await settle(10)

    assert translator.requests == ["where are you?"]
    assert session.messages_to(OWNER) == ["Executing: pos", "Current position: x=0, y=64, z=0"]
