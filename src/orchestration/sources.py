# src/orchestration/sources.py
"""
Chat command sources.

Turns session chat events into routed commands:

  whisper event                       -> private command
  "✉ <player> -> me: <command>"       -> private command from <player>
  "<prefix><command>" in public chat  -> public command (whitelisted authors only)
  other public chat from the owner    -> "ai <text>" (when natural language is enabled)

The agent's own lines are ignored.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from contracts.notifier import Notifier
from contracts.settings import SettingsStore
from contracts.types import Channel, Sender
from contracts.world import EVENT_CHAT, EVENT_WHISPER
from env.schema import CommandConfig


log = logging.getLogger(__name__)

RELAY_MARKER = "-> me:"
RELAY_ENVELOPE = "✉ "
NOT_WHITELISTED = "You are not whitelisted to use bot commands."

RouteFn = Callable[[str, Sender], Any]


class ChatCommandSource:
    def __init__(
        self,
        route: RouteFn,
        notifier: Notifier,
        settings: SettingsStore,
        config: Optional[CommandConfig] = None,
        *,
        own_name: Callable[[], Optional[str]] = lambda: None,
        natural_language: Callable[[], bool] = lambda: False,
    ) -> None:
        self._route = route
        self._notifier = notifier
        self._settings = settings
        self._config = config or CommandConfig()
        self._own_name = own_name
        self._natural_language = natural_language

    def __call__(self, event: str, payload: Mapping[str, Any]) -> None:
        if event == EVENT_WHISPER:
            self.on_whisper(str(payload.get("username") or ""), str(payload.get("message") or ""))
        elif event == EVENT_CHAT:
            self.on_chat(str(payload.get("username") or ""), str(payload.get("message") or ""))

    def on_whisper(self, username: str, message: str) -> None:
        if not username or username == self._own_name():
            return
        self._route(message, Sender(username, Channel.PRIVATE))

    def on_chat(self, username: str, message: str) -> None:
        if not username or username == self._own_name():
            return
        log.info("[CHAT] %s: %s", username, message)

        if RELAY_MARKER in message:
            parts = message.split(RELAY_MARKER)
            if len(parts) == 2:
                relayed_from = parts[0].replace(RELAY_ENVELOPE, "").strip()
                command = parts[1].strip()
                log.info("[WHISPER] %s: %s", relayed_from, command)
                if relayed_from:
                    self._route(command, Sender(relayed_from, Channel.PRIVATE))
                return

        prefix = self._config.public_prefix
        if message.startswith(prefix):
            sender = Sender(username, Channel.PUBLIC)
            if username in self._settings.get().whitelisted_players:
                self._route(message[len(prefix):].strip(), sender)
            else:
                self._notifier.notify(sender, NOT_WHITELISTED)
            return

        if username == self._config.owner and self._natural_language():
            self._route(f"ai {message}", Sender(username, Channel.PUBLIC))
