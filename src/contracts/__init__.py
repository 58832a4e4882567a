# src/contracts/__init__.py
"""
Capability interfaces and shared value types for the orchestration core.

Collaborators (world session, translator, settings store, notifier) are
described as Protocols here; concrete implementations live in bot_core,
llm_stack, storage and orchestration.notifier.
"""

from __future__ import annotations

from .notifier import Notifier
from .settings import BotSettings, SettingsStore
from .translator import CommandTranslator, Translation, TranslationError
from .types import (
    CONSOLE_SENDER_ID,
    CONTROL_INPUTS,
    Channel,
    Goal,
    Position,
    Sender,
    SessionParams,
    SessionState,
)
from .world import SessionEventHandler, UnknownBlockError, WorldSession

__all__ = [
    "BotSettings",
    "CONSOLE_SENDER_ID",
    "CONTROL_INPUTS",
    "Channel",
    "CommandTranslator",
    "Goal",
    "Notifier",
    "Position",
    "Sender",
    "SessionEventHandler",
    "SessionParams",
    "SessionState",
    "SettingsStore",
    "Translation",
    "TranslationError",
    "UnknownBlockError",
    "WorldSession",
]
