# src/app/runtime.py
"""
Application wiring.

build_runtime() turns a resolved OrchestratorConfig into a ready
Orchestrator plus the ambient pieces around it (event bus, JSONL event
log, settings file, translator). Front ends own the event loop and call:

    runtime = build_runtime(config, console_output=print)
    await runtime.start(address, name)
    ...
    await runtime.shutdown()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from bot_core.net import create_world_session_factory
from contracts.settings import SettingsStore
from contracts.translator import CommandTranslator
from contracts.types import SessionParams
from env.schema import OrchestratorConfig
from llm_stack.keyword import KeywordCommandTranslator
from llm_stack.translator import LlmCommandTranslator
from monitoring.bus import EventBus
from monitoring.logger import JsonFileLogger
from orchestration.commands.ai import AI_COMMAND
from orchestration.commands.registry import CommandRegistry, build_default_registry
from orchestration.connection import SessionFactory
from orchestration.orchestrator import Orchestrator
from orchestration.router import NEUTRAL_COMMAND
from storage.settings_store import JsonSettingsStore


log = logging.getLogger(__name__)


@dataclass
class AppRuntime:
    """Everything a front end needs to drive one bot."""

    config: OrchestratorConfig
    bus: EventBus
    orchestrator: Orchestrator
    event_logger: Optional[JsonFileLogger] = None

    async def start(self, address: Optional[str] = None, name: Optional[str] = None) -> SessionParams:
        return await self.orchestrator.start_session(address, name)

    async def shutdown(self) -> None:
        """Stop everything the bot is doing, disconnect and close the event log."""
        log.info("Shutting down")
        self.orchestrator.global_stop()
        await self.orchestrator.stop_session()
        if self.event_logger is not None:
            self.event_logger.close()
            self.event_logger = None


def known_command_names(registry: CommandRegistry) -> List[str]:
    """Commands the translator may emit; `ai` itself is excluded."""
    return [name for name in registry.names() if name != AI_COMMAND] + [NEUTRAL_COMMAND]


def build_translator(
    config: OrchestratorConfig,
    registry: CommandRegistry,
    is_player: Callable[[str], bool],
) -> CommandTranslator:
    """
    LLM translator when llm.model_path is set, otherwise the keyword
    fallback. llama-cpp-python is only imported in the first case.
    """
    if config.llm.model_path:
        from llm_stack.backend_llamacpp import LlamaCppBackend
        from llm_stack.presets import ACTIONS, UNDERSTANDING

        log.info("Loading translator model from %s", config.llm.model_path)
        backend = LlamaCppBackend(config.llm)
        return LlmCommandTranslator(
            backend,
            understanding=UNDERSTANDING.tuned(temperature=config.llm.temperature),
            actions=ACTIONS.tuned(temperature=config.llm.temperature, max_tokens=config.llm.max_tokens),
            known_commands=known_command_names(registry),
        )
    log.info("No translator model configured; using keyword translator")
    return KeywordCommandTranslator(is_player)


def build_runtime(
    config: OrchestratorConfig,
    *,
    console_output: Optional[Callable[[str], None]] = None,
    session_factory: Optional[SessionFactory] = None,
    settings: Optional[SettingsStore] = None,
    translator: Optional[CommandTranslator] = None,
    bus: Optional[EventBus] = None,
) -> AppRuntime:
    bus = bus or EventBus()

    event_logger: Optional[JsonFileLogger] = None
    if config.monitoring.event_log:
        event_logger = JsonFileLogger(Path(config.monitoring.event_log), bus)

    if settings is None:
        settings = JsonSettingsStore(Path(config.storage.path), owner=config.commands.owner)

    registry = build_default_registry()

    orchestrator: Optional[Orchestrator] = None

    def _is_player(name: str) -> bool:
        session = orchestrator.session if orchestrator is not None else None
        return session is not None and session.player_position(name) is not None

    if translator is None:
        translator = build_translator(config, registry, _is_player)

    orchestrator = Orchestrator(
        config,
        session_factory or create_world_session_factory(config.bridge),
        settings,
        translator=translator,
        bus=bus,
        registry=registry,
        console_output=console_output,
    )
    return AppRuntime(config=config, bus=bus, orchestrator=orchestrator, event_logger=event_logger)
