# src/orchestration/orchestrator.py
"""
Orchestrator: the single owned context object of the core.

Holds every piece of mutable orchestration state (cooldown records, the
Task Slot, the active Behavior, the neutral flag, the connection) and
exposes the surface front ends use:

    route_command(raw, sender)
    await start_session(address=None, identity=None)
    await stop_session()
    global_stop()

Command handlers receive this object as their context.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from contracts.settings import SettingsStore
from contracts.translator import CommandTranslator
from contracts.types import CONTROL_INPUTS, Sender, SessionParams
from contracts.world import WorldSession
from env.schema import OrchestratorConfig
from monitoring.bus import EventBus
from runtime.error_handling import call_guarded

from .ai_delegate import AiDelegate
from .behaviors import BehaviorSupervisor
from .commands.registry import CommandRegistry, build_default_registry
from .connection import ConnectionManager, SessionFactory
from .cooldown import CooldownGate
from .notifier import ChatNotifier
from .router import CommandRouter, RouteOutcome
from .sources import ChatCommandSource
from .task_slot import TaskSlot


log = logging.getLogger(__name__)


class Orchestrator:
    def __init__(
        self,
        config: OrchestratorConfig,
        session_factory: SessionFactory,
        settings: SettingsStore,
        *,
        translator: Optional[CommandTranslator] = None,
        bus: Optional[EventBus] = None,
        registry: Optional[CommandRegistry] = None,
        console_output: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.config = config
        self.settings = settings
        self.bus = bus
        self._neutral = False

        cooldown_ms = settings.get().command_cooldown_ms
        cooldown_s = cooldown_ms / 1000.0 if cooldown_ms is not None else config.commands.cooldown_s
        self.cooldown = CooldownGate(cooldown_s, console_id=config.commands.console_id)
        self.slot = TaskSlot(bus)

        self.notifier = ChatNotifier(lambda: self.session, console_output=console_output, bus=bus)
        self.connection = ConnectionManager(
            session_factory,
            reconnect=config.reconnect,
            credentials=config.credentials,
            viewer=config.viewer,
            notifier=self.notifier,
            bus=bus,
            on_lost=self._on_session_lost,
        )
        self.behaviors = BehaviorSupervisor(
            self.slot,
            lambda: self.session,
            self.notifier,
            config.behaviors,
            is_neutral=lambda: self._neutral,
            bus=bus,
        )
        self.registry = registry or build_default_registry()
        self.router = CommandRouter(self)

        self.ai: Optional[AiDelegate] = None
        if translator is not None:
            self.ai = AiDelegate(
                translator,
                self.route_command,
                self.notifier,
                command_delay_s=config.commands.ai_command_delay_s,
                bus=bus,
            )

        self.chat_source = ChatCommandSource(
            self.route_command,
            self.notifier,
            settings,
            config.commands,
            own_name=self._own_name,
            natural_language=lambda: self.ai is not None,
        )
        self.connection.set_chat_listener(self.chat_source)

    # ------------------------------------------------------------------
    # Context used by handlers
    # ------------------------------------------------------------------

    @property
    def owner(self) -> str:
        return self.config.commands.owner

    @property
    def session(self) -> Optional[WorldSession]:
        """The Live session, or None."""
        return self.connection.session

    @property
    def neutral(self) -> bool:
        """True from a global stop until the next admitted command."""
        return self._neutral

    def clear_neutral(self) -> None:
        self._neutral = False

    def live_session(self) -> WorldSession:
        session = self.session
        if session is None:
            raise RuntimeError("Bot is not connected.")
        return session

    def console_sender(self) -> Sender:
        return Sender.console(self.config.commands.console_id)

    # ------------------------------------------------------------------
    # Front-end surface
    # ------------------------------------------------------------------

    def route_command(self, raw: str, sender: Sender) -> RouteOutcome:
        return self.router.route(raw, sender)

    async def start_session(
        self,
        address: Optional[str] = None,
        identity: Optional[str] = None,
    ) -> SessionParams:
        """Connect using the given or the stored default server and bot name."""
        stored = self.settings.get()
        params = SessionParams.from_address(
            address or stored.default_server,
            identity or stored.default_bot_name,
            version=self.config.session.version,
            default_port=self.config.session.default_port,
        )
        log.info("Connecting to %s as %s...", params.address, params.username)
        await self.connection.start(params)
        return params

    async def stop_session(self) -> None:
        await self.connection.stop()

    def global_stop(self) -> None:
        """
        Universal reset: release every control input, halt pathfinding,
        combat and collection, stop the Behavior and AI jobs, and clear
        the Task Slot.

        The neutral flag stays set until the router admits the next
        command, so behavior timers already in flight stop themselves.
        """
        self._neutral = True
        session = self.session
        if session is not None:
            for control in CONTROL_INPUTS:
                call_guarded(session.set_control_state, control, False, where="neutral release", bus=self.bus)
            call_guarded(session.stop_pathfinding, where="neutral pathfinding", bus=self.bus)
            call_guarded(session.stop_attack, where="neutral combat", bus=self.bus)
            call_guarded(session.stop_collecting, where="neutral collecting", bus=self.bus)
        self.behaviors.stop(reason="neutral")
        if self.ai is not None:
            self.ai.cancel_all()
        self.slot.cancel_current()

    def status(self) -> Dict[str, Any]:
        """Snapshot for status displays."""
        conn = self.connection
        behavior = self.behaviors.current
        task = self.slot.current
        session = self.session
        pos = session.position() if session is not None else None
        return {
            "state": conn.state.value,
            "address": conn.params.address if conn.params else None,
            "username": conn.params.username if conn.params else None,
            "attempts": conn.attempts,
            "last_error": conn.last_error,
            "position": str(pos.floored()) if pos is not None else None,
            "task": task.kind if task is not None else None,
            "behavior": behavior.describe() if behavior is not None else None,
            "notifications": self.notifier.enabled,
            "viewer": conn.viewer_armed,
            "ai_jobs": self.ai.active_jobs if self.ai is not None else 0,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _own_name(self) -> Optional[str]:
        params = self.connection.params
        return params.username if params is not None else None

    def _on_session_lost(self, reason: str) -> None:
        log.info("Session lost (%s); cancelling task, behavior and AI jobs", reason)
        self.slot.cancel_current()
        self.behaviors.stop(reason="connection_lost")
        if self.ai is not None:
            self.ai.cancel_all()
