# src/orchestration/connection.py
r"""
Connection Lifecycle Manager.

Owns the single WorldSession handle and its state machine:

    DISCONNECTED -> CONNECTING -> LIVE -> ENDING -> DISCONNECTED
                         \___________________/
                          (error / kick / end)

Reconnect policy is a flat bounded retry: while fewer than
`max_attempts` reconnects have been made, a loss schedules the next one
after `retry_delay_s`. Once the cap is hit, the counter resets and the
next attempt waits `retry_delay_s` plus a `cooldown_delay_s` pause. A
spawn resets the counter. The manager never gives up.

Session event handlers are tagged with the session generation; events
from a replaced session are ignored, and only the first loss event of a
generation (error followed by end is common) is counted.

A verification chest (a 9x3 or 9x6 window) is answered after
`robot_check_delay_s` by clicking the slot holding an iron ingot. The
click is skipped if the session was replaced during the wait.
"""

from __future__ import annotations

import asyncio
import errno
import logging
from typing import Any, Callable, Mapping, Optional

from contracts.notifier import Notifier
from contracts.types import SessionParams, SessionState
from contracts.world import (
    EVENT_CHAT,
    EVENT_END,
    EVENT_ERROR,
    EVENT_KICKED,
    EVENT_MESSAGE,
    EVENT_SPAWN,
    EVENT_WHISPER,
    EVENT_WINDOW_OPEN,
    WorldSession,
)
from env.schema import CredentialsConfig, ReconnectConfig, ViewerConfig
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from runtime.error_handling import call_guarded, spawn_logged
from runtime.failure_mitigation import emit_capability_warning, emit_session_fault


log = logging.getLogger(__name__)

SessionFactory = Callable[[SessionParams], WorldSession]
ChatListener = Callable[[str, Mapping[str, Any]], None]

_LOGIN_KEYWORDS = ("register", "login", "password")
_VERIFY_KEYWORDS = ("verify", "robot", "click the iron")
_ROBOT_CHECK_WINDOWS = ("minecraft:generic_9x3", "minecraft:generic_9x6")
_ROBOT_CHECK_ITEM = "iron_ingot"


class ConnectionManager:
    """
    Single-session owner with flat bounded-retry reconnection.

    Hooks:
      on_live():        called after a spawn has been fully handled
      on_lost(reason):  called synchronously on every transition out of a
                        session (cancel the Task Slot, Behavior, AI jobs here)
      chat listener:    receives (event, payload) for chat/whisper/message
    """

    def __init__(
        self,
        factory: SessionFactory,
        *,
        reconnect: Optional[ReconnectConfig] = None,
        credentials: Optional[CredentialsConfig] = None,
        viewer: Optional[ViewerConfig] = None,
        notifier: Optional[Notifier] = None,
        bus: Optional[EventBus] = None,
        on_live: Optional[Callable[[], None]] = None,
        on_lost: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._factory = factory
        self._reconnect_cfg = reconnect or ReconnectConfig()
        self._credentials = credentials or CredentialsConfig()
        self._viewer_cfg = viewer or ViewerConfig()
        self._notifier = notifier
        self._bus = bus
        self._on_live = on_live
        self._on_lost = on_lost
        self._chat_listener: Optional[ChatListener] = None

        self._state = SessionState.DISCONNECTED
        self._session: Optional[WorldSession] = None
        self._params: Optional[SessionParams] = None
        self._generation = 0
        self._lost_generation = 0
        self._attempts = 0
        self._last_error: Optional[str] = None
        self._login_attempted = False
        self._viewer_armed = False
        self._stopping = False
        self._reconnect_task: Optional["asyncio.Task[Any]"] = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[WorldSession]:
        """The session handle while it is Live, else None."""
        if self._state is SessionState.LIVE:
            return self._session
        return None

    @property
    def params(self) -> Optional[SessionParams]:
        return self._params

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def viewer_armed(self) -> bool:
        return self._viewer_armed

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    def set_chat_listener(self, listener: Optional[ChatListener]) -> None:
        self._chat_listener = listener

    # ------------------------------------------------------------------
    # Public lifecycle
    # ------------------------------------------------------------------

    async def start(self, params: SessionParams) -> None:
        """
        (Re)start the session with new parameters.

        Any pending reconnect or existing/pending session is torn down
        first, so at most one session ever exists.
        """
        self._stopping = False
        self._cancel_reconnect()
        await self._teardown("restart")
        self._params = params
        self._attempts = 0
        await self._open()

    async def stop(self) -> None:
        """Close the session and stop reconnecting."""
        self._stopping = True
        self._cancel_reconnect()
        await self._teardown("stopped")

    def arm_viewer(self) -> Optional[str]:
        """
        Arm the live view if it is not armed yet.

        Returns the viewer URL when the view is (or already was) available,
        None when arming failed. "Address in use" counts as available since
        something is already serving that port.
        """
        session = self.session
        url = f"http://localhost:{self._viewer_cfg.port}"
        if self._viewer_armed:
            return url
        if session is None:
            return None
        try:
            session.start_viewer(
                self._viewer_cfg.port,
                first_person=self._viewer_cfg.first_person,
                view_distance=self._viewer_cfg.view_distance,
            )
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                self._warn("viewer", f"POV viewer port {self._viewer_cfg.port} is already in use", exc)
                return url
            self._warn("viewer", f"POV viewer failed to initialize: {exc}", exc)
            return None
        except Exception as exc:
            self._warn("viewer", f"POV viewer failed to initialize: {exc}", exc)
            return None

        self._viewer_armed = True
        log.info("POV viewer initialized at %s", url)
        log_event(
            self._bus,
            module="orchestration.connection",
            event_type=EventType.CAPABILITY_ARMED,
            message="viewer armed",
            payload={"capability": "viewer", "url": url},
        )
        return url

    # ------------------------------------------------------------------
    # Connecting
    # ------------------------------------------------------------------

    async def _open(self) -> None:
        params = self._params
        if params is None:
            raise RuntimeError("No session parameters; call start() first")

        self._generation += 1
        gen = self._generation
        self._login_attempted = False
        session = self._factory(params)
        self._session = session
        self._bind(session, gen)
        self._set_state(SessionState.CONNECTING, f"connecting to {params.address} as {params.username}")

        try:
            await session.connect()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.error("Failed to start session: %s", exc)
            self._broadcast(f"§c* Failed to start bot: {exc}")
            self._handle_loss(gen, "connect_failed", str(exc))

    def _bind(self, session: WorldSession, gen: int) -> None:
        session.on_event(EVENT_SPAWN, lambda p: self._guard(gen, self._handle_spawn, p))
        session.on_event(EVENT_END, lambda p: self._guard(gen, self._handle_end_like, EVENT_END, p))
        session.on_event(EVENT_KICKED, lambda p: self._guard(gen, self._handle_end_like, EVENT_KICKED, p))
        session.on_event(EVENT_ERROR, lambda p: self._guard(gen, self._handle_error, p))
        session.on_event(EVENT_CHAT, lambda p: self._guard(gen, self._forward, EVENT_CHAT, p))
        session.on_event(EVENT_WHISPER, lambda p: self._guard(gen, self._forward, EVENT_WHISPER, p))
        session.on_event(EVENT_MESSAGE, lambda p: self._guard(gen, self._handle_message, p))
        session.on_event(EVENT_WINDOW_OPEN, lambda p: self._guard(gen, self._handle_window_open, p))

    def _guard(self, gen: int, fn: Callable[..., None], *args: Any) -> None:
        if gen != self._generation:
            log.debug("Ignoring event from stale session generation %d", gen)
            return
        call_guarded(fn, gen, *args, where=f"session event {getattr(fn, '__name__', fn)}", bus=self._bus)

    # ------------------------------------------------------------------
    # Session events
    # ------------------------------------------------------------------

    def _handle_spawn(self, gen: int, _payload: Mapping[str, Any]) -> None:
        session = self._session
        if session is None:
            return
        self._attempts = 0
        self._login_attempted = False
        self._last_error = None
        self._set_state(SessionState.LIVE, "spawned")

        try:
            session.load_movement_profile()
        except Exception as exc:
            self._warn("movement_profile", f"Error loading plugins: {exc}", exc)

        if self._viewer_cfg.enabled:
            self.arm_viewer()

        if self._on_live is not None:
            call_guarded(self._on_live, where="on_live hook", bus=self._bus)

    def _handle_error(self, gen: int, payload: Mapping[str, Any]) -> None:
        message = str(payload.get("error") or "unknown error")
        log.error("Session error: %s (code=%s)", message, payload.get("code"))
        self._broadcast(f"§c* Bot error: {message}")
        self._handle_loss(gen, EVENT_ERROR, message)

    def _handle_end_like(self, gen: int, event: str, payload: Mapping[str, Any]) -> None:
        reason = str(payload.get("reason") or event)
        if event == EVENT_KICKED:
            log.warning("Bot was kicked: %s", reason)
        else:
            log.warning("Bot disconnected: %s", reason)
        self._handle_loss(gen, event, reason)

    def _handle_message(self, gen: int, payload: Mapping[str, Any]) -> None:
        text = str(payload.get("text") or "")
        lowered = text.lower()
        log.info("[CHAT] %s", text)

        if any(k in lowered for k in _VERIFY_KEYWORDS):
            self._broadcast("§e* Robot verification requested")

        password = self._credentials.password
        if password and not self._login_attempted and any(k in lowered for k in _LOGIN_KEYWORDS):
            self._login_attempted = True
            self._submit_credentials(gen, password)

        self._forward(gen, EVENT_MESSAGE, payload)

    def _handle_window_open(self, gen: int, payload: Mapping[str, Any]) -> None:
        window_type = str(payload.get("type") or "")
        log.info("Window opened: %s", window_type)
        if window_type in _ROBOT_CHECK_WINDOWS:
            spawn_logged(self._solve_robot_check(gen, payload), name=f"robot-check:{gen}", bus=self._bus)

    async def _solve_robot_check(self, gen: int, payload: Mapping[str, Any]) -> None:
        """Click the iron ingot in a verification chest once its contents settle."""
        await asyncio.sleep(self._credentials.robot_check_delay_s)
        session = self._session
        if gen != self._generation or session is None:
            return
        slot = _find_slot(payload.get("slots"), _ROBOT_CHECK_ITEM)
        if slot is None:
            log.warning("Could not find iron ingot in chest")
            return
        try:
            await session.click_window_slot(slot)
        except Exception as exc:
            log.error("Robot verification failed: %s", exc)
            self._broadcast(f"§c* Failed robot verification: {exc}")
            return
        log.info("Robot verification completed (slot %d)", slot)
        self._broadcast("§a* Completed robot verification")

    def _forward(self, gen: int, event: str, payload: Mapping[str, Any]) -> None:
        if self._chat_listener is not None:
            self._chat_listener(event, payload)

    def _submit_credentials(self, gen: int, password: str) -> None:
        session = self._session
        if session is None:
            return
        log.info("Server asked for credentials; registering and logging in")
        session.send_chat(f"/register {password} {password}")

        def _login() -> None:
            if gen != self._generation or self._session is None:
                return
            call_guarded(self._session.send_chat, f"/login {password}", where="credential login", bus=self._bus)

        asyncio.get_running_loop().call_later(self._credentials.login_delay_s, _login)

    # ------------------------------------------------------------------
    # Loss and reconnection
    # ------------------------------------------------------------------

    def _handle_loss(self, gen: int, reason: str, detail: Optional[str]) -> None:
        if gen != self._generation or gen == self._lost_generation:
            return
        self._lost_generation = gen
        self._last_error = detail
        self._viewer_armed = False
        self._set_state(SessionState.ENDING, reason)
        emit_session_fault(self._bus, reason, detail=detail, attempts=self._attempts)

        if self._on_lost is not None:
            call_guarded(self._on_lost, reason, where="on_lost hook", bus=self._bus)

        session, self._session = self._session, None
        if session is not None:
            spawn_logged(session.disconnect(), name=f"session-disconnect:{gen}", bus=self._bus)
        self._set_state(SessionState.DISCONNECTED, reason)

        if self._stopping:
            return

        cfg = self._reconnect_cfg
        if self._attempts >= cfg.max_attempts:
            log.warning(
                "Maximum reconnection attempts (%d) reached. Waiting %.0f seconds before trying again.",
                cfg.max_attempts,
                cfg.cooldown_delay_s,
            )
            self._attempts = 0
            delay_s, kind = cfg.retry_delay_s + cfg.cooldown_delay_s, "cooldown"
        else:
            delay_s, kind = cfg.retry_delay_s, "retry"
        self._attempts += 1
        self._schedule_reconnect(delay_s, kind)

    def _schedule_reconnect(self, delay_s: float, kind: str) -> None:
        self._cancel_reconnect()
        log.info("Reconnecting in %.1fs (%s, attempts=%d)", delay_s, kind, self._attempts)
        log_event(
            self._bus,
            module="orchestration.connection",
            event_type=EventType.RECONNECT_SCHEDULED,
            message=f"Reconnect scheduled ({kind})",
            payload={"attempt": self._attempts, "delay_s": delay_s, "kind": kind},
        )
        self._reconnect_task = spawn_logged(
            self._reconnect_after(delay_s),
            name="session-reconnect",
            bus=self._bus,
        )

    async def _reconnect_after(self, delay_s: float) -> None:
        await asyncio.sleep(delay_s)
        self._reconnect_task = None
        if self._stopping:
            return
        await self._open()

    def _cancel_reconnect(self) -> None:
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _teardown(self, reason: str) -> None:
        session = self._session
        if session is None:
            return
        gen = self._generation
        # Invalidate handlers first so the disconnect's own end event is ignored.
        self._generation += 1
        self._lost_generation = gen
        self._session = None
        self._viewer_armed = False
        self._set_state(SessionState.ENDING, reason)
        if self._on_lost is not None:
            call_guarded(self._on_lost, reason, where="on_lost hook", bus=self._bus)
        try:
            await session.disconnect()
        except Exception as exc:
            log.warning("Error while closing session: %s", exc)
        self._set_state(SessionState.DISCONNECTED, reason)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_state(self, state: SessionState, reason: str) -> None:
        if state is self._state:
            return
        previous, self._state = self._state, state
        log.info("Session %s -> %s (%s)", previous.value, state.value, reason)
        log_event(
            self._bus,
            module="orchestration.connection",
            event_type=EventType.SESSION_STATE_CHANGED,
            message=f"{previous.value} -> {state.value}",
            payload={
                "from": previous.value,
                "to": state.value,
                "reason": reason,
                "attempts": self._attempts,
                "address": self._params.address if self._params else None,
            },
        )

    def _warn(self, capability: str, message: str, exc: BaseException) -> None:
        log.warning(message)
        emit_capability_warning(self._bus, capability, message, error_repr=repr(exc))
        self._broadcast(f"§c* {message}")

    def _broadcast(self, text: str) -> None:
        if self._notifier is not None:
            call_guarded(self._notifier.broadcast, text, where="notifier broadcast", bus=self._bus)


def _find_slot(slots: Any, item: str) -> Optional[int]:
    if not isinstance(slots, list):
        return None
    for entry in slots:
        if isinstance(entry, Mapping) and item in str(entry.get("name") or ""):
            slot = entry.get("slot")
            if isinstance(slot, int):
                return slot
    return None
