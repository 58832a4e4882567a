# src/orchestration/task_slot.py
"""
The foreground Task Slot.

Holds at most one active, cancellable Task. Two shapes:

- timed:   duration known up front (movement). `start` fires at install,
           `stop` fires on expiry *or* on cancellation, so cancelling always
           undoes held inputs.
- awaited: duration unknown (pathfinding, combat, collecting). The
           operation runs as an asyncio task; the slot clears itself when it
           settles unless something superseded it first.

Every install bumps a generation counter. A completion whose generation
is no longer current is stale and is dropped without touching state, so
a trailing result from a superseded operation is a no-op.

All methods must be called from the event loop thread.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from contracts.types import Sender
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from runtime.error_handling import call_guarded
from runtime.failure_mitigation import emit_task_failure


log = logging.getLogger(__name__)


class TaskOutcome(Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


DoneCallback = Callable[["TaskHandle"], None]
Operation = Callable[[], Awaitable[Any]]


class TaskHandle:
    """One occupant of the slot. Settles exactly once."""

    def __init__(
        self,
        kind: str,
        sender: Sender,
        generation: int,
        *,
        on_cancel: Optional[Callable[[], None]] = None,
    ) -> None:
        self.kind = kind
        self.sender = sender
        self.generation = generation
        self.started_at = time.monotonic()

        self.outcome: Optional[TaskOutcome] = None
        self.result: Any = None
        self.error: Optional[BaseException] = None

        self._on_cancel = on_cancel
        self._timer: Optional[asyncio.TimerHandle] = None
        self._runner: Optional["asyncio.Task[Any]"] = None
        self._callbacks: List[DoneCallback] = []
        self._settled: Optional["asyncio.Future[TaskOutcome]"] = None

    @property
    def done(self) -> bool:
        return self.outcome is not None

    def add_done_callback(self, fn: DoneCallback) -> None:
        """Run fn(handle) when the task settles (immediately if it already has)."""
        if self.outcome is not None:
            call_guarded(fn, self, where=f"task {self.kind} done callback")
        else:
            self._callbacks.append(fn)

    async def wait(self) -> TaskOutcome:
        """Wait until the task settles and return its outcome."""
        if self.outcome is not None:
            return self.outcome
        if self._settled is None:
            self._settled = asyncio.get_running_loop().create_future()
        return await asyncio.shield(self._settled)

    def _settle(
        self,
        outcome: TaskOutcome,
        *,
        result: Any = None,
        error: Optional[BaseException] = None,
        bus: Optional[EventBus] = None,
    ) -> bool:
        if self.outcome is not None:
            return False
        self.outcome = outcome
        self.result = result
        self.error = error

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._settled is not None and not self._settled.done():
            self._settled.set_result(outcome)

        callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            call_guarded(fn, self, where=f"task {self.kind} done callback", bus=bus)
        return True

    def __repr__(self) -> str:
        state = self.outcome.value if self.outcome else "active"
        return f"TaskHandle(kind={self.kind!r}, sender={self.sender.name!r}, gen={self.generation}, {state})"


class TaskSlot:
    """
    Zero-or-one foreground occupant.

    run_timed / run_awaited cancel the current occupant and install the
    new one synchronously, so no other admission can interleave between
    the two steps.
    """

    def __init__(self, bus: Optional[EventBus] = None) -> None:
        self._bus = bus
        self._current: Optional[TaskHandle] = None
        self._generation = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def current(self) -> Optional[TaskHandle]:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def busy(self) -> bool:
        return self._current is not None

    # ------------------------------------------------------------------
    # Installing occupants
    # ------------------------------------------------------------------

    def run_timed(
        self,
        kind: str,
        sender: Sender,
        duration_s: float,
        *,
        start: Callable[[], None],
        stop: Callable[[], None],
    ) -> TaskHandle:
        """Install a timed occupant: start() now, stop() on expiry or cancellation."""
        handle = self._install(kind, sender, on_cancel=stop)
        try:
            start()
        except Exception as exc:
            call_guarded(stop, where=f"task {kind} stop after failed start", bus=self._bus)
            self._finish(handle, TaskOutcome.FAILED, error=exc)
            raise

        loop = asyncio.get_running_loop()
        handle._timer = loop.call_later(max(0.0, duration_s), self._expire, handle, stop)
        return handle

    def run_awaited(
        self,
        kind: str,
        sender: Sender,
        operation: Operation,
        *,
        on_cancel: Optional[Callable[[], None]] = None,
    ) -> TaskHandle:
        """Install an awaited occupant running `operation()` on the loop."""
        handle = self._install(kind, sender, on_cancel=on_cancel)
        runner = asyncio.ensure_future(self._drive(operation))
        runner.set_name(f"task:{kind}:{handle.generation}")
        handle._runner = runner
        runner.add_done_callback(lambda t: self._on_runner_done(handle, t))
        return handle

    def cancel_current(self) -> Optional[TaskHandle]:
        """Cancel and clear the current occupant, if any. Idempotent."""
        handle = self._current
        if handle is None:
            return None
        self._current = None

        if handle._timer is not None:
            handle._timer.cancel()
            handle._timer = None
        if handle._on_cancel is not None:
            call_guarded(handle._on_cancel, where=f"task {handle.kind} cancel hook", bus=self._bus)
        if handle._runner is not None and not handle._runner.done():
            handle._runner.cancel()

        handle._settle(TaskOutcome.CANCELLED, bus=self._bus)
        self._publish_finished(handle)
        return handle

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    async def _drive(operation: Operation) -> Any:
        return await operation()

    def _install(
        self,
        kind: str,
        sender: Sender,
        *,
        on_cancel: Optional[Callable[[], None]],
    ) -> TaskHandle:
        self.cancel_current()
        self._generation += 1
        handle = TaskHandle(kind, sender, self._generation, on_cancel=on_cancel)
        self._current = handle
        log.debug("Task installed: %r", handle)
        log_event(
            self._bus,
            module="orchestration.task_slot",
            event_type=EventType.TASK_STARTED,
            message=f"Task {kind} started",
            payload={"kind": kind, "sender": sender.name, "generation": handle.generation},
            correlation_id=sender.name,
        )
        return handle

    def _is_current(self, handle: TaskHandle) -> bool:
        current = self._current
        return current is not None and current.generation == handle.generation

    def _expire(self, handle: TaskHandle, stop: Callable[[], None]) -> None:
        handle._timer = None
        if not self._is_current(handle):
            return
        call_guarded(stop, where=f"task {handle.kind} stop", bus=self._bus)
        self._finish(handle, TaskOutcome.COMPLETED)

    def _on_runner_done(self, handle: TaskHandle, runner: "asyncio.Task[Any]") -> None:
        if not self._is_current(handle):
            # Superseded: the result belongs to nobody.
            if not runner.cancelled() and runner.exception() is not None:
                log.debug("Dropping stale failure of %r: %r", handle, runner.exception())
            return

        if runner.cancelled():
            self._finish(handle, TaskOutcome.CANCELLED)
            return

        exc = runner.exception()
        if exc is not None:
            log.info("Task %s for %s failed: %s", handle.kind, handle.sender.name, exc)
            emit_task_failure(
                self._bus,
                handle.kind,
                handle.sender.name,
                error_repr=repr(exc),
                generation=handle.generation,
            )
            self._finish(handle, TaskOutcome.FAILED, error=exc)
        else:
            self._finish(handle, TaskOutcome.COMPLETED, result=runner.result())

    def _finish(
        self,
        handle: TaskHandle,
        outcome: TaskOutcome,
        *,
        result: Any = None,
        error: Optional[BaseException] = None,
    ) -> None:
        if self._current is handle:
            self._current = None
        if handle._settle(outcome, result=result, error=error, bus=self._bus):
            self._publish_finished(handle)

    def _publish_finished(self, handle: TaskHandle) -> None:
        log_event(
            self._bus,
            module="orchestration.task_slot",
            event_type=EventType.TASK_FINISHED,
            message=f"Task {handle.kind} {handle.outcome.value if handle.outcome else 'settled'}",
            payload={
                "kind": handle.kind,
                "sender": handle.sender.name,
                "generation": handle.generation,
                "outcome": handle.outcome.value if handle.outcome else None,
                "error": repr(handle.error) if handle.error else None,
            },
            correlation_id=handle.sender.name,
        )
