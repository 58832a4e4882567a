# path: src/runtime/error_handling.py

"""
Fault boundaries for the event loop.

- spawn_logged(): fire-and-forget coroutines with a strong reference and
  logging of anything that escapes them.
- call_guarded(): run a synchronous callback (completion hooks, capability
  re-arm) so that a failure is logged instead of unwinding the caller.
- install_loop_exception_handler(): last-resort logging for faults that
  reach the loop itself.

Each helper also emits a LOG monitoring event when a bus is given.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event


log = logging.getLogger(__name__)

# Background tasks must be referenced somewhere or the loop may drop them.
_BACKGROUND_TASKS: Set["asyncio.Task[Any]"] = set()


def _emit_unexpected(bus: Optional[EventBus], where: str, exc: BaseException) -> None:
    log_event(
        bus,
        module="runtime.error_handling",
        event_type=EventType.LOG,
        message=f"Unexpected fault in {where}",
        payload={
            "subtype": "UNEXPECTED_EXCEPTION",
            "where": where,
            "exception_repr": repr(exc),
        },
    )


def spawn_logged(
    coro: Awaitable[Any],
    *,
    name: str,
    bus: Optional[EventBus] = None,
) -> "asyncio.Task[Any]":
    """Schedule `coro` on the running loop; log it if it dies with an exception."""
    task = asyncio.ensure_future(coro)
    task.set_name(name)
    _BACKGROUND_TASKS.add(task)

    def _done(t: "asyncio.Task[Any]") -> None:
        _BACKGROUND_TASKS.discard(t)
        if t.cancelled():
            return
        exc = t.exception()
        if exc is not None:
            log.error("Background task %s failed", name, exc_info=exc)
            _emit_unexpected(bus, name, exc)

    task.add_done_callback(_done)
    return task


def call_guarded(
    fn: Callable[..., Any],
    *args: Any,
    where: str,
    bus: Optional[EventBus] = None,
) -> bool:
    """
    Call fn(*args); return False (after logging) if it raised.

    Used at boundaries where the caller must keep going: cancellation
    hooks, completion callbacks, notifier sends.
    """
    try:
        fn(*args)
    except Exception as exc:
        log.exception("Error in %s", where)
        _emit_unexpected(bus, where, exc)
        return False
    return True


def install_loop_exception_handler(
    loop: asyncio.AbstractEventLoop,
    bus: Optional[EventBus] = None,
) -> None:
    """Log anything that reaches the loop's default exception path."""

    def _handler(_loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        exc = context.get("exception")
        message = context.get("message", "unhandled event loop error")
        if exc is not None:
            log.error("Event loop fault: %s", message, exc_info=exc)
            _emit_unexpected(bus, "event_loop", exc)
        else:
            log.error("Event loop fault: %s", message)

    loop.set_exception_handler(_handler)
