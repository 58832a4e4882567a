# path: src/runtime/failure_mitigation.py

"""
Failure reporting helpers.

Turns the fault taxonomy of the core into structured LOG events:

1) Transient session faults (disconnect, kick, error)
     emit_session_fault(...)            subtype SESSION_FAULT
2) Command-admission faults (cooldown, permission, usage)
     emit_admission_rejected(...)       subtype ADMISSION_REJECTED
3) Task execution faults (unreachable goal, vanished target, ...)
     emit_task_failure(...)             subtype TASK_FAULT
4) Capability re-arm problems (movement profile, live viewer)
     emit_capability_warning(...)       subtype CAPABILITY_WARNING

These helpers only report. Recovery decisions stay with the caller.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event


JsonDict = Dict[str, Any]


def emit_session_fault(
    bus: Optional[EventBus],
    reason: str,
    *,
    detail: Optional[str] = None,
    attempts: int = 0,
) -> None:
    """A session left Live (or never reached it)."""
    payload: JsonDict = {
        "subtype": "SESSION_FAULT",
        "reason": reason,
        "detail": detail,
        "attempts": attempts,
    }
    log_event(
        bus,
        module="orchestration.connection",
        event_type=EventType.LOG,
        message=f"Session fault: {reason}",
        payload=payload,
    )


def emit_admission_rejected(
    bus: Optional[EventBus],
    sender: str,
    command: str,
    *,
    reason: str,
) -> None:
    """A command was refused before dispatch. reason: cooldown | permission | not_connected."""
    payload: JsonDict = {
        "subtype": "ADMISSION_REJECTED",
        "sender": sender,
        "command": command,
        "reason": reason,
    }
    log_event(
        bus,
        module="orchestration.router",
        event_type=EventType.COMMAND_REJECTED,
        message=f"Rejected {command!r} from {sender}: {reason}",
        payload=payload,
        correlation_id=sender,
    )


def emit_task_failure(
    bus: Optional[EventBus],
    kind: str,
    sender: str,
    *,
    error_repr: str,
    generation: Optional[int] = None,
) -> None:
    """An awaited task (or a behavior step) failed."""
    payload: JsonDict = {
        "subtype": "TASK_FAULT",
        "kind": kind,
        "sender": sender,
        "error": error_repr,
        "generation": generation,
    }
    log_event(
        bus,
        module="orchestration.task_slot",
        event_type=EventType.LOG,
        message=f"Task {kind} failed",
        payload=payload,
        correlation_id=sender,
    )


def emit_capability_warning(
    bus: Optional[EventBus],
    capability: str,
    message: str,
    *,
    error_repr: Optional[str] = None,
) -> None:
    """A dependent capability could not be (re-)armed. Never fatal."""
    payload: JsonDict = {
        "subtype": "CAPABILITY_WARNING",
        "capability": capability,
        "error": error_repr,
    }
    log_event(
        bus,
        module="orchestration.connection",
        event_type=EventType.LOG,
        message=message,
        payload=payload,
    )
