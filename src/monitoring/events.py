# path: src/monitoring/events.py
"""
Monitoring event schema for the orchestration core.

MonitoringEvent is the single structured record that flows over the
EventBus. All events are JSON-serializable via `.to_dict()` and are
consumed by monitoring.logger.JsonFileLogger and the console front end.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the orchestration core."""

    # Connection lifecycle
    SESSION_STATE_CHANGED = auto()
    RECONNECT_SCHEDULED = auto()
    CAPABILITY_ARMED = auto()

    # Command admission / routing
    COMMAND_ADMITTED = auto()
    COMMAND_REJECTED = auto()

    # Task slot
    TASK_STARTED = auto()
    TASK_FINISHED = auto()

    # Behavior supervisor
    BEHAVIOR_STARTED = auto()
    BEHAVIOR_STOPPED = auto()

    # Feedback / ambient notifications
    NOTIFICATION = auto()

    # Generic log messages (payload["subtype"] narrows the meaning)
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the core.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module ("orchestration.task_slot", ...)
    event_type: EventType
    message: str                # Short human-readable description
    payload: Dict[str, Any]
    correlation_id: Optional[str] = None  # e.g. sender name or task generation

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name
        return data
