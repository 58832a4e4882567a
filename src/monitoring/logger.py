# JSON logger subscribing to EventBus
"""
Structured logging for the orchestration core.

Provides:
- JsonFileLogger: subscribes to an EventBus and writes MonitoringEvents as JSONL.
- log_event: convenience helper for publishing MonitoringEvents.

    bus = EventBus()
    JsonFileLogger(Path("logs/monitoring/events.jsonl"), bus)

    log_event(
        bus,
        module="orchestration.router",
        event_type=EventType.COMMAND_REJECTED,
        message="Cooldown active",
        payload={"sender": "Alice"},
    )
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Set

from .bus import EventBus
from .events import EventType, MonitoringEvent


log = logging.getLogger(__name__)


# ============================================================
# JSONL File Logger
# ============================================================

class JsonFileLogger:
    """
    JSON-lines logger for MonitoringEvent instances.

    - One JSON object per line, UTF-8.
    - Parent directory is created on demand.
    - `include` restricts the logged event types (None logs everything).
    """

    def __init__(
        self,
        path: Path,
        bus: EventBus,
        *,
        include: Optional[Iterable[EventType]] = None,
    ) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._include: Optional[Set[EventType]] = set(include) if include is not None else None
        self._file = self._path.open("a", encoding="utf-8")
        self._write_failed = False
        self._bus = bus
        bus.subscribe(self._on_event)

    @property
    def path(self) -> Path:
        return self._path

    def _on_event(self, event: MonitoringEvent) -> None:
        if self._include is not None and event.event_type not in self._include:
            return
        line = json.dumps(event.to_dict(), ensure_ascii=False, default=str)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except (OSError, ValueError):
            # Report once; a full disk should not flood the console.
            if not self._write_failed:
                log.exception("Failed to write monitoring event to %s", self._path)
            self._write_failed = True

    def close(self) -> None:
        """Unsubscribe and close the file. Call at shutdown."""
        self._bus.unsubscribe(self._on_event)
        try:
            self._file.close()
        except OSError:
            log.exception("Failed to close monitoring log %s", self._path)


# ============================================================
# Convenience helper for emitting events
# ============================================================

def log_event(
    bus: Optional[EventBus],
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Create and publish a MonitoringEvent.

    A None bus is accepted so components can run without monitoring
    (e.g. in unit tests that don't care about events).
    """
    if bus is None:
        return
    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)
