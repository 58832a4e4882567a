# src/monitoring/__init__.py
"""Monitoring: event schema, in-process bus and JSONL logger."""

from __future__ import annotations

from .bus import EventBus
from .events import EventType, MonitoringEvent
from .logger import JsonFileLogger, log_event

__all__ = [
    "EventBus",
    "EventType",
    "JsonFileLogger",
    "MonitoringEvent",
    "log_event",
]
