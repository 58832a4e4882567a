# src/orchestration/__init__.py
"""
Session & Task Orchestration core.

Leaves first: CooldownGate, TaskSlot, BehaviorSupervisor, CommandRouter,
ConnectionManager; Orchestrator wires them into one owned context.
"""

from __future__ import annotations

from .behaviors import BehaviorKind, BehaviorSupervisor, FollowBehavior, PatrolBehavior
from .connection import ConnectionManager
from .cooldown import CooldownGate
from .notifier import ChatNotifier
from .orchestrator import Orchestrator
from .router import CommandRouter, RouteOutcome
from .task_slot import TaskHandle, TaskOutcome, TaskSlot

__all__ = [
    "BehaviorKind",
    "BehaviorSupervisor",
    "ChatNotifier",
    "CommandRouter",
    "ConnectionManager",
    "CooldownGate",
    "FollowBehavior",
    "Orchestrator",
    "PatrolBehavior",
    "RouteOutcome",
    "TaskHandle",
    "TaskOutcome",
    "TaskSlot",
]
