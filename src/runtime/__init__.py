# src/runtime/__init__.py
"""Fault boundaries and failure reporting for the event loop."""

from __future__ import annotations

from .error_handling import call_guarded, install_loop_exception_handler, spawn_logged
from .failure_mitigation import (
    emit_admission_rejected,
    emit_capability_warning,
    emit_session_fault,
    emit_task_failure,
)

__all__ = [
    "call_guarded",
    "emit_admission_rejected",
    "emit_capability_warning",
    "emit_session_fault",
    "emit_task_failure",
    "install_loop_exception_handler",
    "spawn_logged",
]
