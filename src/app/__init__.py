# src/app/__init__.py
"""
Application entrypoints.

- build_runtime: config -> wired Orchestrator + event log + settings file
- configure_logging: root logger setup for front ends
"""

from __future__ import annotations

from .logging_config import configure_logging
from .runtime import AppRuntime, build_runtime, build_translator

__all__ = [
    "AppRuntime",
    "build_runtime",
    "build_translator",
    "configure_logging",
]
