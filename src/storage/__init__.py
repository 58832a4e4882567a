# src/storage/__init__.py
"""Settings / whitelist persistence."""

from __future__ import annotations

from .settings_store import JsonSettingsStore, MemorySettingsStore

__all__ = ["JsonSettingsStore", "MemorySettingsStore"]
