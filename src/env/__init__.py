# src/env/__init__.py
"""Configuration loading (YAML -> OrchestratorConfig)."""

from __future__ import annotations

from .loader import config_from_mapping, load_config, resolve_config_path
from .schema import OrchestratorConfig

__all__ = [
    "OrchestratorConfig",
    "config_from_mapping",
    "load_config",
    "resolve_config_path",
]
