# src/env/loader.py
"""
Configuration loader.

Reads config/orchestrator.yaml (or the file named by $MINEBOT_CONFIG)
into an OrchestratorConfig. Missing sections and keys fall back to the
dataclass defaults; unknown keys and nonsensical values are rejected.
"""

from __future__ import annotations

import os
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

import yaml

from .schema import OrchestratorConfig


PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG_NAME = "orchestrator.yaml"
CONFIG_ENV_VAR = "MINEBOT_CONFIG"

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from disk."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _build(cls: Type[T], raw: Any, where: str) -> T:
    """Build dataclass `cls` from a mapping, recursing into nested sections."""
    if raw is None:
        return cls()
    if not isinstance(raw, Mapping):
        raise ValueError(f"Config section '{where}' must be a mapping, got {type(raw).__name__}")

    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ValueError(f"Unknown key(s) in config section '{where}': {', '.join(unknown)}")

    kwargs: Dict[str, Any] = {}
    defaults = cls()
    for name, value in raw.items():
        default_value = getattr(defaults, name)
        if is_dataclass(default_value):
            kwargs[name] = _build(type(default_value), value, f"{where}.{name}" if where else name)
        else:
            kwargs[name] = value
    return cls(**kwargs)


def _validate(cfg: OrchestratorConfig) -> None:
    """Minimal sanity checks."""
    if int(cfg.reconnect.max_attempts) < 1:
        raise ValueError("reconnect.max_attempts must be >= 1")

    delays = {
        "reconnect.retry_delay_s": cfg.reconnect.retry_delay_s,
        "reconnect.cooldown_delay_s": cfg.reconnect.cooldown_delay_s,
        "commands.cooldown_s": cfg.commands.cooldown_s,
        "commands.ai_command_delay_s": cfg.commands.ai_command_delay_s,
        "tasks.step_duration_s": cfg.tasks.step_duration_s,
        "tasks.jump_hold_s": cfg.tasks.jump_hold_s,
        "tasks.jump_gap_s": cfg.tasks.jump_gap_s,
        "behaviors.follow_interval_s": cfg.behaviors.follow_interval_s,
        "behaviors.patrol_step_delay_s": cfg.behaviors.patrol_step_delay_s,
        "credentials.login_delay_s": cfg.credentials.login_delay_s,
        "credentials.robot_check_delay_s": cfg.credentials.robot_check_delay_s,
    }
    for name, value in delays.items():
        if not isinstance(value, (int, float)) or value < 0:
            raise ValueError(f"{name} must be a non-negative number, got {value!r}")

    if cfg.tasks.block_search_distance <= 0:
        raise ValueError("tasks.block_search_distance must be positive")
    if not cfg.commands.console_id:
        raise ValueError("commands.console_id must not be empty")
    if not cfg.commands.public_prefix:
        raise ValueError("commands.public_prefix must not be empty")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def config_from_mapping(data: Optional[Mapping[str, Any]]) -> OrchestratorConfig:
    """Build and validate an OrchestratorConfig from an already-parsed mapping."""
    cfg = _build(OrchestratorConfig, data or {}, "")
    _validate(cfg)
    return cfg


def resolve_config_path(path: Optional[Path] = None) -> Path:
    """Explicit path > $MINEBOT_CONFIG > config/orchestrator.yaml."""
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return CONFIG_ROOT / DEFAULT_CONFIG_NAME


def load_config(path: Optional[Path] = None) -> OrchestratorConfig:
    """Main entry point: returns a fully resolved OrchestratorConfig."""
    return config_from_mapping(_load_yaml(resolve_config_path(path)))
