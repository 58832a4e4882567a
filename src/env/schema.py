# OrchestratorConfig and section dataclasses
# src/env/schema.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class SessionConfig:
    """How to reach the remote world."""
    version: str = "1.20.4"
    default_port: int = 25565


@dataclass
class BridgeConfig:
    """TCP endpoint of the game-client bridge process (IpcWorldSession)."""
    host: str = "127.0.0.1"
    port: int = 3002


@dataclass
class ReconnectConfig:
    """Flat bounded-retry policy: N tries spaced retry_delay_s, then one cooldown."""
    max_attempts: int = 3
    retry_delay_s: float = 30.0
    cooldown_delay_s: float = 30.0


@dataclass
class CommandConfig:
    """Admission and routing knobs."""
    cooldown_s: float = 2.0
    console_id: str = "CONSOLE"
    owner: str = "SupremeYT"          # may run privileged commands remotely
    public_prefix: str = "*"          # marks commands in public chat
    ai_command_delay_s: float = 0.5   # spacing between translated commands


@dataclass
class TaskConfig:
    """Foreground task timings."""
    step_duration_s: float = 0.25     # one movement "step"
    jump_hold_s: float = 0.25
    jump_gap_s: float = 0.25
    block_search_distance: int = 64
    player_goal_radius: float = 2.0


@dataclass
class BehaviorConfig:
    """Background behavior timings."""
    follow_interval_s: float = 1.0
    follow_radius: float = 2.0
    patrol_step_delay_s: float = 1.0


@dataclass
class CredentialsConfig:
    """Server-side responders: /register + /login (disabled when password is None)
    and the iron-ingot robot check."""
    password: Optional[str] = None
    login_delay_s: float = 2.0
    robot_check_delay_s: float = 1.0


@dataclass
class ViewerConfig:
    """Optional live-view capability re-armed on spawn."""
    enabled: bool = True
    port: int = 3001
    first_person: bool = True
    view_distance: int = 6


@dataclass
class StorageConfig:
    path: str = "storage.json"


@dataclass
class MonitoringConfig:
    event_log: Optional[str] = "logs/monitoring/events.jsonl"
    log_level: str = "INFO"


@dataclass
class LlmConfig:
    """Local translator model; translator is disabled when model_path is None."""
    model_path: Optional[str] = None
    context_length: int = 4096
    gpu_layers: Optional[int] = None
    temperature: float = 0.2
    max_tokens: int = 256


@dataclass
class OrchestratorConfig:
    """Top-level resolved configuration."""
    session: SessionConfig = field(default_factory=SessionConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    reconnect: ReconnectConfig = field(default_factory=ReconnectConfig)
    commands: CommandConfig = field(default_factory=CommandConfig)
    tasks: TaskConfig = field(default_factory=TaskConfig)
    behaviors: BehaviorConfig = field(default_factory=BehaviorConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)
    viewer: ViewerConfig = field(default_factory=ViewerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    llm: LlmConfig = field(default_factory=LlmConfig)
