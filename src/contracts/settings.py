# persisted settings / whitelist capability
# src/contracts/settings.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Protocol


@dataclass
class BotSettings:
    """Operator-editable settings that survive restarts."""

    whitelisted_players: List[str] = field(default_factory=list)
    default_bot_name: str = "BOB101"
    default_server: str = "localhost:25565"
    command_cooldown_ms: Optional[int] = None   # None: use the configured default
    saved_servers: List[str] = field(default_factory=list)


class SettingsStore(Protocol):
    """Opaque key-value store; writes are persisted synchronously."""

    def get(self) -> BotSettings:
        ...

    def update(self, changes: Mapping[str, Any]) -> BotSettings:
        """Apply a partial update (BotSettings field names) and persist it."""
        ...
