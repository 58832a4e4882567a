# bot_core.net package
# src/bot_core/net/__init__.py
"""
Network layer for the world session.

This package provides:
- IpcWorldSession: WorldSession over the JSON-lines bridge process
- BridgeError: transport / remote-operation failure
- create_world_session_factory(): SessionFactory wired to BridgeConfig
"""

from __future__ import annotations

from typing import Callable, Optional

from contracts.types import SessionParams
from contracts.world import WorldSession
from env.schema import BridgeConfig

from .ipc import BridgeError, IpcWorldSession


def create_world_session_factory(
    bridge: Optional[BridgeConfig] = None,
) -> Callable[[SessionParams], WorldSession]:
    """Return a factory building one IpcWorldSession per connect attempt."""
    cfg = bridge or BridgeConfig()

    def _factory(params: SessionParams) -> WorldSession:
        return IpcWorldSession(params, bridge_host=cfg.host, bridge_port=cfg.port)

    return _factory


__all__ = [
    "BridgeError",
    "IpcWorldSession",
    "create_world_session_factory",
]
