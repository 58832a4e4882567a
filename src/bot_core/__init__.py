# bot_core package
# src/bot_core/__init__.py
"""
bot_core package: concrete WorldSession implementations.

Exports:
    - IpcWorldSession: session hosted by the game-client bridge process
    - BridgeError: domain-level error type for bridge failures
"""

from __future__ import annotations

from .net import BridgeError, IpcWorldSession, create_world_session_factory

__all__ = [
    "BridgeError",
    "IpcWorldSession",
    "create_world_session_factory",
]
