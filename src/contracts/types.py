# core shared types: Sender, Channel, Position, Goal, SessionParams
# src/contracts/types.py

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


CONSOLE_SENDER_ID = "CONSOLE"

# Control inputs the world session understands (mineflayer naming).
CONTROL_INPUTS: Tuple[str, ...] = (
    "forward",
    "back",
    "left",
    "right",
    "jump",
    "sprint",
    "sneak",
)

DEFAULT_GAME_PORT = 25565


class Channel(Enum):
    """Where a command came from."""

    CONSOLE = "console"
    PRIVATE = "private"
    PUBLIC = "public"
    AI = "ai"   # lines produced by the natural-language translator


@dataclass(frozen=True)
class Sender:
    """An actor issuing commands. Ephemeral, never persisted."""

    name: str
    channel: Channel
    # For Channel.AI: the channel the natural-language request arrived on.
    origin: Optional[Channel] = None

    @classmethod
    def console(cls, name: str = CONSOLE_SENDER_ID) -> "Sender":
        return cls(name=name, channel=Channel.CONSOLE)

    def translated(self) -> "Sender":
        """The sender identity used for lines produced by the translator."""
        if self.channel is Channel.AI:
            return self
        return Sender(name=self.name, channel=Channel.AI, origin=self.channel)

    @property
    def is_console(self) -> bool:
        if self.channel is Channel.AI:
            return self.origin is Channel.CONSOLE
        return self.channel is Channel.CONSOLE

    @property
    def is_translated(self) -> bool:
        return self.channel is Channel.AI

    def __str__(self) -> str:
        return f"{self.name} ({self.channel.value})"


class SessionState(Enum):
    """Connection state of the single live Session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    LIVE = "live"
    ENDING = "ending"


@dataclass(frozen=True)
class Position:
    """Block-space position in the remote world."""

    x: float
    y: float
    z: float

    def floored(self) -> "Position":
        return Position(math.floor(self.x), math.floor(self.y), math.floor(self.z))

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "z": self.z}

    def __str__(self) -> str:
        return f"{self.x:g}, {self.y:g}, {self.z:g}"


@dataclass(frozen=True)
class Goal:
    """
    Pathfinding goal.

    radius=None means "stand exactly on this block"; otherwise the
    pathfinder may stop anywhere within `radius` blocks.
    """

    x: float
    y: float
    z: float
    radius: Optional[float] = None

    @classmethod
    def exact(cls, pos: Position) -> "Goal":
        return cls(pos.x, pos.y, pos.z)

    @classmethod
    def near(cls, pos: Position, radius: float) -> "Goal":
        return cls(pos.x, pos.y, pos.z, radius=radius)

    @property
    def position(self) -> Position:
        return Position(self.x, self.y, self.z)

    def as_dict(self) -> dict:
        data = {"x": self.x, "y": self.y, "z": self.z}
        if self.radius is not None:
            data["radius"] = self.radius
        return data


@dataclass(frozen=True)
class SessionParams:
    """Everything needed to (re)establish a Session."""

    host: str
    port: int
    username: str
    version: str = "1.20.4"

    @classmethod
    def from_address(
        cls,
        address: str,
        username: str,
        *,
        version: str = "1.20.4",
        default_port: int = DEFAULT_GAME_PORT,
    ) -> "SessionParams":
        """Parse `host[:port]` into SessionParams."""
        address = (address or "").strip()
        if not address:
            raise ValueError("Server address is required")
        host, sep, port_text = address.partition(":")
        if not host:
            raise ValueError(f"Invalid server address: {address!r}")
        port = default_port
        if sep:
            try:
                port = int(port_text)
            except ValueError:
                raise ValueError(f"Invalid port in server address: {address!r}") from None
        return cls(host=host, port=port, username=username, version=version)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"
