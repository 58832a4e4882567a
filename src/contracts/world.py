# WorldSession capability interface
# src/contracts/world.py

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional, Protocol

from .types import Goal, Position


# Event names emitted by a WorldSession. Payloads are plain mappings:
#   spawn    {}
#   end      {"reason": str}
#   kicked   {"reason": str}
#   error    {"error": str, "code": str | None}
#   chat     {"username": str, "message": str}
#   whisper  {"username": str, "message": str}
#   message  {"text": str}        (any server/system line)
#   window_open {"type": str, "slots": [{"slot": int, "name": str}, ...]}
EVENT_SPAWN = "spawn"
EVENT_END = "end"
EVENT_KICKED = "kicked"
EVENT_ERROR = "error"
EVENT_CHAT = "chat"
EVENT_WHISPER = "whisper"
EVENT_MESSAGE = "message"
EVENT_WINDOW_OPEN = "window_open"

SESSION_EVENTS = (
    EVENT_SPAWN,
    EVENT_END,
    EVENT_KICKED,
    EVENT_ERROR,
    EVENT_CHAT,
    EVENT_WHISPER,
    EVENT_MESSAGE,
    EVENT_WINDOW_OPEN,
)

SessionEventHandler = Callable[[Mapping[str, Any]], None]


class UnknownBlockError(LookupError):
    """The world does not know a block type by that name."""

    def __init__(self, block_type: str) -> None:
        super().__init__(f"Unknown block type: {block_type}")
        self.block_type = block_type


class WorldSession(Protocol):
    """
    Narrow capability surface over one connection to the remote world.

    Implementations:
      - bot_core.net.ipc.IpcWorldSession (JSON-lines bridge)
      - bot_core.testing.fakes.FakeWorldSession (tests)

    Awaitable operations resolve when the remote operation finishes and
    raise on failure. The matching stop_* call asks the remote side to
    abandon the operation; it never raises.
    """

    username: str

    async def connect(self) -> None:
        """Open the connection. Spawn is reported later via the event stream."""
        ...

    async def disconnect(self) -> None:
        """Close the connection. Idempotent."""
        ...

    def on_event(self, event: str, handler: SessionEventHandler) -> None:
        """Register the handler for one of SESSION_EVENTS."""
        ...

    # -- state ---------------------------------------------------------

    def position(self) -> Optional[Position]:
        ...

    def player_position(self, name: str) -> Optional[Position]:
        """Last known position of a visible player, or None."""
        ...

    # -- control inputs ------------------------------------------------

    def set_control_state(self, control: str, state: bool) -> None:
        ...

    def get_control_state(self, control: str) -> bool:
        ...

    def set_hotbar_slot(self, slot: int) -> None:
        """Select hotbar slot (0-based)."""
        ...

    # -- awaited operations ----------------------------------------------

    async def pathfind_to(self, goal: Goal) -> None:
        ...

    def stop_pathfinding(self) -> None:
        ...

    async def attack(self, player: str) -> None:
        ...

    def stop_attack(self) -> None:
        ...

    async def find_nearest_block(
        self, block_type: str, max_distance: int
    ) -> Optional[Position]:
        """Raise UnknownBlockError if block_type is not a known block."""
        ...

    async def collect_block(self, position: Position) -> None:
        ...

    def stop_collecting(self) -> None:
        ...

    # -- inventory and windows -------------------------------------------

    def inventory_items(self) -> List[str]:
        """Item ids currently held in the inventory."""
        ...

    async def equip(self, item: str) -> None:
        """Move the named inventory item to the main hand."""
        ...

    async def click_window_slot(self, slot: int) -> None:
        """Left-click a slot of the currently open window."""
        ...

    # -- chat ----------------------------------------------------------

    def send_chat(self, text: str) -> None:
        ...

    def send_direct(self, recipient: str, text: str) -> None:
        ...

    # -- dependent capabilities (re-armed on every spawn) ----------------

    def load_movement_profile(self) -> None:
        ...

    def start_viewer(self, port: int, *, first_person: bool = True, view_distance: int = 6) -> None:
        """Start the live view. Raises OSError(EADDRINUSE) if the port is taken."""
        ...
