# IPC bridge to the game-client process
# src/bot_core/net/ipc.py
"""
IPC-based WorldSession.

The game client itself (protocol, physics, pathfinder, combat and
block-collection plugins, live viewer) runs in a bridge process. This
session talks to it over TCP with one UTF-8 JSON object per line:

  Python -> bridge
    {"type": "command", "op": "<op>", "payload": {...}}            fire-and-forget
    {"type": "request", "id": <int>, "op": "<op>", "payload": {...}}

  bridge -> Python
    {"type": "response", "id": <int>, "ok": true,  "payload": {...}}
    {"type": "response", "id": <int>, "ok": false, "error": "...", "code": "..."}
    {"type": "event", "payload": {"event": "<name>", ...}}          see contracts.world
    {"type": "state", "payload": {"position": {...} | null,
                                  "players": {"<name>": {...} | null},
                                  "controls": {"<control>": bool},
                                  "inventory": ["<item id>", ...]}}

`state` messages refresh a local cache so position queries stay
synchronous. EOF from the bridge is reported as an `end` event.
"""

from __future__ import annotations

import asyncio
import errno
import json
import logging
import socket
from typing import Any, Dict, List, Mapping, Optional

from contracts.types import Goal, Position, SessionParams
from contracts.world import EVENT_END, SessionEventHandler, UnknownBlockError

log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]


class BridgeError(RuntimeError):
    """Transport failure, or a remote operation reported failure."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


def _position(raw: Any) -> Optional[Position]:
    if not isinstance(raw, Mapping):
        return None
    try:
        return Position(float(raw["x"]), float(raw["y"]), float(raw["z"]))
    except (KeyError, TypeError, ValueError):
        return None


class IpcWorldSession:
    """
    WorldSession over the JSON-lines bridge.

    One instance per session: the ConnectionManager builds a fresh one
    (through the factory) for every connect attempt.
    """

    def __init__(
        self,
        params: SessionParams,
        *,
        bridge_host: str = "127.0.0.1",
        bridge_port: int = 3002,
    ) -> None:
        self.params = params
        self.username = params.username
        self._bridge_host = bridge_host
        self._bridge_port = bridge_port

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._read_task: Optional["asyncio.Task[None]"] = None
        self._handlers: Dict[str, SessionEventHandler] = {}
        self._pending: Dict[int, "asyncio.Future[JsonDict]"] = {}
        self._next_id = 0
        self._closing = False

        self._position: Optional[Position] = None
        self._players: Dict[str, Optional[Position]] = {}
        self._controls: Dict[str, bool] = {}
        self._inventory: List[str] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        if self._writer is not None:
            return
        log.info(
            "IpcWorldSession connecting to bridge %s:%d for %s",
            self._bridge_host,
            self._bridge_port,
            self.params.address,
        )
        try:
            self._reader, self._writer = await asyncio.open_connection(self._bridge_host, self._bridge_port)
        except OSError as exc:
            raise BridgeError(f"Cannot reach bridge at {self._bridge_host}:{self._bridge_port}: {exc}") from exc

        self._read_task = asyncio.ensure_future(self._read_loop())
        self._command(
            "connect",
            host=self.params.host,
            port=self.params.port,
            username=self.params.username,
            version=self.params.version,
            auth="offline",
        )

    async def disconnect(self) -> None:
        if self._closing:
            return
        self._closing = True
        writer, self._writer = self._writer, None
        if writer is not None:
            try:
                writer.write(self._encode({"type": "command", "op": "quit", "payload": {}}))
                await writer.drain()
            except (OSError, RuntimeError):
                log.debug("Bridge already gone while sending quit")
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as exc:
                log.debug("Error while closing bridge connection: %s", exc)
        task, self._read_task = self._read_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        self._fail_pending(BridgeError("session closed"))

    def on_event(self, event: str, handler: SessionEventHandler) -> None:
        self._handlers[event] = handler

    # ------------------------------------------------------------------
    # Cached state
    # ------------------------------------------------------------------

    def position(self) -> Optional[Position]:
        return self._position

    def player_position(self, name: str) -> Optional[Position]:
        if name == self.username:
            return self._position
        return self._players.get(name)

    def get_control_state(self, control: str) -> bool:
        return self._controls.get(control, False)

    def inventory_items(self) -> List[str]:
        return list(self._inventory)

    # ------------------------------------------------------------------
    # Fire-and-forget commands
    # ------------------------------------------------------------------

    def set_control_state(self, control: str, state: bool) -> None:
        self._controls[control] = bool(state)
        self._command("set_control", control=control, state=bool(state))

    def set_hotbar_slot(self, slot: int) -> None:
        self._command("set_hotbar_slot", slot=int(slot))

    def stop_pathfinding(self) -> None:
        self._command("stop_pathfinding")

    def stop_attack(self) -> None:
        self._command("stop_attack")

    def stop_collecting(self) -> None:
        self._command("stop_collecting")

    def send_chat(self, text: str) -> None:
        self._command("chat", text=text)

    def send_direct(self, recipient: str, text: str) -> None:
        self._command("chat", text=f"/msg {recipient} {text}")

    def load_movement_profile(self) -> None:
        self._command("load_movements")

    def start_viewer(self, port: int, *, first_person: bool = True, view_distance: int = 6) -> None:
        # The viewer binds on the bridge host; test-bind the port here so an
        # occupied port is reported synchronously.
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((self._bridge_host, port))
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                raise OSError(errno.EADDRINUSE, f"Port {port} is already in use") from exc
            raise
        finally:
            sock.close()
        self._command("start_viewer", port=port, first_person=first_person, view_distance=view_distance)

    # ------------------------------------------------------------------
    # Awaited operations
    # ------------------------------------------------------------------

    async def pathfind_to(self, goal: Goal) -> None:
        await self._request("pathfind", goal=goal.as_dict())

    async def attack(self, player: str) -> None:
        await self._request("attack", player=player)

    async def find_nearest_block(self, block_type: str, max_distance: int) -> Optional[Position]:
        try:
            payload = await self._request("find_block", block=block_type, max_distance=max_distance)
        except BridgeError as exc:
            if exc.code == "unknown_block":
                raise UnknownBlockError(block_type) from exc
            raise
        return _position(payload.get("position"))

    async def collect_block(self, position: Position) -> None:
        await self._request("collect_block", position=position.as_dict())

    async def equip(self, item: str) -> None:
        await self._request("equip", item=item, destination="hand")

    async def click_window_slot(self, slot: int) -> None:
        await self._request("click_window", slot=int(slot), mouse_button=0, mode=0)

    # ------------------------------------------------------------------
    # Wire helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _encode(msg: Mapping[str, Any]) -> bytes:
        return json.dumps(msg, separators=(",", ":")).encode("utf-8") + b"\n"

    def _write(self, msg: Mapping[str, Any]) -> None:
        if self._writer is None or self._closing:
            raise BridgeError("IpcWorldSession is not connected")
        self._writer.write(self._encode(msg))

    def _command(self, op: str, **payload: Any) -> None:
        self._write({"type": "command", "op": op, "payload": payload})

    async def _request(self, op: str, **payload: Any) -> JsonDict:
        self._next_id += 1
        req_id = self._next_id
        fut: "asyncio.Future[JsonDict]" = asyncio.get_running_loop().create_future()
        self._pending[req_id] = fut
        try:
            self._write({"type": "request", "id": req_id, "op": op, "payload": payload})
            return await fut
        finally:
            self._pending.pop(req_id, None)

    async def _read_loop(self) -> None:
        assert self._reader is not None
        reason = "bridge closed"
        try:
            while True:
                line = await self._reader.readline()
                if not line:
                    break
                line = line.strip()
                if line:
                    self._handle_raw_line(line)
        except asyncio.CancelledError:
            raise
        except OSError as exc:
            log.warning("Bridge connection error: %s", exc)
            reason = f"bridge error: {exc}"

        self._fail_pending(BridgeError(reason))
        if not self._closing:
            log.info("IpcWorldSession received EOF; reporting end")
            self._dispatch(EVENT_END, {"reason": reason})

    def _handle_raw_line(self, line: bytes) -> None:
        try:
            obj = json.loads(line.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            log.exception("IpcWorldSession failed to decode JSON line: %r", line)
            return
        if not isinstance(obj, dict):
            log.warning("IpcWorldSession received non-object message: %r", obj)
            return

        msg_type = obj.get("type")
        payload = obj.get("payload") or {}
        if not isinstance(payload, dict):
            log.warning("IpcWorldSession received message with non-dict payload: %r", obj)
            return

        if msg_type == "response":
            self._resolve(obj, payload)
        elif msg_type == "event":
            event = payload.get("event")
            if isinstance(event, str):
                self._dispatch(event, payload)
        elif msg_type == "state":
            self._apply_state(payload)
        else:
            log.debug("IpcWorldSession ignoring message type=%r", msg_type)

    def _resolve(self, obj: Mapping[str, Any], payload: JsonDict) -> None:
        fut = self._pending.get(obj.get("id"))  # type: ignore[arg-type]
        if fut is None or fut.done():
            # Response to an abandoned request.
            return
        if obj.get("ok", False):
            fut.set_result(payload)
        else:
            fut.set_exception(BridgeError(str(obj.get("error") or "operation failed"), code=obj.get("code")))

    def _apply_state(self, payload: JsonDict) -> None:
        if "position" in payload:
            self._position = _position(payload.get("position"))
        players = payload.get("players")
        if isinstance(players, Mapping):
            self._players = {str(name): _position(raw) for name, raw in players.items()}
        controls = payload.get("controls")
        if isinstance(controls, Mapping):
            self._controls.update({str(k): bool(v) for k, v in controls.items()})
        inventory = payload.get("inventory")
        if isinstance(inventory, list):
            self._inventory = [str(item) for item in inventory]

    def _dispatch(self, event: str, payload: Mapping[str, Any]) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            log.debug("IpcWorldSession no handler for event=%s", event)
            return
        try:
            handler(payload)
        except Exception:
            log.exception("Error in session handler for %s", event)

    def _fail_pending(self, exc: BaseException) -> None:
        pending, self._pending = self._pending, {}
        for fut in pending.values():
            if not fut.done():
                fut.set_exception(exc)
