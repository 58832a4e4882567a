# src/orchestration/commands/gathering.py
"""Block search and collection: mine, findblock, stop."""

from __future__ import annotations

from typing import Optional

from contracts.types import Position
from contracts.world import UnknownBlockError
from orchestration.task_slot import TaskHandle, TaskOutcome

from .registry import CommandCall, CommandUsageError, command


def _where(pos: Position) -> str:
    p = pos.floored()
    return f"{p.x}, {p.y}, {p.z}"


@command("mine", category="Combat & Mining", usage="mine <block>", summary="Find and mine specified block")
def mine(ctx, call: CommandCall) -> None:
    block = call.arg(1)
    if not block:
        raise CommandUsageError("Usage: mine <block_type>")

    session = ctx.live_session()
    sender = call.sender
    distance = ctx.config.tasks.block_search_distance
    notifier = ctx.notifier

    async def _mine() -> Optional[Position]:
        pos = await session.find_nearest_block(block, distance)
        if pos is None:
            return None
        notifier.broadcast(f"§e* Bot found {block} at {_where(pos)}")
        await session.collect_block(pos)
        return pos

    def _finished(handle: TaskHandle) -> None:
        if handle.outcome is TaskOutcome.COMPLETED:
            if handle.result is None:
                notifier.notify(sender, f"Cannot find {block} within {distance} blocks")
            else:
                notifier.broadcast(f"§e* Bot successfully mined {block}")
                notifier.notify(sender, f"Successfully mined {block}")
        elif handle.outcome is TaskOutcome.FAILED:
            if isinstance(handle.error, UnknownBlockError):
                notifier.notify(sender, f"Unknown block type: {block}")
            else:
                notifier.notify(sender, f"Failed to mine {block}: {handle.error}")

    notifier.broadcast(f"§e* Bot is searching for {block}")
    notifier.notify(sender, f"Searching for {block}")
    handle = ctx.slot.run_awaited("mine", sender, _mine, on_cancel=session.stop_collecting)
    handle.add_done_callback(_finished)


@command("findblock", category="Combat & Mining", usage="findblock <block>", summary="Locate the nearest block of a type")
def findblock(ctx, call: CommandCall) -> None:
    block = call.arg(1)
    if not block:
        raise CommandUsageError("Usage: findblock <block_type>")

    session = ctx.live_session()
    sender = call.sender
    distance = ctx.config.tasks.block_search_distance
    notifier = ctx.notifier

    def _finished(handle: TaskHandle) -> None:
        if handle.outcome is TaskOutcome.COMPLETED:
            if handle.result is None:
                notifier.notify(sender, f"Could not find {block} within {distance} blocks")
            else:
                where = _where(handle.result)
                notifier.notify(sender, f"Found {block} at {where}")
                notifier.broadcast(f"§e* Bot found {block} at {where}")
        elif handle.outcome is TaskOutcome.FAILED:
            if isinstance(handle.error, UnknownBlockError):
                notifier.notify(sender, f"Unknown block type: {block}")
            else:
                notifier.notify(sender, f"Error executing command: {handle.error}")

    handle = ctx.slot.run_awaited(
        "findblock",
        sender,
        lambda: session.find_nearest_block(block, distance),
    )
    handle.add_done_callback(_finished)


@command("stop", category="Combat & Mining", usage="stop", summary="Stop the current mining operation")
def stop(ctx, call: CommandCall) -> None:
    ctx.live_session().stop_collecting()
    ctx.notifier.notify(call.sender, "Stopped current mining operation")
