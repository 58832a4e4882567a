# src/orchestration/commands/navigation.py
"""Pathfinding commands (goto, come, pos) and behavior entry points (follow, patrol)."""

from __future__ import annotations

from contracts.types import Goal, Position, Sender
from orchestration.coords import parse_int_prefix, parse_position
from orchestration.task_slot import TaskHandle, TaskOutcome

from .registry import CommandCall, CommandUsageError, command


INVALID_COORDS = "Invalid coordinates. Use numbers or ~ for relative coordinates."


def goto_position(ctx, sender: Sender, pos: Position) -> TaskHandle:
    """Exact-goal pathfinding task with the usual progress messages."""
    session = ctx.live_session()
    notifier = ctx.notifier
    where = str(pos)

    def _finished(handle: TaskHandle) -> None:
        if handle.outcome is TaskOutcome.COMPLETED:
            notifier.notify(sender, "Reached destination!")
            notifier.broadcast("§e* Bot reached its destination")
        elif handle.outcome is TaskOutcome.FAILED:
            notifier.notify(sender, f"Failed to reach coordinates: {handle.error}")

    notifier.broadcast(f"§e* Bot is moving to coordinates: {where}")
    notifier.notify(sender, f"Moving to coordinates: {where}")
    goal = Goal.exact(pos)
    handle = ctx.slot.run_awaited(
        "goto",
        sender,
        lambda: session.pathfind_to(goal),
        on_cancel=session.stop_pathfinding,
    )
    handle.add_done_callback(_finished)
    return handle


def goto_player(ctx, sender: Sender, name: str) -> None:
    session = ctx.live_session()
    notifier = ctx.notifier
    target = session.player_position(name)
    if target is None:
        notifier.notify(sender, f"Cannot find player {name}")
        return

    def _finished(handle: TaskHandle) -> None:
        if handle.outcome is TaskOutcome.COMPLETED:
            notifier.notify(sender, f"Reached {name}!")
            notifier.broadcast(f"§e* Bot reached {name}")
        elif handle.outcome is TaskOutcome.FAILED:
            notifier.notify(sender, f"Failed to reach {name}: {handle.error}")

    notifier.broadcast(f"§e* Bot is moving to {name}'s location")
    notifier.notify(sender, f"Moving to {name}'s location")
    goal = Goal.near(target, ctx.config.tasks.player_goal_radius)
    handle = ctx.slot.run_awaited(
        "goto",
        sender,
        lambda: session.pathfind_to(goal),
        on_cancel=session.stop_pathfinding,
    )
    handle.add_done_callback(_finished)


@command("goto", "g", category="Navigation", usage="goto <x> <y> <z> | goto <player>",
         summary="Walk to coordinates (~ for relative) or to a player")
def goto(ctx, call: CommandCall) -> None:
    if call.argc < 2:
        raise CommandUsageError("Usage: goto <x> <y> <z> OR goto <player>")
    if call.argc == 2:
        goto_player(ctx, call.sender, call.args[1])
        return
    if call.argc < 4:
        raise CommandUsageError(INVALID_COORDS)
    try:
        pos = parse_position(call.args[1:4], ctx.live_session().position())
    except ValueError:
        raise CommandUsageError(INVALID_COORDS) from None
    goto_position(ctx, call.sender, pos)


@command("come", category="Navigation", usage="come", summary="Walk to your position")
def come(ctx, call: CommandCall) -> None:
    pos = ctx.live_session().player_position(call.sender.name)
    if pos is None:
        ctx.notifier.notify(call.sender, "Cannot find your position.")
        return
    goto_position(ctx, call.sender, pos)


@command("pos", "position", category="Navigation", usage="pos", summary="Report the bot's position")
def position(ctx, call: CommandCall) -> None:
    pos = ctx.live_session().position()
    if pos is None:
        ctx.notifier.notify(call.sender, "Position unknown.")
        return
    p = pos.floored()
    ctx.notifier.notify(call.sender, f"Current position: x={p.x}, y={p.y}, z={p.z}")


@command("follow", category="Navigation", usage="follow <player>",
         summary="Follow a player (repeat to stop)")
def follow(ctx, call: CommandCall) -> None:
    target = call.arg(1)
    if not target:
        raise CommandUsageError("Usage: follow <player>")
    ctx.live_session()
    ctx.behaviors.follow(target, call.sender)


@command("patrol", category="Navigation", usage="patrol <x1> <y1> <z1> <x2> <y2> <z2> [loops]",
         summary="Walk between two points (repeat to stop)")
def patrol(ctx, call: CommandCall) -> None:
    if call.argc < 7:
        raise CommandUsageError("Usage: patrol <x1> <y1> <z1> <x2> <y2> <z2> [loops]")
    current = ctx.live_session().position()
    try:
        a = parse_position(call.args[1:4], current)
        b = parse_position(call.args[4:7], current)
    except ValueError:
        raise CommandUsageError(INVALID_COORDS) from None
    # 0, negative, missing or non-numeric means unbounded
    loops = parse_int_prefix(call.arg(7))
    if loops is not None and loops <= 0:
        loops = None
    ctx.behaviors.patrol([a, b], loops, call.sender)
