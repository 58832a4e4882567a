# src/orchestration/commands/movement.py
"""Movement primitives: directional steps (timed), jumps (awaited), sneak."""

from __future__ import annotations

import asyncio

from orchestration.coords import parse_int_prefix
from orchestration.task_slot import TaskHandle, TaskOutcome

from .registry import CommandCall, command


def _count(call: CommandCall) -> int:
    n = parse_int_prefix(call.arg(1))
    return n if n is not None and n > 0 else 1


def _move(ctx, call: CommandCall, direction: str) -> None:
    session = ctx.live_session()
    steps = _count(call)
    sender = call.sender
    duration = steps * ctx.config.tasks.step_duration_s

    def _finished(handle: TaskHandle) -> None:
        if handle.outcome is TaskOutcome.COMPLETED:
            ctx.notifier.notify(sender, f"Finished moving {direction}")
            ctx.notifier.broadcast(f"§e* Bot finished moving {direction}")

    ctx.notifier.broadcast(f"§e* Bot is moving {direction} for {steps} steps")
    handle = ctx.slot.run_timed(
        "move",
        sender,
        duration,
        start=lambda: session.set_control_state(direction, True),
        stop=lambda: session.set_control_state(direction, False),
    )
    ctx.notifier.notify(sender, f"Moving {direction} for {steps} steps")
    handle.add_done_callback(_finished)


@command("up", "forward", category="Movement", usage="up <steps>", summary="Move forward X steps")
def move_forward(ctx, call: CommandCall) -> None:
    _move(ctx, call, "forward")


@command("down", "back", category="Movement", usage="down <steps>", summary="Move backward X steps")
def move_back(ctx, call: CommandCall) -> None:
    _move(ctx, call, "back")


@command("left", category="Movement", usage="left <steps>", summary="Move left X steps")
def move_left(ctx, call: CommandCall) -> None:
    _move(ctx, call, "left")


@command("right", category="Movement", usage="right <steps>", summary="Move right X steps")
def move_right(ctx, call: CommandCall) -> None:
    _move(ctx, call, "right")


@command("jump", category="Movement", usage="jump <count>", summary="Jump X times")
def jump(ctx, call: CommandCall) -> None:
    session = ctx.live_session()
    count = _count(call)
    hold = ctx.config.tasks.jump_hold_s
    gap = ctx.config.tasks.jump_gap_s
    sender = call.sender

    async def _jumps() -> int:
        for _ in range(count):
            session.set_control_state("jump", True)
            await asyncio.sleep(hold)
            session.set_control_state("jump", False)
            await asyncio.sleep(gap)
        return count

    def _finished(handle: TaskHandle) -> None:
        if handle.outcome is TaskOutcome.COMPLETED:
            ctx.notifier.notify(sender, "Finished jumping")

    ctx.notifier.notify(sender, f"Performing {count} jumps")
    handle = ctx.slot.run_awaited(
        "jump",
        sender,
        _jumps,
        on_cancel=lambda: session.set_control_state("jump", False),
    )
    handle.add_done_callback(_finished)


@command("sneak", category="Movement", usage="sneak", summary="Toggle sneaking")
def sneak(ctx, call: CommandCall) -> None:
    session = ctx.live_session()
    sneaking = not session.get_control_state("sneak")
    session.set_control_state("sneak", sneaking)
    ctx.notifier.notify(call.sender, f"Sneak {'enabled' if sneaking else 'disabled'}")
