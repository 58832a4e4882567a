# src/orchestration/commands/combat.py
"""kill <player>: awaited attack, cancelled by stopping combat."""

from __future__ import annotations

from orchestration.task_slot import TaskHandle, TaskOutcome

from .registry import CommandCall, CommandUsageError, command


@command("kill", category="Combat & Mining", usage="kill <player>", summary="Attack specified player")
def kill(ctx, call: CommandCall) -> None:
    target = call.arg(1)
    if not target:
        raise CommandUsageError("Usage: kill <player>")

    session = ctx.live_session()
    sender = call.sender
    if session.player_position(target) is None:
        ctx.notifier.notify(sender, f"Cannot find player {target}")
        return

    def _finished(handle: TaskHandle) -> None:
        if handle.outcome is TaskOutcome.FAILED:
            ctx.notifier.notify(sender, f"Failed to attack {target}: {handle.error}")

    ctx.notifier.broadcast(f"§c* Bot is attacking {target}")
    ctx.notifier.notify(sender, f"Attacking {target}")
    handle = ctx.slot.run_awaited(
        "attack",
        sender,
        lambda: session.attack(target),
        on_cancel=session.stop_attack,
    )
    handle.add_done_callback(_finished)
