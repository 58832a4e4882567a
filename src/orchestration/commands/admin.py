# src/orchestration/commands/admin.py
"""Privileged settings commands: whitelist (pw), default server (si), bot name (bn)."""

from __future__ import annotations

from .registry import CommandCall, CommandUsageError, command


@command("pw", category="Admin Commands", usage="pw <add|remove|list> [player]",
         summary="Manage the whitelist", privileged=True, requires_session=False,
         denied="Only {owner} can manage the whitelist.")
def whitelist(ctx, call: CommandCall) -> None:
    action = (call.arg(1) or "").lower()
    player = call.arg(2)
    reply = lambda text: ctx.notifier.notify(call.sender, text)  # noqa: E731

    if action == "list":
        players = ctx.settings.get().whitelisted_players
        reply(f"Whitelisted players: {', '.join(players)}")
        return
    if action not in ("add", "remove"):
        raise CommandUsageError("Usage: pw <add|remove|list> [player]")
    if not player:
        raise CommandUsageError(f"Usage: pw {action} <player>")

    players = list(ctx.settings.get().whitelisted_players)
    if action == "add":
        if player in players:
            reply(f"{player} is already whitelisted.")
            return
        players.append(player)
        ctx.settings.update({"whitelisted_players": players})
        reply(f"Added {player} to whitelist.")
        return

    if player == ctx.owner:
        reply(f"Cannot remove {ctx.owner} from whitelist.")
        return
    if player not in players:
        reply(f"{player} is not whitelisted.")
        return
    players.remove(player)
    ctx.settings.update({"whitelisted_players": players})
    reply(f"Removed {player} from whitelist.")


@command("si", category="Admin Commands", usage="si <address>", summary="Change default server address",
         privileged=True, requires_session=False, denied="Only {owner} can change server IP.")
def server_address(ctx, call: CommandCall) -> None:
    address = call.arg(1)
    if not address:
        raise CommandUsageError("Usage: si <new-ip>")
    ctx.settings.update({"default_server": address})
    ctx.notifier.notify(call.sender, f"Server IP updated to: {address}")


@command("bn", category="Admin Commands", usage="bn <name>", summary="Change default bot name",
         privileged=True, requires_session=False, denied="Only {owner} can change bot name.")
def bot_name(ctx, call: CommandCall) -> None:
    name = call.arg(1)
    if not name:
        raise CommandUsageError("Usage: bn <new-name>")
    ctx.settings.update({"default_bot_name": name})
    ctx.notifier.notify(call.sender, f"Bot name updated to: {name} (Will take effect on next bot start)")
