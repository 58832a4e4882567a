# src/orchestration/commands/general.py
"""Chat, hotbar and held item, live view, notification toggle and help."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from orchestration.coords import parse_int_prefix
from runtime.error_handling import spawn_logged

from .registry import CommandCall, CommandUsageError, command

log = logging.getLogger(__name__)

# Tool categories match by item-id suffix; "axe" never matches a pickaxe.
_ITEM_CATEGORIES = {
    "sword": re.compile(r"sword$"),
    "pickaxe": re.compile(r"pickaxe$"),
    "axe": re.compile(r"(^|_)axe$"),
    "shovel": re.compile(r"shovel$"),
    "bow": re.compile(r"^bow$"),
    "shield": re.compile(r"shield"),
}


@command("say", category="Other", usage="say <message>", summary="Send chat message")
def say(ctx, call: CommandCall) -> None:
    text = call.rest(1)
    if not text:
        raise CommandUsageError("Usage: say <message>")
    ctx.live_session().send_chat(text)
    ctx.notifier.notify(call.sender, f"Message sent: {text}")


@command("slot", "ss", category="Other", usage="slot <1-9>", summary="Select hotbar slot")
def slot(ctx, call: CommandCall) -> None:
    n = parse_int_prefix(call.arg(1))
    if n is None or not 1 <= n <= 9:
        raise CommandUsageError("Please specify a valid slot number (1-9)")
    ctx.live_session().set_hotbar_slot(n - 1)
    ctx.notifier.notify(call.sender, f"Selected hotbar slot {n}")


@command("equip", category="Other", usage="equip <item>", summary="Hold an inventory item")
def equip(ctx, call: CommandCall) -> None:
    query = call.rest(1).strip().lower().replace(" ", "_")
    if not query:
        raise CommandUsageError("Usage: equip <item>")

    session = ctx.live_session()
    sender = call.sender
    notifier = ctx.notifier
    item = find_inventory_item(query, session.inventory_items())
    if item is None:
        notifier.notify(sender, f"Could not find {query} in inventory")
        return

    async def _equip() -> None:
        try:
            await session.equip(item)
        except Exception as exc:
            log.warning("Equip of %s failed: %s", item, exc)
            notifier.notify(sender, f"Failed to equip {item}: {exc}")
            return
        notifier.notify(sender, f"Equipped {item}")

    spawn_logged(_equip(), name=f"equip:{item}", bus=ctx.bus)


def find_inventory_item(query: str, inventory: Iterable[str]) -> Optional[str]:
    """First inventory item matching a tool category or, failing that, containing `query`."""
    items = list(inventory)
    pattern = _ITEM_CATEGORIES.get(query)
    if pattern is not None:
        return next((name for name in items if pattern.search(name)), None)
    return next((name for name in items if query in name), None)


@command("pov", category="Other", usage="pov", summary="Show the live view URL")
def pov(ctx, call: CommandCall) -> None:
    ctx.live_session()
    url = ctx.connection.arm_viewer()
    if url is None:
        ctx.notifier.notify(call.sender, "Failed to initialize POV viewer")
    else:
        ctx.notifier.notify(call.sender, f"View your POV at {url}")


@command("notify", category="Other", usage="notify <on|off>", summary="Toggle ambient notifications",
         requires_session=False)
def notify(ctx, call: CommandCall) -> None:
    mode = (call.arg(1) or "").lower()
    if mode == "on":
        ctx.notifier.enabled = True
        ctx.notifier.notify(call.sender, "Notifications enabled")
    elif mode == "off":
        ctx.notifier.enabled = False
        ctx.notifier.notify(call.sender, "Notifications disabled")
    else:
        raise CommandUsageError("Usage: notify <on|off>")


@command("help", category="Other", usage="help", summary="Show this help", requires_session=False)
def help_(ctx, call: CommandCall) -> None:
    for line in help_lines(ctx.registry, console=call.sender.is_console):
        ctx.notifier.notify(call.sender, line)


def help_lines(registry, *, console: bool = True):
    """
    Console gets one line per command; chat senders get one line per
    category to keep the whisper count down.
    """
    lines = []
    for category, specs in registry.by_category().items():
        if console:
            lines.append(f"{category}:")
            for spec in specs:
                lines.append(f"  {spec.usage:<32} - {spec.summary}")
        else:
            lines.append(f"{category}: " + ", ".join(spec.name for spec in specs))
    lines.append("neutral - Stop all actions")
    return lines
