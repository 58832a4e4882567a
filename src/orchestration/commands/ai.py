# src/orchestration/commands/ai.py
"""ai <text>: hand free text to the translator; each produced line is routed in turn."""

from __future__ import annotations

from .registry import CommandCall, CommandUsageError, command


AI_COMMAND = "ai"


@command(AI_COMMAND, category="Other", usage="ai <text>", summary="Run a natural-language request")
def ai(ctx, call: CommandCall) -> None:
    # Only original requests may start a translation.
    if call.sender.is_translated:
        raise CommandUsageError("AI output cannot start another AI request.")
    text = call.rest(1)
    if not text:
        raise CommandUsageError("Usage: ai <natural language command>")
    if ctx.ai is None:
        ctx.notifier.notify(call.sender, "AI translation is not configured.")
        return
    ctx.ai.submit(text, call.sender)
