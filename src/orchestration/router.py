# src/orchestration/router.py
"""
Command Router.

route(raw, sender) runs synchronously on the event loop:

  1. tokenize on whitespace; the first token (case-insensitive) names the command
  2. cooldown gate (console and translated lines exempt)
  3. cancel the Task Slot occupant, for every admitted command
  4. `neutral` -> global stop
  5. look up the handler; unknown names get a hint
  6. privileged commands: console or owner only
  7. world commands need a Live session
  8. run the handler; any exception becomes feedback
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from contracts.types import Sender
from monitoring.events import EventType
from monitoring.logger import log_event
from runtime.failure_mitigation import emit_admission_rejected

from .commands.registry import CommandCall, CommandUsageError

if TYPE_CHECKING:
    from .orchestrator import Orchestrator


log = logging.getLogger(__name__)

COOLDOWN_MESSAGE = "Please wait before using another command."
NEUTRAL_MESSAGE = "Stopped all actions and returned to neutral state."
UNKNOWN_MESSAGE = 'Unknown command. Type "help" for available commands.'
NOT_CONNECTED_MESSAGE = "Bot is not connected."

NEUTRAL_COMMAND = "neutral"


class RouteOutcome(Enum):
    IGNORED = "ignored"            # empty line
    COOLDOWN = "cooldown"
    NEUTRAL = "neutral"
    UNKNOWN = "unknown"
    DENIED = "denied"
    NOT_CONNECTED = "not_connected"
    USAGE = "usage"
    FAILED = "failed"
    DISPATCHED = "dispatched"


class CommandRouter:
    def __init__(self, ctx: "Orchestrator") -> None:
        self._ctx = ctx

    def route(self, raw: str, sender: Sender) -> RouteOutcome:
        ctx = self._ctx
        args = raw.split()
        if not args:
            return RouteOutcome.IGNORED
        name = args[0].lower()
        log.info("[COMMAND] %s: %s", sender, raw)

        if not sender.is_console and not sender.is_translated:
            if not ctx.cooldown.admit(sender.name):
                emit_admission_rejected(ctx.bus, sender.name, name, reason="cooldown")
                ctx.notifier.notify(sender, COOLDOWN_MESSAGE)
                return RouteOutcome.COOLDOWN

        ctx.slot.cancel_current()

        if name == NEUTRAL_COMMAND:
            self._admitted(sender, name)
            ctx.global_stop()
            ctx.notifier.notify(sender, NEUTRAL_MESSAGE)
            return RouteOutcome.NEUTRAL

        spec = ctx.registry.lookup(name)
        if spec is None:
            ctx.notifier.notify(sender, UNKNOWN_MESSAGE)
            return RouteOutcome.UNKNOWN

        if spec.privileged and not self._is_privileged(sender):
            emit_admission_rejected(ctx.bus, sender.name, name, reason="permission")
            ctx.notifier.notify(sender, spec.denied.format(owner=ctx.owner))
            return RouteOutcome.DENIED

        if spec.requires_session and ctx.session is None:
            emit_admission_rejected(ctx.bus, sender.name, name, reason="not_connected")
            ctx.notifier.notify(sender, NOT_CONNECTED_MESSAGE)
            return RouteOutcome.NOT_CONNECTED

        self._admitted(sender, name)
        ctx.clear_neutral()
        call = CommandCall(name=name, args=args, raw=raw, sender=sender)
        try:
            spec.handler(ctx, call)
        except CommandUsageError as exc:
            emit_admission_rejected(ctx.bus, sender.name, name, reason="usage")
            ctx.notifier.notify(sender, str(exc))
            return RouteOutcome.USAGE
        except Exception as exc:
            log.exception("Command %r from %s failed", name, sender.name)
            log_event(
                ctx.bus,
                module="orchestration.router",
                event_type=EventType.LOG,
                message=f"Command {name} failed",
                payload={"subtype": "COMMAND_FAULT", "command": name, "error": repr(exc)},
                correlation_id=sender.name,
            )
            ctx.notifier.notify(sender, f"Error executing command: {exc}")
            return RouteOutcome.FAILED
        return RouteOutcome.DISPATCHED

    def _is_privileged(self, sender: Sender) -> bool:
        return sender.is_console or sender.name == self._ctx.owner

    def _admitted(self, sender: Sender, name: str) -> None:
        log_event(
            self._ctx.bus,
            module="orchestration.router",
            event_type=EventType.COMMAND_ADMITTED,
            message=f"{name} from {sender.name}",
            payload={"command": name, "sender": sender.name, "channel": sender.channel.value},
            correlation_id=sender.name,
        )
