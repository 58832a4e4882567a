# src/orchestration/commands/registry.py
"""
Command table.

Handlers are plain functions `handler(ctx, call)` registered with the
@command decorator. Importing orchestration.commands imports every
handler module so the default table is complete; build_default_registry()
returns a fresh copy that callers may extend.

A handler either:
  - performs an instantaneous effect and replies through ctx.notifier,
  - installs a Task Slot occupant (ctx.slot.run_timed / run_awaited), or
  - hands control to the Behavior Supervisor (ctx.behaviors).

CommandUsageError raised by a handler is turned into a usage reply by
the router; any other exception becomes "Error executing command: ...".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

from contracts.types import Sender

if TYPE_CHECKING:
    from orchestration.orchestrator import Orchestrator


class CommandUsageError(ValueError):
    """Malformed arguments; the message is sent back verbatim."""


@dataclass
class CommandCall:
    """One tokenized command line."""

    name: str
    args: List[str]          # args[0] is the command word as typed
    raw: str
    sender: Sender

    def arg(self, index: int) -> Optional[str]:
        return self.args[index] if index < len(self.args) else None

    def rest(self, start: int = 1) -> str:
        return " ".join(self.args[start:])

    @property
    def argc(self) -> int:
        return len(self.args)


Handler = Callable[["Orchestrator", CommandCall], None]


@dataclass
class CommandSpec:
    name: str
    handler: Handler
    aliases: List[str] = field(default_factory=list)
    category: str = "Other"
    usage: str = ""
    summary: str = ""
    privileged: bool = False
    requires_session: bool = True
    # Reply when a non-privileged sender tries a privileged command.
    denied: str = "Only {owner} can use this command."

    @property
    def names(self) -> List[str]:
        return [self.name, *self.aliases]


class CommandRegistry:
    """Name/alias -> CommandSpec, case-insensitive."""

    def __init__(self, specs: Iterable[CommandSpec] = ()) -> None:
        self._by_name: Dict[str, CommandSpec] = {}
        self._order: List[CommandSpec] = []
        for spec in specs:
            self.register(spec)

    def register(self, spec: CommandSpec) -> None:
        for name in spec.names:
            key = name.lower()
            if key in self._by_name:
                raise ValueError(f"Duplicate command name: {name}")
        for name in spec.names:
            self._by_name[name.lower()] = spec
        self._order.append(spec)

    def lookup(self, name: str) -> Optional[CommandSpec]:
        return self._by_name.get(name.lower())

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._by_name

    def specs(self) -> List[CommandSpec]:
        return list(self._order)

    def names(self) -> List[str]:
        """Every registered name and alias."""
        return [name for spec in self._order for name in spec.names]

    def by_category(self) -> Dict[str, List[CommandSpec]]:
        out: Dict[str, List[CommandSpec]] = {}
        for spec in self._order:
            out.setdefault(spec.category, []).append(spec)
        return out


# ----------------------------------------------------------------------
# Default table
# ----------------------------------------------------------------------

_DEFAULT_SPECS: List[CommandSpec] = []


def command(
    name: str,
    *aliases: str,
    category: str = "Other",
    usage: str = "",
    summary: str = "",
    privileged: bool = False,
    requires_session: bool = True,
    denied: Optional[str] = None,
) -> Callable[[Handler], Handler]:
    """
    Register a handler in the default command table.

        @command("up", "forward", category="Movement", usage="up <steps>")
        def move_forward(ctx, call): ...
    """

    def decorator(fn: Handler) -> Handler:
        spec = CommandSpec(
            name=name,
            handler=fn,
            aliases=list(aliases),
            category=category,
            usage=usage or name,
            summary=summary,
            privileged=privileged,
            requires_session=requires_session,
        )
        if denied is not None:
            spec.denied = denied
        _DEFAULT_SPECS.append(spec)
        return fn

    return decorator


def build_default_registry() -> CommandRegistry:
    # Importing the package runs every @command decorator.
    import orchestration.commands  # noqa: F401

    return CommandRegistry(_DEFAULT_SPECS)
