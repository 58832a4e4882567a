# src/orchestration/behaviors.py
"""
Background behaviors (follow, patrol) and their supervisor.

A behavior is a small state machine advanced by loop timers. Each step
is an ordinary Task Slot client (one goto per step), so a directly
issued command supersedes the in-flight step without stopping the
behavior; the behavior simply takes the slot back on its next step.

At most one behavior is active. Only `neutral`, re-issuing the same
behavior (toggle), starting the other behavior, connection loss, or the
behavior's own stop condition ends it.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from contracts.notifier import Notifier
from contracts.types import Goal, Position, Sender
from contracts.world import WorldSession
from env.schema import BehaviorConfig
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event

from .task_slot import TaskHandle, TaskOutcome, TaskSlot


log = logging.getLogger(__name__)

SessionProvider = Callable[[], Optional[WorldSession]]


class BehaviorKind(Enum):
    FOLLOW = "follow"
    PATROL = "patrol"


class Behavior:
    """Base class: timer bookkeeping shared by follow and patrol."""

    kind: BehaviorKind

    def __init__(self, supervisor: "BehaviorSupervisor", sender: Sender) -> None:
        self._sup = supervisor
        self.sender = sender
        self.active = False
        self._timer: Optional[asyncio.TimerHandle] = None
        self._step: Optional[TaskHandle] = None

    def start(self) -> None:
        self.active = True
        self._schedule(0.0)

    def halt(self) -> None:
        """Stop scheduling and withdraw our in-flight step from the slot."""
        self.active = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        step, self._step = self._step, None
        slot = self._sup.slot
        if step is not None and slot.current is step:
            slot.cancel_current()

    def describe(self) -> str:
        return self.kind.value

    def _schedule(self, delay_s: float) -> None:
        if not self.active:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay_s, self._tick)

    def _tick(self) -> None:
        self._timer = None
        if not self.active:
            return
        self.step()

    def step(self) -> None:
        raise NotImplementedError


class FollowBehavior(Behavior):
    """
    Re-issue a goto-near toward the target on a fixed period.

    Goto failures are tolerated; losing sight of the target (or the
    neutral flag) ends the behavior.
    """

    kind = BehaviorKind.FOLLOW

    def __init__(self, supervisor: "BehaviorSupervisor", sender: Sender, target: str) -> None:
        super().__init__(supervisor, sender)
        self.target = target

    def describe(self) -> str:
        return f"following {self.target}"

    def step(self) -> None:
        sup = self._sup
        session = sup.session()
        target_pos = session.player_position(self.target) if session is not None else None
        if target_pos is None or sup.is_neutral():
            sup.finish(self, f"Stopped following {self.target}")
            return

        goal = Goal.near(target_pos, sup.config.follow_radius)
        self._step = sup.slot.run_awaited(
            "follow",
            self.sender,
            lambda: session.pathfind_to(goal),
            on_cancel=session.stop_pathfinding,
        )
        self._step.add_done_callback(self._step_done)
        self._schedule(sup.config.follow_interval_s)

    def _step_done(self, handle: TaskHandle) -> None:
        if handle.outcome is TaskOutcome.FAILED:
            log.debug("Follow step toward %s failed (ignored): %r", self.target, handle.error)


class PatrolBehavior(Behavior):
    """
    Walk back and forth between two waypoints.

    loop_limit=None patrols forever; otherwise the behavior stops after
    that many full A->B loops. A failed goto ends the patrol and is
    reported to the sender; a superseded goto is retried on the next step.
    """

    kind = BehaviorKind.PATROL

    def __init__(
        self,
        supervisor: "BehaviorSupervisor",
        sender: Sender,
        waypoints: Sequence[Position],
        loop_limit: Optional[int] = None,
    ) -> None:
        super().__init__(supervisor, sender)
        if len(waypoints) != 2:
            raise ValueError("patrol needs exactly two waypoints")
        self.waypoints: Tuple[Position, Position] = (waypoints[0], waypoints[1])
        self.loop_limit = loop_limit
        self.current_index = 0
        self.current_loop = 0
        self.visits = 0

    def describe(self) -> str:
        limit = "inf" if self.loop_limit is None else str(self.loop_limit)
        return f"patrolling loop {self.current_loop}/{limit} -> point {self.current_index + 1}"

    def step(self) -> None:
        sup = self._sup
        finished = self.loop_limit is not None and self.current_loop >= self.loop_limit
        session = sup.session()
        if finished or sup.is_neutral() or session is None:
            sup.finish(self, "Stopped patrolling")
            return

        goal = Goal.exact(self.waypoints[self.current_index])
        self._step = sup.slot.run_awaited(
            "patrol",
            self.sender,
            lambda: session.pathfind_to(goal),
            on_cancel=session.stop_pathfinding,
        )
        self._step.add_done_callback(self._step_done)

    def _step_done(self, handle: TaskHandle) -> None:
        if self._step is handle:
            self._step = None
        if not self.active:
            return

        sup = self._sup
        if handle.outcome is TaskOutcome.COMPLETED:
            self.visits += 1
            self.current_index = (self.current_index + 1) % len(self.waypoints)
            if self.current_index == 0:
                self.current_loop += 1
            self._schedule(sup.config.patrol_step_delay_s)
        elif handle.outcome is TaskOutcome.FAILED:
            sup.notifier.notify(self.sender, f"Patrol error: {handle.error}")
            sup.finish(self, "Stopped patrolling")
        else:
            # Superseded by a foreground command: try the same waypoint again.
            self._schedule(sup.config.patrol_step_delay_s)


class BehaviorSupervisor:
    """Owns the zero-or-one active Behavior."""

    def __init__(
        self,
        slot: TaskSlot,
        session: SessionProvider,
        notifier: Notifier,
        config: Optional[BehaviorConfig] = None,
        *,
        is_neutral: Callable[[], bool] = lambda: False,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.slot = slot
        self.session = session
        self.notifier = notifier
        self.config = config or BehaviorConfig()
        self.is_neutral = is_neutral
        self._bus = bus
        self._current: Optional[Behavior] = None

    @property
    def current(self) -> Optional[Behavior]:
        return self._current

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def follow(self, target: str, sender: Sender) -> bool:
        """Start following `target`; toggles off if already following it."""
        current = self._current
        if isinstance(current, FollowBehavior) and current.target == target:
            self.stop(sender)
            return False

        session = self.session()
        if session is None or session.player_position(target) is None:
            self.notifier.notify(sender, f"Cannot find player {target}")
            return False

        self._replace(FollowBehavior(self, sender, target))
        self.notifier.broadcast(f"§e* Bot is now following {target}")
        self.notifier.notify(sender, f"Now following {target}")
        return True

    def patrol(
        self,
        waypoints: Sequence[Position],
        loop_limit: Optional[int],
        sender: Sender,
    ) -> bool:
        """Start patrolling; toggles off if a patrol is already running."""
        if isinstance(self._current, PatrolBehavior):
            self.stop(sender)
            return False

        behavior = PatrolBehavior(self, sender, waypoints, loop_limit)
        loops = "infinite" if loop_limit is None else str(loop_limit)
        self.notifier.notify(sender, f"Starting patrol between points for {loops} loops")
        self._replace(behavior)
        return True

    def stop(self, sender: Optional[Sender] = None, *, reason: str = "stopped") -> Optional[Behavior]:
        """Stop the active behavior, telling `sender` (if given) what stopped."""
        behavior = self._current
        if behavior is None:
            return None
        self._current = None
        behavior.halt()
        self._publish(EventType.BEHAVIOR_STOPPED, behavior, reason)
        if sender is not None:
            self.notifier.notify(sender, self._stopped_message(behavior))
        return behavior

    # ------------------------------------------------------------------
    # Called by behaviors
    # ------------------------------------------------------------------

    def finish(self, behavior: Behavior, message: str) -> None:
        """A behavior reached its own stop condition."""
        if self._current is behavior:
            self._current = None
        behavior.halt()
        self._publish(EventType.BEHAVIOR_STOPPED, behavior, "finished")
        self.notifier.notify(behavior.sender, message)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _replace(self, behavior: Behavior) -> None:
        previous = self._current
        if previous is not None:
            self._current = None
            previous.halt()
            self._publish(EventType.BEHAVIOR_STOPPED, previous, "replaced")
        self._current = behavior
        behavior.start()
        self._publish(EventType.BEHAVIOR_STARTED, behavior, "started")

    @staticmethod
    def _stopped_message(behavior: Behavior) -> str:
        if isinstance(behavior, FollowBehavior):
            return f"Stopped following {behavior.target}"
        return "Stopped patrolling"

    def _publish(self, event_type: EventType, behavior: Behavior, reason: str) -> None:
        log.info("Behavior %s %s (%s)", behavior.kind.value, event_type.name.lower(), reason)
        log_event(
            self._bus,
            module="orchestration.behaviors",
            event_type=event_type,
            message=f"Behavior {behavior.kind.value} {reason}",
            payload={
                "kind": behavior.kind.value,
                "sender": behavior.sender.name,
                "reason": reason,
                "state": behavior.describe(),
            },
            correlation_id=behavior.sender.name,
        )
