# tests/test_behaviors.py

from __future__ import annotations

import asyncio

import pytest

from bot_core.testing.fakes import FakeWorldSession
from contracts.types import Goal, Position
from env.schema import BehaviorConfig
from monitoring.bus import EventBus
from monitoring.events import EventType
from orchestration.behaviors import BehaviorSupervisor, FollowBehavior, PatrolBehavior
from orchestration.task_slot import TaskSlot

from fakes.fake_orchestration import ALICE, EventLog, RecordingNotifier, settle


A = Position(0, 64, 0)
B = Position(10, 64, 0)


def make_supervisor(session: FakeWorldSession, *, neutral=lambda: False):
    bus = EventBus()
    notifier = RecordingNotifier()
    sup = BehaviorSupervisor(
        TaskSlot(bus),
        lambda: session,
        notifier,
        BehaviorConfig(follow_interval_s=0.02, follow_radius=2.0, patrol_step_delay_s=0.005),
        is_neutral=neutral,
        bus=bus,
    )
    return sup, notifier, EventLog(bus)


# ------------------------------------------------------------------
# Follow
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_follow_issues_near_goal_toward_target():
    session = FakeWorldSession()
    session.players["Steve"] = Position(5, 64, 5)
    sup, notifier, events = make_supervisor(session)

    assert sup.follow("Steve", ALICE)
    await settle()

    assert isinstance(sup.current, FollowBehavior)
    assert session.goals[0] == Goal(5, 64, 5, radius=2.0)
    assert notifier.to("Alice") == ["Now following Steve"]
    assert notifier.broadcasts == ["§e* Bot is now following Steve"]
    assert len(events.of(EventType.BEHAVIOR_STARTED)) == 1
    sup.stop()


@pytest.mark.asyncio
async def test_follow_repeats_on_interval():
    session = FakeWorldSession()
    session.players["Steve"] = Position(5, 64, 5)
    sup, _, _ = make_supervisor(session)

    sup.follow("Steve", ALICE)
    await asyncio.sleep(0.07)

    assert len(session.goals) >= 3
    sup.stop()


@pytest.mark.asyncio
async def test_follow_same_target_toggles_off():
    session = FakeWorldSession()
    session.players["Steve"] = Position(5, 64, 5)
    sup, notifier, _ = make_supervisor(session)

    sup.follow("Steve", ALICE)
    assert not sup.follow("Steve", ALICE)

    assert sup.current is None
    assert notifier.to("Alice")[-1] == "Stopped following Steve"


@pytest.mark.asyncio
async def test_follow_unknown_player_is_refused():
    session = FakeWorldSession()
    sup, notifier, _ = make_supervisor(session)

    assert not sup.follow("Ghost", ALICE)
    assert sup.current is None
    assert notifier.to("Alice") == ["Cannot find player Ghost"]


@pytest.mark.asyncio
async def test_follow_ends_when_target_disappears():
    session = FakeWorldSession()
    session.players["Steve"] = Position(5, 64, 5)
    sup, notifier, events = make_supervisor(session)

    sup.follow("Steve", ALICE)
    await settle()
    del session.players["Steve"]
    await asyncio.sleep(0.05)

    assert sup.current is None
    assert notifier.to("Alice")[-1] == "Stopped following Steve"
    assert events.of(EventType.BEHAVIOR_STOPPED)[-1].payload["reason"] == "finished"


@pytest.mark.asyncio
async def test_follow_tolerates_failed_steps():
    session = FakeWorldSession()
    session.players["Steve"] = Position(5, 64, 5)
    session.operation_error = RuntimeError("no path")
    sup, _, _ = make_supervisor(session)

    sup.follow("Steve", ALICE)
    await asyncio.sleep(0.05)

    assert isinstance(sup.current, FollowBehavior)
    assert len(session.goals) >= 2
    sup.stop()


# ------------------------------------------------------------------
# Patrol
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_patrol_runs_requested_loops_then_stops():
    session = FakeWorldSession()
    sup, notifier, _ = make_supervisor(session)

    assert sup.patrol([A, B], 1, ALICE)
    await asyncio.sleep(0.1)

    assert [g.position for g in session.goals] == [A, B]
    assert all(g.radius is None for g in session.goals)
    assert sup.current is None
    assert notifier.to("Alice") == [
        "Starting patrol between points for 1 loops",
        "Stopped patrolling",
    ]


@pytest.mark.asyncio
async def test_patrol_without_limit_keeps_going():
    session = FakeWorldSession()
    sup, notifier, _ = make_supervisor(session)

    sup.patrol([A, B], None, ALICE)
    await asyncio.sleep(0.08)

    patrol = sup.current
    assert isinstance(patrol, PatrolBehavior)
    assert patrol.visits >= 3
    assert notifier.to("Alice")[0] == "Starting patrol between points for infinite loops"
    sup.stop()


@pytest.mark.asyncio
async def test_patrol_failure_reports_and_stops():
    session = FakeWorldSession()
    session.operation_error = RuntimeError("no path")
    sup, notifier, _ = make_supervisor(session)

    sup.patrol([A, B], None, ALICE)
    await asyncio.sleep(0.03)

    assert sup.current is None
    assert notifier.to("Alice")[-2:] == ["Patrol error: no path", "Stopped patrolling"]


@pytest.mark.asyncio
async def test_superseded_patrol_step_retries_same_waypoint():
    session = FakeWorldSession(hold_operations=True)
    sup, _, _ = make_supervisor(session)

    sup.patrol([A, B], None, ALICE)
    await settle()
    assert session.pending_operations == 1

    # A foreground command takes the slot.
    sup.slot.cancel_current()
    await asyncio.sleep(0.02)

    assert [g.position for g in session.goals] == [A, A]
    assert isinstance(sup.current, PatrolBehavior)
    sup.stop()


@pytest.mark.asyncio
async def test_second_patrol_toggles_off():
    session = FakeWorldSession(hold_operations=True)
    sup, notifier, _ = make_supervisor(session)

    sup.patrol([A, B], 2, ALICE)
    await settle()
    assert not sup.patrol([A, B], 2, ALICE)

    assert sup.current is None
    assert session.stops.pathfinding == 1
    assert notifier.to("Alice")[-1] == "Stopped patrolling"


@pytest.mark.asyncio
async def test_patrol_needs_two_waypoints():
    session = FakeWorldSession()
    sup, _, _ = make_supervisor(session)
    with pytest.raises(ValueError):
        sup.patrol([A], None, ALICE)


# ------------------------------------------------------------------
# Supervisor
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_starting_other_behavior_replaces_current():
    session = FakeWorldSession(hold_operations=True)
    session.players["Steve"] = Position(5, 64, 5)
    sup, _, events = make_supervisor(session)

    sup.follow("Steve", ALICE)
    await settle()
    sup.patrol([A, B], None, ALICE)

    assert isinstance(sup.current, PatrolBehavior)
    stopped = events.of(EventType.BEHAVIOR_STOPPED)
    assert stopped[-1].payload["kind"] == "follow"
    assert stopped[-1].payload["reason"] == "replaced"
    sup.stop()


@pytest.mark.asyncio
async def test_silent_stop_returns_behavior():
    session = FakeWorldSession(hold_operations=True)
    sup, notifier, _ = make_supervisor(session)

    sup.patrol([A, B], None, ALICE)
    await settle()
    before = list(notifier.feedback)

    stopped = sup.stop(reason="neutral")

    assert isinstance(stopped, PatrolBehavior)
    assert notifier.feedback == before
    assert sup.slot.current is None
    assert sup.stop() is None


@pytest.mark.asyncio
async def test_neutral_flag_ends_behavior_on_next_step():
    neutral = [False]
    session = FakeWorldSession()
    session.players["Steve"] = Position(5, 64, 5)
    sup, notifier, _ = make_supervisor(session, neutral=lambda: neutral[0])

    sup.follow("Steve", ALICE)
    await settle()
    neutral[0] = True
    await asyncio.sleep(0.05)

    assert sup.current is None
    assert notifier.to("Alice")[-1] == "Stopped following Steve"
