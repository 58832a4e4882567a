# tests/test_commands.py
"""Built-in command handlers driven through the router against a FakeWorldSession."""

from __future__ import annotations

import asyncio
import errno

import pytest

from contracts.types import Channel, Goal, Position, Sender
from orchestration.behaviors import FollowBehavior, PatrolBehavior
from orchestration.commands.navigation import INVALID_COORDS
from orchestration.router import RouteOutcome
from orchestration.task_slot import TaskOutcome

from fakes.fake_orchestration import ALICE, CONSOLE, fast_config, make_harness, settle, start_live


# ------------------------------------------------------------------
# Movement
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_move_engages_then_releases_control():
    h = make_harness()
    session = await start_live(h)

    h.route("up 3", ALICE)
    assert session.controls["forward"] is True
    handle = h.orch.slot.current
    assert handle.kind == "move"

    assert await handle.wait() is TaskOutcome.COMPLETED
    assert session.control_log == [("forward", True), ("forward", False)]
    assert session.messages_to("Alice") == ["Moving forward for 3 steps", "Finished moving forward"]


@pytest.mark.asyncio
@pytest.mark.parametrize("raw, control", [("back 1", "back"), ("down 1", "back"), ("left 1", "left"), ("right 1", "right")])
async def test_direction_aliases(raw, control):
    h = make_harness()
    session = await start_live(h)

    h.route(raw, CONSOLE)
    assert session.controls[control] is True
    await h.orch.slot.current.wait()
    assert session.controls[control] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("arg", ["", "0", "-4", "lots"])
async def test_step_count_defaults_to_one(arg):
    h = make_harness()
    await start_live(h)

    h.route(f"up {arg}".strip(), CONSOLE)
    assert h.console[-1] == "Moving forward for 1 steps"
    h.orch.slot.cancel_current()


@pytest.mark.asyncio
async def test_new_move_releases_previous_direction():
    h = make_harness()
    session = await start_live(h)

    h.route("up 100", CONSOLE)
    h.route("left 100", CONSOLE)

    assert session.controls == {"forward": False, "left": True}
    # The cancelled move never reports completion.
    assert "Finished moving forward" not in h.console
    h.orch.slot.cancel_current()


@pytest.mark.asyncio
async def test_jump_presses_and_releases():
    h = make_harness()
    session = await start_live(h)

    h.route("jump 2", CONSOLE)
    await h.orch.slot.current.wait()

    assert session.control_log == [("jump", True), ("jump", False)] * 2
    assert h.console[-2:] == ["Performing 2 jumps", "Finished jumping"]


@pytest.mark.asyncio
async def test_cancelled_jump_releases_jump():
    h = make_harness()
    session = await start_live(h)

    h.route("jump 50", CONSOLE)
    await asyncio.sleep(0.001)
    h.orch.slot.cancel_current()

    assert session.controls["jump"] is False


@pytest.mark.asyncio
async def test_sneak_toggles():
    h = make_harness()
    session = await start_live(h)

    h.route("sneak", CONSOLE)
    assert session.controls["sneak"] is True
    h.route("sneak", CONSOLE)
    assert session.controls["sneak"] is False
    assert h.console[-2:] == ["Sneak enabled", "Sneak disabled"]


# ------------------------------------------------------------------
# Combat & mining
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_kill_unknown_player():
    h = make_harness()
    session = await start_live(h)

    h.route("kill Ghost", CONSOLE)
    assert h.console[-1] == "Cannot find player Ghost"
    assert session.attacks == []


@pytest.mark.asyncio
async def test_kill_attacks_and_cancel_stops_combat():
    h = make_harness(hold_operations=True)
    session = await start_live(h)
    session.players["Steve"] = Position(3, 64, 3)

    h.route("kill Steve", CONSOLE)
    await settle()
    assert session.attacks == ["Steve"]
    assert "§c* Bot is attacking Steve" in session.chat

    h.route("pos", CONSOLE)
    assert session.stops.attack == 1


@pytest.mark.asyncio
async def test_kill_failure_is_reported():
    h = make_harness()
    session = await start_live(h)
    session.players["Steve"] = Position(3, 64, 3)
    session.operation_error = RuntimeError("target out of reach")

    h.route("kill Steve", CONSOLE)
    await h.orch.slot.current.wait()

    assert h.console[-1] == "Failed to attack Steve: target out of reach"


@pytest.mark.asyncio
async def test_mine_finds_and_collects():
    h = make_harness()
    session = await start_live(h)
    session.blocks["iron_ore"] = Position(4.5, 12, -3.2)

    h.route("mine iron_ore", CONSOLE)
    handle = h.orch.slot.current
    assert await handle.wait() is TaskOutcome.COMPLETED

    assert session.collected == [Position(4.5, 12, -3.2)]
    assert h.console[-1] == "Successfully mined iron_ore"
    assert "§e* Bot found iron_ore at 4, 12, -4" in session.chat


@pytest.mark.asyncio
async def test_mine_reports_none_found_and_unknown_type():
    h = make_harness()
    session = await start_live(h)
    session.blocks["diamond_ore"] = None

    h.route("mine diamond_ore", CONSOLE)
    await h.orch.slot.current.wait()
    assert h.console[-1] == "Cannot find diamond_ore within 64 blocks"

    h.route("mine unobtainium", CONSOLE)
    await h.orch.slot.current.wait()
    assert h.console[-1] == "Unknown block type: unobtainium"


@pytest.mark.asyncio
async def test_cancelled_mine_stops_collecting():
    h = make_harness(hold_operations=True)
    session = await start_live(h)
    session.blocks["stone"] = Position(1, 60, 1)

    h.route("mine stone", CONSOLE)
    await settle()
    h.orch.slot.cancel_current()

    assert session.stops.collecting == 1
    assert session.collected == []


@pytest.mark.asyncio
async def test_findblock_reports_location():
    h = make_harness()
    session = await start_live(h)
    session.blocks["oak_log"] = Position(7, 70, 8)

    h.route("findblock oak_log", CONSOLE)
    await h.orch.slot.current.wait()
    assert h.console[-1] == "Found oak_log at 7, 70, 8"

    session.blocks["sand"] = None
    h.route("findblock sand", CONSOLE)
    await h.orch.slot.current.wait()
    assert h.console[-1] == "Could not find sand within 64 blocks"


@pytest.mark.asyncio
async def test_stop_halts_collection():
    h = make_harness()
    session = await start_live(h)

    h.route("stop", CONSOLE)
    assert session.stops.collecting == 1
    assert h.console[-1] == "Stopped current mining operation"


# ------------------------------------------------------------------
# Navigation
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_goto_coordinates_with_relative_parts():
    h = make_harness()
    session = await start_live(h)
    session.own_position = Position(10.5, 64, -2.5)

    h.route("goto ~5 ~ 100", CONSOLE)
    await h.orch.slot.current.wait()

    assert session.goals == [Goal(15, 64, 100)]
    assert h.console[-1] == "Reached destination!"


@pytest.mark.asyncio
async def test_goto_alias_and_invalid_coordinates():
    h = make_harness()
    await start_live(h)

    assert h.route("g 1 2", CONSOLE) is RouteOutcome.USAGE
    assert h.console[-1] == INVALID_COORDS
    assert h.route("g north 2 3", CONSOLE) is RouteOutcome.USAGE
    assert h.route("goto", CONSOLE) is RouteOutcome.USAGE


@pytest.mark.asyncio
async def test_goto_player_uses_near_goal():
    h = make_harness()
    session = await start_live(h)
    session.players["Steve"] = Position(20, 65, 20)

    h.route("goto Steve", CONSOLE)
    await h.orch.slot.current.wait()

    assert session.goals == [Goal(20, 65, 20, radius=2.0)]
    assert h.console[-1] == "Reached Steve!"


@pytest.mark.asyncio
async def test_goto_failure_is_reported():
    h = make_harness()
    session = await start_live(h)
    session.operation_error = RuntimeError("No path")

    h.route("goto 1 2 3", CONSOLE)
    await h.orch.slot.current.wait()
    assert h.console[-1] == "Failed to reach coordinates: No path"


@pytest.mark.asyncio
async def test_come_walks_to_sender():
    h = make_harness()
    session = await start_live(h)

    h.route("come", ALICE)
    assert session.messages_to("Alice") == ["Cannot find your position."]

    session.players["Bob"] = Position(1, 64, 1)
    h.route("come", Sender("Bob", Channel.PRIVATE))
    await h.orch.slot.current.wait()
    assert session.goals == [Goal(1, 64, 1)]


@pytest.mark.asyncio
async def test_pos_reports_floored_position():
    h = make_harness()
    session = await start_live(h)
    session.own_position = Position(1.9, 64.2, -0.5)

    h.route("position", CONSOLE)
    assert h.console[-1] == "Current position: x=1, y=64, z=-1"

    session.own_position = None
    h.route("pos", CONSOLE)
    assert h.console[-1] == "Position unknown."


@pytest.mark.asyncio
async def test_follow_command_starts_behavior():
    h = make_harness(hold_operations=True)
    session = await start_live(h)
    session.players["Steve"] = Position(5, 64, 5)

    h.route("follow Steve", CONSOLE)
    assert isinstance(h.orch.behaviors.current, FollowBehavior)
    h.route("follow Steve", CONSOLE)
    assert h.orch.behaviors.current is None


@pytest.mark.asyncio
async def test_patrol_command_parses_waypoints_and_loops():
    h = make_harness(hold_operations=True)
    session = await start_live(h)
    session.own_position = Position(100, 64, 100)

    h.route("patrol 0 64 0 ~10 ~ ~ 3", CONSOLE)
    patrol = h.orch.behaviors.current
    assert isinstance(patrol, PatrolBehavior)
    assert patrol.waypoints == (Position(0, 64, 0), Position(110, 64, 100))
    assert patrol.loop_limit == 3
    h.orch.behaviors.stop()


@pytest.mark.asyncio
@pytest.mark.parametrize("loops", ["", "0", "-1", "forever"])
async def test_patrol_without_positive_loops_is_unbounded(loops):
    h = make_harness(hold_operations=True)
    await start_live(h)

    h.route(f"patrol 0 64 0 5 64 5 {loops}".strip(), CONSOLE)
    assert h.orch.behaviors.current.loop_limit is None
    h.orch.behaviors.stop()


@pytest.mark.asyncio
async def test_patrol_needs_six_coordinates():
    h = make_harness()
    await start_live(h)
    assert h.route("patrol 0 64 0 5 64", CONSOLE) is RouteOutcome.USAGE


@pytest.mark.asyncio
async def test_direct_command_preempts_behavior_step_but_not_behavior():
    h = make_harness(hold_operations=True)
    session = await start_live(h)
    session.players["Steve"] = Position(5, 64, 5)

    h.route("follow Steve", CONSOLE)
    await settle()
    h.route("up 1", CONSOLE)

    assert h.orch.slot.current.kind == "move"
    assert isinstance(h.orch.behaviors.current, FollowBehavior)
    h.orch.behaviors.stop()


# ------------------------------------------------------------------
# Other
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_say_sends_public_chat():
    h = make_harness()
    session = await start_live(h)

    h.route("say hello there", ALICE)
    assert "hello there" in session.chat
    assert session.messages_to("Alice") == ["Message sent: hello there"]


@pytest.mark.asyncio
async def test_slot_selection():
    h = make_harness()
    session = await start_live(h)

    h.route("ss 3", CONSOLE)
    assert session.hotbar_slot == 2
    assert h.console[-1] == "Selected hotbar slot 3"

    assert h.route("slot 12", CONSOLE) is RouteOutcome.USAGE
    assert h.console[-1] == "Please specify a valid slot number (1-9)"


@pytest.mark.asyncio
async def test_equip_picks_tool_by_category():
    h = make_harness()
    session = await start_live(h)
    session.inventory = ["stick", "iron_pickaxe", "stone_axe", "iron_sword"]

    assert h.route("equip axe", CONSOLE) is RouteOutcome.DISPATCHED
    await settle()
    assert session.equipped == ["stone_axe"]
    assert h.console[-1] == "Equipped stone_axe"

    h.route("equip sword", CONSOLE)
    await settle()
    assert session.equipped == ["stone_axe", "iron_sword"]


@pytest.mark.asyncio
async def test_equip_matches_item_name_substring():
    h = make_harness()
    session = await start_live(h)
    session.inventory = ["oak_planks", "cooked_beef"]

    h.route("equip cooked beef", CONSOLE)
    await settle()
    assert session.equipped == ["cooked_beef"]


@pytest.mark.asyncio
async def test_equip_reports_missing_item():
    h = make_harness()
    session = await start_live(h)
    session.inventory = ["stick"]

    h.route("equip diamond_sword", CONSOLE)
    await settle()
    assert session.equipped == []
    assert h.console[-1] == "Could not find diamond_sword in inventory"

    assert h.route("equip", CONSOLE) is RouteOutcome.USAGE
    assert h.console[-1] == "Usage: equip <item>"


@pytest.mark.asyncio
async def test_equip_failure_is_reported():
    h = make_harness()
    session = await start_live(h)
    session.inventory = ["shield"]
    session.operation_error = RuntimeError("inventory busy")

    h.route("equip shield", CONSOLE)
    await settle()
    assert session.equipped == []
    assert h.console[-1] == "Failed to equip shield: inventory busy"


@pytest.mark.asyncio
async def test_pov_reports_viewer_url():
    h = make_harness()
    session = await start_live(h)

    h.route("pov", CONSOLE)
    assert h.console[-1] == "View your POV at http://localhost:3001"
    # Armed once on spawn; pov reuses it.
    assert session.viewer_ports == [3001]


@pytest.mark.asyncio
async def test_pov_failure_and_port_in_use():
    h = make_harness(fast_config(viewer={"enabled": False}))
    session = await start_live(h)

    session.viewer_error = RuntimeError("no canvas")
    h.route("pov", CONSOLE)
    assert h.console[-1] == "Failed to initialize POV viewer"

    session.viewer_error = OSError(errno.EADDRINUSE, "Address in use")
    h.route("pov", CONSOLE)
    assert h.console[-1] == "View your POV at http://localhost:3001"


@pytest.mark.asyncio
async def test_notify_toggle_controls_broadcasts():
    h = make_harness()
    session = await start_live(h)

    h.route("notify off", CONSOLE)
    h.route("up 1", CONSOLE)
    assert not any(line.startswith("§e*") for line in session.chat)

    h.route("notify on", CONSOLE)
    h.route("up 1", CONSOLE)
    assert "§e* Bot is moving forward for 1 steps" in session.chat
    assert h.route("notify maybe", CONSOLE) is RouteOutcome.USAGE
    h.orch.slot.cancel_current()


@pytest.mark.asyncio
async def test_help_lists_categories():
    h = make_harness()

    h.route("help", CONSOLE)
    assert "Movement:" in h.console
    assert any(line.strip().startswith("patrol") for line in h.console)
    assert h.console[-1] == "neutral - Stop all actions"


@pytest.mark.asyncio
async def test_help_for_chat_sender_is_compact():
    h = make_harness()
    session = await start_live(h)

    h.route("help", ALICE)
    lines = session.messages_to("Alice")
    assert lines[0].startswith("Movement: up, down, left, right, jump, sneak")
    assert len(lines) == len(h.orch.registry.by_category()) + 1
