# tests/test_commands_admin.py

from __future__ import annotations

import pytest

from contracts.types import Channel, Sender
from orchestration.router import RouteOutcome

from fakes.fake_orchestration import ALICE, CONSOLE, OWNER, make_harness


@pytest.mark.asyncio
async def test_whitelist_add_list_remove():
    h = make_harness()

    h.route("pw add Alice", CONSOLE)
    assert h.settings.get().whitelisted_players == [OWNER, "Alice"]
    assert h.console[-1] == "Added Alice to whitelist."

    h.route("pw add Alice", CONSOLE)
    assert h.console[-1] == "Alice is already whitelisted."

    h.route("pw list", CONSOLE)
    assert h.console[-1] == f"Whitelisted players: {OWNER}, Alice"

    h.route("pw remove Alice", CONSOLE)
    assert h.settings.get().whitelisted_players == [OWNER]
    assert h.console[-1] == "Removed Alice from whitelist."

    h.route("pw remove Alice", CONSOLE)
    assert h.console[-1] == "Alice is not whitelisted."


@pytest.mark.asyncio
async def test_owner_cannot_be_removed():
    h = make_harness()

    h.route(f"pw remove {OWNER}", CONSOLE)
    assert h.settings.get().whitelisted_players == [OWNER]
    assert h.console[-1] == f"Cannot remove {OWNER} from whitelist."


@pytest.mark.asyncio
async def test_whitelist_usage():
    h = make_harness()
    assert h.route("pw", CONSOLE) is RouteOutcome.USAGE
    assert h.console[-1] == "Usage: pw <add|remove|list> [player]"
    assert h.route("pw add", CONSOLE) is RouteOutcome.USAGE
    assert h.console[-1] == "Usage: pw add <player>"


@pytest.mark.asyncio
async def test_whitelist_denied_for_players():
    h = make_harness()
    assert h.route("pw add Mallory", ALICE) is RouteOutcome.DENIED
    assert "Mallory" not in h.settings.get().whitelisted_players


@pytest.mark.asyncio
async def test_owner_may_manage_whitelist_from_chat():
    h = make_harness()
    owner = Sender(OWNER, Channel.PRIVATE)
    assert h.route("pw add Bob", owner) is RouteOutcome.DISPATCHED
    assert "Bob" in h.settings.get().whitelisted_players


@pytest.mark.asyncio
async def test_server_and_bot_name_are_used_on_next_start():
    h = make_harness()

    h.route("si play.example.org:25570", CONSOLE)
    h.route("bn Helper", CONSOLE)
    assert h.console[-2:] == [
        "Server IP updated to: play.example.org:25570",
        "Bot name updated to: Helper (Will take effect on next bot start)",
    ]

    params = await h.orch.start_session()
    assert (params.host, params.port, params.username) == ("play.example.org", 25570, "Helper")


@pytest.mark.asyncio
async def test_si_and_bn_usage():
    h = make_harness()
    assert h.route("si", CONSOLE) is RouteOutcome.USAGE
    assert h.console[-1] == "Usage: si <new-ip>"
    assert h.route("bn", CONSOLE) is RouteOutcome.USAGE
    assert h.console[-1] == "Usage: bn <new-name>"
