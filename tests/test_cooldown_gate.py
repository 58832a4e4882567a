# tests/test_cooldown_gate.py

from __future__ import annotations

import pytest

from orchestration.cooldown import CooldownGate


def test_console_is_always_admitted():
    gate = CooldownGate(2.0, console_id="CONSOLE")
    assert all(gate.admit("CONSOLE", now=0.0) for _ in range(5))
    assert len(gate) == 0


def test_second_command_within_cooldown_is_rejected():
    gate = CooldownGate(2.0)
    assert gate.admit("Alice", now=10.0)
    assert not gate.admit("Alice", now=11.5)


def test_commands_spaced_by_cooldown_are_both_admitted():
    gate = CooldownGate(2.0)
    assert gate.admit("Alice", now=10.0)
    assert gate.admit("Alice", now=12.0)


def test_rejection_does_not_reset_the_window():
    gate = CooldownGate(2.0)
    assert gate.admit("Alice", now=0.0)
    assert not gate.admit("Alice", now=1.9)
    # Measured from the last *admitted* command, not the rejected one.
    assert gate.admit("Alice", now=2.0)


def test_senders_are_independent():
    gate = CooldownGate(2.0)
    assert gate.admit("Alice", now=0.0)
    assert gate.admit("Bob", now=0.5)
    assert not gate.admit("Alice", now=1.0)


def test_remaining_reports_time_left():
    gate = CooldownGate(2.0)
    assert gate.remaining("Alice", now=0.0) == 0.0
    gate.admit("Alice", now=0.0)
    assert gate.remaining("Alice", now=0.5) == pytest.approx(1.5)
    assert gate.remaining("Alice", now=3.0) == 0.0


def test_uses_injected_clock():
    now = [100.0]
    gate = CooldownGate(2.0, clock=lambda: now[0])
    assert gate.admit("Alice")
    now[0] = 101.0
    assert not gate.admit("Alice")
    now[0] = 102.0
    assert gate.admit("Alice")


def test_prune_drops_only_stale_records():
    gate = CooldownGate(2.0)
    gate.admit("Alice", now=0.0)
    gate.admit("Bob", now=5.0)

    assert gate.prune(now=6.0) == 1
    assert len(gate) == 1
    assert not gate.admit("Bob", now=6.0)


def test_lazy_pruning_bounds_the_table():
    gate = CooldownGate(1.0, prune_threshold=10)
    for i in range(50):
        gate.admit(f"player{i}", now=float(i * 2))
    assert len(gate) <= 11


def test_negative_cooldown_rejected():
    gate = CooldownGate(2.0)
    with pytest.raises(ValueError):
        gate.cooldown_s = -1
