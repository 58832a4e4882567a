# src/orchestration/cooldown.py
"""
Per-sender admission gate.

A sender other than the console is admitted at most once per cooldown
interval. Stale records are pruned lazily once the table grows past
`prune_threshold`; a record older than the interval can no longer
reject anything, so pruning never changes an admission decision.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional


class CooldownGate:
    def __init__(
        self,
        cooldown_s: float = 2.0,
        *,
        console_id: str = "CONSOLE",
        clock: Callable[[], float] = time.monotonic,
        prune_threshold: int = 1024,
    ) -> None:
        self._cooldown_s = float(cooldown_s)
        self._console_id = console_id
        self._clock = clock
        self._prune_threshold = prune_threshold
        self._last_admitted: Dict[str, float] = {}

    @property
    def cooldown_s(self) -> float:
        return self._cooldown_s

    @cooldown_s.setter
    def cooldown_s(self, value: float) -> None:
        if value < 0:
            raise ValueError("cooldown must be non-negative")
        self._cooldown_s = float(value)

    def admit(self, sender_id: str, now: Optional[float] = None) -> bool:
        """Return True and record `now` if sender_id may issue a command."""
        if sender_id == self._console_id:
            return True

        now = self._clock() if now is None else now
        last = self._last_admitted.get(sender_id)
        if last is not None and now - last < self._cooldown_s:
            return False

        self._last_admitted[sender_id] = now
        if len(self._last_admitted) > self._prune_threshold:
            self.prune(now)
        return True

    def remaining(self, sender_id: str, now: Optional[float] = None) -> float:
        """Seconds until sender_id is admissible again (0.0 if it already is)."""
        last = self._last_admitted.get(sender_id)
        if last is None or sender_id == self._console_id:
            return 0.0
        now = self._clock() if now is None else now
        return max(0.0, self._cooldown_s - (now - last))

    def prune(self, now: Optional[float] = None) -> int:
        """Drop records that can no longer reject a command. Returns the count removed."""
        now = self._clock() if now is None else now
        stale = [
            sender for sender, ts in self._last_admitted.items()
            if now - ts >= self._cooldown_s
        ]
        for sender in stale:
            del self._last_admitted[sender]
        return len(stale)

    def __len__(self) -> int:
        return len(self._last_admitted)
