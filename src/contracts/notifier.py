# feedback / ambient notification capability
# src/contracts/notifier.py

from __future__ import annotations

from typing import Protocol

from .types import Sender


class Notifier(Protocol):
    """
    Output side of the core.

    notify():    feedback addressed to one sender.
    broadcast(): ambient status line; dropped while `enabled` is False.
    """

    enabled: bool

    def notify(self, sender: Sender, text: str) -> None:
        ...

    def broadcast(self, text: str) -> None:
        ...
