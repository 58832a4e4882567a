# natural-language translator capability
# src/contracts/translator.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol


class TranslationError(RuntimeError):
    """The translator could not produce commands for the given text."""


@dataclass
class Translation:
    """
    Result of translating free text.

    understanding:
        One short human-readable line describing the interpretation.
    commands:
        Canonical command strings, in execution order.
    """

    understanding: str
    commands: List[str] = field(default_factory=list)


class CommandTranslator(Protocol):
    """Black-box translator from free text to canonical command strings."""

    async def translate(self, text: str) -> Translation:
        """Raise TranslationError on failure."""
        ...
