# src/orchestration/coords.py
"""Coordinate arguments: absolute integers or `~` / `~n` relative to the bot."""

from __future__ import annotations

import math
import re
from typing import List, Optional, Sequence

from contracts.types import Position


# Matches "x y z" triples in free text; each part is ~, ~n or an integer.
COORD_TRIPLE_RE = re.compile(r"(~-?\d*|-?\d+)\s+(~-?\d*|-?\d+)\s+(~-?\d*|-?\d+)")

_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_int_prefix(text: Optional[str]) -> Optional[int]:
    """Leading integer of `text` ("4abc" -> 4), or None."""
    if text is None:
        return None
    m = _INT_PREFIX_RE.match(text)
    return int(m.group(1)) if m else None


def parse_coordinate(token: str, current: float) -> int:
    """
    `~` -> floor(current); `~n` -> floor(current + n); otherwise the
    token's leading integer. Raises ValueError when nothing parses.
    """
    if token.startswith("~"):
        offset = parse_int_prefix(token[1:]) or 0
        return math.floor(current + offset)
    value = parse_int_prefix(token)
    if value is None:
        raise ValueError(f"Invalid coordinate: {token!r}")
    return value


def parse_position(tokens: Sequence[str], current: Optional[Position]) -> Position:
    """Parse three coordinate tokens, resolving `~` against `current`."""
    if len(tokens) != 3:
        raise ValueError("Expected three coordinates")
    if current is None and any(t.startswith("~") for t in tokens):
        raise ValueError("Relative coordinates need a known position")
    base = current or Position(0, 0, 0)
    return Position(
        parse_coordinate(tokens[0], base.x),
        parse_coordinate(tokens[1], base.y),
        parse_coordinate(tokens[2], base.z),
    )


def find_coordinate_triples(text: str) -> List[List[str]]:
    """All `x y z` token triples found in free text, in order."""
    return [list(m.groups()) for m in COORD_TRIPLE_RE.finditer(text)]
