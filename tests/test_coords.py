# tests/test_coords.py

from __future__ import annotations

import pytest

from contracts.types import Position
from orchestration.coords import (
    find_coordinate_triples,
    parse_coordinate,
    parse_int_prefix,
    parse_position,
)


@pytest.mark.parametrize(
    "text, expected",
    [("5", 5), ("4abc", 4), ("-3", -3), ("abc", None), ("", None), (None, None)],
)
def test_parse_int_prefix(text, expected):
    assert parse_int_prefix(text) == expected


def test_relative_coordinates_floor_against_current():
    assert parse_coordinate("~", 10.7) == 10
    assert parse_coordinate("~5", 10.7) == 15
    assert parse_coordinate("~-2", 0.5) == -2


def test_absolute_coordinate_and_garbage():
    assert parse_coordinate("100", 3.0) == 100
    with pytest.raises(ValueError):
        parse_coordinate("north", 3.0)


def test_parse_position_mixes_relative_and_absolute():
    pos = parse_position(["~", "64", "~-3"], Position(10.2, 70.0, -4.5))
    assert pos == Position(10, 64, -8)


def test_relative_position_needs_current():
    with pytest.raises(ValueError):
        parse_position(["~", "64", "0"], None)
    assert parse_position(["1", "2", "3"], None) == Position(1, 2, 3)


def test_find_coordinate_triples_in_free_text():
    text = "patrol between 0 64 0 and ~10 ~ -5 please"
    assert find_coordinate_triples(text) == [["0", "64", "0"], ["~10", "~", "-5"]]
