# src/llm_stack/keyword.py
"""
KeywordCommandTranslator: rule-based fallback used when no model is
configured. Recognizes a handful of phrasings ("go forward 3", "attack
Steve", "mine iron ore", "hold a sword", "come here", ...) and yields at
most one command.
Text that matches nothing yields no commands (ordinary chat).
"""

from __future__ import annotations

import re
from typing import Callable, Dict, Optional

from contracts.translator import Translation
from orchestration.coords import find_coordinate_triples


DEFAULT_STEPS = 5

# Multi-word phrases first; checked in order.
BLOCK_ALIASES: Dict[str, str] = {
    "diamond ore": "diamond_ore",
    "iron ore": "iron_ore",
    "gold ore": "gold_ore",
    "coal ore": "coal_ore",
    "stone": "stone",
    "dirt": "dirt",
    "wood": "oak_log",
    "log": "oak_log",
    "sand": "sand",
}

ITEM_ALIASES: Dict[str, str] = {
    "diamond sword": "diamond_sword",
    "iron sword": "iron_sword",
    "stone sword": "stone_sword",
    "wooden sword": "wooden_sword",
    "sword": "sword",
    "pickaxe": "pickaxe",
    "axe": "axe",
    "shovel": "shovel",
    "bow": "bow",
    "shield": "shield",
}

_NUMBER_RE = re.compile(r"\d+")
_BLOCK_ID_RE = re.compile(r"\b[a-z]+(?:_[a-z]+)+\b")


def _number(text: str) -> Optional[int]:
    m = _NUMBER_RE.search(text)
    return int(m.group(0)) if m else None


class KeywordCommandTranslator:
    def __init__(self, is_player: Callable[[str], bool] = lambda name: False) -> None:
        self._is_player = is_player

    async def translate(self, text: str) -> Translation:
        command = self.match(text)
        if command is None:
            return Translation(understanding="", commands=[])
        return Translation(understanding=f"Interpreted as: {command}", commands=[command])

    def match(self, text: str) -> Optional[str]:
        original = text.strip()
        msg = original.lower()
        has = lambda *words: any(w in msg for w in words)  # noqa: E731

        if has("goto", "go to"):
            player = self._player(original)
            if player:
                return f"goto {player}"
            triples = find_coordinate_triples(msg)
            if triples:
                return "goto " + " ".join(triples[0])

        if has("go", "move", "walk"):
            steps = _number(msg) or DEFAULT_STEPS
            if has("forward", "ahead"):
                return f"up {steps}"
            if has("back"):
                return f"down {steps}"
            if has("left"):
                return f"left {steps}"
            if has("right"):
                return f"right {steps}"

        if has("attack", "fight", "kill"):
            player = self._player(original)
            return f"kill {player}" if player else None

        if has("mine", "dig"):
            block = self._block(msg)
            return f"mine {block}" if block else None

        if has("equip", "hold") or re.search(r"\buse\b", msg):
            item = self._item(msg)
            return f"equip {item}" if item else None

        if has("slot", "select"):
            n = _number(msg)
            return f"slot {n}" if n is not None else None

        if has("follow"):
            player = self._player(original)
            return f"follow {player}" if player else None

        if has("patrol"):
            triples = find_coordinate_triples(msg)
            if len(triples) >= 2:
                return "patrol " + " ".join(triples[0] + triples[1])
            return None

        if has("position", "where", "coords"):
            return "pos"

        if has("come"):
            return "come"

        return None

    def _player(self, text: str) -> Optional[str]:
        for word in re.findall(r"[A-Za-z0-9_]+", text):
            if self._is_player(word):
                return word
        return None

    @staticmethod
    def _item(msg: str) -> Optional[str]:
        m = _BLOCK_ID_RE.search(msg)
        if m:
            return m.group(0)
        for phrase, item in ITEM_ALIASES.items():
            if re.search(rf"\b{phrase}\b", msg):
                return item
        return None

    @staticmethod
    def _block(msg: str) -> Optional[str]:
        m = _BLOCK_ID_RE.search(msg)
        if m:
            return m.group(0)
        for phrase, block in BLOCK_ALIASES.items():
            if re.search(rf"\b{phrase}", msg):
                return block
        return None
