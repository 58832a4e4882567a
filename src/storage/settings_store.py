# path: src/storage/settings_store.py

"""
Persisted settings / whitelist.

JsonSettingsStore keeps the storage.json layout:

    {
        "whitelistedPlayers": ["SupremeYT"],
        "settings": {
            "defaultBotName": "BOB101",
            "defaultServerIP": "localhost:25565",
            "commandCooldown": 2000
        },
        "savedServers": []
    }

A missing or unreadable file is replaced by the defaults. Unknown keys
in the file are preserved on write. Every update is written through
immediately (indent 4, UTF-8) via a temp file + rename.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from contracts.settings import BotSettings


log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]

DEFAULT_OWNER = "SupremeYT"
DEFAULT_COOLDOWN_MS = 2000

_FIELD_NAMES = {f.name for f in fields(BotSettings)}


def default_document(owner: str = DEFAULT_OWNER) -> JsonDict:
    defaults = BotSettings()
    return {
        "whitelistedPlayers": [owner],
        "settings": {
            "defaultBotName": defaults.default_bot_name,
            "defaultServerIP": defaults.default_server,
            "commandCooldown": DEFAULT_COOLDOWN_MS,
        },
        "savedServers": [],
    }


def settings_from_document(doc: Mapping[str, Any]) -> BotSettings:
    """Read BotSettings out of a storage.json document, tolerating gaps."""
    defaults = BotSettings()
    section = doc.get("settings") or {}
    if not isinstance(section, Mapping):
        section = {}
    cooldown = section.get("commandCooldown")
    return BotSettings(
        whitelisted_players=[str(p) for p in doc.get("whitelistedPlayers") or []],
        default_bot_name=str(section.get("defaultBotName") or defaults.default_bot_name),
        default_server=str(section.get("defaultServerIP") or defaults.default_server),
        command_cooldown_ms=int(cooldown) if isinstance(cooldown, (int, float)) and cooldown > 0 else None,
        saved_servers=[str(s) for s in doc.get("savedServers") or []],
    )


def apply_to_document(doc: JsonDict, settings: BotSettings) -> JsonDict:
    out = copy.deepcopy(doc)
    out["whitelistedPlayers"] = list(settings.whitelisted_players)
    section = out.get("settings")
    if not isinstance(section, dict):
        section = {}
    section["defaultBotName"] = settings.default_bot_name
    section["defaultServerIP"] = settings.default_server
    if settings.command_cooldown_ms is not None:
        section["commandCooldown"] = settings.command_cooldown_ms
    out["settings"] = section
    out["savedServers"] = list(settings.saved_servers)
    return out


def _checked_changes(changes: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(changes) - _FIELD_NAMES
    if unknown:
        raise KeyError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
    return dict(changes)


class JsonSettingsStore:
    """SettingsStore backed by a storage.json file."""

    def __init__(self, path: Path, *, owner: str = DEFAULT_OWNER) -> None:
        self.path = Path(path)
        self._owner = owner
        self._doc: JsonDict = self._load()
        self._settings = settings_from_document(self._doc)

    def get(self) -> BotSettings:
        return replace(
            self._settings,
            whitelisted_players=list(self._settings.whitelisted_players),
            saved_servers=list(self._settings.saved_servers),
        )

    def update(self, changes: Mapping[str, Any]) -> BotSettings:
        updated = replace(self._settings, **_checked_changes(changes))
        doc = apply_to_document(self._doc, updated)
        self._write(doc)
        self._doc = doc
        self._settings = updated
        return self.get()

    def reload(self) -> BotSettings:
        self._doc = self._load()
        self._settings = settings_from_document(self._doc)
        return self.get()

    # ------------------------------------------------------------------
    # File IO
    # ------------------------------------------------------------------

    def _load(self) -> JsonDict:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                doc = json.load(f)
            if not isinstance(doc, dict):
                raise ValueError("top-level JSON value is not an object")
            return doc
        except FileNotFoundError:
            log.info("No settings file at %s; writing defaults", self.path)
        except (OSError, ValueError) as exc:
            log.warning("Unreadable settings file %s (%s); replacing with defaults", self.path, exc)
        doc = default_document(self._owner)
        self._write(doc)
        return doc

    def _write(self, doc: JsonDict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(doc, f, indent=4, ensure_ascii=False)
        os.replace(tmp, self.path)


@dataclass
class MemorySettingsStore:
    """Non-persistent SettingsStore (tests, throwaway sessions)."""

    settings: Optional[BotSettings] = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = BotSettings(whitelisted_players=[DEFAULT_OWNER])

    def get(self) -> BotSettings:
        s = self.settings
        return replace(s, whitelisted_players=list(s.whitelisted_players), saved_servers=list(s.saved_servers))

    def update(self, changes: Mapping[str, Any]) -> BotSettings:
        self.settings = replace(self.settings, **_checked_changes(changes))
        return self.get()
