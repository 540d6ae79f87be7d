"""Alias Store - short names for calendar IDs.

Aliases are persisted as a single document:

    {"aliases": {"messen": "c_abc@group.calendar.google.com"}}

A missing document is an empty mapping. Every mutation re-reads the
persisted mapping first, so a write never drops an alias added by an
earlier completed write.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Protocol

from ..storage import read_json, write_json


PRIMARY_CALENDAR_ID = "primary"


class AliasStore(Protocol):
    """Backing store for the alias mapping."""

    def load(self) -> Dict[str, str]:
        ...

    def save(self, aliases: Dict[str, str]) -> None:
        ...


class JsonFileAliasStore:
    """Alias mapping kept in a formatted JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> Dict[str, str]:
        data = read_json(self.path, default={}) or {}
        return dict(data.get("aliases", {}))

    def save(self, aliases: Dict[str, str]) -> None:
        data = read_json(self.path, default={}) or {}
        data["aliases"] = aliases
        write_json(self.path, data)


def resolve_calendar_id(name_or_id: Optional[str], store: AliasStore) -> str:
    """Map an alias to its calendar ID.

    Unknown names are treated as literal calendar IDs; an empty reference
    means the account's primary calendar.
    """
    if not name_or_id:
        return PRIMARY_CALENDAR_ID
    return store.load().get(name_or_id, name_or_id)


def set_alias(alias: str, calendar_id: str, store: AliasStore) -> None:
    aliases = store.load()
    aliases[alias] = calendar_id
    store.save(aliases)


def remove_alias(alias: str, store: AliasStore) -> bool:
    """Remove ``alias``; returns False when it did not exist."""
    aliases = store.load()
    if alias not in aliases:
        return False
    del aliases[alias]
    store.save(aliases)
    return True


def list_aliases(store: AliasStore) -> Dict[str, str]:
    return store.load()


def alias_for_calendar(calendar_id: str, aliases: Dict[str, str]) -> Optional[str]:
    """Return the first alias pointing at ``calendar_id``, if any."""
    return next((name for name, cid in aliases.items() if cid == calendar_id), None)
