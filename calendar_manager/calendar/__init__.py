"""Calendar integration module.

This module provides Google Calendar integration, including:
- Calendar list and event operations
- Event normalization for display and export
- Calendar aliases (short names for calendar IDs)
"""
from __future__ import annotations

from .types import (
    CalendarInfo,
    CombinedDocument,
    DayBucket,
    EventListResponse,
    NormalizedEvent,
    RawEvent,
    SyncDocument,
)

from .google_calendar import (
    CalendarError,
    CalendarAccountConfig,
    load_account,
    list_calendars,
    create_calendar,
    delete_calendar,
)

from .alias_store import (
    AliasStore,
    JsonFileAliasStore,
    PRIMARY_CALENDAR_ID,
    resolve_calendar_id,
    set_alias,
    remove_alias,
    list_aliases,
    alias_for_calendar,
)

from .formatter import format_event
from .fetcher import fetch_events

from .events import (
    build_event_body,
    apply_event_updates,
    create_event,
    update_event,
    delete_event,
    move_event,
    show_event,
    search_events,
)


__all__ = [
    # Types
    "CalendarInfo",
    "CombinedDocument",
    "DayBucket",
    "EventListResponse",
    "NormalizedEvent",
    "RawEvent",
    "SyncDocument",
    # API Client
    "CalendarError",
    "CalendarAccountConfig",
    "load_account",
    "list_calendars",
    "create_calendar",
    "delete_calendar",
    # Aliases
    "AliasStore",
    "JsonFileAliasStore",
    "PRIMARY_CALENDAR_ID",
    "resolve_calendar_id",
    "set_alias",
    "remove_alias",
    "list_aliases",
    "alias_for_calendar",
    # Events
    "format_event",
    "fetch_events",
    "build_event_body",
    "apply_event_updates",
    "create_event",
    "update_event",
    "delete_event",
    "move_event",
    "show_event",
    "search_events",
]
