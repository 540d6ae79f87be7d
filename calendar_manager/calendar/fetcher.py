"""Fetch all events in a time range, following pagination."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from .alias_store import AliasStore, resolve_calendar_id
from .google_calendar import CalendarAccountConfig, list_events
from .types import RawEvent


logger = logging.getLogger(__name__)

PAGE_SIZE = 250


def fetch_events(
    account: CalendarAccountConfig,
    time_min: datetime,
    time_max: datetime,
    *,
    aliases: AliasStore,
    calendar: Optional[str] = None,
    query: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[RawEvent]:
    """Return events in ``[time_min, time_max)`` ordered by start time.

    Recurring events come back as individual instances. API errors are not
    caught here.

    Args:
        account: Calendar account configuration
        time_min: Inclusive range start
        time_max: Exclusive range end
        aliases: Alias store used to resolve ``calendar``
        calendar: Alias or calendar ID (default: primary)
        query: Free-text search filter
        limit: Stop after this many events
    """
    calendar_id = resolve_calendar_id(calendar, aliases)
    events: List[RawEvent] = []
    page_token: Optional[str] = None

    while True:
        page_size = PAGE_SIZE if limit is None else min(PAGE_SIZE, limit - len(events))
        response = list_events(
            account,
            calendar_id,
            time_min=time_min,
            time_max=time_max,
            query=query,
            max_results=page_size,
            page_token=page_token,
        )
        events.extend(response.events)
        page_token = response.next_page_token

        if limit is not None and len(events) >= limit:
            events = events[:limit]
            break
        if not page_token:
            break

    logger.debug(
        f"Fetched {len(events)} events from {calendar_id} ({account.name}) "
        f"between {time_min.isoformat()} and {time_max.isoformat()}"
    )
    return events
