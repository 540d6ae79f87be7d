"""Event operations used by the CLI: create, update, delete, move, show, search.

Calendar references accept aliases everywhere; they are resolved through the
alias store before any API call.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Dict, List, Optional

from .alias_store import AliasStore, resolve_calendar_id
from .fetcher import fetch_events
from .google_calendar import (
    CalendarAccountConfig,
    delete_event as api_delete_event,
    get_event,
    insert_event,
    move_event as api_move_event,
    update_event as api_update_event,
)
from .types import RawEvent


DEFAULT_SEARCH_LIMIT = 20


# ============================================================================
# Date helpers
# ============================================================================


def local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def parse_local_datetime(value: str, tz: tzinfo) -> datetime:
    """Parse ``YYYY-MM-DD`` or ``YYYY-MM-DDTHH:MM[...]`` as a local time.

    Bare dates become local midnight; naive datetimes are taken as local.
    """
    if "T" not in value:
        return local_midnight(date.fromisoformat(value), tz)
    moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment


# ============================================================================
# Request body builders
# ============================================================================


def is_all_day_request(start: str, end: Optional[str], all_day: bool = False) -> bool:
    """All-day if forced, or if neither boundary carries a time of day."""
    return all_day or ("T" not in start and "T" not in (end or ""))


def build_event_body(
    *,
    title: str,
    start: str,
    tz: tzinfo,
    end: Optional[str] = None,
    description: str = "",
    location: str = "",
    free: bool = False,
    all_day: bool = False,
) -> Dict[str, Any]:
    """Build an insert body from CLI-style date strings.

    For all-day events ``end`` is the last day of the event (inclusive); the
    API's exclusive end date is one day later. Timed events without an end
    last one hour.
    """
    body: Dict[str, Any] = {
        "summary": title,
        "description": description or "",
        "location": location or "",
        "transparency": "transparent" if free else "opaque",
    }

    if is_all_day_request(start, end, all_day):
        first_day = date.fromisoformat(start[:10])
        last_day = date.fromisoformat(end[:10]) if end else first_day
        body["start"] = {"date": first_day.isoformat()}
        body["end"] = {"date": (last_day + timedelta(days=1)).isoformat()}
    else:
        start_dt = parse_local_datetime(start, tz)
        end_dt = parse_local_datetime(end, tz) if end else start_dt + timedelta(hours=1)
        body["start"] = {"dateTime": start_dt.isoformat()}
        body["end"] = {"dateTime": end_dt.isoformat()}

    return body


def apply_event_updates(
    event: Dict[str, Any],
    *,
    title: Optional[str] = None,
    description: Optional[str] = None,
    location: Optional[str] = None,
    free: Optional[bool] = None,
    attendees: Optional[str] = None,
) -> str:
    """Apply CLI updates to a fetched event resource in place.

    ``attendees`` is a comma separated list of addresses added to the
    existing attendees; addresses already invited are skipped.

    Returns:
        The ``sendUpdates`` mode: "all" when attendees were given, else "none".
    """
    if title:
        event["summary"] = title
    if description:
        event["description"] = description
    if location:
        event["location"] = location
    if free is not None:
        event["transparency"] = "transparent" if free else "opaque"

    if not attendees:
        return "none"

    current = list(event.get("attendees") or [])
    known = {a.get("email") for a in current}
    for email in (part.strip() for part in attendees.split(",")):
        if email and email not in known:
            current.append({"email": email})
            known.add(email)
    event["attendees"] = current
    return "all"


# ============================================================================
# Operations
# ============================================================================


def create_event(
    account: CalendarAccountConfig,
    aliases: AliasStore,
    body: Dict[str, Any],
    calendar: Optional[str] = None,
) -> RawEvent:
    return insert_event(account, resolve_calendar_id(calendar, aliases), body)


def update_event(
    account: CalendarAccountConfig,
    aliases: AliasStore,
    event_id: str,
    calendar: Optional[str] = None,
    **updates: Any,
) -> RawEvent:
    """Fetch, edit and write back an event. See apply_event_updates."""
    calendar_id = resolve_calendar_id(calendar, aliases)
    event = get_event(account, calendar_id, event_id)
    send_updates = apply_event_updates(event, **updates)
    return api_update_event(
        account, calendar_id, event_id, event, send_updates=send_updates
    )


def delete_event(
    account: CalendarAccountConfig,
    aliases: AliasStore,
    event_id: str,
    calendar: Optional[str] = None,
) -> None:
    api_delete_event(account, resolve_calendar_id(calendar, aliases), event_id)


def move_event(
    account: CalendarAccountConfig,
    aliases: AliasStore,
    event_id: str,
    from_calendar: str,
    to_calendar: str,
) -> RawEvent:
    return api_move_event(
        account,
        resolve_calendar_id(from_calendar, aliases),
        event_id,
        resolve_calendar_id(to_calendar, aliases),
    )


def show_event(
    account: CalendarAccountConfig,
    aliases: AliasStore,
    event_id: str,
    calendar: Optional[str] = None,
) -> RawEvent:
    return get_event(account, resolve_calendar_id(calendar, aliases), event_id)


def search_events(
    account: CalendarAccountConfig,
    aliases: AliasStore,
    query: str,
    tz: tzinfo,
    *,
    calendar: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    limit: Optional[int] = None,
    today: Optional[date] = None,
) -> List[RawEvent]:
    """Free-text search.

    Without explicit bounds the range spans January 1st of last year to
    December 31st of next year.
    """
    today = today or datetime.now(tz).date()
    time_min = (
        parse_local_datetime(date_from, tz)
        if date_from
        else local_midnight(date(today.year - 1, 1, 1), tz)
    )
    time_max = (
        parse_local_datetime(date_to, tz)
        if date_to
        else local_midnight(date(today.year + 1, 12, 31), tz)
    )
    return fetch_events(
        account,
        time_min,
        time_max,
        aliases=aliases,
        calendar=calendar,
        query=query,
        limit=limit or DEFAULT_SEARCH_LIMIT,
    )
