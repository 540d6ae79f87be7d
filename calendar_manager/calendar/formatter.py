"""Convert raw Google Calendar events into display/export records."""
from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Any, Dict, Union

from .types import NormalizedEvent, RawEvent


ALL_DAY_LABEL = "Ganztägig"
UNTITLED_LABEL = "(Kein Titel)"

# Monday first, matching date.weekday()
WEEKDAY_NAMES = (
    "Montag",
    "Dienstag",
    "Mittwoch",
    "Donnerstag",
    "Freitag",
    "Samstag",
    "Sonntag",
)
WEEKDAY_SHORT_NAMES = ("Mo.", "Di.", "Mi.", "Do.", "Fr.", "Sa.", "So.")


def _parse_boundary(boundary: Dict[str, Any], tz: tzinfo) -> Union[date, datetime]:
    """Return a local datetime for timed boundaries, a date for all-day ones."""
    if "dateTime" in boundary:
        moment = datetime.fromisoformat(boundary["dateTime"].replace("Z", "+00:00"))
        if moment.tzinfo is None:
            return moment.replace(tzinfo=tz)
        return moment.astimezone(tz)
    return date.fromisoformat(boundary["date"])


def _clock(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def format_event(event: RawEvent, tz: tzinfo) -> NormalizedEvent:
    """Normalize one event.

    Args:
        event: Raw event resource; must carry ``start``
        tz: Zone used for clock times and the date key

    Returns:
        NormalizedEvent
    """
    start = _parse_boundary(event["start"], tz)
    is_all_day = "dateTime" not in event["start"]

    if is_all_day:
        start_time = end_time = None
        time_str = ALL_DAY_LABEL
        day = start
    else:
        end = _parse_boundary(event.get("end") or event["start"], tz)
        start_time = _clock(start)
        end_time = _clock(end) if isinstance(end, datetime) else None
        time_str = f"{start_time} - {end_time or start_time}"
        day = start.date()

    return NormalizedEvent(
        id=event.get("id", ""),
        summary=event.get("summary") or UNTITLED_LABEL,
        time=time_str,
        start_time=start_time,
        end_time=end_time,
        date=day.isoformat(),
        weekday=WEEKDAY_NAMES[day.weekday()],
        date_formatted=f"{WEEKDAY_SHORT_NAMES[day.weekday()]}, {day:%d.%m.}",
        location=event.get("location") or "",
        description=event.get("description") or "",
        all_day=is_all_day,
    )
