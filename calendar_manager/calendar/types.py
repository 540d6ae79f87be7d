"""Calendar data types."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


# Raw provider event resource, passed through untouched.
RawEvent = Dict[str, Any]


@dataclass(slots=True)
class CalendarInfo:
    """Google Calendar metadata."""

    id: str
    summary: str  # Display name
    description: Optional[str] = None
    time_zone: Optional[str] = None
    is_primary: bool = False
    access_role: str = "reader"  # "owner", "writer", "reader", "freeBusyReader"

    @property
    def is_writable(self) -> bool:
        """Check if calendar can be modified."""
        return self.access_role in ("owner", "writer")


@dataclass(slots=True)
class EventListResponse:
    """One page of events from the API."""

    events: List[RawEvent]
    next_page_token: Optional[str] = None


@dataclass(slots=True)
class NormalizedEvent:
    """Display/export form of a single event.

    ``date`` is the only field used for grouping; ``weekday`` and
    ``date_formatted`` are presentation strings.
    """

    id: str
    summary: str
    time: str
    start_time: Optional[str]
    end_time: Optional[str]
    date: str
    weekday: str
    date_formatted: str
    location: str = ""
    description: str = ""
    all_day: bool = False

    def to_bucket_entry(self) -> Dict[str, Any]:
        """Entry written into a day bucket of the sync document."""
        return {
            "time": self.time,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "title": self.summary,
            "location": self.location,
            "allDay": self.all_day,
        }


@dataclass(slots=True)
class DayBucket:
    """Events sharing one date key, in fetch order."""

    date: str
    weekday: str
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "weekday": self.weekday, "events": self.events}


@dataclass(slots=True)
class SyncDocument:
    """Snapshot of one account's events over a sync window."""

    synced_at: datetime
    account: str
    range_from: str
    range_to: str
    total_events: int
    days: List[DayBucket] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "synced_at": self.synced_at.isoformat(),
            "account": self.account,
            "range": {"from": self.range_from, "to": self.range_to},
            "total_events": self.total_events,
            "days": [day.to_dict() for day in self.days],
        }


@dataclass(slots=True)
class CombinedDocument:
    """Merged, time-ordered events across all synced accounts."""

    synced_at: datetime
    accounts: List[str] = field(default_factory=list)
    all_events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "synced_at": self.synced_at.isoformat(),
            "accounts": self.accounts,
            "all_events": self.all_events,
        }
