"""Export calendar snapshots for downstream readers.

This service handles:
- Fetching one account's events over a sync window
- Normalizing and grouping them into per-day buckets
- Writing the per-account document to <index_dir>/<account>/upcoming.json
- Merging every authenticated account into <index_dir>/combined.json
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from ..auth.token_store import has_token
from ..calendar.alias_store import AliasStore
from ..calendar.events import local_midnight, parse_local_datetime
from ..calendar.fetcher import fetch_events
from ..calendar.formatter import format_event
from ..calendar.google_calendar import CalendarAccountConfig, load_account
from ..calendar.types import (
    CombinedDocument,
    DayBucket,
    NormalizedEvent,
    RawEvent,
    SyncDocument,
)
from ..config import VALID_ACCOUNTS, Settings
from ..storage import write_json


logger = logging.getLogger(__name__)

SYNC_WINDOW_DAYS = 28


def _now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def default_sync_window(today: date) -> Tuple[date, date]:
    """Four weeks either side of ``today``; the end is exclusive."""
    return (
        today - timedelta(days=SYNC_WINDOW_DAYS),
        today + timedelta(days=SYNC_WINDOW_DAYS),
    )


def group_by_day(events: Iterable[NormalizedEvent]) -> List[DayBucket]:
    """Bucket events by date key, keeping fetch order inside each bucket.

    Buckets are returned sorted ascending by date key.
    """
    buckets: Dict[str, DayBucket] = {}
    for event in events:
        bucket = buckets.get(event.date)
        if bucket is None:
            bucket = buckets[event.date] = DayBucket(
                date=event.date, weekday=event.weekday
            )
        bucket.events.append(event.to_bucket_entry())
    return sorted(buckets.values(), key=lambda b: b.date)


def build_sync_document(
    account: str,
    raw_events: List[RawEvent],
    *,
    range_from: str,
    range_to: str,
    tz: tzinfo,
    synced_at: Optional[datetime] = None,
) -> SyncDocument:
    """Pure transformation from fetched events to a sync document."""
    formatted = [format_event(event, tz) for event in raw_events]
    return SyncDocument(
        synced_at=synced_at or _now(),
        account=account,
        range_from=range_from,
        range_to=range_to,
        total_events=len(raw_events),
        days=group_by_day(formatted),
    )


def combined_sort_key(entry: Dict[str, Any]) -> Tuple[str, int, str]:
    """Date, then all-day before timed, then start time (missing first)."""
    return (entry["date"], 0 if entry.get("allDay") else 1, entry.get("startTime") or "")


def flatten_days(document: SyncDocument) -> List[Dict[str, Any]]:
    """Tag every bucket entry with its date, weekday and account."""
    return [
        {**event, "date": day.date, "weekday": day.weekday, "account": document.account}
        for day in document.days
        for event in day.events
    ]


class SyncService:
    """Writes per-account and combined calendar snapshots.

    Args:
        settings: Runtime settings (paths, time zone)
        aliases: Alias store used when resolving calendar references
        account_loader: Builds the API configuration for an account name
    """

    def __init__(
        self,
        settings: Settings,
        aliases: AliasStore,
        account_loader: Callable[[Settings, str], CalendarAccountConfig] = load_account,
    ) -> None:
        self.settings = settings
        self.aliases = aliases
        self.account_loader = account_loader
        self.tz = ZoneInfo(settings.timezone)

    def _resolve_window(
        self,
        date_from: Optional[str],
        date_to: Optional[str],
        today: Optional[date],
    ) -> Tuple[datetime, datetime]:
        default_from, default_to = default_sync_window(
            today or datetime.now(self.tz).date()
        )
        time_min = (
            parse_local_datetime(date_from, self.tz)
            if date_from
            else local_midnight(default_from, self.tz)
        )
        time_max = (
            parse_local_datetime(date_to, self.tz)
            if date_to
            else local_midnight(default_to, self.tz)
        )
        return time_min, time_max

    def sync_account(
        self,
        account: str,
        *,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        calendar: Optional[str] = None,
        today: Optional[date] = None,
        config: Optional[CalendarAccountConfig] = None,
    ) -> SyncDocument:
        """Fetch, normalize and persist one account's sync document.

        The output file is fully replaced. API errors propagate.
        """
        config = config or self.account_loader(self.settings, account)
        time_min, time_max = self._resolve_window(date_from, date_to, today)

        raw_events = fetch_events(
            config, time_min, time_max, aliases=self.aliases, calendar=calendar
        )
        document = build_sync_document(
            account,
            raw_events,
            range_from=time_min.date().isoformat(),
            range_to=time_max.date().isoformat(),
            tz=self.tz,
        )

        output_path = self.settings.sync_path(account)
        write_json(output_path, document.to_dict())
        logger.info(f"Synced {document.total_events} events for {account} -> {output_path}")
        return document

    def sync_all(self, *, today: Optional[date] = None) -> CombinedDocument:
        """Sync every authenticated account and write the combined document.

        Accounts without a stored token are skipped. A failing account is
        logged and left out; the combined file is written regardless.
        """
        combined = CombinedDocument(synced_at=_now())

        for account in VALID_ACCOUNTS:
            if not has_token(self.settings, account):
                logger.info(f"Skipping {account} (not authenticated)")
                continue
            try:
                document = self.sync_account(account, today=today)
            except Exception as exc:
                logger.warning(f"Could not sync {account}: {exc}")
                continue
            combined.accounts.append(account)
            combined.all_events.extend(flatten_days(document))

        combined.all_events.sort(key=combined_sort_key)

        combined_path = self.settings.combined_path
        write_json(combined_path, combined.to_dict())
        logger.info(
            f"Combined {len(combined.all_events)} events from "
            f"{len(combined.accounts)} account(s) -> {combined_path}"
        )
        return combined
