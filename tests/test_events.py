"""Tests for event write helpers and search defaults."""
from __future__ import annotations

from datetime import date, datetime
from unittest.mock import patch

from calendar_manager.calendar import set_alias
from calendar_manager.calendar.events import (
    apply_event_updates,
    build_event_body,
    is_all_day_request,
    move_event,
    parse_local_datetime,
    search_events,
    update_event,
)


class TestAllDayHeuristic:

    def test_dates_only_is_all_day(self):
        assert is_all_day_request("2026-01-30", "2026-02-01") is True
        assert is_all_day_request("2026-01-30", None) is True

    def test_datetime_start_is_timed(self):
        assert is_all_day_request("2026-01-30T10:00", "2026-01-30T11:00") is False

    def test_date_only_end_with_timed_start_is_timed(self):
        assert is_all_day_request("2026-01-30T10:00", "2026-01-31") is False

    def test_flag_forces_all_day(self):
        assert is_all_day_request("2026-01-30T10:00", "2026-01-30T11:00", all_day=True) is True


class TestBuildEventBody:

    def test_multi_day_all_day_end_is_exclusive(self, tz):
        body = build_event_body(
            title="Messe", start="2026-01-30", end="2026-02-01", tz=tz, free=True
        )
        assert body["start"] == {"date": "2026-01-30"}
        assert body["end"] == {"date": "2026-02-02"}
        assert body["transparency"] == "transparent"

    def test_single_day_all_day(self, tz):
        body = build_event_body(title="Holiday", start="2026-02-28", tz=tz)
        assert body["end"] == {"date": "2026-03-01"}
        assert body["transparency"] == "opaque"

    def test_forced_all_day_drops_time(self, tz):
        body = build_event_body(
            title="Offsite", start="2026-01-30T10:00", tz=tz, all_day=True
        )
        assert body["start"] == {"date": "2026-01-30"}

    def test_timed_event_uses_local_zone(self, tz):
        body = build_event_body(
            title="Call",
            start="2026-01-30T10:00",
            end="2026-01-30T10:30",
            tz=tz,
            location="Zoom",
        )
        assert body["start"] == {"dateTime": "2026-01-30T10:00:00+01:00"}
        assert body["end"] == {"dateTime": "2026-01-30T10:30:00+01:00"}
        assert body["location"] == "Zoom"
        assert body["description"] == ""

    def test_timed_event_defaults_to_one_hour(self, tz):
        body = build_event_body(title="Call", start="2026-07-01T10:00", tz=tz)
        assert body["end"] == {"dateTime": "2026-07-01T11:00:00+02:00"}


class TestApplyEventUpdates:

    def test_fields_and_availability(self):
        event = {"summary": "Old", "transparency": "opaque"}
        mode = apply_event_updates(event, title="New", location="Graz", free=True)
        assert event["summary"] == "New"
        assert event["location"] == "Graz"
        assert event["transparency"] == "transparent"
        assert mode == "none"

    def test_busy_flag(self):
        event = {"transparency": "transparent"}
        apply_event_updates(event, free=False)
        assert event["transparency"] == "opaque"

    def test_unset_fields_are_left_alone(self):
        event = {"summary": "Keep", "description": "Keep too"}
        apply_event_updates(event)
        assert event == {"summary": "Keep", "description": "Keep too"}

    def test_attendees_are_merged_without_duplicates(self):
        event = {"attendees": [{"email": "a@example.com", "responseStatus": "accepted"}]}
        mode = apply_event_updates(event, attendees="a@example.com, b@example.com,,b@example.com")
        assert event["attendees"] == [
            {"email": "a@example.com", "responseStatus": "accepted"},
            {"email": "b@example.com"},
        ]
        assert mode == "all"


class TestOperations:

    def test_update_fetches_edits_and_puts(self, account_config, aliases):
        set_alias("messen", "c_abc", aliases)
        existing = {"id": "ev1", "summary": "Old", "attendees": []}
        with patch(
            "calendar_manager.calendar.events.get_event", return_value=existing
        ) as mock_get, patch(
            "calendar_manager.calendar.events.api_update_event",
            return_value={"id": "ev1", "htmlLink": "https://calendar/ev1"},
        ) as mock_update:
            result = update_event(
                account_config, aliases, "ev1", calendar="messen",
                title="New", attendees="x@example.com",
            )

        mock_get.assert_called_once_with(account_config, "c_abc", "ev1")
        args, kwargs = mock_update.call_args
        assert args[1:3] == ("c_abc", "ev1")
        assert args[3]["summary"] == "New"
        assert kwargs["send_updates"] == "all"
        assert result["htmlLink"] == "https://calendar/ev1"

    def test_move_resolves_both_calendars(self, account_config, aliases):
        set_alias("messen", "c_abc", aliases)
        with patch(
            "calendar_manager.calendar.events.api_move_event", return_value={}
        ) as mock_move:
            move_event(account_config, aliases, "ev1", "primary", "messen")
        mock_move.assert_called_once_with(account_config, "primary", "ev1", "c_abc")

    def test_search_default_range_and_limit(self, account_config, aliases, tz):
        with patch(
            "calendar_manager.calendar.events.fetch_events", return_value=[]
        ) as mock_fetch:
            search_events(account_config, aliases, "Messe", tz, today=date(2026, 2, 1))

        args, kwargs = mock_fetch.call_args
        assert args[1] == datetime(2025, 1, 1, tzinfo=tz)
        assert args[2] == datetime(2027, 12, 31, tzinfo=tz)
        assert kwargs["query"] == "Messe"
        assert kwargs["limit"] == 20

    def test_search_explicit_range(self, account_config, aliases, tz):
        with patch(
            "calendar_manager.calendar.events.fetch_events", return_value=[]
        ) as mock_fetch:
            search_events(
                account_config, aliases, "Messe", tz,
                calendar="messen", date_from="2026-03-01", date_to="2026-04-01", limit=5,
            )

        args, kwargs = mock_fetch.call_args
        assert args[1:] == (datetime(2026, 3, 1, tzinfo=tz), datetime(2026, 4, 1, tzinfo=tz))
        assert kwargs["calendar"] == "messen"
        assert kwargs["limit"] == 5


def test_parse_local_datetime_keeps_explicit_offset(tz):
    moment = parse_local_datetime("2026-01-30T10:00:00Z", tz)
    assert moment.utcoffset().total_seconds() == 0
    assert parse_local_datetime("2026-01-30", tz) == datetime(2026, 1, 30, tzinfo=tz)
