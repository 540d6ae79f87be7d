"""Tests for the Calendar API client and account loading."""
from __future__ import annotations

import io
import json
from datetime import datetime
from unittest.mock import MagicMock, patch
from urllib import error as urlerror
from urllib.parse import parse_qs, urlparse

import pytest

from calendar_manager.auth import AuthenticationError, save_token
from calendar_manager.calendar import google_calendar
from calendar_manager.calendar.google_calendar import (
    CalendarError,
    list_calendars,
    list_events,
    load_account,
    move_event,
)
from calendar_manager.config import ConfigError


def _response(payload, status=200):
    resp = MagicMock()
    resp.status = status
    resp.read.return_value = json.dumps(payload).encode("utf-8") if payload is not None else b""
    ctx = MagicMock()
    ctx.__enter__.return_value = resp
    ctx.__exit__.return_value = False
    return ctx


def _request_url(mock_urlopen, call=-1):
    return mock_urlopen.call_args_list[call].args[0].full_url


class TestLoadAccount:

    def test_missing_token(self, settings):
        with pytest.raises(AuthenticationError, match="Not authenticated for personal"):
            load_account(settings, "personal")

    def test_uses_env_secrets_without_credentials_file(self, settings):
        save_token(settings, "personal", {"refresh_token": "r", "access_token": "a"})
        config = load_account(settings, "personal")
        assert config.client_id == "client-id"
        assert config.refresh_token == "r"
        # Access token is refreshed on first use when a refresh token exists
        assert config.access_token is None

    def test_reads_installed_credentials(self, settings):
        settings.credentials_path.parent.mkdir(parents=True, exist_ok=True)
        settings.credentials_path.write_text(
            json.dumps({
                "installed": {
                    "client_id": "file-id",
                    "client_secret": "file-secret",
                    "redirect_uris": ["http://localhost"],
                }
            }),
            encoding="utf-8",
        )
        save_token(settings, "business", {"refresh_token": "r"})
        config = load_account(settings, "business")
        assert (config.client_id, config.client_secret) == ("file-id", "file-secret")

    def test_missing_secrets(self, settings):
        settings.client_id = None
        settings.client_secret = None
        save_token(settings, "personal", {"refresh_token": "r"})
        with pytest.raises(ConfigError, match="credentials.json not found"):
            load_account(settings, "personal")


class TestRequests:

    def test_access_token_refreshed_once(self, account_config):
        account_config.access_token = None
        responses = [
            _response({"access_token": "fresh"}),
            _response({"items": []}),
            _response({"items": []}),
        ]
        with patch.object(google_calendar.urlrequest, "urlopen", side_effect=responses) as mock_open:
            list_calendars(account_config)
            list_calendars(account_config)

        assert mock_open.call_count == 3
        assert account_config.access_token == "fresh"
        assert mock_open.call_args_list[2].args[0].get_header("Authorization") == "Bearer fresh"

    def test_list_events_expands_recurring_events(self, account_config, tz):
        with patch.object(
            google_calendar.urlrequest,
            "urlopen",
            return_value=_response({"items": [{"id": "e1"}], "nextPageToken": "n"}),
        ) as mock_open:
            page = list_events(
                account_config,
                "c_abc@group.calendar.google.com",
                time_min=datetime(2026, 1, 31, tzinfo=tz),
                time_max=datetime(2026, 2, 2, tzinfo=tz),
                query="Messe",
            )

        url = urlparse(_request_url(mock_open))
        params = parse_qs(url.query)
        assert url.path.endswith("/calendars/c_abc%40group.calendar.google.com/events")
        assert params["singleEvents"] == ["true"]
        assert params["orderBy"] == ["startTime"]
        assert params["q"] == ["Messe"]
        assert params["timeMin"] == ["2026-01-31T00:00:00+01:00"]
        assert page.events == [{"id": "e1"}]
        assert page.next_page_token == "n"

    def test_calendar_list_pagination(self, account_config):
        responses = [
            _response({"items": [{"id": "a", "summary": "A", "primary": True}], "nextPageToken": "p"}),
            _response({"items": [{"id": "b", "accessRole": "owner"}]}),
        ]
        with patch.object(google_calendar.urlrequest, "urlopen", side_effect=responses):
            calendars = list_calendars(account_config)

        assert [c.id for c in calendars] == ["a", "b"]
        assert calendars[0].is_primary is True
        assert calendars[1].summary == "b"
        assert calendars[1].is_writable is True

    def test_move_posts_destination(self, account_config):
        with patch.object(
            google_calendar.urlrequest, "urlopen", return_value=_response({"id": "ev1"})
        ) as mock_open:
            move_event(account_config, "primary", "ev1", "c_abc")

        request = mock_open.call_args.args[0]
        assert request.get_method() == "POST"
        assert "/calendars/primary/events/ev1/move?destination=c_abc" in request.full_url

    def test_delete_handles_no_content(self, account_config):
        with patch.object(
            google_calendar.urlrequest, "urlopen", return_value=_response(None, status=204)
        ):
            google_calendar.delete_event(account_config, "primary", "ev1")

    def test_http_error_becomes_calendar_error(self, account_config):
        error = urlerror.HTTPError(
            "https://example.test", 404, "Not Found", {}, io.BytesIO(b'{"error": "notFound"}')
        )
        with patch.object(google_calendar.urlrequest, "urlopen", side_effect=error):
            with pytest.raises(CalendarError, match=r"\(404\).*notFound"):
                google_calendar.get_event(account_config, "primary", "missing")

    def test_network_error_becomes_calendar_error(self, account_config):
        with patch.object(
            google_calendar.urlrequest, "urlopen", side_effect=urlerror.URLError("offline")
        ):
            with pytest.raises(CalendarError, match="network error"):
                list_calendars(account_config)
