"""Shared fixtures for the calendar manager tests."""
from __future__ import annotations

from zoneinfo import ZoneInfo

import pytest

from calendar_manager.calendar import CalendarAccountConfig, JsonFileAliasStore
from calendar_manager.config import Settings


@pytest.fixture
def settings(tmp_path):
    """Settings with every path inside a temporary directory."""
    return Settings(
        tokens_dir=tmp_path / "tokens" / "calendar-manager",
        credentials_path=tmp_path / "tokens" / "credentials.json",
        index_dir=tmp_path / "calendar-index",
        calendars_config_path=tmp_path / "calendars.json",
        timezone="Europe/Vienna",
        oauth_port=0,
        auth_timeout=2.0,
        client_id="client-id",
        client_secret="client-secret",
    )


@pytest.fixture
def tz():
    return ZoneInfo("Europe/Vienna")


@pytest.fixture
def aliases(settings):
    return JsonFileAliasStore(settings.calendars_config_path)


@pytest.fixture
def account_config():
    return CalendarAccountConfig(
        name="personal",
        client_id="client-id",
        client_secret="client-secret",
        refresh_token="refresh",
        access_token="access",
    )
