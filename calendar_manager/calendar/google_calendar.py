"""Google Calendar API client."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib import error as urlerror
from urllib import parse as urlparse
from urllib import request as urlrequest

from ..auth.token_store import (
    AuthenticationError,
    load_client_secrets,
    load_token,
)
from ..config import Settings
from .types import CalendarInfo, EventListResponse


TOKEN_URL = "https://oauth2.googleapis.com/token"
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"

logger = logging.getLogger(__name__)


class CalendarError(RuntimeError):
    """Raised when Calendar API operations fail."""


@dataclass(slots=True)
class CalendarAccountConfig:
    """Google Calendar OAuth configuration."""

    name: str  # "personal" or "business"
    client_id: str
    client_secret: str
    refresh_token: Optional[str] = None

    # Filled on first request; one access token per process is enough for a
    # single CLI invocation.
    access_token: Optional[str] = None


def load_account(settings: Settings, name: str) -> CalendarAccountConfig:
    """Build the account configuration from the stored token and client secrets.

    Args:
        settings: Runtime settings
        name: Account name ("personal" or "business")

    Raises:
        AuthenticationError: if the account has no stored token
        ConfigError: if the OAuth client registration is missing
    """
    token = load_token(settings, name)
    secrets = load_client_secrets(settings)

    refresh_token = token.get("refresh_token")
    access_token = None if refresh_token else token.get("access_token")
    if not refresh_token and not access_token:
        raise AuthenticationError(
            f"Stored token for {name} has neither refresh_token nor access_token."
        )

    return CalendarAccountConfig(
        name=name,
        client_id=secrets.client_id,
        client_secret=secrets.client_secret,
        refresh_token=refresh_token,
        access_token=access_token,
    )


def _post_token_request(fields: Dict[str, str]) -> dict:
    """POST a form to the OAuth token endpoint and return the JSON reply."""
    payload = urlparse.urlencode(fields).encode("utf-8")

    req = urlrequest.Request(
        TOKEN_URL,
        data=payload,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        method="POST",
    )

    try:
        with urlrequest.urlopen(req, timeout=15) as resp:
            return json.loads(resp.read().decode("utf-8"))
    except urlerror.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore")
        raise CalendarError(
            f"Calendar token request failed ({exc.code}): {detail}"
        ) from exc
    except urlerror.URLError as exc:
        raise CalendarError(f"Calendar token network error: {exc}") from exc


def _fetch_access_token(account: CalendarAccountConfig) -> str:
    """Get an access token, refreshing it from the refresh token once."""
    if account.access_token:
        return account.access_token

    data = _post_token_request(
        {
            "client_id": account.client_id,
            "client_secret": account.client_secret,
            "refresh_token": account.refresh_token or "",
            "grant_type": "refresh_token",
        }
    )

    token = data.get("access_token")
    if not token:
        raise CalendarError("Calendar token response missing access_token.")
    account.access_token = str(token)
    return account.access_token


def exchange_code(
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
) -> dict:
    """Exchange an authorization code for a token blob."""
    data = _post_token_request(
        {
            "code": code,
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        }
    )
    if not data.get("access_token"):
        raise CalendarError("Token exchange response missing access_token.")
    return data


def _make_request(
    account: CalendarAccountConfig,
    endpoint: str,
    method: str = "GET",
    params: Optional[dict] = None,
    body: Optional[dict] = None,
) -> dict:
    """Make an authenticated request to the Calendar API."""
    access_token = _fetch_access_token(account)

    url = f"{CALENDAR_API_BASE}{endpoint}"
    if params:
        url = f"{url}?{urlparse.urlencode(params)}"

    headers = {
        "Authorization": f"Bearer {access_token}",
        "Content-Type": "application/json",
    }

    data = json.dumps(body).encode("utf-8") if body is not None else None
    req = urlrequest.Request(url, data=data, headers=headers, method=method)
    logger.debug(f"{method} {endpoint} ({account.name})")

    try:
        with urlrequest.urlopen(req, timeout=30) as resp:
            if resp.status == 204:  # No content
                return {}
            raw = resp.read()
            return json.loads(raw.decode("utf-8")) if raw else {}
    except urlerror.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore")
        raise CalendarError(
            f"Calendar API request failed ({exc.code}): {detail}"
        ) from exc
    except urlerror.URLError as exc:
        raise CalendarError(f"Calendar API network error: {exc}") from exc


def _quote(value: str) -> str:
    return urlparse.quote(value, safe="")


# ============================================================================
# Calendar Operations
# ============================================================================


def list_calendars(account: CalendarAccountConfig) -> List[CalendarInfo]:
    """List all calendars accessible by this account, following pagination."""
    calendars: List[CalendarInfo] = []
    params: Dict[str, str] = {}

    while True:
        response = _make_request(account, "/users/me/calendarList", params=params)
        for item in response.get("items", []):
            calendars.append(
                CalendarInfo(
                    id=item["id"],
                    summary=item.get("summary", item["id"]),
                    description=item.get("description"),
                    time_zone=item.get("timeZone"),
                    is_primary=item.get("primary", False),
                    access_role=item.get("accessRole", "reader"),
                )
            )
        page_token = response.get("nextPageToken")
        if not page_token:
            return calendars
        params = {"pageToken": page_token}


def create_calendar(
    account: CalendarAccountConfig,
    name: str,
    description: str = "",
    time_zone: str = "Europe/Vienna",
) -> CalendarInfo:
    """Create a secondary calendar owned by this account."""
    response = _make_request(
        account,
        "/calendars",
        method="POST",
        body={"summary": name, "description": description, "timeZone": time_zone},
    )
    return CalendarInfo(
        id=response["id"],
        summary=response.get("summary", name),
        description=response.get("description"),
        time_zone=response.get("timeZone"),
        access_role="owner",
    )


def delete_calendar(account: CalendarAccountConfig, calendar_id: str) -> None:
    _make_request(account, f"/calendars/{_quote(calendar_id)}", method="DELETE")


# ============================================================================
# Event Operations
# ============================================================================


def list_events(
    account: CalendarAccountConfig,
    calendar_id: str = "primary",
    *,
    time_min: datetime,
    time_max: datetime,
    query: Optional[str] = None,
    max_results: int = 250,
    page_token: Optional[str] = None,
) -> EventListResponse:
    """List one page of events from a calendar.

    Recurring events are always expanded into single instances and the
    result is ordered by start time.

    Args:
        account: Calendar account configuration
        calendar_id: Calendar ID (or "primary")
        time_min: Inclusive lower bound for event end time
        time_max: Exclusive upper bound for event start time
        query: Free-text search filter
        max_results: Page size (1-2500)
        page_token: Token for pagination

    Returns:
        EventListResponse with raw event dicts and pagination token
    """
    params = {
        "timeMin": time_min.isoformat(),
        "timeMax": time_max.isoformat(),
        "singleEvents": "true",
        "orderBy": "startTime",
        "maxResults": str(max(1, min(max_results, 2500))),
    }

    if query:
        params["q"] = query

    if page_token:
        params["pageToken"] = page_token

    response = _make_request(
        account, f"/calendars/{_quote(calendar_id)}/events", params=params
    )

    return EventListResponse(
        events=response.get("items", []),
        next_page_token=response.get("nextPageToken"),
    )


def get_event(
    account: CalendarAccountConfig, calendar_id: str, event_id: str
) -> Dict[str, Any]:
    return _make_request(
        account, f"/calendars/{_quote(calendar_id)}/events/{_quote(event_id)}"
    )


def insert_event(
    account: CalendarAccountConfig, calendar_id: str, body: Dict[str, Any]
) -> Dict[str, Any]:
    return _make_request(
        account,
        f"/calendars/{_quote(calendar_id)}/events",
        method="POST",
        body=body,
    )


def update_event(
    account: CalendarAccountConfig,
    calendar_id: str,
    event_id: str,
    body: Dict[str, Any],
    send_updates: str = "none",
) -> Dict[str, Any]:
    """Replace an event resource.

    Args:
        account: Calendar account configuration
        calendar_id: Calendar ID
        event_id: Event ID to update
        body: Complete event resource (usually a fetched and edited event)
        send_updates: "all", "externalOnly" or "none"
    """
    return _make_request(
        account,
        f"/calendars/{_quote(calendar_id)}/events/{_quote(event_id)}",
        method="PUT",
        params={"sendUpdates": send_updates},
        body=body,
    )


def delete_event(
    account: CalendarAccountConfig, calendar_id: str, event_id: str
) -> None:
    _make_request(
        account,
        f"/calendars/{_quote(calendar_id)}/events/{_quote(event_id)}",
        method="DELETE",
    )


def move_event(
    account: CalendarAccountConfig,
    calendar_id: str,
    event_id: str,
    destination: str,
) -> Dict[str, Any]:
    """Move an event to another calendar of the same account."""
    return _make_request(
        account,
        f"/calendars/{_quote(calendar_id)}/events/{_quote(event_id)}/move",
        method="POST",
        params={"destination": destination},
    )
