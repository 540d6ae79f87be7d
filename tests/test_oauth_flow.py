"""Tests for the interactive OAuth flow.

The listener binds an ephemeral port (oauth_port=0 in the settings fixture);
callbacks are simulated with real HTTP requests against it.
"""
from __future__ import annotations

import threading
from unittest.mock import MagicMock
from urllib import request as urlrequest
from urllib.parse import parse_qs, urlparse

import pytest

from calendar_manager.auth import AuthenticationError, ClientSecrets, has_token, load_token
from calendar_manager.auth.oauth_flow import AuthState, OAuthFlow
from calendar_manager.calendar import CalendarError
from calendar_manager.config import ConfigError


SECRETS = ClientSecrets(client_id="client-id", client_secret="client-secret")
TOKEN = {"access_token": "access", "refresh_token": "refresh", "expires_in": 3599}
# Bypass any proxy configured in the environment
_DIRECT = urlrequest.build_opener(urlrequest.ProxyHandler({}))


def _callback(query):
    """on_url hook that immediately hits the callback with ``query``."""
    def hit(url):
        flow_redirect = parse_qs(urlparse(url).query)["redirect_uri"][0]
        target = flow_redirect.replace("localhost", "127.0.0.1")
        with _DIRECT.open(f"{target}/?{query}", timeout=5) as resp:
            resp.read()
    return hit


def test_successful_authorization_saves_token(settings):
    exchange = MagicMock(return_value=TOKEN)
    flow = OAuthFlow(settings, "personal", secrets=SECRETS, exchange=exchange)

    token = flow.run(on_url=_callback("code=auth-code&scope=calendar"))

    assert token == TOKEN
    assert flow.state is AuthState.COMPLETE
    assert has_token(settings, "personal")
    assert load_token(settings, "personal") == TOKEN
    kwargs = exchange.call_args.kwargs
    assert kwargs["code"] == "auth-code"
    assert kwargs["redirect_uri"] == flow.redirect_uri


def test_authorization_url_requests_offline_calendar_access(settings):
    seen = {}

    def capture(url):
        seen.update(parse_qs(urlparse(url).query))
        _callback("code=x")(url)

    OAuthFlow(settings, "business", secrets=SECRETS, exchange=MagicMock(return_value=TOKEN)).run(
        on_url=capture
    )

    assert seen["access_type"] == ["offline"]
    assert seen["scope"] == ["https://www.googleapis.com/auth/calendar"]
    assert seen["client_id"] == ["client-id"]
    assert seen["redirect_uri"][0].startswith("http://localhost:")


def test_timeout_fails_the_flow(settings):
    flow = OAuthFlow(settings, "personal", secrets=SECRETS, exchange=MagicMock(), timeout=0.3)

    with pytest.raises(AuthenticationError, match="No authorization callback"):
        flow.run()

    assert flow.state is AuthState.FAILED
    assert not has_token(settings, "personal")


def test_cancellation_fails_the_flow(settings):
    cancel = threading.Event()
    flow = OAuthFlow(
        settings, "personal", secrets=SECRETS, exchange=MagicMock(),
        timeout=30, cancel_event=cancel,
    )

    with pytest.raises(AuthenticationError, match="cancelled"):
        flow.run(on_url=lambda url: flow.cancel())

    assert flow.state is AuthState.FAILED


def test_denied_authorization(settings):
    exchange = MagicMock()
    flow = OAuthFlow(settings, "personal", secrets=SECRETS, exchange=exchange)

    with pytest.raises(AuthenticationError, match="access_denied"):
        flow.run(on_url=_callback("error=access_denied"))

    exchange.assert_not_called()
    assert flow.state is AuthState.FAILED


def test_failed_code_exchange(settings):
    exchange = MagicMock(side_effect=CalendarError("Calendar token request failed (400): invalid_grant"))
    flow = OAuthFlow(settings, "personal", secrets=SECRETS, exchange=exchange)

    with pytest.raises(AuthenticationError, match="invalid_grant"):
        flow.run(on_url=_callback("code=expired"))

    assert flow.state is AuthState.FAILED
    assert not has_token(settings, "personal")


def test_flow_runs_only_once(settings):
    flow = OAuthFlow(settings, "personal", secrets=SECRETS, exchange=MagicMock(return_value=TOKEN))
    flow.run(on_url=_callback("code=once"))

    with pytest.raises(AuthenticationError, match="already finished"):
        flow.run()


def test_unknown_account_is_rejected(settings):
    with pytest.raises(ConfigError, match="Invalid account"):
        OAuthFlow(settings, "nobody", secrets=SECRETS)
