"""Interactive OAuth flow with a local callback listener.

The flow is an explicit state machine:

    AWAITING_AUTHORIZATION -> EXCHANGING_CODE -> COMPLETE
              |                      |
              +-------> FAILED <-----+

The listener accepts exactly one callback carrying ``code`` or ``error``.
Waiting is bounded by ``timeout`` and can be cancelled from another thread
through ``cancel_event``.
"""
from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Callable, Dict, Optional
from urllib.parse import parse_qs, urlencode, urlparse

from ..calendar.google_calendar import CalendarError, exchange_code
from ..config import Settings, validate_account
from .token_store import (
    AuthenticationError,
    ClientSecrets,
    load_client_secrets,
    save_token,
)


AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
SCOPES = ("https://www.googleapis.com/auth/calendar",)
POLL_INTERVAL = 0.2

logger = logging.getLogger(__name__)


class AuthState(Enum):
    """Lifecycle of one authorization attempt."""
    AWAITING_AUTHORIZATION = "awaiting_authorization"
    EXCHANGING_CODE = "exchanging_code"
    COMPLETE = "complete"
    FAILED = "failed"


class _CallbackServer(HTTPServer):
    """HTTP server that remembers the first OAuth callback it receives."""

    def __init__(self, address, account: str) -> None:
        super().__init__(address, _CallbackHandler)
        self.account = account
        self.code: Optional[str] = None
        self.error: Optional[str] = None
        self.received = threading.Event()


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer

    def do_GET(self):  # noqa: N802
        params = parse_qs(urlparse(self.path).query)
        code = (params.get("code") or [None])[0]
        error = (params.get("error") or [None])[0]

        if self.server.received.is_set() or not (code or error):
            self.send_response(404)
            self.end_headers()
            return

        self.server.code = code
        self.server.error = error
        account = self.server.account.upper()
        message = (
            f"<h1>{account} authorized!</h1><p>You can close this window.</p>"
            if code
            else f"<h1>{account} authorization failed</h1><p>{error}</p>"
        )
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.end_headers()
        self.wfile.write(message.encode("utf-8"))
        self.server.received.set()

    def log_message(self, fmt: str, *args):  # noqa: D401
        """Silence default request logging."""


class OAuthFlow:
    """One interactive authorization for a named account.

    Args:
        settings: Runtime settings (port, timeout, token location)
        account: Account name to authorize
        secrets: OAuth client; loaded from settings when omitted
        exchange: Code-for-token exchange function
        timeout: Seconds to wait for the callback (default from settings)
        cancel_event: Set from another thread to abort the wait
    """

    def __init__(
        self,
        settings: Settings,
        account: str,
        *,
        secrets: Optional[ClientSecrets] = None,
        exchange: Callable[..., Dict[str, Any]] = exchange_code,
        port: Optional[int] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.settings = settings
        self.account = validate_account(account)
        self.secrets = secrets or load_client_secrets(settings)
        self.exchange = exchange
        self.port = settings.oauth_port if port is None else port
        self.timeout = settings.auth_timeout if timeout is None else timeout
        self.cancel_event = cancel_event or threading.Event()
        self.state = AuthState.AWAITING_AUTHORIZATION
        self.failure: Optional[str] = None
        self._server: Optional[_CallbackServer] = None

    @property
    def redirect_uri(self) -> str:
        port = self._server.server_address[1] if self._server else self.port
        return f"http://localhost:{port}"

    @property
    def authorization_url(self) -> str:
        params = {
            "client_id": self.secrets.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",
            "prompt": "consent select_account",
        }
        return f"{AUTH_URL}?{urlencode(params)}"

    def cancel(self) -> None:
        self.cancel_event.set()

    def _fail(self, reason: str) -> AuthenticationError:
        self.state = AuthState.FAILED
        self.failure = reason
        logger.warning(f"Authorization for {self.account} failed: {reason}")
        return AuthenticationError(reason)

    def _wait_for_callback(self, server: _CallbackServer) -> str:
        deadline = time.monotonic() + self.timeout
        while not server.received.wait(POLL_INTERVAL):
            if self.cancel_event.is_set():
                raise self._fail("Authorization cancelled.")
            if time.monotonic() >= deadline:
                raise self._fail(
                    f"No authorization callback within {self.timeout:g} seconds."
                )
        if server.error or not server.code:
            raise self._fail(f"Authorization denied: {server.error}")
        return server.code

    def run(self, on_url: Optional[Callable[[str], None]] = None) -> Dict[str, Any]:
        """Run the flow to completion and persist the token.

        Args:
            on_url: Called with the consent URL once the listener is up

        Returns:
            The token blob that was saved.

        Raises:
            AuthenticationError: on timeout, cancellation, denial or a failed
                code exchange.
        """
        if self.state is not AuthState.AWAITING_AUTHORIZATION:
            raise AuthenticationError(f"Flow already finished ({self.state.value}).")

        try:
            server = _CallbackServer(("127.0.0.1", self.port), self.account)
        except OSError as exc:
            raise self._fail(f"Cannot listen on port {self.port}: {exc}") from exc

        self._server = server
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        logger.info(f"Listening on {self.redirect_uri} for callback...")

        try:
            if on_url is not None:
                on_url(self.authorization_url)
            code = self._wait_for_callback(server)
        finally:
            server.shutdown()
            server.server_close()

        self.state = AuthState.EXCHANGING_CODE
        try:
            token = self.exchange(
                client_id=self.secrets.client_id,
                client_secret=self.secrets.client_secret,
                code=code,
                redirect_uri=self.redirect_uri,
            )
        except CalendarError as exc:
            raise self._fail(f"Code exchange failed: {exc}") from exc

        save_token(self.settings, self.account, token)
        self.state = AuthState.COMPLETE
        logger.info(f"Token saved for {self.account} to {self.settings.token_path(self.account)}")
        return token
