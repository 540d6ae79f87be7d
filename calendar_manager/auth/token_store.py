"""Token Store - per-account OAuth token files.

File Storage Structure:
    <tokens_dir>/{account}.json -> token blob returned by the token endpoint

Client secrets come from a Google "installed app" ``credentials.json`` or,
when that file is absent, from CALMGR_CLIENT_ID / CALMGR_CLIENT_SECRET.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from ..config import ConfigError, Settings
from ..storage import read_json, write_json


DEFAULT_REDIRECT_URI = "http://localhost"


class AuthenticationError(RuntimeError):
    """Raised when an account has no usable credentials."""


@dataclass(slots=True)
class ClientSecrets:
    """OAuth client registration."""

    client_id: str
    client_secret: str
    redirect_uri: str = DEFAULT_REDIRECT_URI


def load_client_secrets(settings: Settings) -> ClientSecrets:
    """Load the OAuth client registration.

    Raises:
        ConfigError: if neither credentials.json nor the env vars are set.
    """
    data = read_json(settings.credentials_path)
    if data is not None:
        installed = data.get("installed") or data.get("web") or {}
        missing = [
            key for key in ("client_id", "client_secret") if not installed.get(key)
        ]
        if missing:
            raise ConfigError(
                f"{settings.credentials_path} is missing: {', '.join(missing)}"
            )
        redirect_uris = installed.get("redirect_uris") or [DEFAULT_REDIRECT_URI]
        return ClientSecrets(
            client_id=installed["client_id"],
            client_secret=installed["client_secret"],
            redirect_uri=redirect_uris[0],
        )

    if settings.client_id and settings.client_secret:
        return ClientSecrets(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
        )

    raise ConfigError(
        f"credentials.json not found at {settings.credentials_path}. "
        "Download it from the Google Cloud console or set "
        "CALMGR_CLIENT_ID and CALMGR_CLIENT_SECRET."
    )


def has_token(settings: Settings, account: str) -> bool:
    return settings.token_path(account).exists()


def load_token(settings: Settings, account: str) -> Dict[str, Any]:
    """Return the stored token blob for ``account``.

    Raises:
        AuthenticationError: if the account was never authenticated.
    """
    token = read_json(settings.token_path(account))
    if token is None:
        raise AuthenticationError(
            f"Not authenticated for {account}. Run: calendar-manager auth {account}"
        )
    return token


def save_token(settings: Settings, account: str, token: Dict[str, Any]) -> None:
    write_json(settings.token_path(account), token)
