"""Configuration helpers for the Calendar Manager CLI."""
from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv


VALID_ACCOUNTS: Tuple[str, ...] = ("personal", "business")
DEFAULT_TIMEZONE = "Europe/Vienna"
DEFAULT_OAUTH_PORT = 8847
DEFAULT_AUTH_TIMEOUT = 300.0


class ConfigError(RuntimeError):
    """Raised when required configuration is missing."""


@dataclass(slots=True)
class Settings:
    """Runtime configuration for the CLI."""

    tokens_dir: Path
    credentials_path: Path
    index_dir: Path
    calendars_config_path: Path
    timezone: str = DEFAULT_TIMEZONE
    oauth_port: int = DEFAULT_OAUTH_PORT
    auth_timeout: float = DEFAULT_AUTH_TIMEOUT
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    def token_path(self, account: str) -> Path:
        return self.tokens_dir / f"{account}.json"

    def sync_path(self, account: str) -> Path:
        return self.index_dir / account / "upcoming.json"

    @property
    def combined_path(self) -> Path:
        return self.index_dir / "combined.json"


def validate_account(account: Optional[str]) -> str:
    """Return ``account`` if it is one of the known accounts.

    Raises:
        ConfigError: for unknown or missing account names.
    """
    if account not in VALID_ACCOUNTS:
        raise ConfigError(
            f"Invalid account: {account}. Use: {', '.join(VALID_ACCOUNTS)}"
        )
    return account


def load_settings(*, env_file: Optional[str] = None) -> Settings:
    """Load settings from environment variables.

    A ``.env`` file is read first (without overriding variables that are
    already exported).

    Args:
        env_file: Optional explicit path to a dotenv file.

    Returns:
        Settings with all paths resolved.

    Raises:
        ConfigError: if a numeric setting cannot be parsed.
    """
    load_dotenv(env_file)

    home = Path(os.getenv("CALMGR_HOME", Path.cwd()))
    tokens_dir = Path(
        os.getenv("CALMGR_TOKENS_DIR", home / "tokens" / "calendar-manager")
    )
    credentials_path = Path(
        os.getenv("CALMGR_CREDENTIALS_PATH", home / "tokens" / "credentials.json")
    )
    index_dir = Path(os.getenv("CALMGR_INDEX_DIR", home / "calendar-index"))
    calendars_config_path = Path(
        os.getenv("CALMGR_CALENDARS_CONFIG", home / "calendars.json")
    )

    try:
        oauth_port = int(os.getenv("CALMGR_OAUTH_PORT", str(DEFAULT_OAUTH_PORT)))
        auth_timeout = float(
            os.getenv("CALMGR_AUTH_TIMEOUT", str(DEFAULT_AUTH_TIMEOUT))
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid numeric setting: {exc}") from exc

    return Settings(
        tokens_dir=tokens_dir,
        credentials_path=credentials_path,
        index_dir=index_dir,
        calendars_config_path=calendars_config_path,
        timezone=os.getenv("CALMGR_TIMEZONE", DEFAULT_TIMEZONE),
        oauth_port=oauth_port,
        auth_timeout=auth_timeout,
        client_id=os.getenv("CALMGR_CLIENT_ID"),
        client_secret=os.getenv("CALMGR_CLIENT_SECRET"),
    )
