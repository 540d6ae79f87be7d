"""Account credentials: stored tokens and the interactive OAuth flow.

The OAuth flow lives in ``oauth_flow`` and is imported from there directly;
it depends on the calendar client, which itself reads the token store.
"""
from __future__ import annotations

from .token_store import (
    AuthenticationError,
    ClientSecrets,
    has_token,
    load_client_secrets,
    load_token,
    save_token,
)


__all__ = [
    "AuthenticationError",
    "ClientSecrets",
    "has_token",
    "load_client_secrets",
    "load_token",
    "save_token",
]
