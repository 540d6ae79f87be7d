"""Calendar snapshot export."""
from __future__ import annotations

from .service import (
    SyncService,
    build_sync_document,
    combined_sort_key,
    default_sync_window,
    flatten_days,
    group_by_day,
)


__all__ = [
    "SyncService",
    "build_sync_document",
    "combined_sort_key",
    "default_sync_window",
    "flatten_days",
    "group_by_day",
]
