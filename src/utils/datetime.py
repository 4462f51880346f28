# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Timezone-aware datetime helpers.

Columns are TIMESTAMPTZ and every datetime handled in Python is aware UTC.
Use utc_now() rather than datetime.now() anywhere a timestamp is written.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize to aware UTC; naive values are taken to be UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def seconds_ago(seconds: int) -> datetime:
    return utc_now() - timedelta(seconds=seconds)


def is_expired(started_at: datetime | None, ttl_seconds: int) -> bool:
    """Check whether a window that opened at started_at has closed.

    Args:
        started_at: Start of the window; None counts as expired.
        ttl_seconds: Window length.

    Returns:
        True once ttl_seconds or more have passed since started_at.
    """
    if started_at is None:
        return True
    return ensure_utc(started_at) <= seconds_ago(ttl_seconds)


def format_iso(dt: datetime | None) -> str | None:
    """ISO 8601 in UTC, as stored in access log details."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()
