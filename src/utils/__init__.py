# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting helpers: structlog setup and UTC datetimes."""

from src.utils.datetime import ensure_utc, format_iso, is_expired, seconds_ago, utc_now
from src.utils.logging import bind_context, clear_context, setup_logging

__all__ = [
    "setup_logging",
    "bind_context",
    "clear_context",
    "utc_now",
    "ensure_utc",
    "seconds_ago",
    "is_expired",
    "format_iso",
]
