# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin access log domain package."""

from src.domains.audit.service import AccessLogService

__all__ = ["AccessLogService"]
