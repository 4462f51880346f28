# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for SchoolHub.

This package contains domain services that encapsulate business logic.
Services receive an AsyncSession and a trusted AuthContext, raise errors
from src.core.errors, and own their transaction boundaries.

Domains:
    application: Enrollment application review and approval.
    audit: Admin access log.
    auth: JWT token handling.
    progress_board: Teacher lesson progress boards.
"""
