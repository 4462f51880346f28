# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment application domain.

Exports:
    ApplicationService: Approve, reject and list applications.
    ApplicationLockService: Processing locks held during approve and reject.
    ParentProfileLinker: Resolve-or-create parent profiles by email.
    ParentBlock: One submitted parent's details.
"""

from src.domains.application.parent_linker import (
    MAX_PARENTS_PER_CHILD,
    ParentBlock,
    ParentProfileLinker,
    normalize_email,
    parent_blocks_from_application,
)
from src.domains.application.locks import ApplicationLockService
from src.domains.application.service import ApplicationService

__all__ = [
    "MAX_PARENTS_PER_CHILD",
    "ApplicationLockService",
    "ApplicationService",
    "ParentBlock",
    "ParentProfileLinker",
    "normalize_email",
    "parent_blocks_from_application",
]
