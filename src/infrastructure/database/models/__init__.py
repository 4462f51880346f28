# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for SchoolHub.

Importing this package registers every table on Base.metadata, which the
Alembic environment relies on.
"""

from src.infrastructure.database.models.application import (
    Application,
    ApplicationProcessingLock,
)
from src.infrastructure.database.models.audit import AdminAccessLog
from src.infrastructure.database.models.base import Base, TimestampMixin, generate_uuid
from src.infrastructure.database.models.enrollment import (
    ChildProfile,
    ParentChildRelationship,
    ParentProfile,
)
from src.infrastructure.database.models.progress import Lesson, ProgressCard, ProgressColumn

__all__ = [
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "Application",
    "ApplicationProcessingLock",
    "AdminAccessLog",
    "ChildProfile",
    "ParentProfile",
    "ParentChildRelationship",
    "Lesson",
    "ProgressColumn",
    "ProgressCard",
]
