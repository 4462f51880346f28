# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enums and DTO building blocks.

Enum values are the exact strings persisted in the database and exchanged
over the API.
"""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApplicationStatus(str, Enum):
    """Enrollment application lifecycle status."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class EnrollmentStatus(str, Enum):
    """Child enrollment status."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    WAITLISTED = "WAITLISTED"


class RelationshipType(str, Enum):
    """Relationship of a parent to a child."""

    MOTHER = "MOTHER"
    FATHER = "FATHER"
    GUARDIAN = "GUARDIAN"
    OTHER = "OTHER"


class AccessActionType(str, Enum):
    """Admin actions recorded in the access log."""

    APPLICATION_APPROVED = "APPLICATION_APPROVED"
    APPLICATION_REJECTED = "APPLICATION_REJECTED"
    APPLICATION_VIEWED = "APPLICATION_VIEWED"


class ProcessingAction(str, Enum):
    """Action an application processing lock is held for."""

    APPROVE = "approve"
    REJECT = "reject"


class AccessTargetType(str, Enum):
    """Entity types an access log entry can point to."""

    APPLICATION = "APPLICATION"
    CHILD_PROFILE = "CHILD_PROFILE"
    PARENT_PROFILE = "PARENT_PROFILE"


class ProgressStatus(str, Enum):
    """Default progress board column keys."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated list response."""

    items: list[T] = Field(default_factory=list)
    total: int = Field(ge=0, description="Total matching items")
    limit: int = Field(ge=1, description="Page size")
    offset: int = Field(ge=0, description="Page offset")
