# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application approval request and response models."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import (
    ApplicationStatus,
    EnrollmentStatus,
    PaginatedResponse,
    ProcessingAction,
    RelationshipType,
)


class RejectApplicationRequest(BaseModel):
    """Body of a reject call."""

    reason: str | None = Field(
        default=None,
        max_length=1000,
        description="Optional reason recorded in the access log",
    )


class ApplicationResponse(BaseModel):
    """Full application details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    status: ApplicationStatus
    child_first_name: str
    child_last_name: str
    child_date_of_birth: date
    child_gender: str | None = None
    preferred_start_date: date | None = None
    special_needs: str | None = None
    medical_conditions: str | None = None
    parent1_first_name: str
    parent1_last_name: str
    parent1_email: str
    parent1_phone: str | None = None
    parent1_relationship: RelationshipType
    parent2_first_name: str | None = None
    parent2_last_name: str | None = None
    parent2_email: str | None = None
    parent2_phone: str | None = None
    parent2_relationship: RelationshipType | None = None
    submitted_at: datetime
    processed_at: datetime | None = None
    processed_by_admin_id: str | None = None
    rejection_reason: str | None = None


class ApplicationSummary(BaseModel):
    """Row in the applications list."""

    id: str
    status: ApplicationStatus
    child_name: str
    parent1_name: str
    parent1_email: str
    submitted_at: datetime
    processed_at: datetime | None = None


class ApplicationListResponse(PaginatedResponse[ApplicationSummary]):
    """Paginated applications list."""

    pass


class ChildProfileResponse(BaseModel):
    """Child profile created by an approval."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str | None = None
    first_name: str
    last_name: str
    date_of_birth: date
    gender: str | None = None
    start_date: date | None = None
    special_needs: str | None = None
    medical_conditions: str | None = None
    enrollment_status: EnrollmentStatus
    created_by_admin_id: str | None = None
    created_at: datetime


class ParentProfileResponse(BaseModel):
    """Parent profile linked by an approval.

    ``created`` is False when an existing profile for the same email was
    reused; its ``created_at`` then predates the approval.
    """

    id: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    relationship_to_child: RelationshipType
    primary_contact: bool
    pickup_authorized: bool
    created: bool
    created_at: datetime


class RelationshipResponse(BaseModel):
    """Parent-child relationship row."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    parent_id: str
    child_id: str
    relationship_type: RelationshipType
    primary_contact: bool
    pickup_authorized: bool


class AccessLogResponse(BaseModel):
    """Admin access log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    admin_user_id: str
    action_type: str
    target_type: str
    target_id: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class AccessLogListResponse(PaginatedResponse[AccessLogResponse]):
    """Paginated access log list."""

    pass


class ApprovalResponse(BaseModel):
    """Everything an approval produced, returned after commit."""

    application: ApplicationResponse
    child_profile: ChildProfileResponse
    parent_profiles: list[ParentProfileResponse]
    relationships: list[RelationshipResponse]
    access_log: AccessLogResponse


class RejectionResponse(BaseModel):
    """Result of a rejection."""

    application: ApplicationResponse
    access_log: AccessLogResponse


class ApplicationLockStatusRequest(BaseModel):
    """Applications whose processing lock state is wanted."""

    application_ids: list[str] = Field(min_length=1, max_length=100)


class ApplicationLockStatus(BaseModel):
    """Processing lock state of one application, as seen by the caller."""

    application_id: str
    is_locked: bool
    locked_by: str | None = None
    locked_at: datetime | None = None
    action: ProcessingAction | None = None
    is_own_lock: bool = False


class ApplicationLockStatusResponse(BaseModel):
    """Lock state keyed by application id."""

    statuses: dict[str, ApplicationLockStatus]


class ApplicationLockResponse(BaseModel):
    """Processing lock held on an application."""

    application_id: str
    school_id: str
    locked_by: str
    action: ProcessingAction
    locked_at: datetime
    expires_at: datetime


class ApplicationLockListResponse(BaseModel):
    """Every unexpired processing lock."""

    locks: list[ApplicationLockResponse]
    total: int


class ForceReleaseResponse(BaseModel):
    """Result of a forced release."""

    released: int
