# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application approval service.

This module turns a pending enrollment application into durable enrollment
state. Approval runs as one transaction: the child profile, the parent
profiles, their relationships, the status change and the audit entry are
committed together or not at all. While an approval or rejection runs the
admin holds the application's processing lock.

Example:
    service = ApplicationService(db)
    result = await service.approve_application(application_id, auth)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from src.domains.application.locks import ApplicationLockService
from src.domains.application.parent_linker import (
    MAX_PARENTS_PER_CHILD,
    ParentProfileLinker,
    parent_blocks_from_application,
)
from src.domains.audit.service import AccessLogService
from src.infrastructure.database.models import (
    Application,
    ChildProfile,
    ParentChildRelationship,
    generate_uuid,
)
from src.models.application import (
    AccessLogResponse,
    ApplicationResponse,
    ApplicationSummary,
    ApprovalResponse,
    ChildProfileResponse,
    ParentProfileResponse,
    RejectionResponse,
    RelationshipResponse,
)
from src.models.common import (
    AccessActionType,
    AccessTargetType,
    ApplicationStatus,
    EnrollmentStatus,
    ProcessingAction,
)
from src.utils.datetime import format_iso, utc_now

if TYPE_CHECKING:
    from src.api.middleware.auth import AuthContext

logger = logging.getLogger(__name__)


class ApplicationService:
    """Service for reviewing and processing enrollment applications.

    Attributes:
        db: Async database session.
    """

    def __init__(
        self,
        db: AsyncSession,
        locks: ApplicationLockService | None = None,
    ) -> None:
        """Initialize application service.

        Args:
            db: Async database session.
            locks: Processing lock service. Defaults to one on the same session.
        """
        self.db = db
        self._locks = locks or ApplicationLockService(db)
        self._linker = ParentProfileLinker(db)
        self._access_log = AccessLogService(db)

    async def approve_application(
        self,
        application_id: str,
        auth: AuthContext,
    ) -> ApprovalResponse:
        """Approve a pending application.

        Creates the child profile, resolves or creates up to two parent
        profiles, links them to the child and records the decision in the
        access log, all in one transaction.

        Args:
            application_id: Application to approve.
            auth: Acting admin.

        Returns:
            Everything created or changed by the approval.

        Raises:
            NotFoundError: If the application does not exist in the school.
            LockedError: If another admin is processing the application.
            ConflictError: If the application was already processed.
            ValidationError: If the application has too many parent blocks.
            InternalError: If the transaction fails; nothing is persisted.
        """
        await self._locks.acquire(application_id, auth, ProcessingAction.APPROVE)
        try:
            return await self._approve(application_id, auth)
        finally:
            await self._release_lock(application_id, auth)

    async def _approve(self, application_id: str, auth: AuthContext) -> ApprovalResponse:
        try:
            application = await self._get_for_update(application_id, auth.school_id)
            self._ensure_pending(application)

            blocks = parent_blocks_from_application(application)
            if len(blocks) > MAX_PARENTS_PER_CHILD:
                raise ValidationError(
                    f"An application may list at most {MAX_PARENTS_PER_CHILD} parents"
                )

            now = utc_now()
            child = ChildProfile(
                id=generate_uuid(),
                school_id=application.school_id,
                application_id=application.id,
                first_name=application.child_first_name,
                last_name=application.child_last_name,
                date_of_birth=application.child_date_of_birth,
                gender=application.child_gender,
                start_date=application.preferred_start_date,
                special_needs=application.special_needs,
                medical_conditions=application.medical_conditions,
                enrollment_status=EnrollmentStatus.ACTIVE.value,
                created_by_admin_id=auth.user_id,
                created_at=now,
                updated_at=now,
            )
            self.db.add(child)
            await self.db.flush()

            parents: list[ParentProfileResponse] = []
            relationships: list[ParentChildRelationship] = []
            for block in blocks:
                profile, created = await self._linker.resolve_or_create(
                    application.school_id, block
                )
                relationship = ParentChildRelationship(
                    id=generate_uuid(),
                    school_id=application.school_id,
                    parent_id=profile.id,
                    child_id=child.id,
                    relationship_type=block.relationship_type.value,
                    primary_contact=block.primary_contact,
                    pickup_authorized=True,
                    created_at=now,
                )
                self.db.add(relationship)
                relationships.append(relationship)
                parents.append(
                    ParentProfileResponse(
                        id=profile.id,
                        first_name=profile.first_name,
                        last_name=profile.last_name,
                        email=profile.email,
                        phone=profile.phone,
                        relationship_to_child=block.relationship_type,
                        primary_contact=block.primary_contact,
                        pickup_authorized=True,
                        created=created,
                        created_at=profile.created_at,
                    )
                )
            await self.db.flush()

            application.status = ApplicationStatus.APPROVED.value
            application.processed_at = now
            application.processed_by_admin_id = auth.user_id
            application.updated_at = now

            access_log = await self._access_log.log_action(
                school_id=application.school_id,
                admin_user_id=auth.user_id,
                action_type=AccessActionType.APPLICATION_APPROVED,
                target_type=AccessTargetType.APPLICATION,
                target_id=application.id,
                details={
                    "child_profile_id": child.id,
                    "parent_profile_ids": [p.id for p in parents],
                    "processed_at": format_iso(now),
                },
            )

            await self.db.commit()
        except ServiceError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Approval of application %s failed", application_id)
            raise InternalError("Failed to approve application") from e

        logger.info(
            "Approved application %s: child %s, parents %s",
            application.id,
            child.id,
            [p.id for p in parents],
        )

        return ApprovalResponse(
            application=ApplicationResponse.model_validate(application),
            child_profile=ChildProfileResponse.model_validate(child),
            parent_profiles=parents,
            relationships=[RelationshipResponse.model_validate(r) for r in relationships],
            access_log=AccessLogResponse.model_validate(access_log),
        )

    async def reject_application(
        self,
        application_id: str,
        auth: AuthContext,
        reason: str | None = None,
    ) -> RejectionResponse:
        """Reject a pending application.

        Args:
            application_id: Application to reject.
            auth: Acting admin.
            reason: Optional reason, stored on the application and in the log.

        Returns:
            The rejected application and its access log entry.

        Raises:
            NotFoundError: If the application does not exist in the school.
            LockedError: If another admin is processing the application.
            ConflictError: If the application was already processed.
            InternalError: If the transaction fails.
        """
        await self._locks.acquire(application_id, auth, ProcessingAction.REJECT)
        try:
            return await self._reject(application_id, auth, reason)
        finally:
            await self._release_lock(application_id, auth)

    async def _reject(
        self,
        application_id: str,
        auth: AuthContext,
        reason: str | None,
    ) -> RejectionResponse:
        try:
            application = await self._get_for_update(application_id, auth.school_id)
            self._ensure_pending(application)

            now = utc_now()
            application.status = ApplicationStatus.REJECTED.value
            application.processed_at = now
            application.processed_by_admin_id = auth.user_id
            application.rejection_reason = reason
            application.updated_at = now

            access_log = await self._access_log.log_action(
                school_id=application.school_id,
                admin_user_id=auth.user_id,
                action_type=AccessActionType.APPLICATION_REJECTED,
                target_type=AccessTargetType.APPLICATION,
                target_id=application.id,
                details={"reason": reason, "processed_at": format_iso(now)},
            )

            await self.db.commit()
        except ServiceError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Rejection of application %s failed", application_id)
            raise InternalError("Failed to reject application") from e

        logger.info("Rejected application %s", application.id)

        return RejectionResponse(
            application=ApplicationResponse.model_validate(application),
            access_log=AccessLogResponse.model_validate(access_log),
        )

    async def get_application(
        self,
        application_id: str,
        auth: AuthContext,
    ) -> ApplicationResponse:
        """Get one application of the caller's school.

        Raises:
            NotFoundError: If the application does not exist in the school.
        """
        result = await self.db.execute(
            select(Application).where(
                Application.id == application_id,
                Application.school_id == auth.school_id,
            )
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFoundError(f"Application {application_id} not found")

        return ApplicationResponse.model_validate(application)

    async def list_applications(
        self,
        auth: AuthContext,
        status: ApplicationStatus | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ApplicationSummary], int]:
        """List applications of the caller's school, newest first.

        Args:
            auth: Acting admin.
            status: Optional status filter.
            search: Optional case-insensitive match on child name or parent email.
            limit: Maximum results.
            offset: Pagination offset.

        Returns:
            Tuple of (summaries, total count).
        """
        conditions = [Application.school_id == auth.school_id]
        if status is not None:
            conditions.append(Application.status == status.value)
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(
                    Application.child_first_name.ilike(pattern),
                    Application.child_last_name.ilike(pattern),
                    Application.parent1_email.ilike(pattern),
                    Application.parent2_email.ilike(pattern),
                )
            )

        count_query = select(func.count()).select_from(Application).where(*conditions)
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = (
            select(Application)
            .where(*conditions)
            .order_by(Application.submitted_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        applications = result.scalars().all()

        return [self._to_summary(a) for a in applications], total

    async def _get_for_update(self, application_id: str, school_id: str) -> Application:
        """Read and row-lock an application of the given school."""
        result = await self.db.execute(
            select(Application)
            .where(
                Application.id == application_id,
                Application.school_id == school_id,
            )
            .with_for_update()
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFoundError(f"Application {application_id} not found")
        return application

    async def _release_lock(self, application_id: str, auth: AuthContext) -> None:
        try:
            await self._locks.release(application_id, auth.user_id)
        except InternalError:
            logger.warning(
                "Processing lock on %s not released; it expires after %ds",
                application_id,
                self._locks.ttl_seconds,
            )

    def _ensure_pending(self, application: Application) -> None:
        if not application.is_pending:
            raise ConflictError("Application already processed", code="ALREADY_PROCESSED")

    def _to_summary(self, application: Application) -> ApplicationSummary:
        return ApplicationSummary(
            id=application.id,
            status=ApplicationStatus(application.status),
            child_name=f"{application.child_first_name} {application.child_last_name}",
            parent1_name=f"{application.parent1_first_name} {application.parent1_last_name}",
            parent1_email=application.parent1_email,
            submitted_at=application.submitted_at,
            processed_at=application.processed_at,
        )
