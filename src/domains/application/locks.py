# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application processing locks.

An admin holds a processing lock on an application while an approve or
reject call runs. Another admin acting on the same application is refused
with LockedError until the holder releases the lock or it expires. An
expired lock is replaced on the next attempt.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import ApplicationSettings, get_settings
from src.core.errors import InternalError, LockedError, NotFoundError, ServiceError
from src.infrastructure.database.models import Application, ApplicationProcessingLock
from src.models.application import ApplicationLockResponse, ApplicationLockStatus
from src.models.common import ProcessingAction
from src.utils.datetime import is_expired, seconds_ago, utc_now

if TYPE_CHECKING:
    from src.api.middleware.auth import AuthContext

logger = logging.getLogger(__name__)


class ApplicationLockService:
    """Service for application processing locks.

    Attributes:
        db: Async database session.
        settings: Application settings holding the lock TTL.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: ApplicationSettings | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings().applications

    @property
    def ttl_seconds(self) -> int:
        return self.settings.processing_lock_ttl_seconds

    async def acquire(
        self,
        application_id: str,
        auth: AuthContext,
        action: ProcessingAction,
    ) -> ApplicationLockResponse:
        """Take or refresh the processing lock on an application.

        The caller's own lock is extended. A lock held by someone else is
        honored until it expires.

        Args:
            application_id: Application to lock.
            auth: Acting admin.
            action: What the lock is taken for.

        Returns:
            The lock now held by the caller.

        Raises:
            NotFoundError: If the application does not exist in the school.
            LockedError: If another admin holds an unexpired lock.
            InternalError: If the lock cannot be stored.
        """
        try:
            await self._ensure_application(application_id, auth.school_id)

            result = await self.db.execute(
                select(ApplicationProcessingLock)
                .where(ApplicationProcessingLock.application_id == application_id)
                .with_for_update()
            )
            lock = result.scalar_one_or_none()

            if lock is not None and self._held_by_other(lock, auth.user_id):
                raise LockedError(
                    f"Application is locked for {lock.action} by {lock.locked_by}",
                    code="APPLICATION_LOCKED",
                )

            now = utc_now()
            if lock is None:
                lock = ApplicationProcessingLock(
                    application_id=application_id,
                    school_id=auth.school_id,
                    locked_by=auth.user_id,
                    action=action.value,
                    locked_at=now,
                )
                self.db.add(lock)
            else:
                lock.locked_by = auth.user_id
                lock.action = action.value
                lock.locked_at = now
            await self.db.commit()
        except ServiceError:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            # Another admin inserted the first lock row concurrently
            await self.db.rollback()
            raise LockedError(
                "Application is being processed by another admin",
                code="APPLICATION_LOCKED",
            ) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Locking application %s failed", application_id)
            raise InternalError("Failed to lock application") from e

        logger.debug(
            "Application %s locked for %s by %s", application_id, action.value, auth.user_id
        )
        return self._to_response(lock)

    async def release(self, application_id: str, user_id: str) -> bool:
        """Release the user's lock on an application.

        Releasing a lock the user does not hold succeeds and changes nothing.

        Returns:
            True if a lock was removed.

        Raises:
            InternalError: If the release cannot be stored.
        """
        try:
            result = await self.db.execute(
                delete(ApplicationProcessingLock).where(
                    ApplicationProcessingLock.application_id == application_id,
                    ApplicationProcessingLock.locked_by == user_id,
                )
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Releasing lock on application %s failed", application_id)
            raise InternalError("Failed to release application lock") from e

        return result.rowcount > 0

    async def get_statuses(
        self,
        application_ids: list[str],
        auth: AuthContext,
    ) -> dict[str, ApplicationLockStatus]:
        """Report the lock state of several applications of the caller's school.

        Unknown ids and expired locks report as unlocked.
        """
        result = await self.db.execute(
            select(ApplicationProcessingLock).where(
                ApplicationProcessingLock.application_id.in_(application_ids),
                ApplicationProcessingLock.school_id == auth.school_id,
            )
        )
        locks = {
            lock.application_id: lock
            for lock in result.scalars().all()
            if not is_expired(lock.locked_at, self.ttl_seconds)
        }

        statuses: dict[str, ApplicationLockStatus] = {}
        for application_id in application_ids:
            lock = locks.get(application_id)
            if lock is None:
                statuses[application_id] = ApplicationLockStatus(
                    application_id=application_id, is_locked=False
                )
                continue
            statuses[application_id] = ApplicationLockStatus(
                application_id=application_id,
                is_locked=True,
                locked_by=lock.locked_by,
                locked_at=lock.locked_at,
                action=ProcessingAction(lock.action),
                is_own_lock=lock.locked_by == auth.user_id,
            )
        return statuses

    async def list_locks(self) -> list[ApplicationLockResponse]:
        """List every unexpired processing lock, oldest first."""
        result = await self.db.execute(
            select(ApplicationProcessingLock)
            .where(ApplicationProcessingLock.locked_at > seconds_ago(self.ttl_seconds))
            .order_by(ApplicationProcessingLock.locked_at)
        )
        return [self._to_response(lock) for lock in result.scalars().all()]

    async def force_release(
        self,
        user_id: str,
        auth: AuthContext,
        application_id: str | None = None,
    ) -> int:
        """Remove a user's locks regardless of their age.

        Args:
            user_id: Holder whose locks are removed.
            auth: Acting super admin.
            application_id: Limit the release to one application.

        Returns:
            Number of locks removed.

        Raises:
            InternalError: If the release cannot be stored.
        """
        query = delete(ApplicationProcessingLock).where(
            ApplicationProcessingLock.locked_by == user_id
        )
        if application_id is not None:
            query = query.where(ApplicationProcessingLock.application_id == application_id)

        try:
            result = await self.db.execute(query)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Force release of locks held by %s failed", user_id)
            raise InternalError("Failed to release application locks") from e

        logger.warning(
            "%s force-released %d processing lock(s) held by %s",
            auth.user_id,
            result.rowcount,
            user_id,
        )
        return result.rowcount

    async def _ensure_application(self, application_id: str, school_id: str) -> None:
        result = await self.db.execute(
            select(Application.id).where(
                Application.id == application_id,
                Application.school_id == school_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"Application {application_id} not found")

    def _held_by_other(self, lock: ApplicationProcessingLock, user_id: str) -> bool:
        if lock.locked_by == user_id:
            return False
        return not is_expired(lock.locked_at, self.ttl_seconds)

    def _to_response(self, lock: ApplicationProcessingLock) -> ApplicationLockResponse:
        return ApplicationLockResponse(
            application_id=lock.application_id,
            school_id=lock.school_id,
            locked_by=lock.locked_by,
            action=ProcessingAction(lock.action),
            locked_at=lock.locked_at,
            expires_at=lock.locked_at + timedelta(seconds=self.ttl_seconds),
        )
