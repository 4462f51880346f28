# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin access log service.

The access log is an append-only audit sink. Writes join the caller's
transaction: log_action() flushes but never commits, so an audit row exists
if and only if the action it records was committed.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import AdminAccessLog, generate_uuid
from src.models.application import AccessLogResponse
from src.models.common import AccessActionType, AccessTargetType
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class AccessLogService:
    """Service for writing and reading admin access log entries.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize access log service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def log_action(
        self,
        school_id: str,
        admin_user_id: str,
        action_type: AccessActionType,
        target_type: AccessTargetType,
        target_id: str,
        details: dict[str, Any] | None = None,
    ) -> AdminAccessLog:
        """Append one access log entry inside the current transaction.

        Args:
            school_id: School the action happened in.
            admin_user_id: Acting admin.
            action_type: What was done.
            target_type: Kind of entity acted on.
            target_id: Identifier of the entity acted on.
            details: Extra JSON payload.

        Returns:
            The pending AdminAccessLog row.
        """
        entry = AdminAccessLog(
            id=generate_uuid(),
            school_id=school_id,
            admin_user_id=str(admin_user_id),
            action_type=action_type.value,
            target_type=target_type.value,
            target_id=str(target_id),
            details=details or {},
            timestamp=utc_now(),
        )
        self.db.add(entry)
        await self.db.flush()

        logger.debug(
            "Access log %s: %s %s/%s by %s",
            entry.id,
            entry.action_type,
            entry.target_type,
            entry.target_id,
            entry.admin_user_id,
        )
        return entry

    async def list_logs(
        self,
        school_id: str,
        action_type: str | None = None,
        target_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AccessLogResponse], int]:
        """List access log entries for a school, newest first.

        Args:
            school_id: School to list.
            action_type: Optional action filter.
            target_id: Optional target filter.
            limit: Maximum results.
            offset: Pagination offset.

        Returns:
            Tuple of (entries, total count).
        """
        conditions = [AdminAccessLog.school_id == school_id]
        if action_type:
            conditions.append(AdminAccessLog.action_type == action_type)
        if target_id:
            conditions.append(AdminAccessLog.target_id == target_id)

        count_query = select(func.count()).select_from(AdminAccessLog).where(*conditions)
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = (
            select(AdminAccessLog)
            .where(*conditions)
            .order_by(AdminAccessLog.timestamp.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        entries = result.scalars().all()

        return [AccessLogResponse.model_validate(e) for e in entries], total
