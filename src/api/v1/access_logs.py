# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin access log API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_admin
from src.api.middleware.auth import AuthContext
from src.domains.audit import AccessLogService
from src.models.application import AccessLogListResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=AccessLogListResponse,
    summary="List access log entries",
    description="List the school's admin access log, newest first.",
)
async def list_access_logs(
    action_type: Annotated[str | None, Query(description="Filter by action")] = None,
    target_id: Annotated[str | None, Query(description="Filter by target")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum results")] = 50,
    offset: Annotated[int, Query(ge=0, description="Pagination offset")] = 0,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AccessLogListResponse:
    """List access log entries of the caller's school."""
    service = AccessLogService(db)

    items, total = await service.list_logs(
        school_id=auth.school_id,
        action_type=action_type,
        target_id=target_id,
        limit=limit,
        offset=offset,
    )

    return AccessLogListResponse(items=items, total=total, limit=limit, offset=offset)
