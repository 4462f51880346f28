# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application processing lock endpoints.

- POST / - Lock state of up to 100 applications of the caller's school
- GET / - Every unexpired lock (super admin)
- DELETE / - Force-release a user's locks (super admin)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_admin, require_super_admin
from src.api.errors import to_http_exception
from src.api.middleware.auth import AuthContext
from src.core.errors import ServiceError
from src.domains.application import ApplicationLockService
from src.models.application import (
    ApplicationLockListResponse,
    ApplicationLockStatusRequest,
    ApplicationLockStatusResponse,
    ForceReleaseResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ApplicationLockService:
    """Get application lock service instance."""
    return ApplicationLockService(db=db)


@router.post(
    "",
    response_model=ApplicationLockStatusResponse,
    summary="Get processing lock status",
)
async def get_lock_statuses(
    data: ApplicationLockStatusRequest,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApplicationLockStatusResponse:
    """Report which of the given applications another admin is processing."""
    service = _get_service(db)
    statuses = await service.get_statuses(data.application_ids, auth)
    return ApplicationLockStatusResponse(statuses=statuses)


@router.get(
    "",
    response_model=ApplicationLockListResponse,
    summary="List processing locks",
)
async def list_locks(
    auth: AuthContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
) -> ApplicationLockListResponse:
    """List every unexpired processing lock across schools."""
    service = _get_service(db)
    locks = await service.list_locks()
    return ApplicationLockListResponse(locks=locks, total=len(locks))


@router.delete(
    "",
    response_model=ForceReleaseResponse,
    summary="Force-release processing locks",
)
async def force_release(
    user_id: Annotated[str, Query(min_length=1, description="Lock holder")],
    application_id: Annotated[
        str | None, Query(description="Release only this application's lock")
    ] = None,
    auth: AuthContext = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
) -> ForceReleaseResponse:
    """Remove a user's processing locks regardless of age."""
    logger.info("Force release of locks held by %s requested by %s", user_id, auth.user_id)

    service = _get_service(db)

    try:
        released = await service.force_release(user_id, auth, application_id=application_id)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return ForceReleaseResponse(released=released)
