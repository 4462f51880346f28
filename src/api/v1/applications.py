# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment application API endpoints.

This module provides endpoints for reviewing applications:
- GET / - List applications with filtering
- GET /{application_id} - Get application details
- POST /{application_id}/approve - Approve and create enrollment records
- POST /{application_id}/reject - Reject with an optional reason

All endpoints require admin access and are scoped to the caller's school.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_admin
from src.api.errors import to_http_exception
from src.api.middleware.auth import AuthContext
from src.core.errors import ServiceError
from src.domains.application import ApplicationService
from src.models.application import (
    ApplicationListResponse,
    ApplicationResponse,
    ApprovalResponse,
    RejectApplicationRequest,
    RejectionResponse,
)
from src.models.common import ApplicationStatus

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ApplicationService:
    """Get application service instance.

    Args:
        db: Database session.

    Returns:
        Configured ApplicationService instance.
    """
    return ApplicationService(db=db)


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List applications",
    description="List the school's applications, newest first.",
)
async def list_applications(
    status_filter: Annotated[
        ApplicationStatus | None, Query(alias="status", description="Filter by status")
    ] = None,
    search: Annotated[
        str | None, Query(max_length=100, description="Match child name or parent email")
    ] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum results")] = 20,
    offset: Annotated[int, Query(ge=0, description="Pagination offset")] = 0,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApplicationListResponse:
    """List applications of the caller's school."""
    service = _get_service(db)

    items, total = await service.list_applications(
        auth=auth,
        status=status_filter,
        search=search,
        limit=limit,
        offset=offset,
    )

    return ApplicationListResponse(
        items=items,
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get application details",
)
async def get_application(
    application_id: str,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Get one application."""
    service = _get_service(db)

    try:
        return await service.get_application(application_id, auth)
    except ServiceError as e:
        raise to_http_exception(e) from e


@router.post(
    "/{application_id}/approve",
    response_model=ApprovalResponse,
    summary="Approve application",
    description=(
        "Approve a pending application. Creates the child profile, links or "
        "creates parent profiles and records the decision, atomically."
    ),
)
async def approve_application(
    application_id: str,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApprovalResponse:
    """Approve an application.

    Args:
        application_id: Application to approve.
        auth: Authenticated admin.
        db: Database session.

    Returns:
        Created enrollment records and the access log entry.

    Raises:
        HTTPException: 404 if not found, 409 if already processed, 423 if
            another admin is processing it, 500 on storage failure.
    """
    logger.info("Approving application %s by %s", application_id, auth.user_id)

    service = _get_service(db)

    try:
        return await service.approve_application(application_id, auth)
    except ServiceError as e:
        raise to_http_exception(e) from e


@router.post(
    "/{application_id}/reject",
    response_model=RejectionResponse,
    summary="Reject application",
)
async def reject_application(
    application_id: str,
    data: RejectApplicationRequest | None = None,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> RejectionResponse:
    """Reject an application with an optional reason."""
    logger.info("Rejecting application %s by %s", application_id, auth.user_id)

    service = _get_service(db)

    try:
        return await service.reject_application(
            application_id,
            auth,
            reason=data.reason if data else None,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e
