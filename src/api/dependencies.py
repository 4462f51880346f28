# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Turn the authenticated request into a typed AuthContext
- Enforce roles in one place

Example:
    @router.post("/applications/{application_id}/approve")
    async def approve(
        application_id: str,
        db: AsyncSession = Depends(get_db),
        auth: AuthContext = Depends(require_admin),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import AuthContext, get_auth_context
from src.core.config import get_settings
from src.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize the database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the database connection pool."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for one request.

    Yields:
        AsyncSession, committed on success and rolled back on error.
    """
    async with get_session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> AuthContext:
    """Require an authenticated caller.

    Args:
        request: HTTP request.

    Returns:
        AuthContext.

    Raises:
        HTTPException: If not authenticated.
    """
    auth = get_auth_context(request)
    if not auth:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth


def require_admin(request: Request) -> AuthContext:
    """Require an admin (admin or super_admin).

    Raises:
        HTTPException: If not authenticated or not admin.
    """
    auth = require_auth(request)
    if not auth.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return auth


def require_teacher_or_admin(request: Request) -> AuthContext:
    """Require a teacher or admin.

    Raises:
        HTTPException: If not teacher or admin.
    """
    auth = require_auth(request)
    if not (auth.is_teacher or auth.is_admin):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher or admin access required",
        )
    return auth


def require_super_admin(request: Request) -> AuthContext:
    """Require a super admin.

    Raises:
        HTTPException: If not authenticated or not super admin.
    """
    auth = require_auth(request)
    if not auth.is_super_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin access required",
        )
    return auth
