# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    applications: Enrollment application review and approval.
    application_locks: Application processing locks.
    access_logs: Admin access log.
    progress_board: Teacher lesson progress board.
"""

from fastapi import APIRouter

from src.api.v1 import access_logs, application_locks, applications, progress_board

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(applications.router, prefix="/applications", tags=["Applications"])
router.include_router(
    application_locks.router,
    prefix="/application-locks",
    tags=["Application Locks"],
)
router.include_router(access_logs.router, prefix="/access-logs", tags=["Access Logs"])
router.include_router(progress_board.router, prefix="/progress-board", tags=["Progress Board"])

__all__ = ["router"]
