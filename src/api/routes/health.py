# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Liveness and readiness endpoints.

Both are public (see PUBLIC_PATHS in the auth middleware). /health always
answers 200 and reports "degraded" when PostgreSQL is unreachable;
/health/ready answers 503 in that case so load balancers hold traffic.
"""

import logging
import time
from datetime import datetime

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from src import __version__
from src.core.config import get_settings
from src.infrastructure.database.connection import check_database_connection
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

_started_at = time.monotonic()


class ComponentHealth(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    latency_ms: float | None = Field(None, description="Probe round trip in ms")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or degraded")
    version: str
    environment: str
    uptime_seconds: int
    checked_at: datetime
    database: ComponentHealth


class ReadinessResponse(BaseModel):
    ready: bool
    checks: dict[str, ComponentHealth]


async def check_database() -> ComponentHealth:
    """Probe PostgreSQL with SELECT 1."""
    start = time.perf_counter()
    if not await check_database_connection():
        logger.error("Database health check failed")
        return ComponentHealth(status="unhealthy")
    return ComponentHealth(
        status="healthy",
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
    )


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    database = await check_database()

    return HealthResponse(
        status="healthy" if database.status == "healthy" else "degraded",
        version=__version__,
        environment=get_settings().environment,
        uptime_seconds=int(time.monotonic() - _started_at),
        checked_at=utc_now(),
        database=database,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(response: Response) -> ReadinessResponse:
    database = await check_database()
    ready = database.status == "healthy"
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(ready=ready, checks={"database": database})
