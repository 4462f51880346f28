# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Default limits apply to every route through SlowAPIMiddleware. Clients are
identified by user and school when authenticated, by IP otherwise.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.core.config import get_settings

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


def get_client_identifier(request: Request) -> str:
    """Key requests by caller identity, falling back to the client address."""
    auth = getattr(request.state, "auth", None)
    if auth is not None:
        return f"school:{auth.school_id}:user:{auth.user_id}"
    return f"ip:{get_remote_address(request)}"


_rate_limit = get_settings().rate_limit

limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{_rate_limit.requests_per_minute}/minute"],
    enabled=_rate_limit.enabled,
    storage_uri="memory://",
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Answer 429 with a Retry-After hint."""
    logger.warning("Rate limit exceeded: %s for %s", exc.detail, get_client_identifier(request))
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please try again later."},
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
