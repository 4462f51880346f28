# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

Exports:
    AuthMiddleware: JWT authentication middleware producing AuthContext.
    RequestContextMiddleware: Binds request metadata to log context.
    limiter: slowapi rate limiter.
"""

from src.api.middleware.auth import AuthContext, AuthMiddleware
from src.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from src.api.middleware.request_context import RequestContextMiddleware

__all__ = [
    "AuthContext",
    "AuthMiddleware",
    "RequestContextMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
]
