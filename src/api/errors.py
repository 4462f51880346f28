# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Translation of service errors into HTTP errors."""

from fastapi import HTTPException

from src.core.errors import ServiceError


def to_http_exception(error: ServiceError) -> HTTPException:
    """Map a service error to an HTTPException.

    The message becomes ``detail``; the machine-readable code travels in the
    ``X-Error-Code`` header.
    """
    return HTTPException(
        status_code=error.status_code,
        detail=error.message,
        headers={"X-Error-Code": error.code},
    )
