# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Service error taxonomy.

Domain services raise these exceptions; API routes translate them into
HTTP responses. Every error carries a machine-readable code and the HTTP
status it maps to.

Example:
    >>> raise ConflictError("Application already processed")
"""


class ServiceError(Exception):
    """Base exception for domain service errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code.
        status_code: HTTP status the error maps to.
    """

    code = "SERVICE_ERROR"
    status_code = 500

    def __init__(self, message: str, code: str | None = None) -> None:
        """Initialize the service error.

        Args:
            message: Human-readable error description.
            code: Optional override for the error code.
        """
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(ServiceError):
    """Raised when the target entity does not exist in the caller's school."""

    code = "NOT_FOUND"
    status_code = 404


class ValidationError(ServiceError):
    """Raised for malformed input, before any write happens."""

    code = "VALIDATION_ERROR"
    status_code = 400


class ConflictError(ServiceError):
    """Raised when a prior or concurrent state change violates a precondition.

    Recoverable by refetching and retrying; never retried automatically.
    """

    code = "CONFLICT"
    status_code = 409


class LockedError(ServiceError):
    """Raised when an entity is held by another in-progress action."""

    code = "LOCKED"
    status_code = 423


class InternalError(ServiceError):
    """Raised when a transaction fails; all partial writes are rolled back."""

    code = "INTERNAL_ERROR"
    status_code = 500
