"""
Error taxonomy shared by the core and the HTTP layer.

Each error knows its HTTP status and a stable ``reason`` code so clients can
branch on it without parsing messages. ``main`` turns these into the response
envelope.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    status_code = 500
    reason = "internal_error"
    default_message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        reason: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        if reason is not None:
            self.reason = reason
        self.errors = errors
        self.data = data
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    reason = "validation_failed"
    default_message = "Invalid request"


class AuthenticationError(AppError):
    status_code = 401
    reason = "unauthenticated"
    default_message = "Authentication required"


class AuthorizationError(AppError):
    status_code = 403
    reason = "forbidden"
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    reason = "not_found"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    reason = "conflict"
    default_message = "Conflicting state"


class InternalError(AppError):
    pass
