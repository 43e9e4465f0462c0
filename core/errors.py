"""
core/errors.py -- Client-facing error taxonomy.

Every error a route can surface is one of these classes. Each carries the
HTTP status and the stable machine-readable code used in the ErrorResponse
envelope; api/main.py renders them with a single exception handler.

Messages on AuthenticationFailure are always generic. The specific cause
(expired vs. bad signature vs. revoked vs. unknown user) is logged at the
auth layer and never placed in the exception message.

Layer rule: core/ is the kernel. No imports from api/, auth/, or chirps/.
"""

from __future__ import annotations


class ChirpyError(Exception):
    """Base class for errors mapped to HTTP responses."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailure(ChirpyError):
    """Malformed input (400)."""

    status_code = 400
    code = "validation_error"
    default_message = "Invalid request."


class AuthenticationFailure(ChirpyError):
    """Bad credentials or an invalid, expired or revoked token (401)."""

    status_code = 401
    code = "unauthorized"
    default_message = "Unauthorized"


class AuthorizationFailure(ChirpyError):
    """Valid identity, insufficient rights (403)."""

    status_code = 403
    code = "forbidden"
    default_message = "Forbidden"


class NotFound(ChirpyError):
    """Referenced resource absent (404)."""

    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class Conflict(ChirpyError):
    """Unique constraint hit, e.g. an email that is already registered (409)."""

    status_code = 409
    code = "conflict"
    default_message = "Resource already exists."


class InternalFailure(ChirpyError):
    """Hashing, storage or RNG error (500). Logged, opaque to the caller."""
