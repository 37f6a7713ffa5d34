"""Typed errors for every failure the API reports to clients.

Each error carries a stable machine-readable ``code`` and the HTTP status it
maps to. The global handlers in ``expense_api.api.error_handlers`` turn them
into the JSON error envelope.
"""

from typing import Any


class ExpenseApiError(Exception):
    """Base exception for all API errors."""

    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def is_internal(self) -> bool:
        return self.http_status >= 500

    def headers(self) -> dict[str, str] | None:
        """Extra response headers for this error."""
        return None

    def to_response(self) -> dict:
        """Convert to the REST error envelope."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class UnauthenticatedError(ExpenseApiError):
    """No credential, or the credential is invalid or expired."""

    code = "UNAUTHENTICATED"
    http_status = 401

    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(ExpenseApiError):
    """Valid credential, but the resource belongs to someone else."""

    code = "FORBIDDEN"
    http_status = 403


class ValidationFailedError(ExpenseApiError):
    """Input has the wrong shape or is out of range."""

    code = "VALIDATION_ERROR"
    http_status = 400

    @classmethod
    def from_errors(cls, errors: list[dict[str, Any]]) -> "ValidationFailedError":
        """Build from pydantic-style error dicts (``loc``, ``msg``, ``type``)."""
        details = [
            {
                "field": ".".join(str(loc) for loc in e.get("loc", ()) if loc != "body"),
                "message": e.get("msg", ""),
                "type": e.get("type", ""),
            }
            for e in errors
        ]
        message = details[0]["message"] if details else "Invalid request data"
        return cls(message, details=details)


class DuplicateEmailError(ValidationFailedError):
    code = "EMAIL_ALREADY_REGISTERED"

    def __init__(self, message: str = "User with this email already exists"):
        super().__init__(message)


class NotFoundError(ExpenseApiError):
    code = "NOT_FOUND"
    http_status = 404


class RateLimitedError(ExpenseApiError):
    """Client exceeded its request budget for the current window."""

    code = "RATE_LIMITED"
    http_status = 429

    def __init__(self, retry_after: int, message: str = "Too many requests, please try again later."):
        super().__init__(message)
        self.retry_after = retry_after

    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after)}

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["retry_after"] = self.retry_after
        return response


class InternalError(ExpenseApiError):
    code = "INTERNAL_ERROR"
    http_status = 500


class DatabaseError(InternalError):
    """A store round-trip failed."""

    code = "DATABASE_ERROR"

    def __init__(self, message: str, operation: str):
        super().__init__(message)
        self.operation = operation
