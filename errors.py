"""Error hierarchy for the storefront API.

Every failure a handler can surface is a StorefrontError. The global handler in
main.py turns it into the response envelope {success: false, message, errors?}.
"""

from typing import Any, Dict, List, Optional


class StorefrontError(Exception):
    """Base exception for all API failures."""

    code = "ERROR"
    http_status = 500

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors

    def to_response(self) -> dict:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


# Request-level failures (4xx)

class Unauthenticated(StorefrontError):
    """Missing, invalid or expired credential."""
    code = "UNAUTHENTICATED"
    http_status = 401


class ValidationFailed(StorefrontError):
    """Malformed or incomplete input."""
    code = "VALIDATION_FAILED"
    http_status = 400


class Conflict(StorefrontError):
    """A uniqueness or deletion guard was violated."""
    code = "CONFLICT"
    http_status = 400


class InvalidReference(StorefrontError):
    """A foreign reference points at nothing."""
    code = "INVALID_REFERENCE"
    http_status = 400


class NotFound(StorefrontError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


# Server-side failures (5xx)

class Internal(StorefrontError):
    """Unexpected fault. The message shown to callers stays generic."""
    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)


class DatabaseUnavailable(Internal):
    code = "DATABASE_UNAVAILABLE"
    http_status = 503

    def __init__(self, message: str = "Database not available"):
        super().__init__(message)
