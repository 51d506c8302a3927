"""
Application exceptions.

Services raise these; exception_handlers maps each class to an HTTP
status. `code` is the stable machine-readable string clients switch on.
"""

from typing import Any


class ApplicationError(Exception):
    code = "SYS_INTERNAL_ERROR"
    default_message = "Internal error"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    code = "RES_NOT_FOUND"
    default_message = "Resource not found"


class ValidationError(ApplicationError):
    """Input broke a business rule. `details` is returned to the client."""

    code = "VAL_VALIDATION_ERROR"
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(ApplicationError):
    code = "AUTH_UNAUTHORIZED"
    default_message = "Authentication required"


class AuthorizationError(ApplicationError):
    code = "AUTHZ_FORBIDDEN"
    default_message = "Permission denied"


class ConflictError(ApplicationError):
    code = "RES_CONFLICT"
    default_message = "Resource conflict"


class PayloadTooLargeError(ApplicationError):
    code = "RES_TOO_LARGE"
    default_message = "Payload too large"

    def __init__(self, message: str | None = None, max_bytes: int | None = None) -> None:
        self.max_bytes = max_bytes
        super().__init__(message)


class DatabaseError(ApplicationError):
    code = "SYS_DATABASE_ERROR"
    default_message = "Database error"
