"""
Exception Handlers.

Turns every failure into the ErrorResponse envelope:

    ApplicationError subclasses   status from EXCEPTION_STATUS_MAP, 500 if unmapped
    RequestValidationError        400 VAL_REQUEST_INVALID with per-field details
    anything else                 500 SYS_INTERNAL_ERROR, message never exposed

4xx are logged at warning, 5xx at error.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notekeeper.backend.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from notekeeper.backend.core.logging import get_logger
from notekeeper.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    PayloadTooLargeError: 413,
    DatabaseError: 503,
}

REQUEST_INVALID_CODE = "VAL_REQUEST_INVALID"
INTERNAL_ERROR_CODE = "SYS_INTERNAL_ERROR"


def _get_request_id(request: Request) -> str | None:
    """Prefer the id the middleware stored; fall back to the raw header."""
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get("x-request-id")


def _request_context(request: Request) -> dict[str, Any]:
    return {
        "path": request.url.path,
        "method": request.method,
        "request_id": _get_request_id(request),
    }


def _client_details(exc: ApplicationError) -> dict[str, Any] | None:
    """The part of an exception that is safe to show the caller."""
    if isinstance(exc, PayloadTooLargeError) and exc.max_bytes is not None:
        return {"max_bytes": exc.max_bytes}
    if isinstance(exc, ValidationError) and exc.details:
        return exc.details
    return None


def _envelope(
    request: Request,
    status_code: int,
    error: ErrorDetail,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        metadata=ResponseMetadata(request_id=_get_request_id(request)),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    status_code = EXCEPTION_STATUS_MAP.get(type(exc), 500)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Request failed",
        extra={
            "code": exc.code,
            "error": exc.message,
            "status": status_code,
            **_request_context(request),
        },
    )

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    error = ErrorDetail(code=exc.code, message=exc.message, details=_client_details(exc))
    return _envelope(request, status_code, error, headers)


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Malformed input is a client validation failure: 400, like ValidationError."""
    problems = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", "Invalid value"),
            "type": err.get("type", "unknown"),
        }
        for err in exc.errors()
    ]
    logger.warning(
        "Request rejected by schema",
        extra={"error_count": len(problems), **_request_context(request)},
    )

    error = ErrorDetail(
        code=REQUEST_INVALID_CODE,
        message="Request validation failed",
        details={"validation_errors": problems},
    )
    return _envelope(request, 400, error)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception",
        extra={"exception_type": type(exc).__name__, **_request_context(request)},
    )
    error = ErrorDetail(code=INTERNAL_ERROR_CODE, message="An unexpected error occurred")
    return _envelope(request, 500, error)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
