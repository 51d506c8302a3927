"""
Request Context Middleware.

Per request: reuse or mint X-Request-ID, classify the caller by
X-Frontend-ID, bind both to structlog contextvars, and report the
handling time in X-Response-Time.

Handlers read request.state.request_id and request.state.frontend.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notekeeper.backend.core.logging import get_logger

logger = get_logger(__name__)

KNOWN_FRONTENDS = frozenset({"web", "cli", "api", "internal"})


def _frontend(request: Request) -> str:
    value = request.headers.get("X-Frontend-ID", "").lower()
    return value if value in KNOWN_FRONTENDS else "unknown"


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        frontend = _frontend(request)
        request.state.request_id = request_id
        request.state.frontend = frontend

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            frontend=frontend,
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()
        logger.debug(
            "Request started",
            extra={"client_host": request.client.host if request.client else None},
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            # re-raised so the registered exception handlers build the body
            logger.error(
                "Request raised",
                extra={"duration_ms": _elapsed_ms(started), "error_type": type(exc).__name__},
            )
            raise
        else:
            duration_ms = _elapsed_ms(started)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"
            logger.debug(
                "Request finished",
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()
