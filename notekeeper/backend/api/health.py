"""
Health Endpoints.

/health        liveness, no dependencies touched
/health/ready  readiness, 503 while the database is unreachable
"""

import time
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from notekeeper.backend.core.logging import get_logger
from notekeeper.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)


async def check_database() -> dict[str, Any]:
    """Run SELECT 1; report latency, or the exception type on failure."""
    from notekeeper.backend.core.database import get_session_factory

    started = time.perf_counter()
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Database unreachable", extra={"error": str(e)})
        return {"status": "unhealthy", "error": type(e).__name__}
    return {"status": "healthy", "latency_ms": int((time.perf_counter() - started) * 1000)}


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/health/ready", response_model=None)
async def readiness_check() -> dict[str, Any] | JSONResponse:
    checks = {"database": await check_database()}
    failing = [name for name, result in checks.items() if result["status"] != "healthy"]
    body = {
        "status": "unhealthy" if failing else "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }
    if failing:
        logger.warning("Not ready", extra={"failing": failing})
        return JSONResponse(status_code=503, content=body)
    return body
