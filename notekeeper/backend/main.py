"""
Notekeeper ASGI application.

    uvicorn notekeeper.backend.main:app

`app` is built on first attribute access, so importing this module
never reads configuration.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notekeeper.backend.api import health
from notekeeper.backend.api.v1 import router as api_v1_router
from notekeeper.backend.core.concurrency import shutdown_pools
from notekeeper.backend.core.config import get_app_config
from notekeeper.backend.core.database import dispose_engine
from notekeeper.backend.core.exception_handlers import register_exception_handlers
from notekeeper.backend.core.logging import get_logger, setup_logging
from notekeeper.backend.core.middleware import RequestContextMiddleware

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config = get_app_config()
    setup_logging()

    if config.features.security_startup_checks_enabled:
        from notekeeper.backend.core.startup_checks import run_startup_checks

        run_startup_checks()

    logger.info(
        "Application starting",
        extra={"app_name": config.application.name, "env": config.application.environment},
    )
    try:
        yield
    finally:
        logger.info("Application shutting down")
        await shutdown_pools()
        await dispose_engine()


def create_app() -> FastAPI:
    settings = get_app_config().application
    docs = settings.docs_enabled

    app = FastAPI(
        title=settings.name,
        description=settings.description,
        version=settings.version,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
    )

    # added last runs first: CORS answers preflights before request context is bound
    app.add_middleware(RequestContextMiddleware)
    if settings.cors.origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
            allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Frontend-ID"],
            expose_headers=["X-Request-ID", "X-Response-Time"],
        )

    register_exception_handlers(app)
    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=settings.api_prefix)
    return app


def get_app() -> FastAPI:
    """Build the application once and reuse it."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


def __getattr__(name: str) -> FastAPI:
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
