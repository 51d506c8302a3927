"""
Database engine and sessions.

The engine is built on first use from database.yaml, so importing this
module needs no configuration. One session per request: committed when
the handler returns, rolled back when it raises.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from notekeeper.backend.core.logging import get_logger

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        from notekeeper.backend.core.config import get_app_config, get_database_url

        db = get_app_config().database
        options: dict[str, Any] = {"echo": db.echo}
        # sqlite drivers manage their own pool
        if not db.driver.startswith("sqlite"):
            options.update(
                pool_size=db.pool_size,
                max_overflow=db.max_overflow,
                pool_timeout=db.pool_timeout,
                pool_recycle=db.pool_recycle,
                pool_pre_ping=True,
            )
        _engine = create_async_engine(get_database_url(), **options)
        logger.debug("Database engine created", extra={"driver": db.driver, "db_name": db.name})
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one transactional session per request."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_all_tables() -> None:
    """Create every ORM table that does not exist yet (init-db)."""
    from notekeeper.backend.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created", extra={"tables": sorted(Base.metadata.tables)})


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine; the next use rebuilds it."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.debug("Database engine disposed")
    _engine = None
    _session_factory = None
