"""Async SQLAlchemy engine, session factory and declarative Base.

The engine is built on first use so that importing models never reads
settings. With an empty DATABASE_URL there is no engine at all and
get_session_factory() raises SqlNotConfiguredException.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from attachments.core.config import get_settings
from attachments.domain.exceptions import SqlNotConfiguredException

logger = logging.getLogger(__name__)

engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    pass


def _ensure_engine() -> None:
    global engine, _session_factory
    if _session_factory is not None:
        return
    settings = get_settings()
    if not settings.database_url:
        return
    options: dict[str, Any] = {"echo": settings.database_echo}
    # Pool tuning only matters for networked databases.
    if not settings.database_url.startswith("sqlite"):
        options.update(pool_pre_ping=True, pool_recycle=3600)
    engine = create_async_engine(settings.database_url, **options)
    _session_factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    logger.debug("SQL engine created for %s", engine.url.render_as_string(hide_password=True))


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for the CLI and background jobs.

    Raises:
        SqlNotConfiguredException: DATABASE_URL is not set.
    """
    _ensure_engine()
    if _session_factory is None:
        raise SqlNotConfiguredException()
    return _session_factory


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine (shutdown, end of CLI run)."""
    global engine, _session_factory
    if engine is None:
        return
    await engine.dispose()
    engine = None
    _session_factory = None
    logger.debug("SQL engine disposed")


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, no implicit commit.

    Download routes only read; writers commit explicitly.
    """
    async with get_session_factory()() as session:
        yield session
