"""Engine and session factories, cached per database URL."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from parkshare.core.config import get_settings

logger = logging.getLogger(__name__)

_engines: dict[str, AsyncEngine] = {}
_sessionmakers: dict[str, async_sessionmaker[AsyncSession]] = {}


def _url(override: str | None) -> str:
    return override or get_settings().database_url


def _sqlite_foreign_keys(dbapi_connection, _record) -> None:  # pragma: no cover
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str) -> AsyncEngine:
    if make_url(url).get_backend_name() == "sqlite":
        engine = create_async_engine(url)
        event.listen(engine.sync_engine, "connect", _sqlite_foreign_keys)
        return engine
    return create_async_engine(url, pool_pre_ping=True)


def get_sessionmaker(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Sessionmaker bound to ``database_url`` (default: the configured URL).

    Sessions do not expire on commit so services can keep returning the ORM
    objects they just wrote.
    """
    url = _url(database_url)
    if url not in _sessionmakers:
        engine = _build_engine(url)
        _engines[url] = engine
        _sessionmakers[url] = async_sessionmaker(
            engine, expire_on_commit=False, class_=AsyncSession
        )
    return _sessionmakers[url]


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_sessionmaker()() as session:
        yield session


async def database_reachable(session: AsyncSession) -> bool:
    """Round-trip ``SELECT 1``; failures are logged and reported as ``False``."""
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Database health probe failed", exc_info=True)
        return False
    return True


async def dispose_engine(database_url: str | None = None) -> None:
    """Close pooled connections for ``database_url`` and forget its factories."""
    url = _url(database_url)
    _sessionmakers.pop(url, None)
    engine = _engines.pop(url, None)
    if engine is not None:
        await engine.dispose()
