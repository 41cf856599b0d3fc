"""SQLAlchemy async engine, session factory and unit-of-work boundary.

The service targets PostgreSQL (asyncpg) in production and aiosqlite for
local development and CI. Declarative models live in `linked_fields.models`;
this module only manages connection lifecycle and transactions.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from linked_fields.config import DEFAULT_DSN

logger = logging.getLogger(__name__)


def _db_url() -> str:
    return os.getenv("TEST_DATABASE_URL") or os.getenv("DATABASE_URL") or DEFAULT_DSN


# Module-level cached engines keyed by URL so collectors share a pool
_ENGINES: dict[str, AsyncEngine] = {}


def get_engine(url: str | None = None, echo: bool = False) -> AsyncEngine:
    """Return a cached AsyncEngine for the given URL.

    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across sessions; file-backed SQLite and PostgreSQL use the default
    async pool.
    """
    resolved_url = url or _db_url()
    engine = _ENGINES.get(resolved_url)
    if engine is None:
        kwargs: dict = {"echo": echo}
        if resolved_url.startswith("sqlite") and ":memory:" in resolved_url:
            kwargs.update({
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            })
        else:
            kwargs["pool_pre_ping"] = True
        engine = create_async_engine(resolved_url, **kwargs)
        _ENGINES[resolved_url] = engine
    return engine


async def dispose_engines() -> None:
    for engine in list(_ENGINES.values()):
        await engine.dispose()
    _ENGINES.clear()


def get_sessionmaker(engine: AsyncEngine | None = None) -> async_sessionmaker[AsyncSession]:
    engine = engine or get_engine()
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@asynccontextmanager
async def unit_of_work(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Yield a session whose writes commit together or not at all.

    Each sync call (parent create/update plus entry diff) runs inside one of
    these so a failure cannot leave a parent without its entries.
    """
    session = session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        logger.error("DB unit of work failed; transaction rolled back", exc_info=True)
        raise
    finally:
        await session.close()


__all__ = [
    "get_engine",
    "get_sessionmaker",
    "dispose_engines",
    "unit_of_work",
]
