"""Schema bootstrap from the declarative metadata.

Production schemas are owned by the legacy application's migrations; this
helper creates the same tables for local development and tests.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from linked_fields.models.base import Base

# Imported for their side effect of registering tables on Base.metadata
from linked_fields.models import entities as _entities  # noqa: F401
from linked_fields.models import relations as _relations  # noqa: F401

logger = logging.getLogger(__name__)


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("schema_created tables=%s", len(Base.metadata.tables))


async def drop_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("schema_dropped")


__all__ = ["create_schema", "drop_schema"]
