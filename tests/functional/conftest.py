"""Functional test bootstrap for the linked field engine.

Each test gets its own file-backed SQLite database under tmp_path with the
schema created from the declarative metadata, so collectors that open their
own sessions see the same data as the unit of work that wrote it.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Mapping

import pytest
from sqlalchemy import select

from linked_fields.db.base import dispose_engines, get_engine, get_sessionmaker, unit_of_work
from linked_fields.db.schema import create_schema, drop_schema
from linked_fields.logic.answer_collector import LinkedAnswerCollector
from linked_fields.logic.media_urls import StaticMediaService
from linked_fields.models.linked_field import FormQuestion

MEDIA_BASE_URL = "http://media.test"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def session_factory(anyio_backend, tmp_path):
    engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'linked_fields.db'}")
    await create_schema(engine)
    yield get_sessionmaker(engine)
    await drop_schema(engine)
    await dispose_engines()


@pytest.fixture
def persist(session_factory):
    """Insert entities in one transaction and return them detached."""

    async def _persist(*entities: Any) -> Any:
        async with unit_of_work(session_factory) as session:
            session.add_all(entities)
        return entities[0] if len(entities) == 1 else entities

    return _persist


@pytest.fixture
def fetch_all(session_factory):
    """Load every row of a model (soft-deleted included) in id order."""

    async def _fetch(model_cls: Any, *where: Any) -> List[Any]:
        async with session_factory() as session:
            stmt = select(model_cls).where(*where).order_by(model_cls.id)
            return list((await session.execute(stmt)).scalars().all())

    return _fetch


@pytest.fixture
def new_collector(session_factory) -> Callable[[], LinkedAnswerCollector]:
    # Collectors accumulate registered questions, so each render needs a fresh one
    return lambda: LinkedAnswerCollector(session_factory, StaticMediaService(MEDIA_BASE_URL))


@pytest.fixture
def render(new_collector):
    async def _render(
        questions: Iterable[FormQuestion],
        models: Mapping[str, Any],
        non_linked: Mapping[str, Any] | None = None,
    ) -> dict:
        return await new_collector().get_answers(non_linked or {}, list(questions), models)

    return _render
