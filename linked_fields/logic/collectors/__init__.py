"""Collector contracts.

A collector is told which questions it serves (`add_field`) and then fills
the answers for exactly those question ids in one batched `collect`. Field
and relation collectors additionally write submitted answers back inside a
session supplied by the dispatcher's unit of work.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from linked_fields.logic.sync_result import SyncResult
from linked_fields.models.linked_field import FormQuestion, LinkedFieldConfig
from linked_fields.models.owners import FormModels, FormModelType

Answers = Dict[str, Any]


class ResourceCollector(Protocol):
    def add_field(self, config: LinkedFieldConfig, model_type: FormModelType, question_id: str) -> None: ...

    async def collect(self, answers: Answers, models: FormModels) -> None: ...


class FieldResourceCollector(ResourceCollector, Protocol):
    async def sync_field(
        self,
        session: AsyncSession,
        model: Any,
        question: FormQuestion,
        config: LinkedFieldConfig,
        answers: Answers,
    ) -> SyncResult: ...


class RelationResourceCollector(ResourceCollector, Protocol):
    async def sync_relation(
        self,
        session: AsyncSession,
        model: Any,
        config: LinkedFieldConfig,
        answer: Optional[Any],
        hidden: bool = False,
    ) -> SyncResult: ...


__all__ = ["Answers", "ResourceCollector", "FieldResourceCollector", "RelationResourceCollector"]
