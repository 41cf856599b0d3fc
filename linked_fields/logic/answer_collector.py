"""Linked answer collector: routes form questions to their collectors.

Render time: questions are registered with the collector serving their
linked field, then every collector runs one batched `collect` concurrently,
each writing only the question ids it registered.

Submission time: each question's answer is synced on its own, one at a
time, and each sync runs inside its own unit of work.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import anyio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linked_fields.config import load_config
from linked_fields.db.base import unit_of_work
from linked_fields.errors import ConfigurationError
from linked_fields.logic.collectors import Answers, FieldResourceCollector, RelationResourceCollector, ResourceCollector
from linked_fields.logic.collectors.disturbance_report_entries import DisturbanceReportEntriesCollector
from linked_fields.logic.collectors.fields import FieldCollector
from linked_fields.logic.collectors.files import FileCollector
from linked_fields.logic.collectors.financial_indicators import FinancialIndicatorsCollector
from linked_fields.logic.collectors.funding_types import FundingTypesCollector
from linked_fields.logic.collectors.polymorphic import POLYMORPHIC_RESOURCES, PolymorphicCollector
from linked_fields.logic.collectors.trackings import TrackingsCollector
from linked_fields.logic.linked_field_catalog import get_linked_field_config
from linked_fields.logic.media_urls import MediaService, StaticMediaService
from linked_fields.logic.sync_result import SyncResult
from linked_fields.models.linked_field import FormQuestion, LinkedFieldConfig, RelationResource, ResourceKind
from linked_fields.models.owners import FormModelType, normalize_models

logger = logging.getLogger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]


def _polymorphic(resource: RelationResource) -> Callable[[SessionFactory], RelationResourceCollector]:
    return lambda session_factory: PolymorphicCollector(POLYMORPHIC_RESOURCES[resource], session_factory)


RELATION_COLLECTORS: Mapping[RelationResource, Callable[[SessionFactory], RelationResourceCollector]] = {
    RelationResource.DEMOGRAPHICS: TrackingsCollector,
    RelationResource.RESTORATION: TrackingsCollector,
    RelationResource.FUNDING_TYPES: FundingTypesCollector,
    RelationResource.FINANCIAL_INDICATORS: FinancialIndicatorsCollector,
    RelationResource.DISTURBANCE_REPORT_ENTRIES: DisturbanceReportEntriesCollector,
    **{resource: _polymorphic(resource) for resource in POLYMORPHIC_RESOURCES},
}


def _is_field(config: LinkedFieldConfig) -> bool:
    return config.virtual is not None or config.resource_kind == ResourceKind.PROPERTY


class LinkedAnswerCollector:
    def __init__(self, session_factory: SessionFactory, media_service: Optional[MediaService] = None):
        self._session_factory = session_factory
        if media_service is None:
            media_service = StaticMediaService.from_config(load_config())
        self.fields: FieldResourceCollector = FieldCollector(session_factory)
        self.files = FileCollector(session_factory, media_service)
        self._relation_collectors: Dict[RelationResource, RelationResourceCollector] = {}

    def relation_collector(self, resource: Optional[RelationResource]) -> RelationResourceCollector:
        """Return the collector for a relation resource, creating it on first use."""
        if resource is None:
            raise ConfigurationError("Relation field has no resource")
        collector = self._relation_collectors.get(resource)
        if collector is None:
            factory = RELATION_COLLECTORS.get(resource)
            if factory is None:
                raise ConfigurationError(f"No collector for relation resource: {resource}")
            collector = factory(self._session_factory)
            self._relation_collectors[resource] = collector
        return collector

    def _collectors(self) -> List[ResourceCollector]:
        return [self.fields, self.files, *self._relation_collectors.values()]

    def add_field(self, config: LinkedFieldConfig, model_type: FormModelType, question_id: str) -> None:
        if _is_field(config):
            self.fields.add_field(config, model_type, question_id)
        elif config.resource_kind == ResourceKind.FILE:
            self.files.add_field(config, model_type, question_id)
        else:
            self.relation_collector(config.resource).add_field(config, model_type, question_id)

    async def get_answers(
        self,
        non_linked_answers: Optional[Mapping[str, Any]],
        questions: Iterable[FormQuestion],
        models: Mapping[Any, Any],
    ) -> Answers:
        answers: Answers = {}
        for question in questions:
            config = get_linked_field_config(question.linked_field_key)
            if config is None:
                answers[question.id] = (non_linked_answers or {}).get(question.id)
            else:
                self.add_field(config, config.model_type, question.id)

        await self.collect(answers, models)
        return answers

    async def collect(self, answers: Answers, models: Mapping[Any, Any]) -> None:
        normalized = normalize_models(models)
        errors: List[Exception] = []

        async def run(collector: ResourceCollector) -> None:
            try:
                await collector.collect(answers, normalized)
            except Exception as e:
                errors.append(e)

        async with anyio.create_task_group() as tg:
            for collector in self._collectors():
                tg.start_soon(run, collector)

        if errors:
            for extra in errors[1:]:
                logger.error("collect_failed collector_error=%r", extra)
            raise errors[0]

    async def sync_field(
        self, model: Any, question: FormQuestion, config: LinkedFieldConfig, answers: Answers
    ) -> SyncResult:
        async with unit_of_work(self._session_factory) as session:
            return await self.fields.sync_field(session, model, question, config, answers)

    async def sync_relation(
        self, model: Any, config: LinkedFieldConfig, answer: Optional[Any], hidden: bool = False
    ) -> SyncResult:
        collector = self.relation_collector(config.resource)
        async with unit_of_work(self._session_factory) as session:
            return await collector.sync_relation(session, model, config, answer, hidden)

    async def clear_relations(self, model: Any, config: LinkedFieldConfig) -> None:
        collector = self.relation_collector(config.resource)
        clear = getattr(collector, "clear_relations", None)
        if clear is None:
            raise ConfigurationError(f"{config.resource.value} does not support clearing relations")
        async with unit_of_work(self._session_factory) as session:
            await clear(session, model, config)

    async def sync_answers(
        self,
        model: Any,
        model_type: FormModelType | str,
        questions: Sequence[FormQuestion],
        answers: Answers,
        hidden_question_ids: Iterable[str] = (),
    ) -> SyncResult:
        """Sync every linked question of one parent record, in question order.

        When two questions target the same relation scope, the later one
        wins.
        """
        model_type = FormModelType(model_type)
        hidden = set(hidden_question_ids)
        result = SyncResult()
        for question in questions:
            config = get_linked_field_config(question.linked_field_key)
            if config is None or config.model_type != model_type:
                continue
            if _is_field(config):
                result.merge(await self.sync_field(model, question, config, answers))
            elif config.resource_kind == ResourceKind.RELATION:
                result.merge(
                    await self.sync_relation(model, config, answers.get(question.id), question.id in hidden)
                )
        logger.info(
            "sync_answers model_type=%s model_id=%s questions=%s warnings=%s",
            model_type.value,
            getattr(model, "id", None),
            len(questions),
            len(result.warnings),
        )
        return result


__all__ = ["LinkedAnswerCollector", "RELATION_COLLECTORS"]
