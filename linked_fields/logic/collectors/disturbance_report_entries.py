"""Collector for the named entries of a disturbance report."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linked_fields.errors import ConfigurationError
from linked_fields.logic.collectors import Answers
from linked_fields.logic.collectors.relation_sync import (
    apply_attributes,
    attribute_identity,
    creation_uuid,
    match_records,
    parse_records,
    taken_uuids,
)
from linked_fields.logic.sync_result import SyncResult
from linked_fields.models.base import utcnow
from linked_fields.models.embedded import EmbeddedDisturbanceReportEntry
from linked_fields.models.linked_field import LinkedFieldConfig
from linked_fields.models.owners import FormModels, FormModelType, model_type_of, require_model
from linked_fields.models.relations import DisturbanceReportEntry

logger = logging.getLogger(__name__)

_UNSUPPORTED = "disturbanceReportEntries is only supported on disturbanceReports"


class DisturbanceReportEntriesCollector:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._question_ids: List[str] = []

    def add_field(self, config: LinkedFieldConfig, model_type: FormModelType, question_id: str) -> None:
        if model_type != FormModelType.DISTURBANCE_REPORTS:
            raise ConfigurationError(_UNSUPPORTED)
        if self._question_ids:
            logger.warning("duplicate_disturbance_report_entries_field")
        self._question_ids.append(question_id)

    async def collect(self, answers: Answers, models: FormModels) -> None:
        if not self._question_ids:
            return
        report = require_model(models, FormModelType.DISTURBANCE_REPORTS)
        stmt = (
            select(DisturbanceReportEntry)
            .where(DisturbanceReportEntry.disturbance_report_id == report.id, DisturbanceReportEntry.active())
            .order_by(DisturbanceReportEntry.id)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        records = [EmbeddedDisturbanceReportEntry.model_validate(row).to_wire() for row in rows]
        for question_id in self._question_ids:
            answers[question_id] = list(records)

    async def sync_relation(
        self,
        session: AsyncSession,
        model: Any,
        config: LinkedFieldConfig,
        answer: Optional[Any],
        hidden: bool = False,
    ) -> SyncResult:
        if model_type_of(model) != FormModelType.DISTURBANCE_REPORTS:
            raise ConfigurationError(_UNSUPPORTED)
        result = SyncResult()

        existing = (
            await session.execute(
                select(DisturbanceReportEntry)
                .where(DisturbanceReportEntry.disturbance_report_id == model.id, DisturbanceReportEntry.active())
                .order_by(DisturbanceReportEntry.id)
            )
        ).scalars().all()

        records = []
        for record in parse_records(EmbeddedDisturbanceReportEntry, answer):
            if not record.name:
                result.warn(logger, "disturbance_report_entry_without_name", report=model.id, uuid=record.uuid)
                continue
            records.append(record)

        pairs, unmatched = match_records(existing, records, attribute_identity("name"))
        taken = await taken_uuids(session, DisturbanceReportEntry, [r.uuid for r, row in pairs if row is None])
        created = 0
        for record, row in pairs:
            if row is not None:
                apply_attributes(row, {"name": record.name, **record.business_attributes()})
                continue
            session.add(
                DisturbanceReportEntry(
                    uuid=creation_uuid(record.uuid, taken),
                    disturbance_report_id=model.id,
                    name=record.name,
                    **record.business_attributes(),
                )
            )
            created += 1

        now = utcnow()
        for row in unmatched:
            row.deleted_at = now
        await session.flush()

        logger.info(
            "disturbance_report_entries_sync report=%s created=%s updated=%s deleted=%s",
            model.id,
            created,
            len(pairs) - created,
            len(unmatched),
        )
        return result


__all__ = ["DisturbanceReportEntriesCollector"]
