"""Collector for financial indicators.

Indicators hang off an organisation, optionally narrowed to one of its
financial reports. The owner's start month and currency travel with every
collected record and are written back from the first submitted record.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linked_fields.logic.collectors import Answers
from linked_fields.logic.collectors.funding_types import check_financial_owner, financial_owner
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
from linked_fields.models.embedded import EmbeddedFinancialIndicator
from linked_fields.models.entities import Organisation
from linked_fields.models.linked_field import LinkedFieldConfig
from linked_fields.models.owners import FormModels, FormModelType, model_type_of
from linked_fields.models.relations import FinancialIndicator

logger = logging.getLogger(__name__)

_identity = attribute_identity("collection", "year")


def _scope(model: Any) -> tuple[list, int]:
    model_type = model_type_of(model)
    check_financial_owner(model_type, "financialIndicators")
    if model_type == FormModelType.ORGANISATIONS:
        return [FinancialIndicator.organisation_id == model.id, FinancialIndicator.financial_report_id.is_(None)], model.id
    return [FinancialIndicator.financial_report_id == model.id], model.organisation_id


async def _owner_settings(session: AsyncSession, model: Any) -> Dict[str, Any]:
    start_month, currency = model.fin_start_month, model.currency
    if model_type_of(model) == FormModelType.FINANCIAL_REPORTS and (start_month is None or currency is None):
        row = (
            await session.execute(
                select(Organisation.fin_start_month, Organisation.currency).where(
                    Organisation.id == model.organisation_id
                )
            )
        ).first()
        if row is not None:
            start_month = start_month if start_month is not None else row.fin_start_month
            currency = currency if currency is not None else row.currency
    return {"start_month": start_month, "currency": currency}


class FinancialIndicatorsCollector:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._questions: Dict[FormModelType, List[str]] = {}

    def add_field(self, config: LinkedFieldConfig, model_type: FormModelType, question_id: str) -> None:
        check_financial_owner(model_type, "financialIndicators")
        if model_type in self._questions:
            logger.warning("duplicate_financial_indicators_field model_type=%s", model_type.value)
        self._questions.setdefault(model_type, []).append(question_id)

    async def collect(self, answers: Answers, models: FormModels) -> None:
        if not self._questions:
            return
        owner = financial_owner(models, "financialIndicators")
        scope, _ = _scope(owner)

        async with self._session_factory() as session:
            stmt = select(FinancialIndicator).where(*scope, FinancialIndicator.active()).order_by(FinancialIndicator.id)
            rows = (await session.execute(stmt)).scalars().all()
            settings = await _owner_settings(session, owner)

        records = [
            EmbeddedFinancialIndicator.model_validate(row).model_copy(update=settings).to_wire() for row in rows
        ]
        for question_ids in self._questions.values():
            for question_id in question_ids:
                answers[question_id] = list(records)

    async def sync_relation(
        self,
        session: AsyncSession,
        model: Any,
        config: LinkedFieldConfig,
        answer: Optional[Any],
        hidden: bool = False,
    ) -> SyncResult:
        result = SyncResult()
        scope, organisation_id = _scope(model)
        is_report = model_type_of(model) == FormModelType.FINANCIAL_REPORTS

        existing = (
            await session.execute(
                select(FinancialIndicator).where(*scope, FinancialIndicator.active()).order_by(FinancialIndicator.id)
            )
        ).scalars().all()
        records = parse_records(EmbeddedFinancialIndicator, answer)

        now = utcnow()
        if not records:
            for row in existing:
                row.deleted_at = now
            logger.info("financial_indicators_cleared organisation=%s deleted=%s", organisation_id, len(existing))
            return result

        pairs, unmatched = match_records(existing, records, _identity)
        taken = await taken_uuids(session, FinancialIndicator, [r.uuid for r, row in pairs if row is None])
        created = 0
        for record, row in pairs:
            if row is not None:
                apply_attributes(row, record.business_attributes())
                continue
            session.add(
                FinancialIndicator(
                    uuid=creation_uuid(record.uuid, taken),
                    organisation_id=organisation_id,
                    financial_report_id=model.id if is_report else None,
                    **record.business_attributes(),
                )
            )
            created += 1

        for row in unmatched:
            row.deleted_at = now

        first = records[0]
        values: Dict[str, Any] = {}
        if first.start_month is not None:
            values["fin_start_month"] = first.start_month
        if first.currency is not None:
            values["currency"] = first.currency
        if values:
            await session.execute(update(type(model)).where(type(model).id == model.id).values(**values))
            apply_attributes(model, values)
        await session.flush()

        logger.info(
            "financial_indicators_sync organisation=%s report=%s created=%s updated=%s deleted=%s",
            organisation_id,
            model.id if is_report else None,
            created,
            len(pairs) - created,
            len(unmatched),
        )
        return result

    async def clear_relations(self, session: AsyncSession, model: Any, config: LinkedFieldConfig) -> None:
        scope, organisation_id = _scope(model)
        await session.execute(delete(FinancialIndicator).where(*scope))
        logger.info("financial_indicators_hard_cleared organisation=%s", organisation_id)


__all__ = ["FinancialIndicatorsCollector"]
