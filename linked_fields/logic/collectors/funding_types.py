"""Collector for organisation funding types.

Funding types belong either to an organisation directly (no financial
report) or to one of its financial reports. Rows are matched by uuid and
then by the business key (year, type, source).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
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
from linked_fields.models.embedded import EmbeddedFundingType
from linked_fields.models.entities import Organisation
from linked_fields.models.linked_field import LinkedFieldConfig
from linked_fields.models.owners import FormModels, FormModelType, model_type_of
from linked_fields.models.relations import FundingType

logger = logging.getLogger(__name__)

FINANCIAL_OWNERS = frozenset({FormModelType.ORGANISATIONS, FormModelType.FINANCIAL_REPORTS})
_REQUIRED = ("amount", "year", "type")
_identity = attribute_identity("year", "type", "source")


def financial_owner(models: FormModels, resource: str) -> Any:
    """Pick the single organisation or financial report present in the form."""
    organisation = models.get(FormModelType.ORGANISATIONS)
    report = models.get(FormModelType.FINANCIAL_REPORTS)
    if organisation is not None and report is not None:
        raise ConfigurationError(f"Only one of financialReports or organisations can be set for {resource}.")
    owner = organisation if organisation is not None else report
    if owner is None:
        raise ConfigurationError(f"Model for type not found: organisations or financialReports ({resource})")
    return owner


def check_financial_owner(model_type: FormModelType, resource: str) -> None:
    if model_type not in FINANCIAL_OWNERS:
        raise ConfigurationError(f"Only orgs and financialReports are supported for {resource}")


async def _scope(session: AsyncSession, model: Any) -> tuple[list, str]:
    model_type = model_type_of(model)
    check_financial_owner(model_type, "fundingTypes")
    if model_type == FormModelType.ORGANISATIONS:
        return [FundingType.organisation_uuid == model.uuid, FundingType.financial_report_id.is_(None)], model.uuid

    org_uuid = (
        await session.execute(select(Organisation.uuid).where(Organisation.id == model.organisation_id))
    ).scalar_one_or_none()
    if org_uuid is None:
        raise ConfigurationError("Organisation not found for fundingTypes")
    return [FundingType.financial_report_id == model.id], org_uuid


class FundingTypesCollector:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._questions: Dict[FormModelType, List[str]] = {}

    def add_field(self, config: LinkedFieldConfig, model_type: FormModelType, question_id: str) -> None:
        check_financial_owner(model_type, "fundingTypes")
        if model_type in self._questions:
            logger.warning("duplicate_funding_types_field model_type=%s", model_type.value)
        self._questions.setdefault(model_type, []).append(question_id)

    async def collect(self, answers: Answers, models: FormModels) -> None:
        if not self._questions:
            return
        owner = financial_owner(models, "fundingTypes")

        async with self._session_factory() as session:
            scope, _ = await _scope(session, owner)
            stmt = select(FundingType).where(*scope, FundingType.active()).order_by(FundingType.id)
            rows = (await session.execute(stmt)).scalars().all()

        records = [EmbeddedFundingType.model_validate(row).to_wire() for row in rows]
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
        scope, org_uuid = await _scope(session, model)
        is_report = model_type_of(model) == FormModelType.FINANCIAL_REPORTS

        existing = (
            await session.execute(select(FundingType).where(*scope, FundingType.active()).order_by(FundingType.id))
        ).scalars().all()

        records: List[EmbeddedFundingType] = []
        for record in parse_records(EmbeddedFundingType, answer):
            missing = [name for name in _REQUIRED if getattr(record, name) is None]
            if missing:
                result.warn(logger, "funding_type_missing_required_fields", missing=missing, uuid=record.uuid)
                continue
            records.append(record)

        now = utcnow()
        if answer is None or len(answer) == 0:
            for row in existing:
                row.deleted_at = now
            logger.info("funding_types_cleared org=%s deleted=%s", org_uuid, len(existing))
            return result

        pairs, unmatched = match_records(existing, records, _identity)
        taken = await taken_uuids(session, FundingType, [r.uuid for r, row in pairs if row is None])
        created = 0
        for record, row in pairs:
            attributes = {
                "source": record.source,
                "amount": record.amount,
                "year": record.year,
                "type": record.type,
            }
            if row is not None:
                apply_attributes(row, attributes)
                continue
            session.add(
                FundingType(
                    uuid=creation_uuid(record.uuid, taken),
                    organisation_uuid=org_uuid,
                    financial_report_id=model.id if is_report else None,
                    **attributes,
                )
            )
            created += 1

        for row in unmatched:
            row.deleted_at = now
        await session.flush()

        logger.info(
            "funding_types_sync org=%s report=%s created=%s updated=%s deleted=%s skipped=%s",
            org_uuid,
            model.id if is_report else None,
            created,
            len(pairs) - created,
            len(unmatched),
            len(result.warnings),
        )
        return result

    async def clear_relations(self, session: AsyncSession, model: Any, config: LinkedFieldConfig) -> None:
        scope, org_uuid = await _scope(session, model)
        await session.execute(delete(FundingType).where(*scope))
        logger.info("funding_types_hard_cleared org=%s", org_uuid)


__all__ = ["FundingTypesCollector", "FINANCIAL_OWNERS", "financial_owner", "check_financial_owner"]
