"""Collector for trackings: demographics and restoration breakdowns.

A tracking is a parent row scoped to (owner, domain, type, collection) with
typed entry rows beneath it. Each linked field maps onto exactly one such
scope, so an answer is a one-element list or absent altogether.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from linked_fields.errors import ConfigurationError, SubmissionValidationError
from linked_fields.logic.collectors import Answers
from linked_fields.logic.collectors.relation_sync import parse_records
from linked_fields.logic.sync_result import SyncResult
from linked_fields.models.base import utcnow
from linked_fields.models.embedded import EmbeddedTracking, TrackingEntryRecord
from linked_fields.models.linked_field import LinkedFieldConfig
from linked_fields.models.owners import FormModels, FormModelType, OwnerReference, require_model
from linked_fields.models.relations import Tracking, TrackingEntry

logger = logging.getLogger(__name__)

TrackingScope = Tuple[str, str, str]


def kebab_case(value: str) -> str:
    """`allBeneficiaries` -> `all-beneficiaries`, `hectares_restored` -> `hectares-restored`."""
    words = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", value)
    return re.sub(r"[\s_\-]+", "-", words).strip("-").lower()


def tracking_scope(config: LinkedFieldConfig) -> TrackingScope:
    domain = config.resource.value if config.resource is not None else None
    tracking_type = kebab_case(config.input_type)
    if (
        domain not in Tracking.DOMAINS
        or tracking_type not in Tracking.VALID_TYPES
        or config.collection is None
    ):
        raise ConfigurationError(
            f"Invalid tracking field definition [{domain}, {tracking_type}, {config.collection}]"
        )
    return domain, tracking_type, config.collection


def entries_match(a: Any, b: Any) -> bool:
    """Entries match when type, subtype and name are each equal or both absent."""
    return (a.type, a.subtype, a.name) == (b.type, b.subtype, b.name)


def dedupe_entries(entries: List[TrackingEntryRecord]) -> List[TrackingEntryRecord]:
    """Collapse repeated identities; a later amount overwrites the earlier one."""
    kept: List[TrackingEntryRecord] = []
    for entry in entries:
        for index, existing in enumerate(kept):
            if entries_match(existing, entry):
                kept[index] = existing.model_copy(update={"amount": entry.amount})
                break
        else:
            kept.append(entry)
    return kept


def owner_scope_clause(owner: OwnerReference, domain: str, tracking_type: str, collection: str) -> list:
    return [
        Tracking.owner_type == owner.tag,
        Tracking.owner_id == owner.id,
        Tracking.domain == domain,
        Tracking.type == tracking_type,
        Tracking.collection == collection,
    ]


async def delete_tracking(session: AsyncSession, tracking: Tracking) -> None:
    """Hard-delete the entries and soft-delete the parent."""
    await session.execute(delete(TrackingEntry).where(TrackingEntry.tracking_id == tracking.id))
    tracking.deleted_at = utcnow()


class TrackingsCollector:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._questions: Dict[Tuple[FormModelType, str, str, str], List[str]] = {}

    def add_field(self, config: LinkedFieldConfig, model_type: FormModelType, question_id: str) -> None:
        key = (model_type, *tracking_scope(config))
        if key in self._questions:
            logger.warning("duplicate_tracking_field key=%s", ":".join(str(part) for part in key))
        self._questions.setdefault(key, []).append(question_id)

    async def collect(self, answers: Answers, models: FormModels) -> None:
        if not self._questions:
            return

        scopes_by_type: Dict[FormModelType, List[TrackingScope]] = {}
        for model_type, domain, tracking_type, collection in self._questions:
            scopes_by_type.setdefault(model_type, []).append((domain, tracking_type, collection))

        owners: Dict[FormModelType, OwnerReference] = {}
        clauses = []
        for model_type, scopes in scopes_by_type.items():
            owner = OwnerReference.of(require_model(models, model_type), model_type)
            owners[model_type] = owner
            clauses.append(
                and_(
                    Tracking.owner_type == owner.tag,
                    Tracking.owner_id == owner.id,
                    or_(
                        *(
                            and_(Tracking.domain == d, Tracking.type == t, Tracking.collection == c)
                            for d, t, c in scopes
                        )
                    ),
                )
            )

        stmt = (
            select(Tracking)
            .options(selectinload(Tracking.entries))
            .where(Tracking.active(), or_(*clauses))
            .order_by(Tracking.id)
        )
        async with self._session_factory() as session:
            trackings = (await session.execute(stmt)).scalars().all()

        for (model_type, domain, tracking_type, collection), question_ids in self._questions.items():
            owner = owners[model_type]
            tracking = next(
                (
                    t
                    for t in trackings
                    if t.owner_type == owner.tag
                    and t.owner_id == owner.id
                    and t.domain == domain
                    and t.type == tracking_type
                    and t.collection == collection
                ),
                None,
            )
            # No row leaves the answer absent, distinct from an explicitly cleared list
            if tracking is None:
                continue
            for question_id in question_ids:
                answers[question_id] = [EmbeddedTracking.model_validate(tracking).to_wire()]

    async def sync_relation(
        self,
        session: AsyncSession,
        model: Any,
        config: LinkedFieldConfig,
        answer: Optional[Any],
        hidden: bool = False,
    ) -> SyncResult:
        result = SyncResult()
        domain, tracking_type, collection = tracking_scope(config)
        owner = OwnerReference.of(model)

        records = parse_records(EmbeddedTracking, answer)
        if len(records) > 1:
            raise SubmissionValidationError(f"Only one {domain} record may be submitted for {config.key}")

        stmt = (
            select(Tracking)
            .options(selectinload(Tracking.entries))
            .where(*owner_scope_clause(owner, domain, tracking_type, collection), Tracking.active())
            .order_by(Tracking.id)
        )
        tracking = (await session.execute(stmt)).scalars().first()

        if not records:
            if tracking is not None:
                await delete_tracking(session, tracking)
                logger.info("tracking_sync_cleared id=%s", tracking.id)
            return result

        record = records[0]
        if record.collection is not None and record.collection != collection:
            # The scope comes from the field; a stray collection on the record is ignored
            result.warn(
                logger,
                "tracking_record_collection_ignored",
                field=config.key,
                expected=collection,
                claimed=record.collection,
            )

        current: List[TrackingEntry] = []
        if tracking is None:
            tracking = Tracking(
                owner_type=owner.tag,
                owner_id=owner.id,
                domain=domain,
                type=tracking_type,
                collection=collection,
                hidden=hidden,
            )
            session.add(tracking)
            await session.flush()
            logger.info("tracking_sync_created id=%s", tracking.id)
        else:
            tracking.hidden = hidden
            current = list(tracking.entries)
        if "description" in record.model_fields_set:
            tracking.description = record.description

        entries = dedupe_entries(record.entries)
        matched: set = set()
        for entry in entries:
            match = next((row for row in current if entries_match(row, entry)), None)
            if match is None:
                session.add(
                    TrackingEntry(
                        tracking_id=tracking.id,
                        type=entry.type,
                        subtype=entry.subtype,
                        name=entry.name,
                        amount=entry.amount,
                    )
                )
            else:
                match.amount = entry.amount
                matched.add(match.id)

        stale = [row.id for row in current if row.id not in matched]
        if stale:
            await session.execute(delete(TrackingEntry).where(TrackingEntry.id.in_(stale)))
        await session.flush()

        logger.info(
            "tracking_sync id=%s entries=%s removed=%s hidden=%s",
            tracking.id,
            len(entries),
            len(stale),
            hidden,
        )
        return result

    async def clear_relations(self, session: AsyncSession, model: Any, config: LinkedFieldConfig) -> None:
        domain, tracking_type, collection = tracking_scope(config)
        owner = OwnerReference.of(model)
        scope = owner_scope_clause(owner, domain, tracking_type, collection)
        tracking_ids = select(Tracking.id).where(*scope)
        await session.execute(delete(TrackingEntry).where(TrackingEntry.tracking_id.in_(tracking_ids)))
        await session.execute(delete(Tracking).where(*scope))
        logger.info("tracking_cleared owner=%s:%s scope=%s:%s:%s", owner.kind.value, owner.id, domain, tracking_type, collection)


__all__ = [
    "TrackingsCollector",
    "kebab_case",
    "tracking_scope",
    "entries_match",
    "dedupe_entries",
    "delete_tracking",
]
