"""Field collector: scalar properties of the parent record plus virtual fields.

Virtual fields have no column of their own:

- demographicsAggregate presents one demographics tracking as a single
  integer held by an unknown/unknown gender and age entry pair.
- demographicsDescription is one free-text description shared by several
  sibling trackings of the same type.
- projectBoundary is the geometry of the owner's most recent polygon;
  polygons are written elsewhere, so sync does nothing.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import Date, and_, func, inspect as sa_inspect, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linked_fields.errors import ConfigurationError, SubmissionValidationError
from linked_fields.logic.collectors import Answers
from linked_fields.logic.collectors.trackings import delete_tracking
from linked_fields.logic.sync_result import SyncResult
from linked_fields.models.linked_field import FormQuestion, LinkedFieldConfig, VirtualFieldType, VirtualProps
from linked_fields.models.owners import FormModels, FormModelType, OwnerReference, require_model
from linked_fields.models.relations import ProjectPolygon, Tracking, TrackingEntry

logger = logging.getLogger(__name__)

DEMOGRAPHICS = Tracking.DEMOGRAPHICS_DOMAIN
AGGREGATE_ENTRIES = (("gender", "unknown", None), ("age", "unknown", None))

# Cleared to "" when its parent yes/no question is answered yes
LANDSCAPE_CONTRIBUTION_KEY = "pro-rep-landscape-com-con"


def _column(model: Any, prop: str):
    column = sa_inspect(type(model)).columns.get(prop)
    if column is None:
        raise ConfigurationError(f"Unknown property {prop} on {type(model).__name__}")
    return column


def _coerce_date(value: Any, key: str) -> Any:
    if value is None or isinstance(value, date):
        return value.date() if isinstance(value, datetime) else value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError as e:
            raise SubmissionValidationError(f"Invalid date for {key}: {value!r}") from e
    raise SubmissionValidationError(f"Invalid date for {key}: {value!r}")


def _aggregate_value(answer: Any, key: str) -> Optional[int]:
    if answer is None:
        return None
    value: Any = answer
    if isinstance(answer, str):
        try:
            value = float(answer.strip())
        except ValueError:
            value = None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SubmissionValidationError(f"Invalid demographics aggregate value: [{key}, {answer!r}]")
    if isinstance(value, float):
        if not value.is_integer():
            raise SubmissionValidationError(f"Invalid demographics aggregate value: [{key}, {answer!r}]")
        value = int(value)
    if value < 0:
        raise SubmissionValidationError(f"Invalid demographics aggregate value: [{key}, {answer!r}]")
    return value


def _validate_virtual(config: LinkedFieldConfig) -> VirtualProps:
    props = config.virtual
    if props.type == VirtualFieldType.DEMOGRAPHICS_AGGREGATE:
        if props.demographics_type is None or props.collection is None:
            raise ConfigurationError(f"Aggregate field {config.key} needs a demographics type and collection")
    elif props.type == VirtualFieldType.DEMOGRAPHICS_DESCRIPTION:
        if props.demographics_type is None or not props.collections:
            raise ConfigurationError(f"Description field {config.key} needs a demographics type and collections")
    return props


class FieldCollector:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._property_questions: Dict[str, Tuple[FormModelType, str]] = {}
        self._virtual_questions: Dict[str, Tuple[FormModelType, VirtualProps]] = {}

    def add_field(self, config: LinkedFieldConfig, model_type: FormModelType, question_id: str) -> None:
        if config.virtual is not None:
            self._virtual_questions[question_id] = (model_type, _validate_virtual(config))
        elif config.property is not None:
            self._property_questions[question_id] = (model_type, config.property)
        else:
            raise ConfigurationError(f"Field {config.key} has neither a property nor virtual props")

    async def collect(self, answers: Answers, models: FormModels) -> None:
        for question_id, (model_type, prop) in self._property_questions.items():
            answers[question_id] = getattr(require_model(models, model_type), prop)

        if not self._virtual_questions:
            return

        owners = {
            model_type: OwnerReference.of(require_model(models, model_type), model_type)
            for model_type, _ in self._virtual_questions.values()
        }
        async with self._session_factory() as session:
            demographic_owners = [
                owners[model_type]
                for model_type, props in self._virtual_questions.values()
                if props.type != VirtualFieldType.PROJECT_BOUNDARY
            ]
            trackings = await self._load_demographics(session, demographic_owners) if demographic_owners else []
            for question_id, (model_type, props) in self._virtual_questions.items():
                owner = owners[model_type]
                if props.type == VirtualFieldType.PROJECT_BOUNDARY:
                    answers[question_id] = await self._latest_boundary(session, owner)
                elif props.type == VirtualFieldType.DEMOGRAPHICS_AGGREGATE:
                    answers[question_id] = await self._aggregate(session, trackings, owner, props)
                else:
                    # Description ignores the hidden flag
                    answers[question_id] = next(
                        (
                            t.description
                            for t in trackings
                            if t.owner_type == owner.tag
                            and t.owner_id == owner.id
                            and t.type == props.demographics_type
                            and t.collection in props.collections
                            and t.description is not None
                        ),
                        None,
                    )

    async def _load_demographics(self, session: AsyncSession, owners: List[OwnerReference]) -> List[Tracking]:
        # Entries are not loaded here; only aggregates need them, and only a sum
        stmt = (
            select(Tracking)
            .where(
                Tracking.active(),
                Tracking.domain == DEMOGRAPHICS,
                or_(*(and_(Tracking.owner_type == o.tag, Tracking.owner_id == o.id) for o in owners)),
            )
            .order_by(Tracking.id)
        )
        return list((await session.execute(stmt)).scalars().all())

    async def _latest_boundary(self, session: AsyncSession, owner: OwnerReference) -> Any:
        stmt = (
            select(ProjectPolygon.geometry)
            .where(
                ProjectPolygon.owner_type == owner.tag,
                ProjectPolygon.owner_id == owner.id,
                ProjectPolygon.active(),
            )
            .order_by(ProjectPolygon.created_at.desc(), ProjectPolygon.id.desc())
            .limit(1)
        )
        return (await session.execute(stmt)).scalar_one_or_none()

    async def _aggregate(
        self, session: AsyncSession, trackings: List[Tracking], owner: OwnerReference, props: VirtualProps
    ) -> int:
        tracking = next(
            (
                t
                for t in trackings
                if not t.hidden
                and t.owner_type == owner.tag
                and t.owner_id == owner.id
                and t.type == props.demographics_type
                and t.collection == props.collection
            ),
            None,
        )
        if tracking is None:
            return 0
        stmt = select(func.coalesce(func.sum(TrackingEntry.amount), 0)).where(
            TrackingEntry.tracking_id == tracking.id, TrackingEntry.type == "gender"
        )
        return int((await session.execute(stmt)).scalar_one())

    async def sync_field(
        self,
        session: AsyncSession,
        model: Any,
        question: FormQuestion,
        config: LinkedFieldConfig,
        answers: Answers,
    ) -> SyncResult:
        result = SyncResult()
        answer = answers.get(question.id)

        if config.virtual is None:
            await self._sync_property(session, model, question, config, answers, answer)
            return result

        props = _validate_virtual(config)
        owner = OwnerReference.of(model)
        if props.type == VirtualFieldType.DEMOGRAPHICS_AGGREGATE:
            await self._sync_aggregate(session, owner, config, props, answer)
        elif props.type == VirtualFieldType.DEMOGRAPHICS_DESCRIPTION:
            await self._sync_description(session, owner, config, props, answer)
        return result

    async def _sync_property(
        self,
        session: AsyncSession,
        model: Any,
        question: FormQuestion,
        config: LinkedFieldConfig,
        answers: Answers,
        answer: Any,
    ) -> None:
        if config.property is None:
            raise ConfigurationError(f"Field {config.key} has no property")
        column = _column(model, config.property)
        clearable_date = question.input_type == "date" and not question.required
        if answer is None and not clearable_date:
            return

        value = answer
        if (
            question.linked_field_key == LANDSCAPE_CONTRIBUTION_KEY
            and question.parent_id is not None
            and answers.get(question.parent_id) is True
        ):
            value = ""
        elif isinstance(column.type, Date):
            value = _coerce_date(answer, config.key)

        setattr(model, config.property, value)
        await session.execute(update(type(model)).where(type(model).id == model.id).values({config.property: value}))
        logger.info("field_sync key=%s model_id=%s", config.key, model.id)

    async def _find_aggregate_tracking(
        self, session: AsyncSession, owner: OwnerReference, props: VirtualProps
    ) -> Optional[Tracking]:
        stmt = (
            select(Tracking)
            .where(
                Tracking.owner_type == owner.tag,
                Tracking.owner_id == owner.id,
                Tracking.domain == DEMOGRAPHICS,
                Tracking.type == props.demographics_type,
                Tracking.collection == props.collection,
                Tracking.active(),
            )
            .order_by(Tracking.id)
        )
        return (await session.execute(stmt)).scalars().first()

    async def _sync_aggregate(
        self,
        session: AsyncSession,
        owner: OwnerReference,
        config: LinkedFieldConfig,
        props: VirtualProps,
        answer: Any,
    ) -> None:
        value = _aggregate_value(answer, config.key)
        tracking = await self._find_aggregate_tracking(session, owner, props)

        if value is None:
            if tracking is not None:
                await delete_tracking(session, tracking)
                logger.info("aggregate_sync_cleared key=%s tracking=%s", config.key, tracking.id)
            return

        entries: List[TrackingEntry] = []
        if tracking is None:
            tracking = Tracking(
                owner_type=owner.tag,
                owner_id=owner.id,
                domain=DEMOGRAPHICS,
                type=props.demographics_type,
                collection=props.collection,
                hidden=False,
            )
            session.add(tracking)
            await session.flush()
        else:
            stmt = select(TrackingEntry).where(TrackingEntry.tracking_id == tracking.id).order_by(TrackingEntry.id)
            entries = list((await session.execute(stmt)).scalars().all())
            identities = sorted((e.type, e.subtype or "", e.name or "") for e in entries)
            expected = sorted((t, s, n or "") for t, s, n in AGGREGATE_ENTRIES)
            if entries and identities != expected:
                raise SubmissionValidationError(
                    f"Illegal attempt to update complicated demographics through aggregate accessor. [{config.key}]"
                )
            tracking.hidden = False

        if entries:
            for entry in entries:
                entry.amount = value
        else:
            for entry_type, subtype, name in AGGREGATE_ENTRIES:
                session.add(
                    TrackingEntry(tracking_id=tracking.id, type=entry_type, subtype=subtype, name=name, amount=value)
                )
        await session.flush()
        logger.info("aggregate_sync key=%s tracking=%s value=%s", config.key, tracking.id, value)

    async def _sync_description(
        self,
        session: AsyncSession,
        owner: OwnerReference,
        config: LinkedFieldConfig,
        props: VirtualProps,
        answer: Any,
    ) -> None:
        if answer is not None and not isinstance(answer, str):
            raise SubmissionValidationError(f"Invalid demographics description: [{config.key}, {answer!r}]")

        stmt = (
            select(Tracking)
            .where(
                Tracking.owner_type == owner.tag,
                Tracking.owner_id == owner.id,
                Tracking.domain == DEMOGRAPHICS,
                Tracking.type == props.demographics_type,
                Tracking.collection.in_(props.collections),
                Tracking.active(),
            )
            .order_by(Tracking.id)
        )
        siblings = list((await session.execute(stmt)).scalars().all())

        if answer:
            present = {t.collection for t in siblings}
            for collection in props.collections:
                if collection in present:
                    continue
                tracking = Tracking(
                    owner_type=owner.tag,
                    owner_id=owner.id,
                    domain=DEMOGRAPHICS,
                    type=props.demographics_type,
                    collection=collection,
                    hidden=False,
                )
                session.add(tracking)
                siblings.append(tracking)

        for tracking in siblings:
            tracking.description = answer
        await session.flush()
        logger.info("description_sync key=%s trackings=%s", config.key, len(siblings))


__all__ = ["FieldCollector", "AGGREGATE_ENTRIES"]
