"""Generic collector for polymorphically owned relations.

Covers the simple many-row relations (tree species, seedings, invasives,
stratas, disturbances, leaderships, ownership stakes). Rows are scoped to
an owner reference and, for resources that use one, a collection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Type

from sqlalchemy import and_, delete, or_, select
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
from linked_fields.models.embedded import (
    EmbeddedDisturbance,
    EmbeddedInvasive,
    EmbeddedLeadership,
    EmbeddedOwnershipStake,
    EmbeddedRecord,
    EmbeddedSeeding,
    EmbeddedStrata,
    EmbeddedTreeSpecies,
)
from linked_fields.models.linked_field import LinkedFieldConfig, RelationResource
from linked_fields.models.owners import FormModels, FormModelType, OwnerReference, model_type_of, require_model
from linked_fields.models.relations import (
    Disturbance,
    Invasive,
    Leadership,
    OwnershipStake,
    Seeding,
    Strata,
    TreeSpecies,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolymorphicResource:
    resource: RelationResource
    model: Any
    record: Type[EmbeddedRecord]
    identity_fields: Tuple[str, ...]
    uses_collection: bool
    # None means any form model type may own rows
    owner_types: Optional[FrozenSet[FormModelType]] = None


_ORGANISATIONS_ONLY = frozenset({FormModelType.ORGANISATIONS})

POLYMORPHIC_RESOURCES: Mapping[RelationResource, PolymorphicResource] = {
    r.resource: r
    for r in (
        PolymorphicResource(RelationResource.TREE_SPECIES, TreeSpecies, EmbeddedTreeSpecies, ("name",), True),
        PolymorphicResource(RelationResource.SEEDINGS, Seeding, EmbeddedSeeding, ("name",), False),
        PolymorphicResource(RelationResource.INVASIVES, Invasive, EmbeddedInvasive, ("name",), True),
        PolymorphicResource(RelationResource.STRATAS, Strata, EmbeddedStrata, ("description",), False),
        PolymorphicResource(
            RelationResource.DISTURBANCES, Disturbance, EmbeddedDisturbance, ("type", "description"), True
        ),
        PolymorphicResource(
            RelationResource.LEADERSHIPS,
            Leadership,
            EmbeddedLeadership,
            ("first_name", "last_name"),
            True,
            _ORGANISATIONS_ONLY,
        ),
        PolymorphicResource(
            RelationResource.OWNERSHIP_STAKE,
            OwnershipStake,
            EmbeddedOwnershipStake,
            ("first_name", "last_name"),
            False,
            _ORGANISATIONS_ONLY,
        ),
    )
}


class PolymorphicCollector:
    def __init__(self, resource: PolymorphicResource, session_factory: async_sessionmaker[AsyncSession]):
        self.resource = resource
        self._session_factory = session_factory
        self._identity = attribute_identity(*resource.identity_fields)
        # (model type, collection) -> question ids
        self._questions: Dict[Tuple[FormModelType, Optional[str]], List[str]] = {}

    def _check_owner(self, model_type: FormModelType) -> None:
        owners = self.resource.owner_types
        if owners is not None and model_type not in owners:
            raise ConfigurationError(f"{self.resource.resource.value} is not supported on {model_type.value}")

    def _collection(self, config: LinkedFieldConfig) -> Optional[str]:
        if not self.resource.uses_collection:
            return None
        if config.collection is None:
            raise ConfigurationError(f"Collection not found for {config.key}")
        return config.collection

    def _scope(self, owner: OwnerReference, collection: Optional[str]) -> list:
        model = self.resource.model
        conditions = [model.owner_type == owner.tag, model.owner_id == owner.id]
        if collection is not None:
            conditions.append(model.collection == collection)
        return conditions

    def add_field(self, config: LinkedFieldConfig, model_type: FormModelType, question_id: str) -> None:
        self._check_owner(model_type)
        key = (model_type, self._collection(config))
        if key in self._questions:
            logger.warning(
                "duplicate_relation_field resource=%s model_type=%s collection=%s",
                self.resource.resource.value,
                model_type.value,
                key[1],
            )
        self._questions.setdefault(key, []).append(question_id)

    async def collect(self, answers: Answers, models: FormModels) -> None:
        if not self._questions:
            return
        model = self.resource.model

        collections_by_type: Dict[FormModelType, set] = {}
        for model_type, collection in self._questions:
            collections_by_type.setdefault(model_type, set()).add(collection)

        owners: Dict[FormModelType, OwnerReference] = {}
        clauses = []
        for model_type, collections in collections_by_type.items():
            owner = OwnerReference.of(require_model(models, model_type), model_type)
            owners[model_type] = owner
            conditions = [model.owner_type == owner.tag, model.owner_id == owner.id]
            if self.resource.uses_collection:
                conditions.append(model.collection.in_(collections))
            clauses.append(and_(*conditions))

        stmt = select(model).where(model.active(), or_(*clauses)).order_by(model.id)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()

        for (model_type, collection), question_ids in self._questions.items():
            owner = owners[model_type]
            records = [
                self.resource.record.model_validate(row).to_wire()
                for row in rows
                if row.owner_type == owner.tag
                and row.owner_id == owner.id
                and (collection is None or row.collection == collection)
            ]
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
        # Only trackings persist the hidden flag; these rows have no such column
        result = SyncResult()
        resource = self.resource
        self._check_owner(model_type_of(model))
        collection = self._collection(config)
        owner = OwnerReference.of(model)
        scope = self._scope(owner, collection)

        stmt = select(resource.model).where(*scope, resource.model.active()).order_by(resource.model.id)
        existing = (await session.execute(stmt)).scalars().all()

        records = []
        for record in parse_records(resource.record, answer):
            claimed = getattr(record, "collection", None)
            if collection is not None and claimed is not None and claimed != collection:
                result.warn(
                    logger,
                    "relation_record_collection_mismatch",
                    resource=resource.resource.value,
                    expected=collection,
                    claimed=claimed,
                    uuid=record.uuid,
                )
                continue
            records.append(record)

        now = utcnow()
        if not records:
            for row in existing:
                row.deleted_at = now
            logger.info(
                "relation_sync_cleared resource=%s owner=%s:%s collection=%s deleted=%s",
                resource.resource.value,
                owner.kind.value,
                owner.id,
                collection,
                len(existing),
            )
            return result

        pairs, unmatched = match_records(existing, records, self._identity)
        taken = await taken_uuids(session, resource.model, [r.uuid for r, row in pairs if row is None])

        created = 0
        for record, row in pairs:
            if row is not None:
                apply_attributes(row, record.business_attributes())
                continue
            row = resource.model(
                uuid=creation_uuid(record.uuid, taken),
                owner_type=owner.tag,
                owner_id=owner.id,
                **record.business_attributes(),
            )
            if collection is not None:
                row.collection = collection
            session.add(row)
            created += 1

        for row in unmatched:
            row.deleted_at = now
        await session.flush()

        logger.info(
            "relation_sync resource=%s owner=%s:%s collection=%s created=%s updated=%s deleted=%s",
            resource.resource.value,
            owner.kind.value,
            owner.id,
            collection,
            created,
            len(pairs) - created,
            len(unmatched),
        )
        return result

    async def clear_relations(self, session: AsyncSession, model: Any, config: LinkedFieldConfig) -> None:
        owner = OwnerReference.of(model)
        scope = self._scope(owner, self._collection(config))
        await session.execute(delete(self.resource.model).where(*scope))
        logger.info("relation_cleared resource=%s owner=%s:%s", self.resource.resource.value, owner.kind.value, owner.id)


__all__ = ["PolymorphicResource", "POLYMORPHIC_RESOURCES", "PolymorphicCollector"]
