"""Read-only collector for media attached to form parents.

Uploads and deletions go through the media service; this collector only
reports what is attached, as a list for multiple-file collections and a
single record otherwise.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linked_fields.errors import ConfigurationError
from linked_fields.logic.collectors import Answers
from linked_fields.logic.media_urls import MediaService
from linked_fields.models.embedded import EmbeddedMedia
from linked_fields.models.linked_field import LinkedFieldConfig
from linked_fields.models.media import MediaConfiguration, is_media_owner, media_configuration
from linked_fields.models.owners import FormModels, FormModelType, OwnerReference, require_model
from linked_fields.models.relations import Media

logger = logging.getLogger(__name__)


def resolve_media_configuration(model_type: FormModelType, collection: str) -> MediaConfiguration:
    if not is_media_owner(model_type):
        raise ConfigurationError(f"Entity type does not support media: {model_type.value}")
    configuration = media_configuration(model_type, collection)
    if configuration is None:
        raise ConfigurationError(f"Media collection not found for entity [{model_type.value}, {collection}]")
    return configuration


class FileCollector:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], media_service: MediaService):
        self._session_factory = session_factory
        self._media_service = media_service
        self._questions: Dict[str, Tuple[FormModelType, str]] = {}

    def add_field(self, config: LinkedFieldConfig, model_type: FormModelType, question_id: str) -> None:
        if config.collection is None:
            raise ConfigurationError(f"File field {config.key} has no collection")
        self._questions[question_id] = (model_type, config.collection)

    def _embed(self, media: Media) -> dict:
        thumb_url = None
        if (media.mime_type or "").startswith("image/"):
            thumb_url = self._media_service.get_url(media, self._media_service.thumbnail_variant)
        record = EmbeddedMedia.model_validate(media).model_copy(
            update={"url": self._media_service.get_url(media), "thumb_url": thumb_url}
        )
        return record.to_wire()

    async def collect(self, answers: Answers, models: FormModels) -> None:
        if not self._questions:
            return

        resolved: Dict[str, Tuple[OwnerReference, MediaConfiguration]] = {}
        for question_id, (model_type, collection) in self._questions.items():
            configuration = resolve_media_configuration(model_type, collection)
            owner = OwnerReference.of(require_model(models, model_type), model_type)
            resolved[question_id] = (owner, configuration)

        clauses = [
            and_(
                Media.owner_type == owner.tag,
                Media.owner_id == owner.id,
                Media.collection_name == configuration.db_collection,
            )
            for owner, configuration in resolved.values()
        ]
        stmt = select(Media).where(Media.active(), or_(*clauses)).order_by(Media.order_column, Media.id)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()

        for question_id, (owner, configuration) in resolved.items():
            media: List[Any] = [
                row
                for row in rows
                if row.owner_type == owner.tag
                and row.owner_id == owner.id
                and row.collection_name == configuration.db_collection
            ]
            if configuration.multiple:
                if media:
                    answers[question_id] = [self._embed(row) for row in media]
            elif media:
                if len(media) > 1:
                    logger.warning(
                        "single_media_collection_has_many owner=%s:%s collection=%s count=%s",
                        owner.kind.value,
                        owner.id,
                        configuration.db_collection,
                        len(media),
                    )
                answers[question_id] = self._embed(media[0])


__all__ = ["FileCollector", "resolve_media_configuration"]
