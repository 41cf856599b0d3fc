"""Matching and identity helpers shared by the relation collectors.

Submitted records are paired with persisted rows in two passes: every record
carrying a uuid claims its row first, then the remaining records fall back
to resource-specific identity fields and take the first unclaimed row in load
order. Rows nothing claimed are the caller's to soft-delete.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from linked_fields.errors import SubmissionValidationError
from linked_fields.models.base import new_uuid
from linked_fields.models.embedded import EmbeddedRecord

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=EmbeddedRecord)
Row = Any
Pairing = List[Tuple[R, Optional[Row]]]


def parse_records(record_cls: Type[R], answer: Any) -> List[R]:
    """Validate a raw relation answer into embedded records.

    None means "nothing submitted". Anything other than a list of objects is
    a client fault.
    """
    if answer is None:
        return []
    if not isinstance(answer, (list, tuple)):
        raise SubmissionValidationError(f"Expected a list of {record_cls.__name__} records")
    records: List[R] = []
    for index, item in enumerate(answer):
        if isinstance(item, record_cls):
            records.append(item)
            continue
        try:
            records.append(record_cls.model_validate(item))
        except PydanticValidationError as e:
            logger.info("relation_record_invalid record=%s index=%s", record_cls.__name__, index)
            raise SubmissionValidationError(f"Invalid {record_cls.__name__} at index {index}: {e}") from e
    return records


def match_records(
    existing: Sequence[Row],
    submitted: Sequence[R],
    identity: Callable[[Any], Hashable],
) -> Tuple[Pairing, List[Row]]:
    """Pair submitted records with existing rows.

    Returns the submitted records in order, each with its matched row (or
    None when a new row is needed), and the existing rows left unmatched.
    A row is matched at most once.
    """
    by_uuid = {row.uuid: row for row in existing}
    claimed: set = set()
    matches: List[Optional[Row]] = [None] * len(submitted)

    for index, record in enumerate(submitted):
        row = by_uuid.get(record.uuid) if record.uuid else None
        if row is not None and row.id not in claimed:
            matches[index] = row
            claimed.add(row.id)

    for index, record in enumerate(submitted):
        if matches[index] is not None:
            continue
        key = identity(record)
        for row in existing:
            if row.id not in claimed and identity(row) == key:
                matches[index] = row
                claimed.add(row.id)
                break

    unmatched = [row for row in existing if row.id not in claimed]
    return list(zip(submitted, matches)), unmatched


def attribute_identity(*fields: str) -> Callable[[Any], Tuple[Any, ...]]:
    """Identity over the named attributes; None compares equal to None."""

    def identity(obj: Any) -> Tuple[Any, ...]:
        return tuple(getattr(obj, name, None) for name in fields)

    return identity


async def taken_uuids(session: AsyncSession, model_cls: Any, candidates: Iterable[Optional[str]]) -> set:
    """Return the candidate uuids already used by any row, soft-deleted included."""
    wanted = {value for value in candidates if value}
    if not wanted:
        return set()
    result = await session.execute(select(model_cls.uuid).where(model_cls.uuid.in_(wanted)))
    return set(result.scalars().all())


def creation_uuid(requested: Optional[str], taken: set) -> str:
    """Reuse the client's uuid only when no row has ever carried it."""
    if requested and requested not in taken:
        taken.add(requested)
        return requested
    return new_uuid()


def apply_attributes(row: Row, attributes: dict) -> None:
    for name, value in attributes.items():
        setattr(row, name, value)


__all__ = [
    "parse_records",
    "match_records",
    "attribute_identity",
    "taken_uuids",
    "creation_uuid",
    "apply_attributes",
]
