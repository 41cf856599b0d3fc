"""Declarative base and shared column mixins for the relational store."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base


Base = declarative_base()

# SQLite only autoincrements INTEGER primary keys
IdType = BigInteger().with_variant(Integer(), "sqlite")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class SoftDeleteMixin:
    """Rows are hidden from normal queries once deleted_at is set."""

    deleted_at = Column(DateTime(timezone=True), nullable=True)

    @classmethod
    def active(cls):
        return cls.deleted_at.is_(None)


class PolymorphicOwnedMixin:
    """Relation rows owned by any parent through (owner_type, owner_id)."""

    owner_type = Column(String(255), nullable=False, index=True)
    owner_id = Column(IdType, nullable=False, index=True)


__all__ = [
    "Base",
    "IdType",
    "utcnow",
    "new_uuid",
    "TimestampMixin",
    "SoftDeleteMixin",
    "PolymorphicOwnedMixin",
]
