"""Database bootstrap utilities for the linked field service.

This module exposes convenience imports for engine/session construction, the
unit-of-work boundary used by every sync call, and schema creation from the
declarative metadata.
"""

from linked_fields.db.base import dispose_engines, get_engine, get_sessionmaker, unit_of_work
from linked_fields.db.schema import create_schema, drop_schema

__all__ = [
    "get_engine",
    "get_sessionmaker",
    "dispose_engines",
    "unit_of_work",
    "create_schema",
    "drop_schema",
]
