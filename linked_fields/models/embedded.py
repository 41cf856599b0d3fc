"""Pydantic models for embedded relation records.

These are the exchange shapes shared with the JSON:API serializer: one model
per relation row, camelCase on the wire, snake_case in Python. Records are
built from ORM rows (`from_attributes`) on collect and validated from raw
client dicts on sync.
"""

from __future__ import annotations

from typing import ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EmbeddedRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )

    # Attributes that identify the row rather than describe it; never copied
    # onto an existing row during sync.
    IDENTITY_FIELDS: ClassVar[frozenset[str]] = frozenset({"uuid", "collection"})

    uuid: Optional[str] = None

    def business_attributes(self) -> dict:
        """Attributes the client supplied, minus identity fields."""
        data = self.model_dump(exclude_unset=True)
        return {k: v for k, v in data.items() if k not in self.IDENTITY_FIELDS}

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class EmbeddedTreeSpecies(EmbeddedRecord):
    name: Optional[str] = None
    taxon_id: Optional[str] = None
    amount: Optional[int] = None
    collection: Optional[str] = None


class EmbeddedSeeding(EmbeddedRecord):
    name: Optional[str] = None
    taxon_id: Optional[str] = None
    amount: Optional[int] = None
    seeds_in_sample: Optional[int] = None
    weight_of_sample: Optional[float] = None


class EmbeddedInvasive(EmbeddedRecord):
    name: Optional[str] = None
    type: Optional[str] = None
    collection: Optional[str] = None


class EmbeddedStrata(EmbeddedRecord):
    description: Optional[str] = None
    extent: Optional[int] = None


class EmbeddedDisturbance(EmbeddedRecord):
    collection: Optional[str] = None
    type: Optional[str] = None
    intensity: Optional[str] = None
    extent: Optional[str] = None
    description: Optional[str] = None


class EmbeddedLeadership(EmbeddedRecord):
    collection: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    nationality: Optional[str] = None


class EmbeddedOwnershipStake(EmbeddedRecord):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    gender: Optional[str] = None
    percent_ownership: Optional[int] = None
    year_of_birth: Optional[int] = None


class TrackingEntryRecord(BaseModel):
    """One sub-row of a tracking; identified by (type, subtype, name)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True, extra="ignore")

    type: str
    subtype: Optional[str] = None
    name: Optional[str] = None
    amount: int = Field(ge=0)

    def identity(self) -> tuple[Optional[str], Optional[str], Optional[str]]:
        return (self.type, self.subtype, self.name)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class EmbeddedTracking(EmbeddedRecord):
    IDENTITY_FIELDS: ClassVar[frozenset[str]] = frozenset({"uuid", "collection", "domain", "type"})

    domain: Optional[str] = None
    type: Optional[str] = None
    collection: Optional[str] = None
    description: Optional[str] = None
    hidden: bool = False
    entries: List[TrackingEntryRecord] = Field(default_factory=list)


class EmbeddedFundingType(EmbeddedRecord):
    year: Optional[int] = None
    type: Optional[str] = None
    source: Optional[str] = None
    amount: Optional[int] = None


class EmbeddedFinancialIndicator(EmbeddedRecord):
    IDENTITY_FIELDS: ClassVar[frozenset[str]] = frozenset({"uuid", "start_month", "currency"})

    collection: Optional[str] = None
    amount: Optional[float] = None
    year: Optional[int] = None
    description: Optional[str] = None
    exchange_rate: Optional[float] = None
    # Owner-level settings replicated onto every record on collect
    start_month: Optional[int] = None
    currency: Optional[str] = None


class EmbeddedDisturbanceReportEntry(EmbeddedRecord):
    IDENTITY_FIELDS: ClassVar[frozenset[str]] = frozenset({"uuid", "name"})

    input_type: Optional[str] = None
    name: Optional[str] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    value: Optional[str] = None


class EmbeddedMedia(EmbeddedRecord):
    collection_name: Optional[str] = None
    name: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    size: Optional[int] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    is_public: bool = True
    is_cover: bool = False
    photographer: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    thumb_url: Optional[str] = None


__all__ = [
    "EmbeddedRecord",
    "EmbeddedTreeSpecies",
    "EmbeddedSeeding",
    "EmbeddedInvasive",
    "EmbeddedStrata",
    "EmbeddedDisturbance",
    "EmbeddedLeadership",
    "EmbeddedOwnershipStake",
    "TrackingEntryRecord",
    "EmbeddedTracking",
    "EmbeddedFundingType",
    "EmbeddedFinancialIndicator",
    "EmbeddedDisturbanceReportEntry",
    "EmbeddedMedia",
]
