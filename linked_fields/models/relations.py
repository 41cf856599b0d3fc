"""ORM models for the many-row relations attached to form parents.

Simple relations (tree species, seedings, ...) are owned polymorphically and
optionally disambiguated by `collection`. Trackings are two-level: one parent
row per (owner, domain, type, collection) with typed entry rows beneath it.
Funding types and financial indicators hang off an organisation or a
financial report instead of a polymorphic owner.
"""

from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Boolean, Column, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from linked_fields.models.base import (
    Base,
    IdType,
    PolymorphicOwnedMixin,
    SoftDeleteMixin,
    TimestampMixin,
    new_uuid,
)


class _RelationRow(PolymorphicOwnedMixin, SoftDeleteMixin, TimestampMixin):
    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)


class TreeSpecies(_RelationRow, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_tree_species"

    name = Column(String(255), nullable=True)
    taxon_id = Column(String(255), nullable=True)
    amount = Column(BigInteger, nullable=True)
    collection = Column(String(255), nullable=True, index=True)


class Seeding(_RelationRow, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_seedings"

    name = Column(String(255), nullable=True)
    taxon_id = Column(String(255), nullable=True)
    amount = Column(Integer, nullable=True)
    seeds_in_sample = Column(Integer, nullable=True)
    weight_of_sample = Column(Float, nullable=True)


class Invasive(_RelationRow, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_invasives"

    name = Column(String(255), nullable=True)
    type = Column(String(255), nullable=True)
    collection = Column(String(255), nullable=True, index=True)


class Strata(_RelationRow, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_stratas"

    description = Column(Text, nullable=True)
    extent = Column(Integer, nullable=True)


class Disturbance(_RelationRow, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_disturbances"

    collection = Column(String(255), nullable=True, index=True)
    type = Column(String(255), nullable=True)
    intensity = Column(String(255), nullable=True)
    extent = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)


class Leadership(_RelationRow, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "leaderships"

    collection = Column(String(255), nullable=True, index=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    position = Column(String(255), nullable=True)
    gender = Column(String(255), nullable=True)
    age = Column(Integer, nullable=True)
    nationality = Column(String(255), nullable=True)


class OwnershipStake(_RelationRow, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "ownership_stake"

    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    title = Column(String(255), nullable=True)
    gender = Column(String(255), nullable=True)
    percent_ownership = Column(Integer, nullable=True)
    year_of_birth = Column(Integer, nullable=True)


class Tracking(_RelationRow, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "trackings"

    DEMOGRAPHICS_DOMAIN = "demographics"
    RESTORATION_DOMAIN = "restoration"
    DOMAINS = (DEMOGRAPHICS_DOMAIN, RESTORATION_DOMAIN)

    DEMOGRAPHIC_TYPES = (
        "workdays",
        "restoration-partners",
        "jobs",
        "employees",
        "volunteers",
        "all-beneficiaries",
        "training-beneficiaries",
        "indirect-beneficiaries",
        "associates",
    )
    RESTORATION_TYPES = ("hectares-restored", "trees-restored")
    VALID_TYPES = DEMOGRAPHIC_TYPES + RESTORATION_TYPES

    domain = Column(String(255), nullable=False)
    type = Column(String(255), nullable=False)
    # Nullable only for legacy rows; every live row has a collection
    collection = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    hidden = Column(Boolean, nullable=False, default=False)

    entries = relationship(
        "TrackingEntry",
        back_populates="tracking",
        order_by="TrackingEntry.id",
        lazy="raise",
    )


class TrackingEntry(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "tracking_entries"

    id = Column(IdType, primary_key=True, autoincrement=True)
    tracking_id = Column(ForeignKey("trackings.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(255), nullable=False)
    subtype = Column(String(255), nullable=True)
    name = Column(String(255), nullable=True)
    amount = Column(Integer, nullable=False, default=0)

    tracking = relationship("Tracking", back_populates="entries", lazy="raise")


class FundingType(SoftDeleteMixin, TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_funding_types"

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    organisation_uuid = Column(String(36), nullable=False, index=True)
    financial_report_id = Column(ForeignKey("financial_reports.id"), nullable=True, index=True)
    source = Column(String(255), nullable=True)
    amount = Column(BigInteger, nullable=False)
    year = Column(Integer, nullable=False)
    type = Column(String(255), nullable=False)


class FinancialIndicator(SoftDeleteMixin, TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "financial_indicators"

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    organisation_id = Column(ForeignKey("organisations.id"), nullable=False, index=True)
    financial_report_id = Column(ForeignKey("financial_reports.id"), nullable=True, index=True)
    collection = Column(String(255), nullable=True)
    amount = Column(Float, nullable=True)
    year = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    exchange_rate = Column(Float, nullable=True)


class DisturbanceReportEntry(SoftDeleteMixin, TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "disturbance_report_entries"

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    disturbance_report_id = Column(ForeignKey("disturbance_reports.id"), nullable=False, index=True)
    input_type = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    title = Column(String(255), nullable=True)
    subtitle = Column(String(255), nullable=True)
    value = Column(Text, nullable=True)


class Media(_RelationRow, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "media"

    collection_name = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=True)
    size = Column(BigInteger, nullable=False, default=0)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)
    is_cover = Column(Boolean, nullable=False, default=False)
    order_column = Column(Integer, nullable=True)
    photographer = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)


class ProjectPolygon(_RelationRow, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "project_polygons"

    # GeoJSON geometry as produced by the polygon processing service
    geometry = Column(JSON, nullable=True)


__all__ = [
    "TreeSpecies",
    "Seeding",
    "Invasive",
    "Strata",
    "Disturbance",
    "Leadership",
    "OwnershipStake",
    "Tracking",
    "TrackingEntry",
    "FundingType",
    "FinancialIndicator",
    "DisturbanceReportEntry",
    "Media",
    "ProjectPolygon",
]
