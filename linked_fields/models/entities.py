"""ORM models for the parent records a form instance edits.

Each class declares its FORM_MODEL_TYPE so owner references are resolved
from a static declaration rather than by inspecting instances.
"""

from __future__ import annotations

from typing import ClassVar

from sqlalchemy import JSON, Column, Date, Float, ForeignKey, Integer, String, Text

from linked_fields.models.base import Base, IdType, TimestampMixin, new_uuid
from linked_fields.models.owners import FormModelType


class Organisation(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "organisations"
    FORM_MODEL_TYPE: ClassVar[FormModelType] = FormModelType.ORGANISATIONS

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    name = Column(String(255), nullable=True)
    type = Column(String(255), nullable=True)
    hq_country = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    currency = Column(String(10), nullable=True)
    fin_start_month = Column(Integer, nullable=True)


class ProjectPitch(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "project_pitches"
    FORM_MODEL_TYPE: ClassVar[FormModelType] = FormModelType.PROJECT_PITCHES

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    organisation_id = Column(ForeignKey("organisations.id"), nullable=True)
    project_name = Column(String(255), nullable=True)
    project_objectives = Column(Text, nullable=True)
    total_trees = Column(Integer, nullable=True)
    project_budget = Column(Integer, nullable=True)


class Project(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_projects"
    FORM_MODEL_TYPE: ClassVar[FormModelType] = FormModelType.PROJECTS

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    organisation_id = Column(ForeignKey("organisations.id"), nullable=True)
    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    country = Column(String(255), nullable=True)
    states = Column(JSON, nullable=True)
    goal_trees_restored_planting = Column(Integer, nullable=True)
    proposed_num_nurseries = Column(Integer, nullable=True)
    proj_impact_foodsec = Column(Text, nullable=True)


class Site(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_sites"
    FORM_MODEL_TYPE: ClassVar[FormModelType] = FormModelType.SITES

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    project_id = Column(ForeignKey("v2_projects.id"), nullable=True)
    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    hectares_to_restore_goal = Column(Float, nullable=True)
    land_use_types = Column(JSON, nullable=True)
    start_date = Column(Date, nullable=True)


class Nursery(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_nurseries"
    FORM_MODEL_TYPE: ClassVar[FormModelType] = FormModelType.NURSERIES

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    project_id = Column(ForeignKey("v2_projects.id"), nullable=True)
    name = Column(String(255), nullable=True)
    type = Column(String(255), nullable=True)
    seedling_grown = Column(Integer, nullable=True)


class ProjectReport(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_project_reports"
    FORM_MODEL_TYPE: ClassVar[FormModelType] = FormModelType.PROJECT_REPORTS

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    project_id = Column(ForeignKey("v2_projects.id"), nullable=True)
    title = Column(String(255), nullable=True)
    technical_narrative = Column(Text, nullable=True)
    public_narrative = Column(Text, nullable=True)
    landscape_community_contribution = Column(Text, nullable=True)
    workdays_paid = Column(Integer, nullable=True)


class SiteReport(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_site_reports"
    FORM_MODEL_TYPE: ClassVar[FormModelType] = FormModelType.SITE_REPORTS

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    site_id = Column(ForeignKey("v2_sites.id"), nullable=True)
    title = Column(String(255), nullable=True)
    shared_drive_link = Column(String(255), nullable=True)
    technical_narrative = Column(Text, nullable=True)
    public_narrative = Column(Text, nullable=True)
    workdays_paid = Column(Integer, nullable=True)
    seeds_planted = Column(Integer, nullable=True)
    polygon_status = Column(Text, nullable=True)


class NurseryReport(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "v2_nursery_reports"
    FORM_MODEL_TYPE: ClassVar[FormModelType] = FormModelType.NURSERY_REPORTS

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    nursery_id = Column(ForeignKey("v2_nurseries.id"), nullable=True)
    title = Column(String(255), nullable=True)
    seedlings_young_trees = Column(Integer, nullable=True)
    interesting_facts = Column(Text, nullable=True)


class FinancialReport(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "financial_reports"
    FORM_MODEL_TYPE: ClassVar[FormModelType] = FormModelType.FINANCIAL_REPORTS

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    organisation_id = Column(ForeignKey("organisations.id"), nullable=False)
    title = Column(String(255), nullable=True)
    year_of_report = Column(Integer, nullable=True)
    currency = Column(String(10), nullable=True)
    fin_start_month = Column(Integer, nullable=True)


class DisturbanceReport(TimestampMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "disturbance_reports"
    FORM_MODEL_TYPE: ClassVar[FormModelType] = FormModelType.DISTURBANCE_REPORTS

    id = Column(IdType, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=new_uuid)
    project_id = Column(ForeignKey("v2_projects.id"), nullable=True)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    intensity = Column(String(255), nullable=True)
    date_of_disturbance = Column(Date, nullable=True)


ENTITY_CLASSES = {
    cls.FORM_MODEL_TYPE: cls
    for cls in (
        Organisation,
        ProjectPitch,
        Project,
        Site,
        Nursery,
        ProjectReport,
        SiteReport,
        NurseryReport,
        FinancialReport,
        DisturbanceReport,
    )
}


__all__ = [
    "Organisation",
    "ProjectPitch",
    "Project",
    "Site",
    "Nursery",
    "ProjectReport",
    "SiteReport",
    "NurseryReport",
    "FinancialReport",
    "DisturbanceReport",
    "ENTITY_CLASSES",
]
