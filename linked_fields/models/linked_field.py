"""Linked field configuration and form question contracts.

A linked field maps one form question onto persisted data: a scalar
property of the parent record, a media collection, or a relation. Entries
are immutable; the catalog in `linked_fields.logic.linked_field_catalog`
is the only producer.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from linked_fields.models.owners import FormModelType


class ResourceKind(str, Enum):
    PROPERTY = "property"
    FILE = "file"
    RELATION = "relation"


class RelationResource(str, Enum):
    DEMOGRAPHICS = "demographics"
    RESTORATION = "restoration"
    TREE_SPECIES = "treeSpecies"
    SEEDINGS = "seedings"
    INVASIVES = "invasives"
    STRATAS = "stratas"
    DISTURBANCES = "disturbances"
    LEADERSHIPS = "leaderships"
    OWNERSHIP_STAKE = "ownershipStake"
    FUNDING_TYPES = "fundingTypes"
    FINANCIAL_INDICATORS = "financialIndicators"
    DISTURBANCE_REPORT_ENTRIES = "disturbanceReportEntries"


class VirtualFieldType(str, Enum):
    DEMOGRAPHICS_AGGREGATE = "demographicsAggregate"
    DEMOGRAPHICS_DESCRIPTION = "demographicsDescription"
    PROJECT_BOUNDARY = "projectBoundary"


class VirtualProps(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: VirtualFieldType
    demographics_type: Optional[str] = None
    # demographicsAggregate targets one collection, demographicsDescription several
    collection: Optional[str] = None
    collections: Tuple[str, ...] = ()


class LinkedFieldConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    model_type: FormModelType
    resource_kind: ResourceKind
    input_type: str
    property: Optional[str] = None
    collection: Optional[str] = None
    resource: Optional[RelationResource] = None
    virtual: Optional[VirtualProps] = None
    option_list_key: Optional[str] = None
    multi_choice: Optional[bool] = None


class FormQuestion(BaseModel):
    id: str
    linked_field_key: Optional[str] = None
    input_type: Optional[str] = None
    required: bool = False
    parent_id: Optional[str] = None


__all__ = [
    "ResourceKind",
    "RelationResource",
    "VirtualFieldType",
    "VirtualProps",
    "LinkedFieldConfig",
    "FormQuestion",
]
