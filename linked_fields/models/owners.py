"""Form model types and the polymorphic owner reference.

Relation rows point at their parent through an (owner_type, owner_id) pair.
The owner_type column holds the legacy class tag of the parent entity; the
mapping between form model types and those tags is a closed static table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from linked_fields.errors import ConfigurationError


class FormModelType(str, Enum):
    ORGANISATIONS = "organisations"
    PROJECT_PITCHES = "projectPitches"
    PROJECTS = "projects"
    SITES = "sites"
    NURSERIES = "nurseries"
    PROJECT_REPORTS = "projectReports"
    SITE_REPORTS = "siteReports"
    NURSERY_REPORTS = "nurseryReports"
    FINANCIAL_REPORTS = "financialReports"
    DISTURBANCE_REPORTS = "disturbanceReports"


POLYMORPHIC_TAGS: Mapping[FormModelType, str] = {
    FormModelType.ORGANISATIONS: "App\\Models\\V2\\Organisation",
    FormModelType.PROJECT_PITCHES: "App\\Models\\V2\\ProjectPitch",
    FormModelType.PROJECTS: "App\\Models\\V2\\Projects\\Project",
    FormModelType.SITES: "App\\Models\\V2\\Sites\\Site",
    FormModelType.NURSERIES: "App\\Models\\V2\\Nurseries\\Nursery",
    FormModelType.PROJECT_REPORTS: "App\\Models\\V2\\Projects\\ProjectReport",
    FormModelType.SITE_REPORTS: "App\\Models\\V2\\Sites\\SiteReport",
    FormModelType.NURSERY_REPORTS: "App\\Models\\V2\\Nurseries\\NurseryReport",
    FormModelType.FINANCIAL_REPORTS: "App\\Models\\V2\\FinancialReport",
    FormModelType.DISTURBANCE_REPORTS: "App\\Models\\V2\\DisturbanceReport",
}


def model_type_of(model: Any) -> FormModelType:
    """Return the form model type a parent entity class declares."""
    model_type = getattr(model, "FORM_MODEL_TYPE", None)
    if not isinstance(model_type, FormModelType):
        raise ConfigurationError(f"No form model type declared for {type(model).__name__}")
    return model_type


@dataclass(frozen=True)
class OwnerReference:
    kind: FormModelType
    id: int

    @property
    def tag(self) -> str:
        return POLYMORPHIC_TAGS[self.kind]

    @classmethod
    def of(cls, model: Any, kind: FormModelType | None = None) -> "OwnerReference":
        resolved = kind if kind is not None else model_type_of(model)
        model_id = getattr(model, "id", None)
        if model_id is None:
            raise ConfigurationError(f"Owner of type {resolved.value} has no id")
        return cls(kind=resolved, id=int(model_id))


FormModels = Mapping[FormModelType, Any]


def normalize_models(models: Mapping[Any, Any]) -> dict[FormModelType, Any]:
    """Key a FormModels mapping by FormModelType, dropping absent entries.

    Accepts string keys ("sites") as supplied by request handlers.
    """
    normalized: dict[FormModelType, Any] = {}
    for key, model in models.items():
        if model is None:
            continue
        try:
            model_type = FormModelType(key)
        except ValueError as e:
            raise ConfigurationError(f"Unknown form model type: {key}") from e
        if model_type in normalized:
            raise ConfigurationError(f"Form model type supplied twice: {model_type.value}")
        normalized[model_type] = model
    return normalized


def require_model(models: FormModels, model_type: FormModelType) -> Any:
    model = models.get(model_type)
    if model is None:
        raise ConfigurationError(f"Model for type not found: {model_type.value}")
    return model


__all__ = [
    "FormModelType",
    "POLYMORPHIC_TAGS",
    "OwnerReference",
    "FormModels",
    "model_type_of",
    "normalize_models",
    "require_model",
]
