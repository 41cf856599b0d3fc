"""Media ownership configuration.

Only some form model types may own media, and each owner declares the
collections it accepts and whether a collection holds one file or many.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from linked_fields.models.owners import FormModelType


@dataclass(frozen=True)
class MediaConfiguration:
    db_collection: str
    multiple: bool
    validation: str


def _multi(db_collection: str, validation: str = "general-documents") -> MediaConfiguration:
    return MediaConfiguration(db_collection=db_collection, multiple=True, validation=validation)


def _single(db_collection: str, validation: str = "general-documents") -> MediaConfiguration:
    return MediaConfiguration(db_collection=db_collection, multiple=False, validation=validation)


MEDIA_CONFIGURATION: Mapping[FormModelType, Mapping[str, MediaConfiguration]] = {
    FormModelType.ORGANISATIONS: {
        "logo": _single("logo", "logo-image"),
        "cover": _single("cover", "cover-image"),
        "legal_registration": _multi("legal_registration"),
        "reference": _multi("reference"),
        "op_budget_1year": _multi("op_budget_1year", "spreadsheet"),
    },
    FormModelType.PROJECT_PITCHES: {
        "cover": _single("cover", "cover-image"),
        "additional": _multi("additional"),
        "restoration_photos": _multi("restoration_photos", "photos"),
    },
    FormModelType.PROJECTS: {
        "media": _multi("media", "photos"),
        "socioeconomic_benefits": _multi("socioeconomic_benefits"),
        "file": _multi("file"),
        "other_additional_documents": _multi("other_additional_documents"),
        "photos": _multi("photos", "photos"),
        "document_files": _multi("document_files"),
        "programme_submission": _multi("programme_submission"),
        "detailed_project_budget": _single("detailed_project_budget", "spreadsheet"),
        "proof_of_land_tenure_mou": _multi("proof_of_land_tenure_mou"),
    },
    FormModelType.SITES: {
        "media": _multi("media", "photos"),
        "photos": _multi("photos", "photos"),
        "document_files": _multi("document_files"),
        "stratification_for_heterogeneity": _single("stratification_for_heterogeneity"),
    },
    FormModelType.NURSERIES: {
        "media": _multi("media", "photos"),
        "photos": _multi("photos", "photos"),
    },
    FormModelType.PROJECT_REPORTS: {
        "media": _multi("media", "photos"),
        "socioeconomic_benefits": _multi("socioeconomic_benefits"),
        "photos": _multi("photos", "photos"),
        "baseline_report_upload": _multi("baseline_report_upload"),
    },
    FormModelType.SITE_REPORTS: {
        "socioeconomic_benefits": _multi("socioeconomic_benefits"),
        "media": _multi("media", "photos"),
        "photos": _multi("photos", "photos"),
        "tree_species": _single("tree_species", "documents"),
    },
    FormModelType.NURSERY_REPORTS: {
        "media": _multi("media", "photos"),
        "photos": _multi("photos", "photos"),
        "tree_seedling_contributions": _multi("tree_seedling_contributions"),
    },
    FormModelType.FINANCIAL_REPORTS: {
        "documentation": _multi("documentation"),
    },
    FormModelType.DISTURBANCE_REPORTS: {
        "media": _multi("media", "photos"),
    },
}


def is_media_owner(model_type: FormModelType) -> bool:
    return model_type in MEDIA_CONFIGURATION


def media_configuration(model_type: FormModelType, collection: str) -> Optional[MediaConfiguration]:
    return MEDIA_CONFIGURATION.get(model_type, {}).get(collection)


__all__ = ["MediaConfiguration", "MEDIA_CONFIGURATION", "is_media_owner", "media_configuration"]
