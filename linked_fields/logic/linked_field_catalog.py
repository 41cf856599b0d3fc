"""Static linked field catalog.

Every form question that writes to persisted data names one of these keys.
Keys are unique across all form model types; the catalog is built once at
import and never mutated.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from linked_fields.errors import ConfigurationError
from linked_fields.models.linked_field import (
    LinkedFieldConfig,
    RelationResource,
    ResourceKind,
    VirtualFieldType,
    VirtualProps,
)
from linked_fields.models.owners import FormModelType


MODEL_LABELS: Mapping[FormModelType, str] = {
    FormModelType.ORGANISATIONS: "Organisation",
    FormModelType.PROJECT_PITCHES: "Project Pitch",
    FormModelType.PROJECTS: "Project",
    FormModelType.SITES: "Site",
    FormModelType.NURSERIES: "Nursery",
    FormModelType.PROJECT_REPORTS: "Project Report",
    FormModelType.SITE_REPORTS: "Site Report",
    FormModelType.NURSERY_REPORTS: "Nursery Report",
    FormModelType.FINANCIAL_REPORTS: "Financial Report",
    FormModelType.DISTURBANCE_REPORTS: "Disturbance Report",
}


def _field(key, model_type, prop, label, input_type, option_list_key=None, multi_choice=None) -> LinkedFieldConfig:
    return LinkedFieldConfig(
        key=key,
        label=label,
        model_type=model_type,
        resource_kind=ResourceKind.PROPERTY,
        input_type=input_type,
        property=prop,
        option_list_key=option_list_key,
        multi_choice=multi_choice,
    )


def _virtual(key, model_type, label, input_type, **props) -> LinkedFieldConfig:
    return LinkedFieldConfig(
        key=key,
        label=label,
        model_type=model_type,
        resource_kind=ResourceKind.PROPERTY,
        input_type=input_type,
        virtual=VirtualProps(**props),
    )


def _file(key, model_type, collection, label, multi_choice=True) -> LinkedFieldConfig:
    return LinkedFieldConfig(
        key=key,
        label=label,
        model_type=model_type,
        resource_kind=ResourceKind.FILE,
        input_type="file",
        collection=collection,
        multi_choice=multi_choice,
    )


def _relation(key, model_type, resource, label, input_type, collection=None) -> LinkedFieldConfig:
    return LinkedFieldConfig(
        key=key,
        label=label,
        model_type=model_type,
        resource_kind=ResourceKind.RELATION,
        input_type=input_type,
        resource=resource,
        collection=collection,
    )


_ORG = FormModelType.ORGANISATIONS
_PITCH = FormModelType.PROJECT_PITCHES
_PROJECT = FormModelType.PROJECTS
_SITE = FormModelType.SITES
_NURSERY = FormModelType.NURSERIES
_PROJECT_REPORT = FormModelType.PROJECT_REPORTS
_SITE_REPORT = FormModelType.SITE_REPORTS
_NURSERY_REPORT = FormModelType.NURSERY_REPORTS
_FINANCIAL_REPORT = FormModelType.FINANCIAL_REPORTS
_DISTURBANCE_REPORT = FormModelType.DISTURBANCE_REPORTS

_R = RelationResource
_AGGREGATE = VirtualFieldType.DEMOGRAPHICS_AGGREGATE
_DESCRIPTION = VirtualFieldType.DEMOGRAPHICS_DESCRIPTION


_ENTRIES: List[LinkedFieldConfig] = [
    # Organisation
    _field("org-name", _ORG, "name", "Name", "text"),
    _field("org-type", _ORG, "type", "Type", "select", "organisation-type", False),
    _field("org-hq-country", _ORG, "hq_country", "Headquarters country", "select", "gadm-level-0", False),
    _field("org-description", _ORG, "description", "Description", "long-text"),
    _field("org-currency", _ORG, "currency", "Currency", "select", "currencies", False),
    _field("org-fin-start-month", _ORG, "fin_start_month", "Financial year start month", "number"),
    _file("org-logo", _ORG, "logo", "Logo", multi_choice=False),
    _file("org-cover", _ORG, "cover", "Cover", multi_choice=False),
    _file("org-legal-registration", _ORG, "legal_registration", "Legal registration"),
    _file("org-reference", _ORG, "reference", "Reference"),
    _file("org-op-budget-1year", _ORG, "op_budget_1year", "Operating budget (last year)"),
    _relation("org-funding-types", _ORG, _R.FUNDING_TYPES, "Funding Type", "fundingType"),
    _relation("org-tree-species", _ORG, _R.TREE_SPECIES, "Tree Species", "treeSpecies", "historical-tree-species"),
    # Shares its collection with org-tree-species; both questions may appear on one form
    _relation(
        "org-tree-species-restored",
        _ORG,
        _R.TREE_SPECIES,
        "Tree species restored in landscape",
        "treeSpecies",
        "historical-tree-species",
    ),
    _relation("org-ownership-stake", _ORG, _R.OWNERSHIP_STAKE, "Ownership Stake", "ownershipStake"),
    _relation("org-beneficiaries-all", _ORG, _R.DEMOGRAPHICS, "Community Members", "allBeneficiaries", "all"),
    _relation("org-employees-full-time", _ORG, _R.DEMOGRAPHICS, "Full Time Employees", "employees", "full-time"),
    _relation("org-employees-part-time", _ORG, _R.DEMOGRAPHICS, "Part Time Employees", "employees", "part-time"),
    _relation("org-employees-temp", _ORG, _R.DEMOGRAPHICS, "Temp Employees", "employees", "temp"),
    _relation("org-associates", _ORG, _R.DEMOGRAPHICS, "Associates", "associates", "all"),
    _relation("org-leadership-team", _ORG, _R.LEADERSHIPS, "Leadership Team", "leaderships", "leadership-team"),
    _relation("org-core-team-leaders", _ORG, _R.LEADERSHIPS, "Core Team Leaders", "leaderships", "core-team-leaders"),
    _relation(
        "org-financial-indicators-financial-collection",
        _ORG,
        _R.FINANCIAL_INDICATORS,
        "Financial collection",
        "financialIndicators",
    ),
    # Project pitch
    _field("pro-pit-name", _PITCH, "project_name", "Project name", "text"),
    _field("pro-pit-objectives", _PITCH, "project_objectives", "Project objectives", "long-text"),
    _field("pro-pit-total-trees", _PITCH, "total_trees", "Total trees", "number"),
    _field("pro-pit-budget", _PITCH, "project_budget", "Project budget", "number"),
    _file("pro-pit-cover", _PITCH, "cover", "Cover", multi_choice=False),
    _file("pro-pit-additional", _PITCH, "additional", "Additional documents"),
    _file("pro-pit-restoration-photos", _PITCH, "restoration_photos", "Restoration photos"),
    _relation("pro-pit-rel-tree-species", _PITCH, _R.TREE_SPECIES, "Tree Species", "treeSpecies", "tree-planted"),
    # Project
    _field("pro-name", _PROJECT, "name", "Name", "text"),
    _field("pro-description", _PROJECT, "description", "Description", "long-text"),
    _field("pro-country", _PROJECT, "country", "Country", "select", "gadm-level-0", False),
    _field("pro-states", _PROJECT, "states", "States", "select", "gadm-level-1", True),
    _field(
        "pro-goal-trees-restored-planting",
        _PROJECT,
        "goal_trees_restored_planting",
        "Trees Restored Goal - Planting",
        "number",
    ),
    _field("pro-proposed-num-nurseries", _PROJECT, "proposed_num_nurseries", "Proposed Number of Nurseries", "number"),
    _field(
        "pro-proj-impact-foodsec",
        _PROJECT,
        "proj_impact_foodsec",
        "Potential project impact: food security",
        "long-text",
    ),
    _virtual("pro-proj-boundary", _PROJECT, "Project Boundary", "mapInput", type=VirtualFieldType.PROJECT_BOUNDARY),
    _virtual(
        "pro-full-time-jobs-count",
        _PROJECT,
        "Aggregate full time jobs",
        "number",
        type=_AGGREGATE,
        demographics_type="jobs",
        collection="full-time",
    ),
    _virtual(
        "pro-part-time-jobs-count",
        _PROJECT,
        "Aggregate part time jobs",
        "number",
        type=_AGGREGATE,
        demographics_type="jobs",
        collection="part-time",
    ),
    _virtual(
        "pro-volunteers-count",
        _PROJECT,
        "Aggregate volunteers",
        "number",
        type=_AGGREGATE,
        demographics_type="volunteers",
        collection="volunteer",
    ),
    _virtual(
        "pro-beneficiaries-count",
        _PROJECT,
        "Aggregate beneficiaries",
        "number",
        type=_AGGREGATE,
        demographics_type="all-beneficiaries",
        collection="all",
    ),
    _file("pro-col-media", _PROJECT, "media", "Media"),
    _file("pro-col-file", _PROJECT, "file", "File"),
    _file("pro-col-detailed-project-budget", _PROJECT, "detailed_project_budget", "Detailed project budget", False),
    _relation("pro-rel-tree-species", _PROJECT, _R.TREE_SPECIES, "Tree Species", "treeSpecies", "tree-planted"),
    _relation("pro-all-jobs", _PROJECT, _R.DEMOGRAPHICS, "All Jobs", "jobs", "all"),
    _relation("pro-full-time-jobs", _PROJECT, _R.DEMOGRAPHICS, "Full-time Jobs", "jobs", "full-time"),
    _relation("pro-part-time-jobs", _PROJECT, _R.DEMOGRAPHICS, "Part-time Jobs", "jobs", "part-time"),
    _relation("pro-volunteers", _PROJECT, _R.DEMOGRAPHICS, "Volunteers", "volunteers", "volunteer"),
    _relation("pro-all-beneficiaries", _PROJECT, _R.DEMOGRAPHICS, "All Beneficiaries", "allBeneficiaries", "all"),
    # Site
    _field("site-name", _SITE, "name", "Name", "text"),
    _field("site-description", _SITE, "description", "Description", "long-text"),
    _field("site-hectares-to-restore-goal", _SITE, "hectares_to_restore_goal", "Hectares to restore goal", "number"),
    _field("site-land-use-types", _SITE, "land_use_types", "Land use types", "select-image", "land-use-systems", True),
    _field("site-start-date", _SITE, "start_date", "Start date", "date"),
    _file("site-col-media", _SITE, "media", "Media"),
    _file("site-col-photos", _SITE, "photos", "Photos"),
    _file(
        "site-col-stratification-for-heterogeneity",
        _SITE,
        "stratification_for_heterogeneity",
        "Stratification for heterogeneity",
        False,
    ),
    _relation("site-rel-tree-species", _SITE, _R.TREE_SPECIES, "Tree Species", "treeSpecies", "tree-planted"),
    _relation("site-rel-disturbances", _SITE, _R.DISTURBANCES, "Disturbances", "disturbances", "disturbance"),
    _relation("site-rel-invasive", _SITE, _R.INVASIVES, "Invasives", "invasive", "invasive"),
    _relation("site-rel-seedings", _SITE, _R.SEEDINGS, "Seedings", "seedings"),
    _relation("site-rel-stratas", _SITE, _R.STRATAS, "Stratas", "stratas"),
    # Nursery
    _field("nur-name", _NURSERY, "name", "Name", "text"),
    _field("nur-type", _NURSERY, "type", "Type", "select", "nursery-type", False),
    _field("nur-seedling-grown", _NURSERY, "seedling_grown", "Seedlings grown", "number"),
    _file("nur-col-media", _NURSERY, "media", "Media"),
    _relation("nur-rel-tree-species", _NURSERY, _R.TREE_SPECIES, "Tree Species", "treeSpecies", "nursery-seedling"),
    # Project report
    _field("pro-rep-title", _PROJECT_REPORT, "title", "Title", "text"),
    _field("pro-rep-technical-narrative", _PROJECT_REPORT, "technical_narrative", "Technical narrative", "long-text"),
    _field("pro-rep-public-narrative", _PROJECT_REPORT, "public_narrative", "Public narrative", "long-text"),
    _field(
        "pro-rep-landscape-com-con",
        _PROJECT_REPORT,
        "landscape_community_contribution",
        "Landscape community contribution",
        "long-text",
    ),
    _field("pro-rep-workdays-paid", _PROJECT_REPORT, "workdays_paid", "Workdays Paid", "number"),
    _virtual(
        "pro-rep-jobs-description",
        _PROJECT_REPORT,
        "Jobs description",
        "long-text",
        type=_DESCRIPTION,
        demographics_type="jobs",
        collections=("full-time", "part-time"),
    ),
    _file("pro-rep-col-media", _PROJECT_REPORT, "media", "Media"),
    _file("pro-rep-col-photos", _PROJECT_REPORT, "photos", "Photos"),
    _relation(
        "pro-rep-rel-paid-project-management",
        _PROJECT_REPORT,
        _R.DEMOGRAPHICS,
        "Paid Project Management",
        "workdays",
        "paid-project-management",
    ),
    _relation(
        "pro-rep-rel-volunteer-project-management",
        _PROJECT_REPORT,
        _R.DEMOGRAPHICS,
        "Volunteer Project Management",
        "workdays",
        "volunteer-project-management",
    ),
    _relation("pro-rep-rel-full-time-jobs", _PROJECT_REPORT, _R.DEMOGRAPHICS, "Full-time Jobs", "jobs", "full-time"),
    _relation("pro-rep-rel-part-time-jobs", _PROJECT_REPORT, _R.DEMOGRAPHICS, "Part-time Jobs", "jobs", "part-time"),
    _relation(
        "pro-rep-rel-restoration-partners",
        _PROJECT_REPORT,
        _R.DEMOGRAPHICS,
        "Restoration Partners",
        "restorationPartners",
        "direct-income",
    ),
    _relation(
        "pro-rep-rel-hectares-restored",
        _PROJECT_REPORT,
        _R.RESTORATION,
        "Hectares Restored",
        "hectaresRestored",
        "restoration-strategy",
    ),
    _relation(
        "pro-rep-rel-trees-restored",
        _PROJECT_REPORT,
        _R.RESTORATION,
        "Trees Restored",
        "treesRestored",
        "restoration-strategy",
    ),
    # Site report
    _field("site-rep-title", _SITE_REPORT, "title", "Title", "text"),
    _field("site-rep-shared-drive-link", _SITE_REPORT, "shared_drive_link", "Shared drive link", "url"),
    _field("site-rep-technical-narrative", _SITE_REPORT, "technical_narrative", "Technical narrative", "long-text"),
    _field("site-rep-public-narrative", _SITE_REPORT, "public_narrative", "Public narrative", "long-text"),
    _field("site-rep-workdays-paid", _SITE_REPORT, "workdays_paid", "Workdays paid", "number"),
    _field("site-rep-seeds-planted", _SITE_REPORT, "seeds_planted", "Seeds planted", "number"),
    _file("site-rep-col-media", _SITE_REPORT, "media", "Media"),
    _file("site-rep-col-tree-species", _SITE_REPORT, "tree_species", "Tree species", False),
    _relation("site-rep-rel-tree-species", _SITE_REPORT, _R.TREE_SPECIES, "Tree Species", "treeSpecies", "tree-planted"),
    _relation(
        "site-rep-rel-replanting-tree-species",
        _SITE_REPORT,
        _R.TREE_SPECIES,
        "Replanting Species + Count",
        "treeSpecies",
        "replanting",
    ),
    _relation(
        "site-rep-rel-non-tree-species", _SITE_REPORT, _R.TREE_SPECIES, "Non Tree Species", "treeSpecies", "non-tree"
    ),
    _relation("site-rep-rel-disturbances", _SITE_REPORT, _R.DISTURBANCES, "Disturbances", "disturbances", "disturbance"),
    _relation("site-rep-rel-seedings", _SITE_REPORT, _R.SEEDINGS, "Seedings", "seedings"),
    _relation(
        "site-rep-rel-paid-site-establishment",
        _SITE_REPORT,
        _R.DEMOGRAPHICS,
        "Paid Site Establishment",
        "workdays",
        "paid-site-establishment",
    ),
    _relation("site-rep-rel-paid-planting", _SITE_REPORT, _R.DEMOGRAPHICS, "Paid Planting", "workdays", "paid-planting"),
    _relation(
        "site-rep-rel-volunteer-planting",
        _SITE_REPORT,
        _R.DEMOGRAPHICS,
        "Volunteer Planting",
        "workdays",
        "volunteer-planting",
    ),
    # Nursery report
    _field("nur-rep-title", _NURSERY_REPORT, "title", "Title", "text"),
    _field(
        "nur-rep-seedlings-young-trees", _NURSERY_REPORT, "seedlings_young_trees", "Seedlings / young trees", "number"
    ),
    _field("nur-rep-interesting-facts", _NURSERY_REPORT, "interesting_facts", "Interesting facts", "long-text"),
    _file("nur-rep-col-media", _NURSERY_REPORT, "media", "Media"),
    _file(
        "nur-rep-col-tree-seedling-contributions",
        _NURSERY_REPORT,
        "tree_seedling_contributions",
        "Tree seedling contributions",
    ),
    _relation(
        "nur-rep-rel-tree-species", _NURSERY_REPORT, _R.TREE_SPECIES, "Tree Species", "treeSpecies", "nursery-seedling"
    ),
    # Financial report
    _field("fin-rep-title", _FINANCIAL_REPORT, "title", "Title", "text"),
    _field("fin-rep-year-of-report", _FINANCIAL_REPORT, "year_of_report", "Year of report", "number"),
    _file("fin-rep-col-documentation", _FINANCIAL_REPORT, "documentation", "Documentation"),
    _relation("fin-rep-funding-types", _FINANCIAL_REPORT, _R.FUNDING_TYPES, "Funding Type", "fundingType"),
    _relation(
        "fin-rep-financial-indicators",
        _FINANCIAL_REPORT,
        _R.FINANCIAL_INDICATORS,
        "Financial collection",
        "financialIndicators",
    ),
    # Disturbance report
    _field("dis-rep-title", _DISTURBANCE_REPORT, "title", "Title", "text"),
    _field("dis-rep-description", _DISTURBANCE_REPORT, "description", "Description", "long-text"),
    _field("dis-rep-intensity", _DISTURBANCE_REPORT, "intensity", "Intensity", "select", "disturbance-intensity", False),
    _field("dis-rep-date-of-disturbance", _DISTURBANCE_REPORT, "date_of_disturbance", "Date of disturbance", "date"),
    _file("dis-rep-col-media", _DISTURBANCE_REPORT, "media", "Media"),
    _relation(
        "dis-rep-entries",
        _DISTURBANCE_REPORT,
        _R.DISTURBANCE_REPORT_ENTRIES,
        "Disturbance details",
        "disturbanceReportEntries",
    ),
]


def _index(entries: Iterable[LinkedFieldConfig]) -> Mapping[str, LinkedFieldConfig]:
    indexed: dict[str, LinkedFieldConfig] = {}
    for entry in entries:
        if entry.key in indexed:
            raise ConfigurationError(f"Duplicate linked field key: {entry.key}")
        indexed[entry.key] = entry
    return MappingProxyType(indexed)


LINKED_FIELDS: Mapping[str, LinkedFieldConfig] = _index(_ENTRIES)


def get_linked_field_config(key: Optional[str]) -> Optional[LinkedFieldConfig]:
    if key is None:
        return None
    return LINKED_FIELDS.get(key)


def linked_fields_for(model_types: Optional[Iterable[FormModelType]] = None) -> List[LinkedFieldConfig]:
    """List catalog entries for the given model types, in catalog order.

    With no model types, every entry is returned.
    """
    if model_types is None:
        return list(LINKED_FIELDS.values())
    wanted = set(model_types)
    return [config for config in LINKED_FIELDS.values() if config.model_type in wanted]


__all__ = ["LINKED_FIELDS", "MODEL_LABELS", "get_linked_field_config", "linked_fields_for"]
