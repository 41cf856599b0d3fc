"""Linked field catalog listing for form builders."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Query

from linked_fields.errors import SubmissionValidationError
from linked_fields.logic.linked_field_catalog import MODEL_LABELS, linked_fields_for
from linked_fields.models.linked_field import LinkedFieldConfig, ResourceKind
from linked_fields.models.owners import FormModelType


router = APIRouter()
logger = logging.getLogger(__name__)


def _parse_model_types(values: Optional[List[str]]) -> Optional[List[FormModelType]]:
    if not values:
        return None
    model_types: List[FormModelType] = []
    # Accept both ?formModelTypes=a&formModelTypes=b and ?formModelTypes=a,b
    for token in (part.strip() for value in values for part in value.split(",")):
        if not token:
            continue
        try:
            model_types.append(FormModelType(token))
        except ValueError as e:
            raise SubmissionValidationError(
                f"Unknown form model type: {token}", code="LINKED_FIELD_UNKNOWN_MODEL_TYPE"
            ) from e
    return model_types or None


def _to_listing(config: LinkedFieldConfig) -> dict:
    is_property = config.resource_kind == ResourceKind.PROPERTY
    is_relation = config.resource_kind == ResourceKind.RELATION
    return {
        "id": config.key,
        "formModelType": config.model_type.value,
        "label": config.label,
        "name": f"{config.label} ({MODEL_LABELS[config.model_type]})",
        "inputType": config.input_type,
        "optionListKey": config.option_list_key if is_property else None,
        "multiChoice": config.multi_choice if not is_relation else None,
        "collection": config.collection if is_relation else None,
    }


@router.get(
    "/linked-fields",
    summary="List linked fields available to form questions",
    operation_id="linkedFieldsIndex",
    tags=["LinkedFields"],
)
def list_linked_fields(form_model_types: Optional[List[str]] = Query(None, alias="formModelTypes")):
    model_types = _parse_model_types(form_model_types)
    configs = linked_fields_for(model_types)
    logger.info("linked_fields_index model_types=%s count=%s", model_types, len(configs))
    return {"data": [_to_listing(config) for config in configs]}


__all__ = ["router"]
