"""
Inspection assembly

Turns the live form state (scalar fields, answer maps, damage board) into the
payload that is sent for persistence. Tabular answers become ordered arrays;
damage data becomes an opaque JSON string. A partially answered checklist is
a valid submission; only the customer and vehicle fields are required.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import EmailStr, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from pdi.catalog import Catalog
from pdi.damage import parse_damage_data
from pdi.errors import ValidationFailed
from pdi.responses import ResponseSnapshot
from schemas import (
    InspectionForm,
    InspectionPayload,
    ItemId,
    ItemResponse,
    LeakageItemId,
    LeakageResponse,
    VehicleDamageData,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: Dict[str, str] = {
    "customer_name": "Customer Name is required",
    "customer_phone": "Mobile Number is required",
    "vehicle_make": "Vehicle Make is required",
    "vehicle_model": "Vehicle Model is required",
    "vehicle_color": "Vehicle Color is required",
    "vehicle_year": "Manufacturing Year is required",
    "engine_number": "Engine Number is required",
    "vin": "Chassis Number is required",
    "odometer": "Odometer Reading is required",
}

_email = TypeAdapter(EmailStr)


def _form_errors(form: InspectionForm) -> Dict[str, str]:
    messages: Dict[str, str] = {}

    for name, message in REQUIRED_FIELDS.items():
        value = getattr(form, name)
        if value is None or not str(value).strip():
            messages[to_camel(name)] = message

    if form.customer_email:
        try:
            _email.validate_python(form.customer_email)
        except ValidationError:
            messages["customerEmail"] = "Invalid email"

    return messages


def validate_form(form: InspectionForm) -> None:
    """Raise ValidationFailed listing every offending field by its wire name."""
    messages = _form_errors(form)
    if messages:
        raise ValidationFailed(list(messages), messages)


def validate_payload(payload: InspectionPayload) -> None:
    """Form rules plus a well-formed damage blob, checked before anything is stored."""
    messages = _form_errors(payload)

    if payload.vehicle_damage_data:
        try:
            VehicleDamageData.model_validate_json(payload.vehicle_damage_data)
        except ValidationError:
            messages["vehicleDamageData"] = "Invalid vehicle damage data"

    if messages:
        raise ValidationFailed(list(messages), messages)


def _catalog_order(ids: List[str], positions: Dict[str, int]) -> List[str]:
    # unknown ids keep their relative order after the catalogued ones
    fallback = len(positions)
    return sorted(ids, key=lambda i: positions.get(i, fallback))


def assemble(
    form: Union[InspectionForm, Mapping[str, Any]],
    responses: Mapping[ItemId, ItemResponse],
    leakage_responses: Mapping[LeakageItemId, LeakageResponse],
    damage_data: VehicleDamageData,
    catalog: Optional[Catalog] = None,
) -> InspectionPayload:
    if not isinstance(form, InspectionForm):
        form = InspectionForm.model_validate(dict(form))

    validate_form(form)

    item_ids = list(responses)
    leakage_ids = list(leakage_responses)
    if catalog is not None:
        item_ids = _catalog_order(item_ids, {item.id: i for i, item in enumerate(catalog.checklist_items())})
        leakage_ids = _catalog_order(leakage_ids, {item.id: i for i, item in enumerate(catalog.leakage_items)})

    payload = InspectionPayload(
        **form.model_dump(include=set(InspectionForm.model_fields)),
        responses=[
            ItemResponse(item_id=i, status=responses[i].status, notes=responses[i].notes or "")
            for i in item_ids
        ],
        leakage_responses=[
            LeakageResponse(leakage_item_id=i, found=leakage_responses[i].found, notes=leakage_responses[i].notes)
            for i in leakage_ids
        ],
        vehicle_damage_data=damage_data.model_dump_json(by_alias=True, exclude_none=True),
    )
    logger.debug(
        "Assembled inspection for %s: %d answers, %d leakage answers, %d markers",
        payload.vin,
        len(payload.responses),
        len(payload.leakage_responses),
        len(damage_data.markers),
    )
    return payload


def responses_from_payload(payload: InspectionPayload) -> ResponseSnapshot:
    """Rebuild the id-keyed answer maps from a payload or stored record."""
    return ResponseSnapshot(
        checklist={r.item_id: r for r in payload.responses},
        leakage={r.leakage_item_id: r for r in payload.leakage_responses},
    )


def damage_from_payload(payload: InspectionPayload) -> VehicleDamageData:
    return parse_damage_data(payload.vehicle_damage_data)
