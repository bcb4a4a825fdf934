import json

import pytest

from pdi.assembler import assemble, damage_from_payload, responses_from_payload, validate_form, validate_payload
from pdi.damage import DamageMarkerBoard
from pdi.errors import ValidationFailed
from pdi.responses import ResponseStore
from schemas import InspectionForm, InspectionPayload, VehicleDamageData


def _answer_everything(catalog):
    store = ResponseStore()
    for item in catalog.checklist_items():
        store.set_checklist_response(item.id, "PASS")
    for item in catalog.leakage_items:
        store.set_leakage_response(item.id, False)
    return store


def test_missing_customer_name_fails_even_when_fully_answered(small_catalog, form_fields):
    store = _answer_everything(small_catalog)
    snapshot = store.get_all()
    form_fields["customerName"] = ""

    with pytest.raises(ValidationFailed) as exc_info:
        assemble(form_fields, snapshot.checklist, snapshot.leakage, VehicleDamageData())

    assert exc_info.value.fields == ["customerName"]
    assert exc_info.value.messages["customerName"] == "Customer Name is required"


def test_every_missing_field_is_reported():
    with pytest.raises(ValidationFailed) as exc_info:
        validate_form(InspectionForm(customer_name="  ", vehicle_make="Tata"))

    assert set(exc_info.value.fields) == {
        "customerName",
        "customerPhone",
        "vehicleModel",
        "vehicleColor",
        "vehicleYear",
        "engineNumber",
        "vin",
        "odometer",
    }


def test_invalid_email_is_a_field_error(form_fields):
    form_fields["customerEmail"] = "ravi.kumar"
    with pytest.raises(ValidationFailed) as exc_info:
        validate_form(InspectionForm.model_validate(form_fields))
    assert exc_info.value.fields == ["customerEmail"]


def test_blank_email_is_allowed(form_fields):
    form_fields["customerEmail"] = ""
    validate_form(InspectionForm.model_validate(form_fields))


def test_zero_answers_is_a_valid_submission(form_fields):
    payload = assemble(form_fields, {}, {}, VehicleDamageData())

    assert payload.responses == []
    assert payload.leakage_responses == []
    assert payload.customer_name == "Ravi Kumar"
    assert json.loads(payload.vehicle_damage_data) == {"markers": []}


def test_arrays_follow_catalog_order(small_catalog, form_fields):
    store = ResponseStore()
    store.set_checklist_response("conv-1", "PASS")
    store.set_checklist_response("stale-item", "WARN")
    store.set_checklist_response("eng-2", "FAIL", "cracked")
    store.set_checklist_response("body-1", "PASS")
    store.set_leakage_response("leak-fuel", True)
    store.set_leakage_response("leak-oil", False)
    snapshot = store.get_all()

    payload = assemble(form_fields, snapshot.checklist, snapshot.leakage, VehicleDamageData(), catalog=small_catalog)

    assert [r.item_id for r in payload.responses] == ["body-1", "eng-2", "conv-1", "stale-item"]
    assert [r.leakage_item_id for r in payload.leakage_responses] == ["leak-oil", "leak-fuel"]


def test_without_catalog_arrays_follow_answer_order(form_fields):
    store = ResponseStore()
    store.set_checklist_response("b", "PASS")
    store.set_checklist_response("a", "PASS")
    snapshot = store.get_all()

    payload = assemble(form_fields, snapshot.checklist, snapshot.leakage, VehicleDamageData())
    assert [r.item_id for r in payload.responses] == ["b", "a"]


def test_wire_shape(form_fields):
    store = ResponseStore()
    store.set_checklist_response("eng-1", "WARN", "low")
    store.set_leakage_response("leak-oil", True, "rocker cover")
    board = DamageMarkerBoard()
    board.add_marker("top", 25, 75, "dent", "moderate")
    snapshot = store.get_all()

    wire = assemble(form_fields, snapshot.checklist, snapshot.leakage, board.to_damage_data()).model_dump(by_alias=True, mode="json")

    assert wire["responses"] == [{"itemId": "eng-1", "status": "WARN", "notes": "low"}]
    assert wire["leakageResponses"] == [{"leakageItemId": "leak-oil", "found": True, "notes": "rocker cover"}]
    assert wire["engineNumber"] == "G4FG-1234567"
    assert wire["userId"] is None
    assert isinstance(wire["vehicleDamageData"], str)
    assert json.loads(wire["vehicleDamageData"])["markers"][0]["code"] == "D"


def test_round_trip_reproduces_store(small_catalog, form_fields):
    store = ResponseStore()
    store.set_checklist_response("eng-3", "FAIL", "dirty oil")
    store.set_checklist_response("body-2", "PASS", "")
    store.set_checklist_response("conv-1", "WARN", "manual missing pages")
    store.set_leakage_response("leak-fuel", True, "filler neck")
    store.set_leakage_response("leak-oil", False)
    board = DamageMarkerBoard()
    board.add_marker("interior", 40, 60, "stain", "minor")
    original = store.get_all()

    payload = assemble(form_fields, original.checklist, original.leakage, board.to_damage_data(), catalog=small_catalog)
    on_the_wire = payload.model_dump_json(by_alias=True)
    rebuilt = responses_from_payload(InspectionPayload.model_validate_json(on_the_wire))

    assert rebuilt.checklist == original.checklist
    assert rebuilt.leakage == original.leakage
    assert damage_from_payload(payload) == board.to_damage_data()


@pytest.mark.parametrize("blob", ["not json", '{"markers": [{"id": "m1", "x": 150}]}'])
def test_malformed_damage_blob_is_a_field_error(form_fields, blob):
    payload = InspectionPayload.model_validate(dict(form_fields, vehicleDamageData=blob))

    with pytest.raises(ValidationFailed) as exc_info:
        validate_payload(payload)
    assert exc_info.value.fields == ["vehicleDamageData"]

    assert damage_from_payload(payload) == VehicleDamageData()
