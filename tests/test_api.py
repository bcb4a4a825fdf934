import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from pdi.catalog import ITEM_COLLECTION
from pdi.notifier import NOTIFICATION_COLLECTION
from pdi.repository import INSPECTION_COLLECTION


@pytest.fixture
def empty_client(mongo_db):
    from main import app, get_database

    app.dependency_overrides[get_database] = lambda: mongo_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def saved_id(client, form_fields):
    body = dict(form_fields, responses=[
        {"itemId": "pdi-item-road-test-clutch-operation", "status": "WARN", "notes": "judder"},
        {"itemId": "pdi-item-fuel-system-fuel-tank", "status": "PASS", "notes": ""},
    ], leakageResponses=[
        {"leakageItemId": "leakage-coolant-leakage", "found": False},
    ])
    res = client.post("/pdi/save", json=body)
    assert res.status_code == 201
    return res.json()["id"]


def test_root(client):
    assert client.get("/").json()["message"] == "PDI Inspection API running"


def test_seed_is_idempotent(client):
    assert client.post("/seed").json()["message"] == "Already seeded"


def test_structure(client):
    sections = client.get("/pdi/structure").json()

    assert len(sections) == 12
    assert sections[0]["name"] == "Body Exterior Glass"
    assert sections[-1]["sectionType"] == "CONVENIENCE"
    assert sum(len(s["items"]) for s in sections) == 98
    assert len(client.get("/pdi/leakage-items").json()) == 8


def test_structure_without_catalog_is_unavailable(empty_client):
    res = empty_client.get("/pdi/structure")
    assert res.status_code == 503
    assert res.json()["retry"] is True


def test_save_and_fetch(client, saved_id):
    res = client.get(f"/pdi/{saved_id}")
    assert res.status_code == 200
    record = res.json()
    assert record["id"] == saved_id
    assert record["status"] == "COMPLETED"
    assert record["engineNumber"] == "G4FG-1234567"
    assert record["responses"][0]["itemId"] == "pdi-item-road-test-clutch-operation"
    assert record["vehicleDamageData"] == '{"markers":[]}'


def test_save_reports_missing_fields(client, form_fields):
    form_fields["customerName"] = ""
    res = client.post("/pdi/save", json=form_fields)

    assert res.status_code == 422
    assert res.json()["fields"] == ["customerName"]
    assert res.json()["details"]["customerName"] == "Customer Name is required"


def test_update_replaces_record(client, seeded_db, saved_id, form_fields):
    body = dict(form_fields, odometer="55", responses=[
        {"itemId": "pdi-item-road-test-clutch-operation", "status": "PASS"},
    ])
    res = client.put(f"/pdi/{saved_id}", json=body)

    assert res.status_code == 200
    assert res.json() == {"success": True, "id": saved_id, "message": "Inspection updated successfully"}
    assert seeded_db[INSPECTION_COLLECTION].count_documents({}) == 1
    record = client.get(f"/pdi/{saved_id}").json()
    assert record["odometer"] == "55"
    assert record["leakageResponses"] == []


def test_update_of_unknown_inspection(client, form_fields):
    res = client.put(f"/pdi/{ObjectId()}", json=form_fields)
    assert res.status_code == 404


def test_unknown_or_malformed_id(client):
    assert client.get(f"/pdi/{ObjectId()}").status_code == 404
    assert client.get("/pdi/not-an-id").status_code == 404


def test_list_by_user(client, form_fields):
    client.post("/pdi/save", json=dict(form_fields, userId="cust-42"))
    client.post("/pdi/save", json=form_fields)

    assert len(client.get("/pdi").json()) == 2
    mine = client.get("/pdi", params={"userId": "cust-42"}).json()
    assert [r["userId"] for r in mine] == ["cust-42"]
    assert "responses" not in mine[0]


def test_progress(client, saved_id):
    progress = client.get(f"/pdi/{saved_id}/progress").json()

    assert progress["checklist"]["answered"] == 2
    assert progress["checklist"]["total"] == 98
    assert progress["leakage"] == {"answered": 1, "total": 8, "percent": 12.5, "foundCount": 0}
    road = next(s for s in progress["sections"] if s["sectionId"] == "pdi-section-road-test")
    assert (road["answered"], road["warnCount"]) == (1, 1)


def test_report(client, saved_id):
    report = client.get(f"/pdi/{saved_id}/report").json()

    assert [s["name"] for s in report["sections"]] == ["Fuel System", "Road Test"]
    assert report["summary"]["warnCount"] == 1
    assert report["inspection"]["vin"] == "MALPC81CLRM123456"


def test_send_email_queues_notice(client, seeded_db, saved_id):
    assert seeded_db[NOTIFICATION_COLLECTION].count_documents({"inspectionId": saved_id}) == 1

    res = client.post(f"/pdi/{saved_id}/send-email")

    assert res.status_code == 200
    assert seeded_db[NOTIFICATION_COLLECTION].count_documents({"inspectionId": saved_id}) == 2


def test_send_email_requires_address(client, form_fields):
    form_fields.pop("customerEmail")
    inspection_id = client.post("/pdi/save", json=form_fields).json()["id"]

    res = client.post(f"/pdi/{inspection_id}/send-email")
    assert res.status_code == 400


def test_settings_section_and_item_lifecycle(client, seeded_db):
    section = client.post("/pdi/settings", json={"type": "SECTION", "name": "Accessories"}).json()
    assert section["order"] == 13
    assert section["sectionType"] == "CHECKLIST"

    item = client.post("/pdi/settings", json={"type": "ITEM", "sectionId": section["id"], "label": "Floor mats"}).json()
    assert item["sectionId"] == section["id"]

    res = client.put("/pdi/settings", json={"type": "ITEM", "id": item["id"], "label": "Rubber floor mats"})
    assert res.json()["label"] == "Rubber floor mats"

    structure = client.get("/pdi/structure").json()
    assert structure[-1]["name"] == "Accessories"
    assert structure[-1]["items"][0]["label"] == "Rubber floor mats"

    res = client.delete("/pdi/settings", params={"id": section["id"], "type": "SECTION"})
    assert res.json() == {"success": True}
    assert seeded_db[ITEM_COLLECTION].count_documents({"sectionId": section["id"]}) == 0


def test_settings_validation(client):
    assert client.post("/pdi/settings", json={"type": "SECTION"}).status_code == 400
    assert client.post("/pdi/settings", json={"type": "ITEM", "label": "Horn"}).status_code == 400
    res = client.post("/pdi/settings", json={"type": "ITEM", "sectionId": "no-such-section", "label": "Horn"})
    assert res.status_code == 404
    assert client.delete("/pdi/settings", params={"id": "no-such-item", "type": "ITEM"}).status_code == 404


def test_reorder_leakage_items(client):
    res = client.put("/pdi/settings", json={
        "type": "REORDER",
        "reorderType": "LEAKAGE",
        "items": [{"id": "leakage-fuel-leakage", "order": 0}],
    })
    assert res.json() == {"success": True, "updated": 1}
    assert client.get("/pdi/leakage-items").json()[0]["label"] == "Fuel Leakage"

    bad = client.put("/pdi/settings", json={"type": "REORDER", "reorderType": "WIDGET", "items": []})
    assert bad.status_code == 400


@pytest.mark.parametrize(
    "blob",
    [
        "not json",
        '{"markers": [{"id": "m1", "x": 150, "y": 20, "type": "dent", "code": "D", "severity": "minor", "view": "top"}]}',
    ],
)
def test_save_and_update_reject_malformed_damage_data(client, seeded_db, saved_id, form_fields, blob):
    res = client.post("/pdi/save", json=dict(form_fields, vehicleDamageData=blob))
    assert res.status_code == 422
    assert res.json()["fields"] == ["vehicleDamageData"]

    res = client.put(f"/pdi/{saved_id}", json=dict(form_fields, vehicleDamageData=blob))
    assert res.status_code == 422
    assert seeded_db[INSPECTION_COLLECTION].count_documents({}) == 1
    assert client.get(f"/pdi/{saved_id}").json()["vehicleDamageData"] == '{"markers":[]}'


def test_report_survives_unreadable_stored_damage_data(client, seeded_db, saved_id):
    seeded_db[INSPECTION_COLLECTION].update_one({"_id": ObjectId(saved_id)}, {"$set": {"vehicleDamageData": "not json"}})

    res = client.get(f"/pdi/{saved_id}/report")

    assert res.status_code == 200
    assert res.json()["damageData"] == {"markers": []}
    assert res.json()["summary"]["damageCount"] == 0
