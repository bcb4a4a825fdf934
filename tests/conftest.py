import mongomock
import pytest
from fastapi.testclient import TestClient

from pdi.catalog import Catalog
from pdi.catalog_seed import seed_catalog
from schemas import ChecklistItem, ChecklistSection, LeakageItem, SectionType


@pytest.fixture
def mongo_db():
    return mongomock.MongoClient()["pdi_test"]


@pytest.fixture
def seeded_db(mongo_db):
    seed_catalog(mongo_db)
    return mongo_db


@pytest.fixture
def small_catalog():
    """Three sections with 2, 3 and 1 items, plus two leakage points."""
    return Catalog(
        sections=(
            ChecklistSection(id="s-body", name="Body", order=1, items=(
                ChecklistItem(id="body-1", label="Doors", order=1),
                ChecklistItem(id="body-2", label="Corrosion", order=2),
            )),
            ChecklistSection(id="s-engine", name="Engine", order=2, items=(
                ChecklistItem(id="eng-1", label="Coolant level", order=1),
                ChecklistItem(id="eng-2", label="Drive belts", order=2),
                ChecklistItem(id="eng-3", label="Engine oil level", order=3),
            )),
            ChecklistSection(id="s-conv", name="Convenience", order=3, section_type=SectionType.CONVENIENCE, items=(
                ChecklistItem(id="conv-1", label="Owners manual", order=1),
            )),
        ),
        leakage_items=(
            LeakageItem(id="leak-oil", label="Engine Oil Leakage", order=1),
            LeakageItem(id="leak-fuel", label="Fuel Leakage", order=2),
        ),
    )


@pytest.fixture
def form_fields():
    return {
        "customerName": "Ravi Kumar",
        "customerPhone": "+91 98450 12345",
        "customerEmail": "ravi.kumar@autohaus.in",
        "vehicleMake": "Hyundai",
        "vehicleModel": "Creta",
        "vehicleColor": "Titan Grey",
        "vehicleYear": "2024",
        "engineNumber": "G4FG-1234567",
        "vin": "MALPC81CLRM123456",
        "odometer": "12",
        "inspectedBy": "A. Menon",
    }


@pytest.fixture
def client(seeded_db):
    from main import app, get_database

    app.dependency_overrides[get_database] = lambda: seeded_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
