"""
Database Schemas

Pydantic models for the PDI catalog, inspector answers, damage markers and
the inspection record. Field names are snake_case in Python and camelCase on
the wire and in MongoDB (dump with by_alias=True).

Collections:
  pdi_section, pdi_item, pdi_leakage_item  - reference catalog
  pdi_inspection                           - submitted inspections
  pdi_notification                         - report-ready outbox
"""

from enum import Enum
from typing import List, Literal, NewType, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

ItemId = NewType("ItemId", str)
LeakageItemId = NewType("LeakageItemId", str)
MarkerId = NewType("MarkerId", str)


class SectionType(str, Enum):
    CHECKLIST = "CHECKLIST"
    LEAKAGE = "LEAKAGE"
    CONVENIENCE = "CONVENIENCE"


class ItemStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    WARN = "WARN"


class InspectionStatus(str, Enum):
    DRAFT = "DRAFT"
    COMPLETED = "COMPLETED"


DamageType = Literal[
    "scratch",
    "dent",
    "crack",
    "chip",
    "rust",
    "paint-damage",
    "broken",
    "missing",
    "tear",
    "stain",
    "not-working",
    "other",
]
DamageCode = Literal["D", "S", "CH", "CR", "TR", "ST", "SC", "BR", "NW", "RS", "MS", "OT"]
DamageSeverity = Literal["minor", "moderate", "major"]
DamageView = Literal["top", "side", "interior", "boot"]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CatalogModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# Reference catalog

class ChecklistItem(CatalogModel):
    """Collection: pdi_item"""
    id: ItemId
    label: str
    order: int = 0


class ChecklistSection(CatalogModel):
    """Collection: pdi_section (items joined from pdi_item)"""
    id: str
    name: str
    order: int = 0
    section_type: SectionType = SectionType.CHECKLIST
    items: Tuple[ChecklistItem, ...] = ()


class LeakageItem(CatalogModel):
    """Collection: pdi_leakage_item"""
    id: LeakageItemId
    label: str
    order: int = 0


# Inspector answers

class ItemResponse(WireModel):
    item_id: ItemId
    status: ItemStatus
    notes: str = ""


class LeakageResponse(WireModel):
    leakage_item_id: LeakageItemId
    found: bool
    notes: Optional[str] = None


# Damage marking

class DamageMarker(WireModel):
    id: MarkerId
    x: float = Field(..., ge=0, le=100, description="Percent of diagram width")
    y: float = Field(..., ge=0, le=100, description="Percent of diagram height")
    type: DamageType
    code: DamageCode
    severity: DamageSeverity
    description: Optional[str] = None
    view: DamageView


class VehicleDamageData(WireModel):
    markers: List[DamageMarker] = Field(default_factory=list)
    notes: Optional[str] = None


# Inspection record

EMPTY_DAMAGE_DATA = '{"markers":[]}'


class InspectionForm(WireModel):
    """Scalar customer/vehicle/inspection fields as typed into the form."""
    customer_name: str = ""
    customer_phone: str = ""
    customer_email: Optional[str] = None

    vehicle_make: str = ""
    vehicle_model: str = ""
    vehicle_color: str = ""
    vehicle_year: str = ""
    engine_number: str = ""
    vin: str = Field("", description="Chassis number / VIN")
    odometer: str = ""

    inspected_by: Optional[str] = None
    admin_comments: Optional[str] = None
    inspection_date: Optional[str] = None
    digital_signature: Optional[str] = Field(None, description="Inspector signature, plain text")
    customer_signature: Optional[str] = Field(None, description="Customer signature, plain text")
    user_id: Optional[str] = Field(None, description="Existing customer account to link")


class InspectionPayload(InspectionForm):
    """Wire shape of a submitted inspection."""
    responses: List[ItemResponse] = Field(default_factory=list)
    leakage_responses: List[LeakageResponse] = Field(default_factory=list)
    vehicle_damage_data: str = Field(EMPTY_DAMAGE_DATA, description="Serialized VehicleDamageData")


class InspectionRecord(InspectionPayload):
    """Collection: pdi_inspection"""
    id: Optional[str] = None
    status: InspectionStatus = InspectionStatus.COMPLETED


# Progress

class Progress(WireModel):
    answered: int = 0
    total: int = 0

    @computed_field
    @property
    def percent(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.answered / self.total * 100, 1)


class SectionProgress(Progress):
    section_id: str = ""
    pass_count: int = 0
    fail_count: int = 0
    warn_count: int = 0


class LeakageProgress(Progress):
    found_count: int = 0
