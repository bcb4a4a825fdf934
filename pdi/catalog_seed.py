"""
Default PDI taxonomy

Twelve checklist sections and eight leakage points, following the
pre-delivery inspection check list used by the detailing garage.
Ids are slugs of the labels so reseeding keeps item identity stable.
"""

import logging
import re
from typing import Any, Dict, List

from pymongo.database import Database

from pdi.catalog import ITEM_COLLECTION, LEAKAGE_COLLECTION, SECTION_COLLECTION

logger = logging.getLogger(__name__)

SECTIONS: List[Dict[str, Any]] = [
    {
        "name": "Body Exterior Glass",
        "order": 1,
        "sectionType": "CHECKLIST",
        "items": [
            "Door locks/operation",
            "Fuel filler cover/petrol cap",
            "General bodywork condition",
            "Corrosion",
        ],
    },
    {
        "name": "Engine Compartment",
        "order": 2,
        "sectionType": "CHECKLIST",
        "items": [
            "Coolant level",
            "Hoses & pipes",
            "Drive belts",
            "Water pump",
            "Power steering fluid level",
            "Clutch fluid level",
            "Brake fluid level",
            "Engine oil level",
            "Engine mounts",
            "Turbo/supercharger",
            "Fuel pump & pipes",
            "Accelerator linkage",
            "Cold starting",
            "Fast idle when engine cold",
            "Noise level when engine cold",
            "Excess fumes/smoke",
        ],
    },
    {
        "name": "Suspension, Underframe & Steering",
        "order": 3,
        "sectionType": "CHECKLIST",
        "items": [
            "Steering joints & ball joints",
            "Chassis members",
            "Power steering",
            "Wheels, hubs & bearings",
            "Springs & suspension unit",
            "Pipes & hoses",
            "Dampers & bushes Gaiters",
            "Sub frames & mountings",
            "Suspension arms, mountings & fixings",
            "Tie bars & anti-roll bars",
            "Anti roll-bar",
            "Evidence of floor/chassis corrosion",
            "Bumper stops & gaiters",
        ],
    },
    {
        "name": "Wheels & Tyres",
        "order": 4,
        "sectionType": "CHECKLIST",
        "items": [
            "Front right tyre",
            "Front left tyre",
            "Rear left tyre",
            "Rear right tyre",
            "Spare tyre",
        ],
    },
    {
        "name": "Interior & Luggage Compartment",
        "order": 5,
        "sectionType": "CHECKLIST",
        "items": [
            "Seat mechanism",
            "Seat belts",
            "Internal mirrors",
            "Boot/tailgate lock",
        ],
    },
    {
        "name": "Electrical Controls",
        "order": 6,
        "sectionType": "CHECKLIST",
        "items": [
            "Ignition lock/starting system",
            "Battery charging system Headlights",
            "Side lights/running lights",
            "Rear lights & number plate illumination",
            "Brake lights",
            "Indicator & hazard lights",
            "Reverse & fog lights",
            "Auxiliary lights",
            "Panel lights/dashboard illumination",
            "Switches & controls",
            "Instrument/controls function Horn",
            "Windows & sunroof operation",
            "Wipers & jet washers Brakes",
            "Master cylinder security",
            "Servo/power system",
            "Flexible hoses",
            "Pipes/unions & connections",
            "Discs & pads",
            "Hand brake operation/adjustments",
            "Hand brake linkage Pedal/linkage",
        ],
    },
    {
        "name": "Clutch & Transmission",
        "order": 7,
        "sectionType": "CHECKLIST",
        "items": [
            "Cables/adjustment",
            "Hydraulic system",
            "Linkages (check for signs of wear)",
            "Casings Mountings",
            "Drive shaft assemblies",
            "Universal & sliding joints",
            "Clutch backlash",
            "Rubber gaiters Prop-shaft(s)",
            "Bearings & supports",
        ],
    },
    {
        "name": "Exhaust System",
        "order": 8,
        "sectionType": "CHECKLIST",
        "items": [
            "Inlet manifold",
            "Outlet manifold Pipes Silencer(s)",
            "Heat shields & mountings",
            "Joints & couplings",
            "Catalytic converter",
            "Overall system condition",
        ],
    },
    {
        "name": "Fuel System",
        "order": 9,
        "sectionType": "CHECKLIST",
        "items": [
            "Fuel tank",
            "Fuel tank fixings",
            "Fuel lines",
            "Breather pipes",
        ],
    },
    {
        "name": "Road Test",
        "order": 10,
        "sectionType": "CHECKLIST",
        "items": [
            "Engine - performance",
            "Engine - noise",
            "Engine - excessive fumes or smoke",
            "Evidence of overheating",
            "Gearbox operation & noise level",
            "Final drive operation & noise level",
            "Clutch operation",
            "Cooling fan operation",
            "Instruments & controls functioning",
        ],
    },
    {
        "name": "General steering & handling",
        "order": 11,
        "sectionType": "CHECKLIST",
        "items": [
            "Footbrake operation",
            "Hand brake operation",
            "Suspension noise",
            "Road holding stability",
        ],
    },
    {
        "name": "Convenience",
        "order": 12,
        "sectionType": "CONVENIENCE",
        "items": [
            "Warning lights",
            "Owners manual",
            "Service book & history",
            "Keys & remote controls",
        ],
    },
]

LEAKAGE_ITEMS: List[Dict[str, Any]] = [
    {"label": "Brake Fluid Leakage", "order": 1},
    {"label": "Coolant Leakage", "order": 2},
    {"label": "Engine Oil Leakage", "order": 3},
    {"label": "Engine Underside Leak", "order": 4},
    {"label": "External Engine Leak", "order": 5},
    {"label": "Fuel Leakage", "order": 6},
    {"label": "Power Steering Fluid Leakage", "order": 7},
    {"label": "Transmission Fluid Leakage", "order": 8},
]


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def seed_catalog(database: Database, force: bool = False) -> bool:
    """Install the default taxonomy. Returns False when a catalog already exists and force is off."""
    if not force and database[SECTION_COLLECTION].count_documents({}, limit=1):
        return False

    database[ITEM_COLLECTION].delete_many({})
    database[SECTION_COLLECTION].delete_many({})
    database[LEAKAGE_COLLECTION].delete_many({})

    item_count = 0
    for section in SECTIONS:
        section_slug = slugify(section["name"])
        section_id = f"pdi-section-{section_slug}"
        database[SECTION_COLLECTION].insert_one({
            "_id": section_id,
            "name": section["name"],
            "order": section["order"],
            "sectionType": section["sectionType"],
        })
        database[ITEM_COLLECTION].insert_many([
            {
                "_id": f"pdi-item-{section_slug}-{slugify(label)}",
                "sectionId": section_id,
                "label": label,
                "order": i,
            }
            for i, label in enumerate(section["items"], 1)
        ])
        item_count += len(section["items"])

    database[LEAKAGE_COLLECTION].insert_many([
        {"_id": f"leakage-{slugify(item['label'])}", "label": item["label"], "order": item["order"]}
        for item in LEAKAGE_ITEMS
    ])

    logger.info(
        "Seeded PDI catalog: %d sections, %d checklist items, %d leakage items",
        len(SECTIONS),
        item_count,
        len(LEAKAGE_ITEMS),
    )
    return True
