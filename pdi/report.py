"""
Report data for a stored inspection, laid out the way the PDF report reads:
sections in catalog order with their answered items, the leakage table,
damage markers and a summary of counts. Rendering is done elsewhere.
"""

from typing import Any, Dict, List

from pdi.assembler import damage_from_payload, responses_from_payload
from pdi.catalog import Catalog
from pdi.progress import leakage_progress, overall_progress, section_progress
from schemas import InspectionRecord


def build_report_data(catalog: Catalog, record: InspectionRecord) -> Dict[str, Any]:
    answers = responses_from_payload(record)
    damage = damage_from_payload(record)

    sections: List[Dict[str, Any]] = []
    for section in catalog.sections:
        items = []
        for item in section.items:
            response = answers.checklist.get(item.id)
            if response is None:
                continue
            items.append({"label": item.label, "status": response.status.value, "notes": response.notes})
        if items:
            sections.append({
                "name": section.name,
                "sectionType": section.section_type.value,
                "items": items,
                "progress": section_progress(section, answers.checklist).model_dump(by_alias=True),
            })

    leakage_items = []
    for item in catalog.leakage_items:
        response = answers.leakage.get(item.id)
        if response is not None:
            leakage_items.append({"label": item.label, "found": response.found, "notes": response.notes})

    summary = {
        "checklist": overall_progress(catalog.sections, answers.checklist).model_dump(by_alias=True),
        "leakage": leakage_progress(catalog.leakage_items, answers.leakage).model_dump(by_alias=True),
        "passCount": sum(s["progress"]["passCount"] for s in sections),
        "failCount": sum(s["progress"]["failCount"] for s in sections),
        "warnCount": sum(s["progress"]["warnCount"] for s in sections),
        "damageCount": len(damage.markers),
    }

    inspection = record.model_dump(by_alias=True, exclude={"responses", "leakage_responses", "vehicle_damage_data"})

    return {
        "inspection": inspection,
        "sections": sections,
        "leakageItems": leakage_items,
        "damageData": damage.model_dump(by_alias=True, exclude_none=True),
        "summary": summary,
    }
