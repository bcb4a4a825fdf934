"""
One inspector's working copy of an inspection.

A session starts as a DRAFT against a single catalog snapshot, collects
answers and damage markers, and becomes COMPLETED once a submission
succeeds. Reopening a stored record gives a session whose next submit
updates that record instead of creating a new one. A failed submit leaves
the session untouched so the inspector can fix things and try again.
"""

import logging
from typing import Any, List, Optional, Union

from pdi.assembler import assemble
from pdi.catalog import Catalog, CatalogLoader
from pdi.damage import DamageMarkerBoard
from pdi.progress import leakage_progress, overall_progress, section_progress
from pdi.responses import ResponseStore
from pdi.submission import SubmissionPipeline
from schemas import (
    InspectionForm,
    InspectionPayload,
    InspectionRecord,
    InspectionStatus,
    ItemId,
    ItemStatus,
    LeakageItemId,
    LeakageProgress,
    Progress,
    SectionProgress,
)

logger = logging.getLogger(__name__)


class InspectionSession:
    def __init__(
        self,
        catalog: Catalog,
        form: Optional[InspectionForm] = None,
        responses: Optional[ResponseStore] = None,
        damage: Optional[DamageMarkerBoard] = None,
        inspection_id: Optional[str] = None,
        status: InspectionStatus = InspectionStatus.DRAFT,
    ):
        self.catalog = catalog
        self.form = form or InspectionForm()
        self.responses = responses or ResponseStore()
        self.damage = damage or DamageMarkerBoard()
        self.inspection_id = inspection_id
        self.status = status

    @classmethod
    def start(cls, loader: CatalogLoader) -> "InspectionSession":
        """New draft. Raises ReferenceDataUnavailable when the catalog cannot be loaded."""
        return cls(loader.load())

    @classmethod
    def reopen(cls, catalog: Catalog, record: InspectionRecord) -> "InspectionSession":
        form = InspectionForm.model_validate(record.model_dump(include=set(InspectionForm.model_fields)))
        return cls(
            catalog,
            form=form,
            responses=ResponseStore.from_records(record.responses, record.leakage_responses),
            damage=DamageMarkerBoard.loads(record.vehicle_damage_data),
            inspection_id=record.id,
            status=record.status,
        )

    @property
    def is_edit(self) -> bool:
        return self.inspection_id is not None

    def update_form(self, **fields: Any) -> None:
        """Change form fields, given by field name or by wire (camelCase) name."""
        names = {f.alias: name for name, f in InspectionForm.model_fields.items() if f.alias}
        changes = {names.get(k, k): v for k, v in fields.items()}
        self.form = InspectionForm.model_validate({**self.form.model_dump(), **changes})

    def answer(self, item_id: ItemId, status: Union[ItemStatus, str], notes: str = "") -> None:
        if item_id not in self.catalog.item_ids:
            raise KeyError(f"Unknown checklist item: {item_id}")
        self.responses.set_checklist_response(item_id, status, notes)

    def mark_leakage(self, item_id: LeakageItemId, found: bool, notes: Optional[str] = None) -> None:
        if item_id not in self.catalog.leakage_item_ids:
            raise KeyError(f"Unknown leakage item: {item_id}")
        self.responses.set_leakage_response(item_id, found, notes)

    def progress(self) -> Progress:
        return overall_progress(self.catalog.sections, self.responses.get_all().checklist)

    def sections_progress(self) -> List[SectionProgress]:
        checklist = self.responses.get_all().checklist
        return [section_progress(s, checklist) for s in self.catalog.sections]

    def leakage_progress(self) -> LeakageProgress:
        return leakage_progress(self.catalog.leakage_items, self.responses.get_all().leakage)

    def assemble(self) -> InspectionPayload:
        snapshot = self.responses.get_all()
        return assemble(self.form, snapshot.checklist, snapshot.leakage, self.damage.to_damage_data(), catalog=self.catalog)

    def submit(self, pipeline: SubmissionPipeline) -> str:
        payload = self.assemble()
        inspection_id = pipeline.submit(payload, existing_id=self.inspection_id)
        self.inspection_id = inspection_id
        self.status = InspectionStatus.COMPLETED
        progress = self.progress()
        logger.info("Inspection %s submitted (%d/%d items answered)", inspection_id, progress.answered, progress.total)
        return inspection_id
