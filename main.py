import logging
from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database

import config
import database
from pdi.assembler import responses_from_payload
from pdi.catalog import CatalogEditor, CatalogLoader
from pdi.catalog_seed import seed_catalog
from pdi.errors import (
    CatalogEntryNotFound,
    InspectionNotFound,
    ReferenceDataUnavailable,
    SubmissionFailed,
    ValidationFailed,
)
from pdi.notifier import LoggingNotifier, OutboxNotifier, ReportNotifier
from pdi.progress import leakage_progress, overall_progress, section_progress
from pdi.report import build_report_data
from pdi.repository import InspectionRepository
from pdi.submission import SubmissionPipeline
from schemas import InspectionPayload, SectionType, WireModel

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependencies

def get_database() -> Optional[Database]:
    return database.get_db()


def require_database(db: Optional[Database] = Depends(get_database)) -> Database:
    if db is None:
        raise HTTPException(status_code=503, detail="Database not available")
    return db


def get_catalog_loader(db: Optional[Database] = Depends(get_database)) -> CatalogLoader:
    return CatalogLoader(db)


def get_repository(db: Optional[Database] = Depends(get_database)) -> InspectionRepository:
    return InspectionRepository(db)


def get_notifier(db: Optional[Database] = Depends(get_database)) -> ReportNotifier:
    if config.NOTIFIER == "log" or db is None:
        return LoggingNotifier()
    return OutboxNotifier(db)


def get_pipeline(
    repository: InspectionRepository = Depends(get_repository),
    notifier: ReportNotifier = Depends(get_notifier),
) -> SubmissionPipeline:
    return SubmissionPipeline(repository, notifier)


# Error mapping

@app.exception_handler(ReferenceDataUnavailable)
async def reference_data_unavailable(request: Request, exc: ReferenceDataUnavailable):
    return JSONResponse(status_code=503, content={"error": "Failed to load PDI structure", "detail": str(exc), "retry": True})


@app.exception_handler(ValidationFailed)
async def validation_failed(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=422, content={"error": "Validation Error", "fields": exc.fields, "details": exc.messages})


@app.exception_handler(SubmissionFailed)
async def submission_failed(request: Request, exc: SubmissionFailed):
    if isinstance(exc.__cause__, InspectionNotFound):
        return JSONResponse(status_code=404, content={"error": "Inspection not found"})
    return JSONResponse(status_code=502, content={"error": str(exc)})


@app.exception_handler(InspectionNotFound)
async def inspection_not_found(request: Request, exc: InspectionNotFound):
    return JSONResponse(status_code=404, content={"error": "Inspection not found"})


@app.exception_handler(CatalogEntryNotFound)
async def catalog_entry_not_found(request: Request, exc: CatalogEntryNotFound):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.get("/")
def read_root():
    return {"message": "PDI Inspection API running"}


# Seed the default checklist taxonomy
@app.post("/seed")
def seed_demo(db: Database = Depends(require_database)):
    if not seed_catalog(db):
        return {"status": "ok", "message": "Already seeded"}
    return {"status": "ok", "message": "Seeded"}


# Catalog

@app.get("/pdi/structure")
def get_structure(loader: CatalogLoader = Depends(get_catalog_loader)):
    return [s.model_dump(by_alias=True) for s in loader.load_sections()]


@app.get("/pdi/leakage-items")
def get_leakage_items(loader: CatalogLoader = Depends(get_catalog_loader)):
    return [i.model_dump(by_alias=True) for i in loader.load_leakage_items()]


class CatalogEntryCreate(WireModel):
    type: Literal["SECTION", "ITEM", "LEAKAGE"]
    name: Optional[str] = None
    label: Optional[str] = None
    section_id: Optional[str] = None
    section_type: SectionType = SectionType.CHECKLIST


class ReorderEntry(WireModel):
    id: str
    order: int


class CatalogEntryUpdate(WireModel):
    type: Literal["SECTION", "ITEM", "LEAKAGE", "REORDER"]
    id: Optional[str] = None
    name: Optional[str] = None
    label: Optional[str] = None
    order: Optional[int] = None
    section_type: Optional[SectionType] = None
    reorder_type: Optional[str] = None
    items: List[ReorderEntry] = []


def _serialize_entry(doc):
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


@app.post("/pdi/settings")
def create_catalog_entry(entry: CatalogEntryCreate, db: Database = Depends(require_database)):
    editor = CatalogEditor(db)
    if entry.type == "SECTION":
        if not entry.name:
            raise HTTPException(status_code=400, detail="Section name is required")
        return _serialize_entry(editor.create_section(entry.name, entry.section_type))
    if not entry.label:
        raise HTTPException(status_code=400, detail="Item label is required")
    if entry.type == "ITEM":
        if not entry.section_id:
            raise HTTPException(status_code=400, detail="sectionId is required")
        return _serialize_entry(editor.create_item(entry.section_id, entry.label))
    return _serialize_entry(editor.create_leakage_item(entry.label))


@app.put("/pdi/settings")
def update_catalog_entry(entry: CatalogEntryUpdate, db: Database = Depends(require_database)):
    editor = CatalogEditor(db)
    if entry.type == "REORDER":
        try:
            updated = editor.reorder(entry.reorder_type or "", [(i.id, i.order) for i in entry.items])
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"success": True, "updated": updated}

    if not entry.id:
        raise HTTPException(status_code=400, detail="id is required")

    changes = {"order": entry.order}
    if entry.type == "SECTION":
        changes.update(name=entry.name, sectionType=entry.section_type.value if entry.section_type else None)
        update = editor.update_section
    else:
        changes["label"] = entry.label
        update = editor.update_item if entry.type == "ITEM" else editor.update_leakage_item
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")
    return _serialize_entry(update(entry.id, **changes))


@app.delete("/pdi/settings")
def delete_catalog_entry(
    entry_id: str = Query(..., alias="id"),
    entry_type: Literal["SECTION", "ITEM", "LEAKAGE"] = Query(..., alias="type"),
    db: Database = Depends(require_database),
):
    editor = CatalogEditor(db)
    if entry_type == "SECTION":
        editor.delete_section(entry_id)
    elif entry_type == "ITEM":
        editor.delete_item(entry_id)
    else:
        editor.delete_leakage_item(entry_id)
    return {"success": True}


# Inspections

@app.get("/pdi")
def list_inspections(user_id: Optional[str] = Query(None, alias="userId"), repository: InspectionRepository = Depends(get_repository)):
    return [
        r.model_dump(by_alias=True, exclude={"responses", "leakage_responses", "vehicle_damage_data"})
        for r in repository.list(user_id=user_id)
    ]


@app.post("/pdi/save", status_code=201)
def save_inspection(payload: InspectionPayload, pipeline: SubmissionPipeline = Depends(get_pipeline)):
    inspection_id = pipeline.submit(payload)
    return {"success": True, "id": inspection_id}


@app.put("/pdi/{inspection_id}")
def update_inspection(inspection_id: str, payload: InspectionPayload, pipeline: SubmissionPipeline = Depends(get_pipeline)):
    pipeline.submit(payload, existing_id=inspection_id)
    return {"success": True, "id": inspection_id, "message": "Inspection updated successfully"}


@app.get("/pdi/{inspection_id}")
def get_inspection(inspection_id: str, repository: InspectionRepository = Depends(get_repository)):
    return repository.get(inspection_id).model_dump(by_alias=True)


@app.get("/pdi/{inspection_id}/progress")
def get_inspection_progress(
    inspection_id: str,
    repository: InspectionRepository = Depends(get_repository),
    loader: CatalogLoader = Depends(get_catalog_loader),
):
    record = repository.get(inspection_id)
    catalog = loader.load()
    answers = responses_from_payload(record)
    return {
        "checklist": overall_progress(catalog.sections, answers.checklist).model_dump(by_alias=True),
        "leakage": leakage_progress(catalog.leakage_items, answers.leakage).model_dump(by_alias=True),
        "sections": [section_progress(s, answers.checklist).model_dump(by_alias=True) for s in catalog.sections],
    }


@app.get("/pdi/{inspection_id}/report")
def get_inspection_report(
    inspection_id: str,
    repository: InspectionRepository = Depends(get_repository),
    loader: CatalogLoader = Depends(get_catalog_loader),
):
    return build_report_data(loader.load(), repository.get(inspection_id))


@app.post("/pdi/{inspection_id}/send-email")
def send_report_email(
    inspection_id: str,
    repository: InspectionRepository = Depends(get_repository),
    pipeline: SubmissionPipeline = Depends(get_pipeline),
):
    record = repository.get(inspection_id)
    if not record.customer_email:
        raise HTTPException(status_code=400, detail="Customer email is missing for this report")
    pipeline.notifier.report_ready(inspection_id, record)
    return {"message": "Report notification queued"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
