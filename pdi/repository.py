"""
MongoDB storage for submitted inspections (collection ``pdi_inspection``).

Records are stored in their wire shape: scalar fields, the two answer arrays
and the damage blob, plus status and timestamps.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import ConnectionFailure

from database import create_document
from pdi.errors import InspectionNotFound
from schemas import InspectionPayload, InspectionRecord, InspectionStatus

logger = logging.getLogger(__name__)

INSPECTION_COLLECTION = "pdi_inspection"


def to_obj_id(inspection_id: str) -> ObjectId:
    try:
        return ObjectId(inspection_id)
    except (InvalidId, TypeError):
        raise InspectionNotFound(inspection_id) from None


def to_record(doc: Dict[str, Any]) -> InspectionRecord:
    return InspectionRecord.model_validate({**doc, "id": str(doc["_id"])})


class InspectionRepository:
    def __init__(self, database: Optional[Database]):
        self.database = database

    def _db(self) -> Database:
        if self.database is None:
            raise ConnectionFailure("Database not available. Check DATABASE_URL and DATABASE_NAME.")
        return self.database

    def _document(self, payload: InspectionPayload) -> Dict[str, Any]:
        doc = payload.model_dump(by_alias=True, mode="json", include=set(InspectionPayload.model_fields))
        doc["status"] = InspectionStatus.COMPLETED.value
        return doc

    def create(self, payload: InspectionPayload) -> str:
        inspection_id = create_document(INSPECTION_COLLECTION, self._document(payload), database=self._db())
        logger.info("Created inspection %s (%s %s)", inspection_id, payload.vehicle_make, payload.vehicle_model)
        return inspection_id

    def update(self, inspection_id: str, payload: InspectionPayload) -> str:
        """Overwrite the record stored under ``inspection_id``; answers are replaced wholesale."""
        doc = self._document(payload)
        doc["updated_at"] = datetime.now(timezone.utc)
        result = self._db()[INSPECTION_COLLECTION].update_one({"_id": to_obj_id(inspection_id)}, {"$set": doc})
        if result.matched_count == 0:
            raise InspectionNotFound(inspection_id)
        logger.info("Updated inspection %s", inspection_id)
        return inspection_id

    def get(self, inspection_id: str) -> InspectionRecord:
        doc = self._db()[INSPECTION_COLLECTION].find_one({"_id": to_obj_id(inspection_id)})
        if doc is None:
            raise InspectionNotFound(inspection_id)
        return to_record(doc)

    def list(self, user_id: Optional[str] = None) -> List[InspectionRecord]:
        cursor = self._db()[INSPECTION_COLLECTION].find({"userId": user_id} if user_id else {})
        return [to_record(d) for d in cursor.sort("created_at", DESCENDING)]

    def count(self) -> int:
        return self._db()[INSPECTION_COLLECTION].count_documents({})
