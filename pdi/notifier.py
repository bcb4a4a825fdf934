"""
Report-ready notifications.

Delivery (SMTP, templating) happens outside this service. ``OutboxNotifier``
records one notification document per call in ``pdi_notification`` for a
mail worker to pick up; ``LoggingNotifier`` only logs.
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo.database import Database

from database import create_document, get_documents
from schemas import InspectionPayload

logger = logging.getLogger(__name__)

NOTIFICATION_COLLECTION = "pdi_notification"
REPORT_READY = "PDI_REPORT_READY"


class ReportNotifier:
    def report_ready(self, inspection_id: str, payload: InspectionPayload) -> Optional[str]:
        raise NotImplementedError


class LoggingNotifier(ReportNotifier):
    def report_ready(self, inspection_id, payload):
        logger.info(
            "PDI report %s ready for %s <%s> (%s %s)",
            inspection_id,
            payload.customer_name,
            payload.customer_email or "no email",
            payload.vehicle_make,
            payload.vehicle_model,
        )
        return None


class OutboxNotifier(ReportNotifier):
    def __init__(self, database: Database):
        self.database = database

    def report_ready(self, inspection_id, payload):
        if not payload.customer_email:
            logger.info("Inspection %s has no customer email, report-ready notice skipped", inspection_id)
            return None

        notification_id = create_document(
            NOTIFICATION_COLLECTION,
            {
                "kind": REPORT_READY,
                "inspectionId": inspection_id,
                "email": payload.customer_email,
                "name": payload.customer_name,
                "vehicle": f"{payload.vehicle_make} {payload.vehicle_model}",
                "sent": False,
            },
            database=self.database,
        )
        logger.info("Queued report-ready notice %s for inspection %s", notification_id, inspection_id)
        return notification_id

    def pending(self, inspection_id: Optional[str] = None) -> List[Dict[str, Any]]:
        filter_dict: Dict[str, Any] = {"kind": REPORT_READY, "sent": False}
        if inspection_id:
            filter_dict["inspectionId"] = inspection_id
        return get_documents(NOTIFICATION_COLLECTION, filter_dict, database=self.database)
