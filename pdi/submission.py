"""
Submission pipeline

Sends an assembled inspection to storage, creating a new record or
overwriting an existing one, then fires a single report-ready notification.
Failures raise SubmissionFailed carrying the untouched payload so the caller
can let the user correct and resubmit. Nothing is retried here.
"""

import logging
from typing import Optional

from pymongo.errors import PyMongoError

from pdi.assembler import validate_payload
from pdi.errors import InspectionNotFound, SubmissionFailed
from pdi.notifier import ReportNotifier
from pdi.repository import InspectionRepository
from schemas import InspectionPayload

logger = logging.getLogger(__name__)


class SubmissionPipeline:
    def __init__(self, repository: InspectionRepository, notifier: ReportNotifier):
        self.repository = repository
        self.notifier = notifier

    def submit(self, payload: InspectionPayload, existing_id: Optional[str] = None) -> str:
        validate_payload(payload)

        try:
            if existing_id:
                inspection_id = self.repository.update(existing_id, payload)
            else:
                inspection_id = self.repository.create(payload)
        except InspectionNotFound as e:
            raise SubmissionFailed(str(e), payload=payload, existing_id=existing_id) from e
        except PyMongoError as e:
            logger.error("Failed to save PDI report: %s", e)
            raise SubmissionFailed("Failed to save PDI report. Please try again.", payload=payload, existing_id=existing_id) from e

        self.notify(inspection_id, payload)
        return inspection_id

    def notify(self, inspection_id: str, payload: InspectionPayload) -> None:
        # the record is already saved at this point
        try:
            self.notifier.report_ready(inspection_id, payload)
        except Exception:
            logger.exception("Failed to send report-ready notice for inspection %s", inspection_id)
