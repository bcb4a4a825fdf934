from typing import List, Optional


class PDIError(Exception):
    """Base class for inspection engine errors."""


class ReferenceDataUnavailable(PDIError):
    """The checklist catalog could not be loaded. Retry the load before starting an inspection."""


class ValidationFailed(PDIError):
    """One or more required form fields are missing or malformed."""

    def __init__(self, fields: List[str], messages: Optional[dict] = None):
        self.fields = list(fields)
        self.messages = dict(messages or {})
        super().__init__("Validation failed for: " + ", ".join(self.fields))


class SubmissionFailed(PDIError):
    """The persistence boundary rejected the inspection or could not be reached.

    The payload is kept on the exception so the caller can resubmit it.
    """

    def __init__(self, message: str, payload=None, existing_id: Optional[str] = None):
        self.payload = payload
        self.existing_id = existing_id
        super().__init__(message)


class InspectionNotFound(PDIError):
    def __init__(self, inspection_id: str):
        self.inspection_id = inspection_id
        super().__init__(f"Inspection not found: {inspection_id}")


class CatalogEntryNotFound(PDIError):
    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Catalog entry not found: {entry_id}")
