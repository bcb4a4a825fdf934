"""
Inspector answers for one inspection.

Checklist answers (PASS/FAIL/WARN) and leakage answers (found / not found)
are kept in two separate maps keyed by their own id types. An item with no
entry is unanswered. Every setter is an upsert: answering the same item
again replaces the previous answer.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Union

from schemas import ItemId, ItemResponse, ItemStatus, LeakageItemId, LeakageResponse


@dataclass
class ResponseSnapshot:
    checklist: Dict[ItemId, ItemResponse] = field(default_factory=dict)
    leakage: Dict[LeakageItemId, LeakageResponse] = field(default_factory=dict)


class ResponseStore:
    def __init__(self):
        self._checklist: Dict[ItemId, ItemResponse] = {}
        self._leakage: Dict[LeakageItemId, LeakageResponse] = {}

    @classmethod
    def from_records(
        cls,
        responses: Iterable[ItemResponse] = (),
        leakage_responses: Iterable[LeakageResponse] = (),
    ) -> "ResponseStore":
        """Rebuild a store from stored answers, e.g. when an inspection is reopened for edit."""
        store = cls()
        for r in responses:
            store.set_checklist_response(r.item_id, r.status, r.notes)
        for r in leakage_responses:
            store.set_leakage_response(r.leakage_item_id, r.found, r.notes)
        return store

    def set_checklist_response(self, item_id: ItemId, status: Union[ItemStatus, str], notes: str = "") -> ItemResponse:
        # ItemStatus() rejects anything outside PASS/FAIL/WARN
        response = ItemResponse(item_id=item_id, status=ItemStatus(status), notes=notes or "")
        self._checklist[item_id] = response
        return response

    def set_leakage_response(self, item_id: LeakageItemId, found: bool, notes: Optional[str] = None) -> LeakageResponse:
        response = LeakageResponse(leakage_item_id=item_id, found=found, notes=notes)
        self._leakage[item_id] = response
        return response

    def clear_checklist_response(self, item_id: ItemId) -> None:
        self._checklist.pop(item_id, None)

    def clear_leakage_response(self, item_id: LeakageItemId) -> None:
        self._leakage.pop(item_id, None)

    def checklist_response(self, item_id: ItemId) -> Optional[ItemResponse]:
        return self._checklist.get(item_id)

    def leakage_response(self, item_id: LeakageItemId) -> Optional[LeakageResponse]:
        return self._leakage.get(item_id)

    def get_all(self) -> ResponseSnapshot:
        return ResponseSnapshot(checklist=dict(self._checklist), leakage=dict(self._leakage))

    def __len__(self):
        return len(self._checklist) + len(self._leakage)
