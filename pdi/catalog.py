"""
Checklist catalog

Sections, items and leakage points are reference data shared by every
inspection. A session loads them once into an immutable ``Catalog`` and
passes that snapshot to everything that needs it; nothing re-fetches the
taxonomy mid-inspection.

Ordering always comes from the explicit ``order`` field (ties broken by id),
never from storage order, so the taxonomy can be re-sequenced in the
database alone.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import PyMongoError

from pdi.errors import CatalogEntryNotFound, ReferenceDataUnavailable
from schemas import ChecklistItem, ChecklistSection, ItemId, LeakageItem, LeakageItemId, SectionType

logger = logging.getLogger(__name__)

SECTION_COLLECTION = "pdi_section"
ITEM_COLLECTION = "pdi_item"
LEAKAGE_COLLECTION = "pdi_leakage_item"


def _order_key(doc: Dict[str, Any]):
    return (doc.get("order", 0), str(doc.get("_id")))


@dataclass(frozen=True)
class Catalog:
    """One snapshot of the checklist taxonomy."""

    sections: Tuple[ChecklistSection, ...] = ()
    leakage_items: Tuple[LeakageItem, ...] = ()
    _section_by_item: Dict[str, ChecklistSection] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        index = {item.id: section for section in self.sections for item in section.items}
        object.__setattr__(self, "_section_by_item", index)

    def checklist_items(self) -> Iterator[ChecklistItem]:
        for section in self.sections:
            yield from section.items

    @property
    def item_ids(self) -> FrozenSet[ItemId]:
        return frozenset(self._section_by_item)

    @property
    def leakage_item_ids(self) -> FrozenSet[LeakageItemId]:
        return frozenset(item.id for item in self.leakage_items)

    def section_for_item(self, item_id: ItemId) -> Optional[ChecklistSection]:
        return self._section_by_item.get(item_id)

    def section(self, section_id: str) -> Optional[ChecklistSection]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None


class CatalogLoader:
    """Reads the catalog collections and builds ordered, immutable sections."""

    def __init__(self, database: Optional[Database]):
        self.database = database

    def _fetch(self, collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        if self.database is None:
            raise ReferenceDataUnavailable("Catalog database is not configured")
        try:
            return list(self.database[collection].find(filter_dict or {}))
        except PyMongoError as e:
            logger.error("Failed to read %s: %s", collection, e)
            raise ReferenceDataUnavailable(f"Could not load {collection}") from e

    def load_sections(self) -> List[ChecklistSection]:
        section_docs = self._fetch(SECTION_COLLECTION)
        if not section_docs:
            raise ReferenceDataUnavailable("Checklist catalog is empty")

        items_by_section: Dict[str, List[Dict[str, Any]]] = {}
        for doc in self._fetch(ITEM_COLLECTION):
            items_by_section.setdefault(doc.get("sectionId"), []).append(doc)

        sections = []
        for doc in sorted(section_docs, key=_order_key):
            section_id = str(doc["_id"])
            items = tuple(
                ChecklistItem(id=ItemId(str(item["_id"])), label=item["label"], order=item.get("order", 0))
                for item in sorted(items_by_section.pop(section_id, []), key=_order_key)
            )
            sections.append(ChecklistSection(
                id=section_id,
                name=doc["name"],
                order=doc.get("order", 0),
                section_type=SectionType(doc.get("sectionType", SectionType.CHECKLIST.value)),
                items=items,
            ))

        for orphan_section in items_by_section:
            logger.warning("Ignoring items of unknown section %s", orphan_section)

        return sections

    def load_leakage_items(self) -> List[LeakageItem]:
        docs = self._fetch(LEAKAGE_COLLECTION)
        if not docs:
            logger.warning("Leakage catalog is empty")
        return [
            LeakageItem(id=LeakageItemId(str(doc["_id"])), label=doc["label"], order=doc.get("order", 0))
            for doc in sorted(docs, key=_order_key)
        ]

    def load(self) -> Catalog:
        catalog = Catalog(sections=tuple(self.load_sections()), leakage_items=tuple(self.load_leakage_items()))
        logger.debug(
            "Loaded catalog: %d sections, %d leakage items",
            len(catalog.sections),
            len(catalog.leakage_items),
        )
        return catalog


class CatalogEditor:
    """Admin maintenance of the taxonomy: add, rename, delete and re-sequence entries."""

    SECTION_FIELDS = {"name", "order", "sectionType"}
    ITEM_FIELDS = {"label", "order"}

    def __init__(self, database: Database):
        self.database = database

    def _next_order(self, collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> int:
        last = self.database[collection].find_one(filter_dict or {}, sort=[("order", -1)])
        return last.get("order", 0) + 1 if last else 0

    def _update(self, collection: str, entry_id: str, changes: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
        unknown = set(changes) - set(allowed)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "sectionType" in changes:
            changes["sectionType"] = SectionType(changes["sectionType"]).value
        result = self.database[collection].update_one({"_id": entry_id}, {"$set": changes})
        if result.matched_count == 0:
            raise CatalogEntryNotFound(entry_id)
        return self.database[collection].find_one({"_id": entry_id})

    def create_section(self, name: str, section_type: SectionType = SectionType.CHECKLIST) -> Dict[str, Any]:
        doc = {
            "_id": str(ObjectId()),
            "name": name,
            "order": self._next_order(SECTION_COLLECTION),
            "sectionType": SectionType(section_type).value,
        }
        self.database[SECTION_COLLECTION].insert_one(doc)
        logger.info("Created section %s (%s)", doc["_id"], name)
        return doc

    def create_item(self, section_id: str, label: str) -> Dict[str, Any]:
        if self.database[SECTION_COLLECTION].count_documents({"_id": section_id}, limit=1) == 0:
            raise CatalogEntryNotFound(section_id)
        doc = {
            "_id": str(ObjectId()),
            "sectionId": section_id,
            "label": label,
            "order": self._next_order(ITEM_COLLECTION, {"sectionId": section_id}),
        }
        self.database[ITEM_COLLECTION].insert_one(doc)
        logger.info("Created item %s in section %s", doc["_id"], section_id)
        return doc

    def create_leakage_item(self, label: str) -> Dict[str, Any]:
        doc = {"_id": str(ObjectId()), "label": label, "order": self._next_order(LEAKAGE_COLLECTION)}
        self.database[LEAKAGE_COLLECTION].insert_one(doc)
        return doc

    def update_section(self, section_id: str, **changes) -> Dict[str, Any]:
        return self._update(SECTION_COLLECTION, section_id, changes, self.SECTION_FIELDS)

    def update_item(self, item_id: str, **changes) -> Dict[str, Any]:
        return self._update(ITEM_COLLECTION, item_id, changes, self.ITEM_FIELDS)

    def update_leakage_item(self, item_id: str, **changes) -> Dict[str, Any]:
        return self._update(LEAKAGE_COLLECTION, item_id, changes, self.ITEM_FIELDS)

    def delete_section(self, section_id: str) -> None:
        result = self.database[SECTION_COLLECTION].delete_one({"_id": section_id})
        if result.deleted_count == 0:
            raise CatalogEntryNotFound(section_id)
        removed = self.database[ITEM_COLLECTION].delete_many({"sectionId": section_id}).deleted_count
        logger.info("Deleted section %s and %d items", section_id, removed)

    def delete_item(self, item_id: str) -> None:
        if self.database[ITEM_COLLECTION].delete_one({"_id": item_id}).deleted_count == 0:
            raise CatalogEntryNotFound(item_id)

    def delete_leakage_item(self, item_id: str) -> None:
        if self.database[LEAKAGE_COLLECTION].delete_one({"_id": item_id}).deleted_count == 0:
            raise CatalogEntryNotFound(item_id)

    def reorder(self, kind: str, orders: Iterable[Tuple[str, int]]) -> int:
        """Apply new ``order`` values. ``kind`` is SECTION, ITEM or LEAKAGE."""
        collection = {
            "SECTION": SECTION_COLLECTION,
            "ITEM": ITEM_COLLECTION,
            "LEAKAGE": LEAKAGE_COLLECTION,
        }.get(kind.upper())
        if collection is None:
            raise ValueError(f"Unknown reorder kind: {kind}")

        updated = 0
        for entry_id, order in orders:
            updated += self.database[collection].update_one({"_id": entry_id}, {"$set": {"order": int(order)}}).matched_count
        return updated
