"""
Progress tallies for the live form header and section badges.

Pure functions over a catalog snapshot and the current answers. Only
answers for items that exist in the catalog are counted, so ``answered``
can never exceed ``total``.
"""

from typing import Iterable, Mapping

from schemas import (
    ChecklistSection,
    ItemId,
    ItemResponse,
    ItemStatus,
    LeakageItem,
    LeakageItemId,
    LeakageProgress,
    LeakageResponse,
    Progress,
    SectionProgress,
)


def section_progress(section: ChecklistSection, responses: Mapping[ItemId, ItemResponse]) -> SectionProgress:
    counts = {ItemStatus.PASS: 0, ItemStatus.FAIL: 0, ItemStatus.WARN: 0}
    answered = 0
    for item in section.items:
        response = responses.get(item.id)
        if response is None:
            continue
        answered += 1
        counts[response.status] += 1

    return SectionProgress(
        section_id=section.id,
        answered=answered,
        total=len(section.items),
        pass_count=counts[ItemStatus.PASS],
        fail_count=counts[ItemStatus.FAIL],
        warn_count=counts[ItemStatus.WARN],
    )


def overall_progress(sections: Iterable[ChecklistSection], responses: Mapping[ItemId, ItemResponse]) -> Progress:
    answered = total = 0
    for section in sections:
        total += len(section.items)
        answered += sum(1 for item in section.items if item.id in responses)
    return Progress(answered=answered, total=total)


def leakage_progress(items: Iterable[LeakageItem], responses: Mapping[LeakageItemId, LeakageResponse]) -> LeakageProgress:
    answered = total = found = 0
    for item in items:
        total += 1
        response = responses.get(item.id)
        if response is None:
            continue
        answered += 1
        if response.found:
            found += 1
    return LeakageProgress(answered=answered, total=total, found_count=found)
