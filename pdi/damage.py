"""
Damage marking on the vehicle diagrams.

Markers sit on one of four fixed views (top, side, interior, boot). Their
position is stored as a percentage of the diagram's width and height, so a
marker lands on the same spot whatever size the diagram is drawn at.

Each marker carries a short code derived from its damage type when it is
created. The code is stored, not recomputed, so later changes to
``TYPE_CODES`` leave existing markers alone.
"""

import logging
import uuid
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, get_args

from pydantic import ValidationError

from schemas import (
    DamageCode,
    DamageMarker,
    DamageSeverity,
    DamageType,
    DamageView,
    MarkerId,
    VehicleDamageData,
)

logger = logging.getLogger(__name__)

VIEWS: Tuple[str, ...] = get_args(DamageView)
EXTERIOR_VIEWS = ("top", "side")
INTERIOR_VIEWS = ("interior", "boot")


class CodeInfo(NamedTuple):
    label: str
    color: str
    views: Tuple[str, ...]


DAMAGE_CODES: Dict[str, CodeInfo] = {
    "D": CodeInfo("Dent", "#ef4444", EXTERIOR_VIEWS),
    "S": CodeInfo("Scratch", "#f97316", EXTERIOR_VIEWS),
    "CH": CodeInfo("Chip", "#eab308", EXTERIOR_VIEWS),
    "CR": CodeInfo("Crack", "#dc2626", EXTERIOR_VIEWS),
    "RS": CodeInfo("Rust", "#92400e", EXTERIOR_VIEWS),
    "TR": CodeInfo("Tear", "#7c3aed", INTERIOR_VIEWS),
    "ST": CodeInfo("Stain", "#6366f1", INTERIOR_VIEWS),
    "SC": CodeInfo("Scratch", "#f97316", INTERIOR_VIEWS),
    "BR": CodeInfo("Broken", "#dc2626", VIEWS),
    "NW": CodeInfo("Not Working", "#6b7280", INTERIOR_VIEWS),
    "MS": CodeInfo("Missing", "#374151", VIEWS),
    "OT": CodeInfo("Other", "#9ca3af", VIEWS),
}

# Several types may share one code (scratch and paint-damage are both S)
TYPE_CODES: Dict[str, str] = {
    "scratch": "S",
    "paint-damage": "S",
    "dent": "D",
    "crack": "CR",
    "chip": "CH",
    "rust": "RS",
    "broken": "BR",
    "missing": "MS",
    "tear": "TR",
    "stain": "ST",
    "not-working": "NW",
    "other": "OT",
}

# Codes that may only be placed on the interior and boot diagrams
INTERIOR_ONLY_CODES = frozenset(code for code, info in DAMAGE_CODES.items() if info.views == INTERIOR_VIEWS)


class DiagramBox(NamedTuple):
    """Bounding box of the rendered diagram, in the same units as the pointer position."""
    left: float
    top: float
    width: float
    height: float


def damage_code_for(damage_type: DamageType) -> DamageCode:
    try:
        return TYPE_CODES[damage_type]
    except KeyError:
        raise ValueError(f"Unknown damage type: {damage_type}") from None


def normalize_click(click_x: float, click_y: float, box: DiagramBox) -> Tuple[float, float]:
    """Convert a pointer position into 0-100 percentages of the diagram box."""
    if box.width <= 0 or box.height <= 0:
        raise ValueError("Diagram box must have a positive width and height")

    x = (click_x - box.left) / box.width * 100
    y = (click_y - box.top) / box.height * 100
    # pointer events on the border can land a pixel outside
    return min(max(x, 0.0), 100.0), min(max(y, 0.0), 100.0)


def parse_damage_data(blob: Optional[str]) -> VehicleDamageData:
    """Read a stored damage blob. An unreadable blob reads as no damage."""
    if not blob:
        return VehicleDamageData()
    try:
        return VehicleDamageData.model_validate_json(blob)
    except ValidationError as e:
        logger.warning("Ignoring unreadable damage data (%d errors): %s", e.error_count(), blob[:80])
        return VehicleDamageData()


def _check_view(view: str) -> None:
    if view not in VIEWS:
        raise ValueError(f"Unknown view: {view}")


class DamageMarkerBoard:
    """Markers placed during one inspection, plus free-text damage notes."""

    def __init__(self, markers: Iterable[DamageMarker] = (), notes: Optional[str] = None, active_view: DamageView = "top"):
        _check_view(active_view)
        self._markers: Dict[MarkerId, DamageMarker] = {m.id: m for m in markers}
        self.notes = notes
        self._active_view = active_view

    @property
    def active_view(self) -> DamageView:
        return self._active_view

    def set_active_view(self, view: DamageView) -> None:
        # existing markers keep the view they were created on
        _check_view(view)
        self._active_view = view

    @property
    def markers(self) -> List[DamageMarker]:
        return list(self._markers.values())

    def marker(self, marker_id: MarkerId) -> Optional[DamageMarker]:
        return self._markers.get(marker_id)

    def add_marker(self, view: DamageView, x: float, y: float, damage_type: DamageType, severity: DamageSeverity) -> MarkerId:
        _check_view(view)
        code = damage_code_for(damage_type)
        if code in INTERIOR_ONLY_CODES and view in EXTERIOR_VIEWS:
            raise ValueError(f"Damage type {damage_type!r} can only be marked on the interior or boot view")

        marker = DamageMarker(
            id=MarkerId(f"marker-{uuid.uuid4().hex}"),
            x=x,
            y=y,
            type=damage_type,
            code=code,
            severity=severity,
            view=view,
        )
        self._markers[marker.id] = marker
        logger.debug("Added %s marker %s on %s at (%.1f, %.1f)", code, marker.id, view, x, y)
        return marker.id

    def place_marker(
        self,
        click_x: float,
        click_y: float,
        box: DiagramBox,
        damage_type: DamageType,
        severity: DamageSeverity,
    ) -> MarkerId:
        """Add a marker on the active view at a pointer position inside its diagram box."""
        x, y = normalize_click(click_x, click_y, box)
        return self.add_marker(self._active_view, x, y, damage_type, severity)

    def remove_marker(self, marker_id: MarkerId) -> None:
        if self._markers.pop(marker_id, None) is None:
            logger.warning("remove_marker: no marker with id %s", marker_id)

    def update_description(self, marker_id: MarkerId, text: str) -> None:
        marker = self._markers.get(marker_id)
        if marker is None:
            logger.warning("update_description: no marker with id %s", marker_id)
            return
        self._markers[marker_id] = marker.model_copy(update={"description": text})

    def markers_for_view(self, view: DamageView) -> List[DamageMarker]:
        _check_view(view)
        return [m for m in self._markers.values() if m.view == view]

    def to_damage_data(self) -> VehicleDamageData:
        return VehicleDamageData(markers=self.markers, notes=self.notes)

    def dumps(self) -> str:
        """Serialize to the opaque JSON blob stored with the inspection."""
        return self.to_damage_data().model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_damage_data(cls, data: VehicleDamageData) -> "DamageMarkerBoard":
        return cls(markers=data.markers, notes=data.notes)

    @classmethod
    def loads(cls, blob: Optional[str]) -> "DamageMarkerBoard":
        return cls.from_damage_data(parse_damage_data(blob))
