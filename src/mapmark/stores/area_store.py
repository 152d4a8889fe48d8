"""Store for polygon areas: several vertex lists, one selected for editing."""

from __future__ import annotations

import math
from typing import ClassVar

from mapmark.config import settings
from mapmark.geometry.polygon import MIN_POLYGON_VERTICES, centroid, reorder_vertices
from mapmark.geometry.primitives import Point
from mapmark.stores.base import SelectableStore
from mapmark.stores.events import ChangeAction, Signal
from mapmark.stores.models import Area, EntityKind
from mapmark.validation.rules import ValidationResult


class AreaStore(SelectableStore[Area]):
    """Areas in canvas space.

    Vertices are reordered by angle around their centroid after every
    insert and delete, and when a vertex drag is committed, so the polygon
    outline stays simple. Live vertex drags do not reorder.

    An area is *modified* (ready to persist) once it has a name and at
    least three vertices.

    Attributes:
        on_modified_state_change: (index, is_modified) when the flag flips.
    """

    kind: ClassVar[EntityKind] = EntityKind.AREAS
    NO_SELECTION_MESSAGE: ClassVar[str] = "Select an area before adding vertices"

    def __init__(self) -> None:
        super().__init__()
        self.on_modified_state_change: Signal[tuple[int, bool]] = Signal()

    def _geometry(self, entity: Area) -> list[Point]:
        return entity.vertices

    def _set_geometry(self, entity: Area, points: list[Point]) -> None:
        entity.vertices = points

    def _after_geometry_change(self, entity: Area, *, structural: bool) -> None:
        entity.vertices = reorder_vertices(entity.vertices)
        self._refresh_modified_state(entity)

    def _refresh_modified_state(self, entity: Area) -> None:
        is_modified = (
            entity.area_name.strip() != "" and len(entity.vertices) >= MIN_POLYGON_VERTICES
        )
        if is_modified != entity.is_modified:
            entity.is_modified = is_modified
            self.on_modified_state_change.emit((self._index_of(entity), is_modified))

    def add_area(self, area_name: str = "", *, select: bool = True) -> int:
        """Append an empty area and select it; returns its index."""
        return self._append_collection(Area(area_name=area_name), select=select)

    def delete_area(self, index: int) -> Area | None:
        return self.delete_at(index)

    def set_name(self, name: str) -> None:
        """Rename the selected area."""
        selected = self.get_selected()
        if selected is None:
            self._reject_no_selection()
            return
        previous = selected.model_copy(deep=True)
        selected.area_name = name.strip()
        self._refresh_modified_state(selected)
        self.on_change.emit(self.get_all())
        self._record(ChangeAction.UPDATED, self._selected_index, selected, previous=previous)

    def remove_vertices(self, indices: list[int]) -> int:
        return self.remove_points(indices)

    def reorder_selected(self) -> None:
        """Reorder the selected area's vertices without recording a change."""
        selected = self.get_selected()
        if selected is not None:
            selected.vertices = reorder_vertices(selected.vertices)
            self.on_change.emit(self.get_all())

    def find_vertex_at(self, x: float, y: float, threshold: float | None = None) -> int | None:
        """First vertex of the selected area within threshold (canvas px)."""
        threshold = settings.VERTEX_HIT_RADIUS if threshold is None else threshold
        return self.find_geometry_at(x, y, threshold)

    def find_area_label_at(self, x: float, y: float, scale: float = 1.0) -> int | None:
        """Index of the first area whose centroid label is under (x, y).

        Labels are drawn at a fixed screen size, so the hit radius shrinks
        as the view zooms in. Areas without vertices have no label.
        """
        threshold = settings.AREA_LABEL_HIT_RADIUS / scale
        for i, area in enumerate(self._items):
            if not area.vertices:
                continue
            cx, cy = centroid(area.vertices)
            if math.hypot(x - cx, y - cy) <= threshold:
                return i
        return None

    def validate(self) -> ValidationResult:
        """Check that the selected area can be saved."""
        selected = self.get_selected()
        if selected is None:
            return ValidationResult.fail("No area selected")
        if not selected.area_name.strip():
            return ValidationResult.fail("Enter an area name")
        if len(selected.vertices) < MIN_POLYGON_VERTICES:
            return ValidationResult.fail("An area needs at least 3 vertices")
        return ValidationResult.ok()
