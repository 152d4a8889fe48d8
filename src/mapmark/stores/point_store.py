"""Store for labeled points."""

from __future__ import annotations

from typing import ClassVar

from mapmark.geometry.transforms import round_half_up
from mapmark.stores.base import PositionedStore
from mapmark.stores.events import ChangeAction
from mapmark.stores.models import EntityKind, MapPoint
from mapmark.validation.identifiers import format_point_id, point_id_key


class PointStore(PositionedStore[MapPoint]):
    """Labeled points in canvas space.

    Markers (``is_marker=True``) are read-only points imported from another
    source. They do not count toward on_count_change and trailing-empty
    cleanup steps over them.

    Example:
        >>> store = PointStore()
        >>> store.add(10, 20).id
        ''
        >>> store.update_id(0, "a1")
        >>> store.get(0).id
        'A-01'
    """

    kind: ClassVar[EntityKind] = EntityKind.POINTS

    def add(self, x: float, y: float, id: str = "", is_marker: bool = False) -> MapPoint:
        """Append a point at canvas (x, y), rounding to whole pixels."""
        point = MapPoint(x=round_half_up(x), y=round_half_up(y), id=id, is_marker=is_marker)
        return self._append(point)

    def update_id(self, index: int, value: str, *, skip_formatting: bool = False) -> None:
        """Set the id of the point at index.

        Args:
            index: Point position in the collection.
            value: Text from the input box.
            skip_formatting: True while the user is typing. The raw text is
                stored and only on_change fires. False on commit (blur):
                the text is canonicalized, a change is recorded, and a
                blank result removes the point.
        """
        point = self.get(index)
        if point is None:
            return
        if skip_formatting:
            point.id = value
            self.on_change.emit(self.get_all())
            return

        formatted = format_point_id(value)
        if not formatted.strip():
            self.remove_at(index)
            return

        previous = point.model_copy()
        point.id = formatted
        self._notify()
        self._record(ChangeAction.UPDATED, index, point, previous=previous)

    def count(self) -> int:
        return self.user_point_count()

    def user_point_count(self) -> int:
        """Number of non-marker points."""
        return sum(1 for point in self._items if not point.is_marker)

    def find_by_id(self, point_id: str) -> MapPoint | None:
        """First point whose id matches, ignoring width and case."""
        if not point_id or not point_id.strip():
            return None
        key = point_id_key(point_id)
        for point in self._items:
            if point.is_labeled and point_id_key(point.id) == key:
                return point
        return None

    def registered_ids(self) -> list[str]:
        """Non-blank ids in collection order."""
        return [point.id for point in self._items if point.is_labeled]

    def format_all_ids(self) -> int:
        """Canonicalize every non-blank id; returns how many changed."""
        changed = 0
        for index, point in enumerate(self._items):
            if not point.is_labeled:
                continue
            formatted = format_point_id(point.id)
            if formatted != point.id:
                previous = point.model_copy()
                point.id = formatted
                self._record(ChangeAction.UPDATED, index, point, previous=previous)
                changed += 1
        self.on_change.emit(self.get_all())
        return changed

    def _is_skipped_by_trailing_cleanup(self, entity: MapPoint) -> bool:
        return entity.is_marker
