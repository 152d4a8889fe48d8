"""Shared machinery for the entity stores.

Two shapes of store exist:

- PositionedStore: a flat list of entities that each have one (x, y)
  position and a label (points, spots).
- SelectableStore: a list of named collections, one of which is selected;
  geometry mutations act on the selected collection's point list (route
  waypoints, area vertices).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from typing import ClassVar, Generic, TypeVar

from mapmark.geometry.primitives import Point
from mapmark.geometry.transforms import CanvasFrame, round_half_up
from mapmark.stores.events import ChangeAction, EntityChange, SelectionChange, Signal
from mapmark.stores.models import Area, EntityKind, MapPoint, Route, Spot
from mapmark.utils.logging import get_logger
from mapmark.validation.rules import ValidationResult

logger = get_logger(__name__)

E = TypeVar("E", MapPoint, Spot, Route, Area)
P = TypeVar("P", MapPoint, Spot)
S = TypeVar("S", Route, Area)

NO_SELECTION = -1


class EntityStore(ABC, Generic[E]):
    """In-memory collection for one entity kind with change signals.

    Attributes:
        on_change: Full collection after every mutation, live or committed.
        on_count_change: Count after every mutation.
        on_entity_change: One EntityChange per committed mutation.
    """

    kind: ClassVar[EntityKind]

    def __init__(self) -> None:
        self._items: list[E] = []
        self.on_change: Signal[list[E]] = Signal()
        self.on_count_change: Signal[int] = Signal()
        self.on_entity_change: Signal[EntityChange] = Signal()

    def get_all(self) -> list[E]:
        """Return the entities in collection order (a new list each call)."""
        return list(self._items)

    def get(self, index: int) -> E | None:
        if self._in_range(index):
            return self._items[index]
        return None

    def count(self) -> int:
        """Count reported through on_count_change."""
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[E]:
        return iter(list(self._items))

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self._items)

    def _index_of(self, entity: E) -> int:
        """Position of this exact object (entities compare equal by value)."""
        for i, item in enumerate(self._items):
            if item is entity:
                return i
        return -1

    def _notify(self) -> None:
        self.on_change.emit(self.get_all())
        self.on_count_change.emit(self.count())

    def _record(
        self,
        action: ChangeAction,
        index: int,
        entity: E,
        previous: E | None = None,
    ) -> None:
        self.on_entity_change.emit(
            EntityChange(
                kind=self.kind,
                action=action,
                index=index,
                entity=entity,
                previous=previous,
            )
        )

    def replace_all(self, items: Iterable[E]) -> None:
        """Replace the collection without producing entity changes.

        Used when loading from a file or from the remote store: the new
        contents are already persisted, so nothing should be pushed back.
        """
        self._items = list(items)
        self._reset_after_replace()
        self._notify()

    def clear(self) -> None:
        """Remove everything locally. The remote store is not touched."""
        self.replace_all([])

    def _reset_after_replace(self) -> None:
        """Hook for subclasses holding per-item state."""

    def reframe(self, old: CanvasFrame, new: CanvasFrame) -> None:
        """Move every entity from one canvas size to another via image space.

        Each coordinate is mapped to image space with the old frame and
        back with the new one, so a resize never scales canvas values by a
        canvas ratio.
        """
        for entity in self._items:
            self._reframe_entity(entity, old, new)
        self.on_change.emit(self.get_all())

    @abstractmethod
    def _reframe_entity(self, entity: E, old: CanvasFrame, new: CanvasFrame) -> None: ...


def _reframe_point(point: Point, old: CanvasFrame, new: CanvasFrame) -> Point:
    return new.to_canvas(old.to_image(point))


class PositionedStore(EntityStore[P]):
    """Flat list of single-position entities with drag tracking."""

    def __init__(self) -> None:
        super().__init__()
        self._drag_origins: dict[int, P] = {}

    def _reset_after_replace(self) -> None:
        self._drag_origins.clear()

    def _reframe_entity(self, entity: P, old: CanvasFrame, new: CanvasFrame) -> None:
        moved = _reframe_point(entity.position, old, new)
        entity.x, entity.y = moved.x, moved.y

    def _append(self, entity: P) -> P:
        self._items.append(entity)
        self._notify()
        self._record(ChangeAction.ADDED, len(self._items) - 1, entity)
        return entity

    def remove_at(self, index: int) -> P | None:
        """Remove and return the entity at index, or None when out of range."""
        if not self._in_range(index):
            return None
        entity = self._items.pop(index)
        self._drag_origins.clear()
        self._notify()
        self._record(ChangeAction.REMOVED, index, entity)
        return entity

    def update_geometry(self, index: int, x: float, y: float, *, commit: bool = True) -> None:
        """Move the entity at index.

        With ``commit=False`` (a drag in progress) only on_change fires and
        the position the drag started from is remembered. The committing
        call reports that starting position as the change's ``previous``.
        """
        if not self._in_range(index):
            return
        entity = self._items[index]
        if index not in self._drag_origins:
            self._drag_origins[index] = entity.model_copy()
        entity.x = round_half_up(x)
        entity.y = round_half_up(y)
        self.on_change.emit(self.get_all())
        if commit:
            origin = self._drag_origins.pop(index)
            self._record(ChangeAction.UPDATED, index, entity, previous=origin)

    def find_at(self, x: float, y: float, threshold: float) -> int | None:
        """Index of the first entity within threshold of (x, y)."""
        for i, entity in enumerate(self._items):
            if entity.position.distance_to(x, y) <= threshold:
                return i
        return None

    def _is_skipped_by_trailing_cleanup(self, entity: P) -> bool:
        return False

    def remove_trailing_empty(self) -> int:
        """Drop the run of unlabeled entities at the end of the collection.

        Stops at the first labeled entity. Returns how many were removed.
        No entity changes are produced: unlabeled entities are never sent
        to the remote store.
        """
        removed = 0
        for i in range(len(self._items) - 1, -1, -1):
            entity = self._items[i]
            if self._is_skipped_by_trailing_cleanup(entity):
                continue
            if entity.is_labeled:
                break
            del self._items[i]
            removed += 1
        if removed:
            self._drag_origins.clear()
            self._notify()
            logger.debug("trailing_empty_removed", kind=self.kind.value, removed=removed)
        return removed


class SelectableStore(EntityStore[S]):
    """Several named collections, one selected for editing.

    Attributes:
        on_selection_change: Selected index after it changes (-1 = none).
        on_rejected: Why a mutation was refused (no selection, bad input).
    """

    NO_SELECTION_MESSAGE: ClassVar[str] = "Nothing selected"

    def __init__(self) -> None:
        super().__init__()
        self._selected_index = NO_SELECTION
        self._drag_origin: S | None = None
        self.on_selection_change: Signal[SelectionChange] = Signal()
        self.on_rejected: Signal[ValidationResult] = Signal()

    @abstractmethod
    def _geometry(self, entity: S) -> list[Point]: ...

    @abstractmethod
    def _set_geometry(self, entity: S, points: list[Point]) -> None: ...

    def _after_geometry_change(self, entity: S, *, structural: bool) -> None:
        """Hook run after a waypoint/vertex insert, delete or committed move."""

    @property
    def selected_index(self) -> int:
        return self._selected_index

    def get_selected(self) -> S | None:
        return self.get(self._selected_index)

    def count(self) -> int:
        """Number of geometry points in the selected collection."""
        selected = self.get_selected()
        return len(self._geometry(selected)) if selected is not None else 0

    def _reset_after_replace(self) -> None:
        self._drag_origin = None
        if self._selected_index != NO_SELECTION and not self._in_range(self._selected_index):
            self._selected_index = NO_SELECTION
            self.on_selection_change.emit(SelectionChange(index=NO_SELECTION))

    def _reframe_entity(self, entity: S, old: CanvasFrame, new: CanvasFrame) -> None:
        self._set_geometry(entity, [_reframe_point(p, old, new) for p in self._geometry(entity)])

    def select_at(self, index: int) -> None:
        """Select the collection at index; any out-of-range index clears the selection."""
        self._selected_index = index if self._in_range(index) else NO_SELECTION
        self._drag_origin = None
        self.on_selection_change.emit(SelectionChange(index=self._selected_index))
        self._notify()

    def _reject_no_selection(self) -> None:
        self.on_rejected.emit(ValidationResult.fail(self.NO_SELECTION_MESSAGE))

    def _append_collection(self, entity: S, *, select: bool) -> int:
        self._items.append(entity)
        index = len(self._items) - 1
        self._record(ChangeAction.ADDED, index, entity)
        if select:
            self.select_at(index)
        else:
            self.on_change.emit(self.get_all())
        return index

    def delete_at(self, index: int) -> S | None:
        """Delete a whole collection, keeping the selection on the same entity."""
        if not self._in_range(index):
            return None
        entity = self._items.pop(index)
        if self._selected_index == index:
            self._selected_index = NO_SELECTION
            self._drag_origin = None
            self.on_selection_change.emit(SelectionChange(index=NO_SELECTION))
        elif self._selected_index > index:
            self._selected_index -= 1
            self.on_selection_change.emit(SelectionChange(index=self._selected_index))
        self._notify()
        self._record(ChangeAction.REMOVED, index, entity)
        return entity

    def _commit_selected(self, previous: S | None = None) -> None:
        selected = self.get_selected()
        if selected is not None:
            self._record(ChangeAction.UPDATED, self._selected_index, selected, previous=previous)

    def add(self, x: float, y: float) -> Point | None:
        """Append a point to the selected collection's geometry."""
        selected = self.get_selected()
        if selected is None:
            self._reject_no_selection()
            return None
        previous = selected.model_copy(deep=True)
        point = Point(x=round_half_up(x), y=round_half_up(y))
        self._set_geometry(selected, [*self._geometry(selected), point])
        self._after_geometry_change(selected, structural=True)
        self._notify()
        self._commit_selected(previous)
        return point

    def remove_at(self, index: int) -> Point | None:
        """Remove one geometry point from the selected collection."""
        removed = self._remove_points([index])
        return removed[0] if removed else None

    def remove_points(self, indices: Iterable[int]) -> int:
        """Remove several geometry points at once; returns how many went."""
        return len(self._remove_points(indices))

    def _remove_points(self, indices: Iterable[int]) -> list[Point]:
        selected = self.get_selected()
        if selected is None:
            self._reject_no_selection()
            return []
        points = self._geometry(selected)
        doomed = {i for i in indices if 0 <= i < len(points)}
        if not doomed:
            return []
        previous = selected.model_copy(deep=True)
        removed = [points[i] for i in sorted(doomed)]
        self._set_geometry(selected, [p for i, p in enumerate(points) if i not in doomed])
        self._after_geometry_change(selected, structural=True)
        self._notify()
        self._commit_selected(previous)
        return removed

    def update_geometry(self, index: int, x: float, y: float, *, commit: bool = True) -> None:
        """Move one geometry point of the selected collection.

        Live moves (``commit=False``) only fire on_change. The commit fires
        one UPDATED change whose ``previous`` is the state before the drag.
        """
        selected = self.get_selected()
        if selected is None:
            self._reject_no_selection()
            return
        points = self._geometry(selected)
        if not 0 <= index < len(points):
            return
        if self._drag_origin is None:
            self._drag_origin = selected.model_copy(deep=True)
        points = list(points)
        points[index] = Point(x=round_half_up(x), y=round_half_up(y))
        self._set_geometry(selected, points)
        if commit:
            previous, self._drag_origin = self._drag_origin, None
            self._after_geometry_change(selected, structural=False)
            self.on_change.emit(self.get_all())
            self._commit_selected(previous)
        else:
            self.on_change.emit(self.get_all())

    def find_geometry_at(self, x: float, y: float, threshold: float) -> int | None:
        """Index of the first point of the selected collection within threshold."""
        selected = self.get_selected()
        if selected is None:
            return None
        for i, point in enumerate(self._geometry(selected)):
            if point.distance_to(x, y) <= threshold:
                return i
        return None

    def remove_trailing_empty(self) -> int:
        """Drop the run of unlabeled collections at the end of the list."""
        removed = 0
        while self._items and not self._items[-1].is_labeled:
            self._items.pop()
            removed += 1
        if removed:
            if self._selected_index >= len(self._items):
                self._selected_index = NO_SELECTION
                self._drag_origin = None
                self.on_selection_change.emit(SelectionChange(index=NO_SELECTION))
            self._notify()
        return removed
