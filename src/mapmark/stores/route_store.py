"""Store for routes: several waypoint lists, one selected for editing."""

from __future__ import annotations

from collections.abc import Sequence
from typing import ClassVar, Literal

from mapmark.config import settings
from mapmark.geometry.primitives import Point
from mapmark.stores.base import SelectableStore
from mapmark.stores.events import ChangeAction, EndpointsChange, Signal
from mapmark.stores.models import EntityKind, Route
from mapmark.utils.logging import get_logger
from mapmark.validation.rules import (
    ValidationResult,
    check_route_references,
    resolve_endpoint_input,
)

logger = get_logger(__name__)

Endpoint = Literal["start", "end"]


class RouteStore(SelectableStore[Route]):
    """Routes in canvas space.

    Waypoint operations (add, remove_at, update_geometry) act on the
    selected route. Endpoints reference a point id or a spot name.

    Attributes:
        on_endpoints_change: Start/end of the selected route after they change.
    """

    kind: ClassVar[EntityKind] = EntityKind.ROUTES
    NO_SELECTION_MESSAGE: ClassVar[str] = "Select or add a route first"

    def __init__(self) -> None:
        super().__init__()
        self.on_endpoints_change: Signal[EndpointsChange] = Signal()

    def _geometry(self, entity: Route) -> list[Point]:
        return entity.waypoints

    def _set_geometry(self, entity: Route, points: list[Point]) -> None:
        entity.waypoints = points

    def _after_geometry_change(self, entity: Route, *, structural: bool) -> None:
        entity.is_modified = True

    def add_route(self, route_name: str | None = None, *, select: bool = True) -> int:
        """Append an empty route named "Route N" and select it; returns its index."""
        name = route_name if route_name is not None else f"Route {len(self._items) + 1}"
        return self._append_collection(Route(route_name=name), select=select)

    def append(self, route: Route, *, select: bool = True) -> int:
        """Append a complete route (e.g. from an import) as one change."""
        index = self._append_collection(route, select=select)
        if select:
            self.on_endpoints_change.emit(self.get_endpoints())
        return index

    def delete_route(self, index: int) -> Route | None:
        return self.delete_at(index)

    def get_endpoints(self) -> EndpointsChange:
        """Start and end of the selected route (blank when nothing is selected)."""
        selected = self.get_selected()
        if selected is None:
            return EndpointsChange(start="", end="")
        return EndpointsChange(start=selected.start_point_id, end=selected.end_point_id)

    def _set_endpoint(
        self,
        which: Endpoint,
        value: str,
        skip_formatting: bool,
        spot_names: Sequence[str],
    ) -> None:
        selected = self.get_selected()
        if selected is None:
            self._reject_no_selection()
            return
        previous = selected.model_copy(deep=True)
        stored = value if skip_formatting else resolve_endpoint_input(value, spot_names).strip()
        if which == "start":
            selected.start_point_id = stored
        else:
            selected.end_point_id = stored
        self.on_endpoints_change.emit(self.get_endpoints())
        self.on_change.emit(self.get_all())
        if not skip_formatting:
            selected.is_modified = True
            self._record(ChangeAction.UPDATED, self._selected_index, selected, previous=previous)

    def set_start_point(
        self, value: str, *, skip_formatting: bool = False, spot_names: Sequence[str] = ()
    ) -> None:
        """Set the selected route's start from typed text.

        Live typing (``skip_formatting=True``) stores the raw text. A commit
        resolves a unique partial spot-name match to that spot, and
        otherwise canonicalizes the text as a point id.
        """
        self._set_endpoint("start", value, skip_formatting, spot_names)

    def set_end_point(
        self, value: str, *, skip_formatting: bool = False, spot_names: Sequence[str] = ()
    ) -> None:
        """Set the selected route's end; see set_start_point."""
        self._set_endpoint("end", value, skip_formatting, spot_names)

    def assign_endpoint_from_pick(self, identifier: str) -> Endpoint | None:
        """Assign a picked point id or spot name to the next free endpoint.

        The first pick sets the start, the second the end. Once both are
        set further picks are ignored. Returns which endpoint was set.
        """
        selected = self.get_selected()
        if selected is None:
            self._reject_no_selection()
            return None
        if not identifier or not identifier.strip():
            self.on_rejected.emit(
                ValidationResult.fail("The picked object has no id or name yet")
            )
            return None

        previous = selected.model_copy(deep=True)
        which: Endpoint
        if not selected.start_point_id:
            selected.start_point_id = identifier
            which = "start"
        elif not selected.end_point_id:
            selected.end_point_id = identifier
            which = "end"
        else:
            logger.debug("endpoint_pick_ignored", identifier=identifier)
            return None

        selected.is_modified = True
        self.on_endpoints_change.emit(self.get_endpoints())
        self.on_change.emit(self.get_all())
        self._record(ChangeAction.UPDATED, self._selected_index, selected, previous=previous)
        return which

    def clear_waypoints(self) -> int:
        """Remove every waypoint of the selected route, keeping its endpoints."""
        selected = self.get_selected()
        if selected is None:
            self._reject_no_selection()
            return 0
        return self.remove_points(range(len(selected.waypoints)))

    def remove_waypoints(self, indices: Sequence[int]) -> int:
        return self.remove_points(indices)

    def find_waypoint_at(self, x: float, y: float, threshold: float | None = None) -> int | None:
        """First waypoint of the selected route within threshold (canvas px)."""
        threshold = settings.WAYPOINT_HIT_RADIUS if threshold is None else threshold
        return self.find_geometry_at(x, y, threshold)

    def find_nearest_waypoint(
        self, x: float, y: float, max_distance: float | None = None
    ) -> int | None:
        """Closest waypoint of the selected route, if within max_distance."""
        max_distance = settings.NEAREST_WAYPOINT_RADIUS if max_distance is None else max_distance
        selected = self.get_selected()
        if selected is None:
            return None
        best: int | None = None
        best_distance = 0.0
        for i, waypoint in enumerate(selected.waypoints):
            distance = waypoint.distance_to(x, y)
            if distance <= max_distance and (best is None or distance < best_distance):
                best, best_distance = i, distance
        return best

    def find_waypoints_in_rectangle(
        self, x1: float, y1: float, x2: float, y2: float
    ) -> list[int]:
        """Waypoints of the selected route inside the rectangle (edges included).

        The corners may be given in any order, as from a drag in any
        direction.
        """
        selected = self.get_selected()
        if selected is None:
            return []
        left, right = sorted((x1, x2))
        top, bottom = sorted((y1, y2))
        return [
            i
            for i, p in enumerate(selected.waypoints)
            if left <= p.x <= right and top <= p.y <= bottom
        ]

    def validate_endpoints(
        self,
        registered_point_ids: Sequence[str],
        spot_names: Sequence[str] | None = None,
    ) -> ValidationResult:
        """Check that the selected route can be saved."""
        selected = self.get_selected()
        if selected is None:
            return ValidationResult.fail(self.NO_SELECTION_MESSAGE)
        return check_route_references(
            selected.start_point_id,
            selected.end_point_id,
            len(selected.waypoints),
            registered_point_ids,
            spot_names,
        )

    def display_name(self, index: int | None = None) -> str:
        """Label for a route list entry; defaults to the selected route."""
        route = self.get(self._selected_index if index is None else index)
        return route.display_name if route is not None else ""

    def mark_saved(self, index: int) -> None:
        route = self.get(index)
        if route is not None:
            route.is_modified = False
