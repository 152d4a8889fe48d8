"""Hit testing: which entity, if any, is under a canvas position.

Matching is first-match in collection order within each entity type, not
nearest: when two points overlap, the earlier one wins. Types are tried in
a fixed priority that depends on the edit mode:

    ROUTE:  waypoints of the selected route, spots, points
    AREA:   vertices of the selected area, spots, points
    POINT:  points, spots
    SPOT:   spots, points

Spots come before points in the other modes because they are drawn larger
and would otherwise be unreachable under an overlapping point.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import NamedTuple, Protocol, Self

from pydantic import BaseModel, Field

from mapmark.config import settings
from mapmark.stores.area_store import AreaStore
from mapmark.stores.point_store import PointStore
from mapmark.stores.route_store import RouteStore
from mapmark.stores.spot_store import SpotStore


class Positioned(Protocol):
    @property
    def x(self) -> int: ...

    @property
    def y(self) -> int: ...


class EditMode(str, Enum):
    POINT = "point"
    SPOT = "spot"
    ROUTE = "route"
    AREA = "area"


class HitType(str, Enum):
    POINT = "point"
    SPOT = "spot"
    WAYPOINT = "waypoint"
    VERTEX = "vertex"


class Hit(NamedTuple):
    """Result of a hit test.

    Attributes:
        type: Kind of entity that was hit.
        index: Position in its collection (for waypoints and vertices,
            within the selected route or area).
    """

    type: HitType
    index: int


class HitThresholds(BaseModel, frozen=True):
    """Hit radii in canvas pixels, per entity type."""

    point: float = Field(default=8.0, ge=0)
    spot: float = Field(default=10.0, ge=0)
    waypoint: float = Field(default=10.0, ge=0)
    vertex: float = Field(default=10.0, ge=0)

    @classmethod
    def from_settings(cls) -> Self:
        return cls(
            point=settings.POINT_HIT_RADIUS,
            spot=settings.SPOT_HIT_RADIUS,
            waypoint=settings.WAYPOINT_HIT_RADIUS,
            vertex=settings.VERTEX_HIT_RADIUS,
        )


class HitCollections(NamedTuple):
    """The positions a hit test looks at.

    ``waypoints`` and ``vertices`` belong to the selected route and area
    only; unselected ones are not hit-testable.
    """

    points: Sequence[Positioned] = ()
    spots: Sequence[Positioned] = ()
    waypoints: Sequence[Positioned] = ()
    vertices: Sequence[Positioned] = ()


_PRIORITY: dict[EditMode, tuple[HitType, ...]] = {
    EditMode.ROUTE: (HitType.WAYPOINT, HitType.SPOT, HitType.POINT),
    EditMode.AREA: (HitType.VERTEX, HitType.SPOT, HitType.POINT),
    EditMode.POINT: (HitType.POINT, HitType.SPOT),
    EditMode.SPOT: (HitType.SPOT, HitType.POINT),
}


def _first_within(
    items: Sequence[Positioned], x: float, y: float, threshold: float
) -> int | None:
    limit = threshold * threshold
    for i, item in enumerate(items):
        dx = item.x - x
        dy = item.y - y
        if dx * dx + dy * dy <= limit:
            return i
    return None


def find_object_at(
    x: float,
    y: float,
    collections: HitCollections,
    mode: EditMode,
    thresholds: HitThresholds | None = None,
) -> Hit | None:
    """Return the first entity within its type's radius of canvas (x, y).

    Args:
        x: Canvas X (already passed through pointer_to_canvas).
        y: Canvas Y.
        collections: Positions to test.
        mode: Current edit mode; decides the type priority.
        thresholds: Radii per type. Defaults to the configured radii.

    Returns:
        The Hit, or None when nothing is close enough.
    """
    thresholds = thresholds or HitThresholds.from_settings()
    by_type: dict[HitType, tuple[Sequence[Positioned], float]] = {
        HitType.POINT: (collections.points, thresholds.point),
        HitType.SPOT: (collections.spots, thresholds.spot),
        HitType.WAYPOINT: (collections.waypoints, thresholds.waypoint),
        HitType.VERTEX: (collections.vertices, thresholds.vertex),
    }
    for hit_type in _PRIORITY[EditMode(mode)]:
        items, threshold = by_type[hit_type]
        index = _first_within(items, x, y, threshold)
        if index is not None:
            return Hit(type=hit_type, index=index)
    return None


class HitTester:
    """Hit testing against live stores.

    Example:
        >>> tester = HitTester(points, spots, routes, areas)
        >>> tester.find_object_at(102, 48, EditMode.POINT)
        Hit(type=<HitType.POINT: 'point'>, index=0)
    """

    def __init__(
        self,
        points: PointStore,
        spots: SpotStore,
        routes: RouteStore,
        areas: AreaStore,
        thresholds: HitThresholds | None = None,
    ) -> None:
        self.points = points
        self.spots = spots
        self.routes = routes
        self.areas = areas
        self.thresholds = thresholds or HitThresholds.from_settings()

    def collections(self) -> HitCollections:
        route = self.routes.get_selected()
        area = self.areas.get_selected()
        return HitCollections(
            points=self.points.get_all(),
            spots=self.spots.get_all(),
            waypoints=route.waypoints if route is not None else (),
            vertices=area.vertices if area is not None else (),
        )

    def find_object_at(self, x: float, y: float, mode: EditMode) -> Hit | None:
        return find_object_at(x, y, self.collections(), mode, self.thresholds)

    def find_area_label_at(self, x: float, y: float, scale: float = 1.0) -> int | None:
        return self.areas.find_area_label_at(x, y, scale)
