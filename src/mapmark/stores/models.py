"""Local annotation entities.

Entities are mutable Pydantic models owned by their store. Geometry is
in canvas space while editing; the sync gateway and the exporters convert
to image space on the way out.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from mapmark.geometry.primitives import Point


class EntityKind(str, Enum):
    """Entity collections, named after their remote sub-collections."""

    POINTS = "points"
    SPOTS = "spots"
    ROUTES = "routes"
    AREAS = "areas"


class _Entity(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    remote_id: str | None = Field(
        default=None, description="Server-assigned document id, once known"
    )


class MapPoint(_Entity):
    """A labeled point.

    Attributes:
        x: Canvas X.
        y: Canvas Y.
        id: Point id in ``L-dd`` form, or blank while unlabeled.
        is_marker: True for read-only markers imported from elsewhere.
    """

    x: int
    y: int
    id: str = ""
    is_marker: bool = False

    @property
    def position(self) -> Point:
        return Point(x=self.x, y=self.y)

    @property
    def is_labeled(self) -> bool:
        return self.id.strip() != ""


class Spot(_Entity):
    """A named location, drawn larger than a point."""

    x: int
    y: int
    name: str = ""

    @property
    def position(self) -> Point:
        return Point(x=self.x, y=self.y)

    @property
    def is_labeled(self) -> bool:
        return self.name.strip() != ""


class Route(_Entity):
    """An ordered list of waypoints between two named endpoints.

    Endpoints reference a point id or a spot name. Waypoints keep
    insertion order.
    """

    route_name: str = ""
    start_point_id: str = ""
    end_point_id: str = ""
    waypoints: list[Point] = Field(default_factory=list)
    description: str = ""
    is_modified: bool = False

    @property
    def display_name(self) -> str:
        """``start ～ end`` once both endpoints are set, else the route name."""
        if self.start_point_id and self.end_point_id:
            return f"{self.start_point_id} ～ {self.end_point_id}"
        return self.route_name

    @property
    def is_labeled(self) -> bool:
        return bool(self.start_point_id.strip() or self.end_point_id.strip())


class Area(_Entity):
    """A closed polygon with a name."""

    area_name: str = ""
    vertices: list[Point] = Field(default_factory=list)
    is_modified: bool = False

    @property
    def is_labeled(self) -> bool:
        return self.area_name.strip() != ""


Entity = MapPoint | Spot | Route | Area
