"""JSON export and import files.

Three file shapes exist, all with image-space integer coordinates and a
1-based ``index`` per entry:

- points: ``{totalPoints, imageReference, imageInfo, points, exportedAt}``
- route: ``{routeInfo, imageReference, imageInfo, points, exportedAt}``
  where every entry of ``points`` has ``type: "waypoint"``
- spots: ``{totalSpots, imageReference, imageInfo, spots, exportedAt}``;
  older files put spots under ``points`` with ``type: "spot"``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mapmark.geometry.primitives import Point
from mapmark.geometry.transforms import CanvasFrame
from mapmark.stores.models import MapPoint, Route, Spot
from mapmark.stores.point_store import PointStore
from mapmark.stores.route_store import RouteStore
from mapmark.stores.spot_store import SpotStore
from mapmark.validation.rules import check_duplicate_ids


class ExportFormatError(ValueError):
    """Raised when a file is not a recognizable export or data cannot be exported."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else None
        self.message = message
        super().__init__(f"{message} (path: {self.path})" if self.path else message)


class ExportKind(str, Enum):
    POINTS = "points"
    ROUTE = "route"
    SPOTS = "spots"


class _ExportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ImageInfo(_ExportModel):
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)


class PointEntry(_ExportModel):
    index: int
    id: str = ""
    image_x: int = Field(..., alias="imageX")
    image_y: int = Field(..., alias="imageY")
    is_marker: bool = Field(default=False, alias="isMarker")


class WaypointEntry(_ExportModel):
    type: str = "waypoint"
    index: int
    image_x: int = Field(..., alias="imageX")
    image_y: int = Field(..., alias="imageY")


class SpotEntry(_ExportModel):
    index: int
    name: str
    image_x: int = Field(..., alias="imageX")
    image_y: int = Field(..., alias="imageY")


class RouteInfo(_ExportModel):
    start_point: str = Field(default="", alias="startPoint")
    end_point: str = Field(default="", alias="endPoint")
    waypoint_count: int = Field(default=0, alias="waypointCount")


class PointsExport(_ExportModel):
    total_points: int = Field(..., alias="totalPoints")
    image_reference: str = Field(default="", alias="imageReference")
    image_info: ImageInfo = Field(..., alias="imageInfo")
    points: list[PointEntry]
    exported_at: str = Field(default="", alias="exportedAt")


class RouteExport(_ExportModel):
    route_info: RouteInfo = Field(..., alias="routeInfo")
    image_reference: str = Field(default="", alias="imageReference")
    image_info: ImageInfo = Field(..., alias="imageInfo")
    points: list[WaypointEntry]
    exported_at: str = Field(default="", alias="exportedAt")

    @property
    def waypoints(self) -> list[WaypointEntry]:
        return [p for p in self.points if p.type == "waypoint"]


class SpotsExport(_ExportModel):
    total_spots: int = Field(..., alias="totalSpots")
    image_reference: str = Field(default="", alias="imageReference")
    image_info: ImageInfo = Field(..., alias="imageInfo")
    spots: list[SpotEntry]
    exported_at: str = Field(default="", alias="exportedAt")


AnyExport = PointsExport | RouteExport | SpotsExport


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _image_info(frame: CanvasFrame) -> ImageInfo:
    return ImageInfo(width=frame.image.width, height=frame.image.height)


# =============================================================================
# Default Filenames
# =============================================================================


def points_filename(image_name: str) -> str:
    return f"{image_name}_points.json"


def route_filename(image_name: str, start: str, end: str) -> str:
    return f"{image_name or 'route'}_route_{start or 'start'}_to_{end or 'end'}.json"


def spots_filename(image_name: str) -> str:
    return f"{image_name or 'spots'}_spots.json"


# =============================================================================
# Export
# =============================================================================


def export_points(
    points: Sequence[MapPoint],
    frame: CanvasFrame,
    image_reference: str,
    *,
    exported_at: str | None = None,
) -> PointsExport:
    """Build a points export from canvas-space points.

    Raises:
        ExportFormatError: If two point ids canonicalize to the same id.
    """
    result = check_duplicate_ids(p.id for p in points)
    if not result:
        raise ExportFormatError(result.message)
    entries = []
    for i, point in enumerate(points, start=1):
        image = frame.to_image(point.position)
        entries.append(
            PointEntry(
                index=i, id=point.id, image_x=image.x, image_y=image.y, is_marker=point.is_marker
            )
        )
    return PointsExport(
        total_points=len(entries),
        image_reference=image_reference,
        image_info=_image_info(frame),
        points=entries,
        exported_at=exported_at or _now(),
    )


def export_route(
    route: Route,
    frame: CanvasFrame,
    image_reference: str,
    *,
    exported_at: str | None = None,
) -> RouteExport:
    """Build a route export from a canvas-space route."""
    entries = []
    for i, waypoint in enumerate(route.waypoints, start=1):
        image = frame.to_image(waypoint)
        entries.append(WaypointEntry(index=i, image_x=image.x, image_y=image.y))
    return RouteExport(
        route_info=RouteInfo(
            start_point=route.start_point_id,
            end_point=route.end_point_id,
            waypoint_count=len(entries),
        ),
        image_reference=image_reference,
        image_info=_image_info(frame),
        points=entries,
        exported_at=exported_at or _now(),
    )


def export_spots(
    spots: Sequence[Spot],
    frame: CanvasFrame,
    image_reference: str,
    *,
    exported_at: str | None = None,
) -> SpotsExport:
    """Build a spots export. Unnamed spots are left out."""
    entries = []
    for i, spot in enumerate((s for s in spots if s.is_labeled), start=1):
        image = frame.to_image(spot.position)
        entries.append(
            SpotEntry(index=i, name=spot.name.strip(), image_x=image.x, image_y=image.y)
        )
    return SpotsExport(
        total_spots=len(entries),
        image_reference=image_reference,
        image_info=_image_info(frame),
        spots=entries,
        exported_at=exported_at or _now(),
    )


# =============================================================================
# Import
# =============================================================================


def import_points(export: PointsExport, store: PointStore, frame: CanvasFrame) -> int:
    """Replace the store's points with the file's. Returns how many were loaded.

    The store's contents are replaced without entity changes, so nothing is
    pushed until the project is saved.
    """
    points = []
    for entry in export.points:
        canvas = frame.to_canvas(Point(x=entry.image_x, y=entry.image_y))
        points.append(MapPoint(x=canvas.x, y=canvas.y, id=entry.id, is_marker=entry.is_marker))
    store.replace_all(points)
    return len(points)


def import_spots(export: SpotsExport, store: SpotStore, frame: CanvasFrame) -> int:
    """Replace the store's spots with the file's. Returns how many were loaded."""
    spots = []
    for entry in export.spots:
        canvas = frame.to_canvas(Point(x=entry.image_x, y=entry.image_y))
        spots.append(Spot(x=canvas.x, y=canvas.y, name=entry.name))
    store.replace_all(spots)
    return len(spots)


def import_route(
    export: RouteExport,
    store: RouteStore,
    frame: CanvasFrame,
    *,
    route_name: str | None = None,
) -> int:
    """Append the file's route to the store and select it; returns its index."""
    route = Route(
        route_name=route_name or "",
        start_point_id=export.route_info.start_point,
        end_point_id=export.route_info.end_point,
        waypoints=[
            frame.to_canvas(Point(x=entry.image_x, y=entry.image_y))
            for entry in export.waypoints
        ],
        is_modified=True,
    )
    if not route.route_name:
        route.route_name = route.display_name or f"Route {len(store) + 1}"
    return store.append(route)


# =============================================================================
# Files
# =============================================================================


def detect_export_kind(data: Mapping[str, Any]) -> ExportKind:
    """Tell which export a decoded JSON object is.

    Raises:
        ExportFormatError: If it matches none of the shapes.
    """
    points = data.get("points")
    if isinstance(points, list) and "routeInfo" in data:
        return ExportKind.ROUTE
    if isinstance(data.get("spots"), list):
        return ExportKind.SPOTS
    if isinstance(points, list):
        if any(isinstance(p, Mapping) and p.get("type") == "spot" for p in points):
            return ExportKind.SPOTS
        return ExportKind.POINTS
    raise ExportFormatError("No points, route or spots data found")


def parse_export(data: Mapping[str, Any]) -> AnyExport:
    """Validate a decoded JSON object as the export it looks like.

    Legacy spot files (spots under ``points`` with ``type: "spot"``) are
    converted to the current spots shape.

    Raises:
        ExportFormatError: If the shape is unknown or a field is invalid.
    """
    kind = detect_export_kind(data)
    try:
        if kind is ExportKind.ROUTE:
            return RouteExport.model_validate(data)
        if kind is ExportKind.POINTS:
            return PointsExport.model_validate(data)
        if "spots" in data:
            return SpotsExport.model_validate(data)
        legacy = [
            p for p in data["points"] if isinstance(p, Mapping) and p.get("type") == "spot"
        ]
        return SpotsExport.model_validate(
            {
                **data,
                "totalSpots": data.get("totalSpots", len(legacy)),
                "spots": legacy,
            }
        )
    except ValidationError as e:
        raise ExportFormatError(f"Invalid {kind.value} export: {e}") from e


def write_export(export: AnyExport, path: Path | str) -> Path:
    """Write an export as indented JSON; returns the path written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    return path


def read_export(path: Path | str) -> AnyExport:
    """Read and validate an export file of any kind.

    Raises:
        ExportFormatError: If the file is not JSON or not a known export.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise ExportFormatError("Not valid UTF-8 JSON", path) from e
    except json.JSONDecodeError as e:
        raise ExportFormatError(f"Not valid JSON: {e.msg}", path) from e
    if not isinstance(data, dict):
        raise ExportFormatError("Top-level value must be an object", path)
    try:
        return parse_export(data)
    except ExportFormatError as e:
        raise ExportFormatError(e.message, path) from e
