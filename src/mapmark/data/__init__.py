"""JSON export and import for mapmark.

Public API:
    - export_points, export_route, export_spots: Build exports from canvas-space entities.
    - import_points, import_route, import_spots: Load exports into the stores.
    - read_export, write_export: JSON file helpers.
    - parse_export, detect_export_kind: Validate decoded JSON.
    - points_filename, route_filename, spots_filename: Default file names.
"""

from mapmark.data.exports import (
    AnyExport,
    ExportFormatError,
    ExportKind,
    ImageInfo,
    PointEntry,
    PointsExport,
    RouteExport,
    RouteInfo,
    SpotEntry,
    SpotsExport,
    WaypointEntry,
    detect_export_kind,
    export_points,
    export_route,
    export_spots,
    import_points,
    import_route,
    import_spots,
    parse_export,
    points_filename,
    read_export,
    route_filename,
    spots_filename,
    write_export,
)

__all__ = [
    "AnyExport",
    "ExportFormatError",
    "ExportKind",
    "ImageInfo",
    "PointEntry",
    "PointsExport",
    "RouteExport",
    "RouteInfo",
    "SpotEntry",
    "SpotsExport",
    "WaypointEntry",
    "detect_export_kind",
    "export_points",
    "export_route",
    "export_spots",
    "import_points",
    "import_route",
    "import_spots",
    "parse_export",
    "points_filename",
    "read_export",
    "route_filename",
    "spots_filename",
    "write_export",
]
