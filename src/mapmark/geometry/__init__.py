"""Geometry module for mapmark.

This package provides the coordinate primitives and the pure transform
pipeline between image, canvas and view space.

Key Components:
    - Primitives: Point, Size, CanvasBounds, Viewport models
    - Transforms: image <-> canvas <-> view conversions, pointer mapping
    - Polygon: centroid and angle-ordered vertex reordering

Example:
    from mapmark.geometry import CanvasFrame, Point, Size

    frame = CanvasFrame(
        canvas=Size(width=800, height=600),
        image=Size(width=4000, height=3000),
    )
    stored = frame.to_image(Point(x=400, y=300))  # Point(x=2000, y=1500)
"""

from mapmark.geometry.polygon import centroid, reorder_vertices
from mapmark.geometry.primitives import CanvasBounds, PanDirection, Point, Size, Viewport
from mapmark.geometry.transforms import (
    CanvasFrame,
    DegenerateGeometryError,
    canvas_to_image,
    canvas_to_view,
    image_to_canvas,
    pointer_to_canvas,
    round_half_up,
    view_to_canvas,
)

__all__ = [
    "CanvasBounds",
    "CanvasFrame",
    "DegenerateGeometryError",
    "PanDirection",
    "Point",
    "Size",
    "Viewport",
    "canvas_to_image",
    "canvas_to_view",
    "centroid",
    "image_to_canvas",
    "pointer_to_canvas",
    "reorder_vertices",
    "round_half_up",
    "view_to_canvas",
]
