"""Coordinate transformation utilities for mapmark.

Coordinate Systems:
    - Image: pixel coordinates of the source map image. Canonical and
      persisted; independent of window size, zoom and pan.
    - Canvas: pixel coordinates of the current canvas bitmap. Changes on
      every resize, so it is never stored.
    - View: canvas coordinates after zoom and pan,
      ``view = canvas * scale + offset``.

Every conversion rounds to integers with ``floor(v + 0.5)`` and always
starts from a stored value; canvas coordinates are never rescaled from
older canvas coordinates.
"""

from __future__ import annotations

import math

from pydantic import BaseModel

from mapmark.geometry.primitives import CanvasBounds, Point, Size, Viewport

__all__ = [
    "CanvasFrame",
    "DegenerateGeometryError",
    "canvas_to_image",
    "canvas_to_view",
    "image_to_canvas",
    "pointer_to_canvas",
    "round_half_up",
    "view_to_canvas",
]


class DegenerateGeometryError(ValueError):
    """Raised when a transform is given a zero-sized image, canvas or bounds."""

    def __init__(self, what: str, width: float, height: float) -> None:
        self.what = what
        self.width = width
        self.height = height
        super().__init__(f"{what} has zero size ({width}x{height})")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity.

    Python's built-in ``round`` uses banker's rounding, which would make
    ``round(0.5) == 0`` and ``round(1.5) == 2``.
    """
    return math.floor(value + 0.5)


def _require_size(what: str, size: Size) -> None:
    if size.is_empty:
        raise DegenerateGeometryError(what, size.width, size.height)


def image_to_canvas(point: Point, canvas_size: Size, image_size: Size) -> Point:
    """Transform a Point from image space to canvas space.

    Args:
        point: Point in image pixels.
        canvas_size: Current canvas bitmap size.
        image_size: Natural size of the source image.

    Returns:
        Point in canvas pixels.

    Raises:
        DegenerateGeometryError: If either size is zero.
    """
    _require_size("canvas", canvas_size)
    _require_size("image", image_size)
    return Point(
        x=round_half_up(point.x * (canvas_size.width / image_size.width)),
        y=round_half_up(point.y * (canvas_size.height / image_size.height)),
    )


def canvas_to_image(point: Point, canvas_size: Size, image_size: Size) -> Point:
    """Transform a Point from canvas space to image space.

    Round-tripping through image_to_canvas in either direction may be off
    by up to one pixel per axis. That bound holds only while the canvas is
    at least half the image size on each axis; below that an image point
    can come back further off, e.g. (102, 102) returns as (100, 100) at
    1/5 scale.

    Raises:
        DegenerateGeometryError: If either size is zero.
    """
    _require_size("canvas", canvas_size)
    _require_size("image", image_size)
    return Point(
        x=round_half_up(point.x * (image_size.width / canvas_size.width)),
        y=round_half_up(point.y * (image_size.height / canvas_size.height)),
    )


def canvas_to_view(point: Point, viewport: Viewport) -> Point:
    """Apply zoom and pan: ``p * scale + offset``."""
    return Point(
        x=round_half_up(point.x * viewport.scale + viewport.offset_x),
        y=round_half_up(point.y * viewport.scale + viewport.offset_y),
    )


def view_to_canvas(point: Point, viewport: Viewport) -> Point:
    """Inverse of canvas_to_view: ``(p - offset) / scale``."""
    return Point(
        x=round_half_up((point.x - viewport.offset_x) / viewport.scale),
        y=round_half_up((point.y - viewport.offset_y) / viewport.scale),
    )


def pointer_to_canvas(
    pointer_x: float,
    pointer_y: float,
    bounds: CanvasBounds,
    bitmap_size: Size,
    viewport: Viewport,
) -> Point:
    """Convert a client-space pointer position to canvas space.

    This is the single entry point for pointer gestures. It removes the
    canvas element's on-screen offset, corrects for the ratio between the
    bitmap and its CSS size (device pixel ratio and CSS scaling), and then
    undoes zoom and pan. Rounding happens once, at the end.

    Args:
        pointer_x: Pointer X in client (CSS) pixels.
        pointer_y: Pointer Y in client (CSS) pixels.
        bounds: On-screen rectangle of the canvas element.
        bitmap_size: Canvas bitmap size in device pixels.
        viewport: Current zoom and pan.

    Raises:
        DegenerateGeometryError: If bounds or bitmap size is zero.
    """
    if bounds.width == 0 or bounds.height == 0:
        raise DegenerateGeometryError("canvas bounds", bounds.width, bounds.height)
    _require_size("canvas", bitmap_size)

    bitmap_x = (pointer_x - bounds.left) * (bitmap_size.width / bounds.width)
    bitmap_y = (pointer_y - bounds.top) * (bitmap_size.height / bounds.height)
    return Point(
        x=round_half_up((bitmap_x - viewport.offset_x) / viewport.scale),
        y=round_half_up((bitmap_y - viewport.offset_y) / viewport.scale),
    )


class CanvasFrame(BaseModel, frozen=True):
    """The canvas/image size pair current at some moment.

    Sync code captures a frame when it translates coordinates so that a
    resize in between does not mix two scales.

    Example:
        >>> frame = CanvasFrame(canvas=Size(width=500, height=250),
        ...                     image=Size(width=1000, height=500))
        >>> frame.to_image(Point(x=10, y=10))
        Point(x=20, y=20)
    """

    canvas: Size
    image: Size

    @property
    def is_ready(self) -> bool:
        return not (self.canvas.is_empty or self.image.is_empty)

    def to_image(self, point: Point) -> Point:
        return canvas_to_image(point, self.canvas, self.image)

    def to_canvas(self, point: Point) -> Point:
        return image_to_canvas(point, self.canvas, self.image)
