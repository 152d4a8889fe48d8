"""Geometry primitives for mapmark.

This module provides immutable Pydantic models for points, sizes, the
on-screen canvas rectangle and the zoom/pan viewport. All coordinates
follow the convention where (0, 0) is the top-left corner, x grows
rightward and y grows downward.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Self

from pydantic import BaseModel, Field

from mapmark.config import settings


class Point(BaseModel, frozen=True):
    """A 2D integer point.

    The coordinate space (image, canvas or view) is implied by where the
    point comes from. Coordinates may be negative: a pointer dragged past
    the top-left edge of the canvas produces negative canvas coordinates.

    Attributes:
        x: Horizontal position in pixels.
        y: Vertical position in pixels.
    """

    x: int = Field(..., description="X coordinate (pixels from left)")
    y: int = Field(..., description="Y coordinate (pixels from top)")

    def to_tuple(self) -> tuple[int, int]:
        """Convert to (x, y) tuple."""
        return (self.x, self.y)

    @classmethod
    def from_tuple(cls, coord: tuple[int, int]) -> Self:
        """Create Point from (x, y) tuple."""
        return cls(x=coord[0], y=coord[1])

    def distance_to(self, x: float, y: float) -> float:
        """Euclidean distance from this point to (x, y)."""
        return math.hypot(self.x - x, self.y - y)


class Size(BaseModel, frozen=True):
    """A 2D size representing width and height.

    Zero is allowed so that "no image loaded yet" is representable; the
    transform functions reject zero-sized inputs.

    Attributes:
        width: Horizontal extent in pixels.
        height: Vertical extent in pixels.
    """

    width: int = Field(..., ge=0, description="Width in pixels")
    height: int = Field(..., ge=0, description="Height in pixels")

    @property
    def is_empty(self) -> bool:
        """True when either dimension is zero."""
        return self.width == 0 or self.height == 0

    def to_tuple(self) -> tuple[int, int]:
        """Convert to (width, height) tuple."""
        return (self.width, self.height)

    @classmethod
    def from_tuple(cls, size: tuple[int, int]) -> Self:
        """Create Size from (width, height) tuple."""
        return cls(width=size[0], height=size[1])


class CanvasBounds(BaseModel, frozen=True):
    """On-screen rectangle of the canvas element in CSS pixels.

    This is what a browser reports as the element's bounding client rect.
    It differs from the canvas bitmap size by the device pixel ratio and
    any CSS scaling.
    """

    left: float = 0.0
    top: float = 0.0
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)


class PanDirection(str, Enum):
    """Direction of a keyboard/button pan step."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class Viewport(BaseModel, frozen=True):
    """Zoom and pan state applied on top of canvas space.

    A canvas point ``p`` is drawn at ``p * scale + offset``. Every
    operation returns a new Viewport.

    Example:
        >>> Viewport().zoom_in().scale
        1.2
    """

    scale: float = Field(default=1.0, gt=0)
    offset_x: float = 0.0
    offset_y: float = 0.0

    def zoom_in(self, step: float | None = None, max_scale: float | None = None) -> Viewport:
        step = settings.ZOOM_STEP if step is None else step
        max_scale = settings.MAX_SCALE if max_scale is None else max_scale
        scale = min(round(self.scale + step, 10), max_scale)
        return self.model_copy(update={"scale": scale})

    def zoom_out(self, step: float | None = None, min_scale: float | None = None) -> Viewport:
        step = settings.ZOOM_STEP if step is None else step
        min_scale = settings.MIN_SCALE if min_scale is None else min_scale
        scale = max(round(self.scale - step, 10), min_scale)
        return self.model_copy(update={"scale": scale})

    def can_zoom_in(self, max_scale: float | None = None) -> bool:
        max_scale = settings.MAX_SCALE if max_scale is None else max_scale
        return self.scale < max_scale

    def can_zoom_out(self, min_scale: float | None = None) -> bool:
        min_scale = settings.MIN_SCALE if min_scale is None else min_scale
        return self.scale > min_scale

    def pan(self, direction: PanDirection, step: int | None = None) -> Viewport:
        """Shift the view one step.

        Panning "up" reveals content above the current view, so the
        content itself moves down (offset_y grows).
        """
        step = settings.PAN_STEP if step is None else step
        dx, dy = {
            PanDirection.UP: (0, step),
            PanDirection.DOWN: (0, -step),
            PanDirection.LEFT: (step, 0),
            PanDirection.RIGHT: (-step, 0),
        }[PanDirection(direction)]
        return self.model_copy(
            update={"offset_x": self.offset_x + dx, "offset_y": self.offset_y + dy}
        )

    def reset(self) -> Viewport:
        """Return the identity viewport (scale 1, no offset)."""
        return Viewport()
