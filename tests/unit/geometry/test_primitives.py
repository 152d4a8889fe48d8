"""Unit tests for geometry primitives.

Tests Point, Size, CanvasBounds and Viewport Pydantic models including:
- Construction and validation
- Tuple conversion (to/from)
- Viewport zoom limits and pan direction
"""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from mapmark.geometry import CanvasBounds, PanDirection, Point, Size, Viewport


class TestPoint:
    """Tests for the Point model."""

    def test_point_creation_valid(self) -> None:
        """Test creating a valid Point."""
        point = Point(x=100, y=200)
        assert point.x == 100
        assert point.y == 200

    def test_point_allows_negative_coordinates(self) -> None:
        """Test Point accepts negative coordinates (pointer past the edge)."""
        point = Point(x=-5, y=-1)
        assert point.to_tuple() == (-5, -1)

    def test_point_from_tuple(self) -> None:
        """Test Point from tuple construction."""
        assert Point.from_tuple((100, 200)) == Point(x=100, y=200)

    def test_point_is_frozen(self) -> None:
        """Test Point is immutable (frozen)."""
        point = Point(x=100, y=200)
        with pytest.raises(ValidationError):
            point.x = 300  # type: ignore[misc]

    def test_point_distance_to(self) -> None:
        """Test Euclidean distance."""
        assert Point(x=0, y=0).distance_to(3, 4) == 5.0
        assert math.isclose(Point(x=1, y=1).distance_to(1.5, 1), 0.5)


class TestSize:
    """Tests for the Size model."""

    def test_size_allows_zero(self) -> None:
        """Test Size accepts zero so an unloaded image is representable."""
        size = Size(width=0, height=100)
        assert size.is_empty

    def test_size_rejects_negative(self) -> None:
        """Test Size rejects negative dimensions."""
        with pytest.raises(ValidationError, match="greater than or equal to 0"):
            Size(width=-1, height=10)

    def test_size_not_empty(self) -> None:
        assert not Size(width=1, height=1).is_empty

    def test_size_tuple_conversion(self) -> None:
        size = Size.from_tuple((640, 480))
        assert size.to_tuple() == (640, 480)


class TestCanvasBounds:
    """Tests for the CanvasBounds model."""

    def test_defaults_to_origin(self) -> None:
        bounds = CanvasBounds(width=200, height=100)
        assert bounds.left == 0.0
        assert bounds.top == 0.0

    def test_rejects_negative_width(self) -> None:
        with pytest.raises(ValidationError):
            CanvasBounds(width=-1, height=100)


class TestViewport:
    """Tests for zoom and pan state."""

    def test_default_is_identity(self) -> None:
        viewport = Viewport()
        assert viewport.scale == 1.0
        assert viewport.offset_x == 0.0
        assert viewport.offset_y == 0.0

    def test_zoom_in_step(self) -> None:
        """Test zoom in adds one step without float drift."""
        viewport = Viewport().zoom_in(step=0.2, max_scale=5.0)
        assert viewport.scale == 1.2
        assert viewport.zoom_in(step=0.2, max_scale=5.0).scale == 1.4

    def test_zoom_in_clamps_to_max(self) -> None:
        viewport = Viewport(scale=4.9).zoom_in(step=0.2, max_scale=5.0)
        assert viewport.scale == 5.0
        assert not viewport.can_zoom_in(max_scale=5.0)

    def test_zoom_out_clamps_to_min(self) -> None:
        viewport = Viewport(scale=1.1).zoom_out(step=0.2, min_scale=1.0)
        assert viewport.scale == 1.0
        assert not viewport.can_zoom_out(min_scale=1.0)

    def test_zoom_returns_new_instance(self) -> None:
        """Test Viewport operations do not mutate the original."""
        original = Viewport()
        original.zoom_in(step=0.2, max_scale=5.0)
        assert original.scale == 1.0

    @pytest.mark.parametrize(
        ("direction", "expected"),
        [
            (PanDirection.UP, (0.0, 50.0)),
            (PanDirection.DOWN, (0.0, -50.0)),
            (PanDirection.LEFT, (50.0, 0.0)),
            (PanDirection.RIGHT, (-50.0, 0.0)),
        ],
    )
    def test_pan_moves_content_opposite_to_direction(
        self, direction: PanDirection, expected: tuple[float, float]
    ) -> None:
        """Test panning up reveals content above, so the content moves down."""
        viewport = Viewport().pan(direction, step=50)
        assert (viewport.offset_x, viewport.offset_y) == expected

    def test_pan_accepts_string_direction(self) -> None:
        viewport = Viewport().pan("up", step=10)  # type: ignore[arg-type]
        assert viewport.offset_y == 10.0

    def test_reset(self) -> None:
        viewport = Viewport(scale=3.0, offset_x=12.0, offset_y=-4.0)
        assert viewport.reset() == Viewport()
