"""Polygon helpers for area vertices."""

from __future__ import annotations

import math
from collections.abc import Sequence

from mapmark.geometry.primitives import Point

MIN_POLYGON_VERTICES = 3


def centroid(vertices: Sequence[Point]) -> tuple[float, float]:
    """Arithmetic mean of the vertices (not the area-weighted centroid).

    Raises:
        ValueError: If vertices is empty.
    """
    if not vertices:
        raise ValueError("centroid of an empty vertex list is undefined")
    n = len(vertices)
    return (sum(v.x for v in vertices) / n, sum(v.y for v in vertices) / n)


def reorder_vertices(vertices: Sequence[Point]) -> list[Point]:
    """Order vertices by angle around their centroid.

    Produces a simple (non self-intersecting) polygon for any star-shaped
    vertex set. The sort is stable, so vertices at the same angle keep
    their insertion order. Fewer than three vertices are returned as-is.

    Example:
        >>> square = [Point(x=0, y=0), Point(x=10, y=10),
        ...           Point(x=10, y=0), Point(x=0, y=10)]
        >>> [p.to_tuple() for p in reorder_vertices(square)]
        [(0, 0), (10, 0), (10, 10), (0, 10)]
    """
    if len(vertices) < MIN_POLYGON_VERTICES:
        return list(vertices)
    cx, cy = centroid(vertices)
    return sorted(vertices, key=lambda v: math.atan2(v.y - cy, v.x - cx))
