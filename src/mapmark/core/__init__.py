"""Core algorithms for mapmark.

Public API:
    - HitTester: Hit testing against the live entity stores.
    - find_object_at: Pure hit test over plain position sequences.
    - Hit, HitType: Result of a hit test.
    - EditMode: Edit mode deciding the type priority.
    - HitThresholds: Per-type hit radii.
"""

from mapmark.core.hit_tester import (
    EditMode,
    Hit,
    HitCollections,
    HitTester,
    HitThresholds,
    HitType,
    find_object_at,
)

__all__ = [
    "EditMode",
    "Hit",
    "HitCollections",
    "HitTester",
    "HitThresholds",
    "HitType",
    "find_object_at",
]
