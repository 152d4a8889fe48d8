"""Unit tests for AreaStore."""

from __future__ import annotations

import pytest

from mapmark.stores import AreaStore
from mapmark.validation import ValidationResult


@pytest.fixture
def store() -> AreaStore:
    return AreaStore()


def _vertices(store: AreaStore) -> list[tuple[int, int]]:
    area = store.get_selected()
    assert area is not None
    return [v.to_tuple() for v in area.vertices]


class TestAreaVertices:
    """Tests for vertex editing and ordering."""

    def test_add_without_selection_rejected(self, store: AreaStore) -> None:
        rejected: list[ValidationResult] = []
        store.on_rejected.connect(rejected.append)
        assert store.add(1, 1) is None
        assert rejected[0].message == "Select an area before adding vertices"

    def test_scrambled_square_is_reordered(self, store: AreaStore) -> None:
        store.add_area("Pond")
        for x, y in [(10, 10), (0, 10), (10, 0), (0, 0)]:
            store.add(x, y)
        assert _vertices(store) == [(0, 0), (10, 0), (10, 10), (0, 10)]

    def test_live_drag_does_not_reorder(self, store: AreaStore) -> None:
        store.add_area("Pond")
        for x, y in [(0, 0), (10, 0), (10, 10), (0, 10)]:
            store.add(x, y)
        store.update_geometry(0, 20, 5, commit=False)
        assert _vertices(store)[0] == (20, 5)
        store.update_geometry(0, 20, 5, commit=True)
        assert _vertices(store)[0] != (20, 5)

    def test_remove_vertices(self, store: AreaStore) -> None:
        store.add_area("Pond")
        for x, y in [(0, 0), (10, 0), (10, 10), (0, 10)]:
            store.add(x, y)
        assert store.remove_vertices([0]) == 1
        assert len(_vertices(store)) == 3


class TestModifiedState:
    """Tests for the is_modified flag."""

    def test_named_area_with_three_vertices_is_modified(self, store: AreaStore) -> None:
        flips: list[tuple[int, bool]] = []
        store.on_modified_state_change.connect(flips.append)
        store.add_area("Pond")
        store.add(0, 0)
        store.add(10, 0)
        assert flips == []
        store.add(5, 10)
        assert flips == [(0, True)]
        area = store.get_selected()
        assert area is not None and area.is_modified

    def test_unnamed_area_not_modified(self, store: AreaStore) -> None:
        store.add_area()
        for x, y in [(0, 0), (10, 0), (5, 10)]:
            store.add(x, y)
        area = store.get_selected()
        assert area is not None and not area.is_modified

    def test_naming_completes_area(self, store: AreaStore) -> None:
        flips: list[tuple[int, bool]] = []
        store.on_modified_state_change.connect(flips.append)
        store.add_area()
        for x, y in [(0, 0), (10, 0), (5, 10)]:
            store.add(x, y)
        store.set_name("  Field ")
        area = store.get_selected()
        assert area is not None
        assert area.area_name == "Field"
        assert flips == [(0, True)]


class TestAreaValidation:
    @pytest.mark.parametrize(
        ("name", "vertex_count", "message"),
        [
            ("", 3, "Enter an area name"),
            ("Pond", 2, "An area needs at least 3 vertices"),
        ],
    )
    def test_invalid(self, store: AreaStore, name: str, vertex_count: int, message: str) -> None:
        store.add_area(name)
        for i in range(vertex_count):
            store.add(i * 10, (i % 2) * 10)
        assert store.validate().message == message

    def test_no_selection(self, store: AreaStore) -> None:
        assert store.validate().message == "No area selected"

    def test_valid(self, store: AreaStore) -> None:
        store.add_area("Pond")
        for x, y in [(0, 0), (10, 0), (5, 10)]:
            store.add(x, y)
        assert store.validate()


class TestAreaLabels:
    def test_label_hit_at_centroid(self, store: AreaStore) -> None:
        store.add_area("Pond")
        for x, y in [(0, 0), (30, 0), (30, 30), (0, 30)]:
            store.add(x, y)
        assert store.find_area_label_at(15, 15) == 0
        assert store.find_area_label_at(15, 40) is None

    def test_label_radius_shrinks_with_zoom(self, store: AreaStore) -> None:
        store.add_area("Pond")
        for x, y in [(0, 0), (30, 0), (30, 30), (0, 30)]:
            store.add(x, y)
        assert store.find_area_label_at(15, 30, scale=1.0) == 0
        assert store.find_area_label_at(15, 30, scale=2.0) is None

    def test_area_without_vertices_has_no_label(self, store: AreaStore) -> None:
        store.add_area("Empty")
        assert store.find_area_label_at(0, 0) is None
