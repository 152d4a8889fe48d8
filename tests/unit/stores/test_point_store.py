"""Unit tests for PointStore."""

from __future__ import annotations

import pytest

from mapmark.geometry import CanvasFrame, Size
from mapmark.stores import ChangeAction, EntityChange, MapPoint, PointStore


@pytest.fixture
def store() -> PointStore:
    return PointStore()


@pytest.fixture
def changes(store: PointStore) -> list[EntityChange]:
    recorded: list[EntityChange] = []
    store.on_entity_change.connect(recorded.append)
    return recorded


def _ids(store: PointStore) -> list[str]:
    return [p.id for p in store.get_all()]


class TestAdd:
    """Tests for adding points."""

    def test_add_rounds_to_whole_pixels(self, store: PointStore) -> None:
        point = store.add(10.5, 20.4)
        assert (point.x, point.y) == (11, 20)
        assert point.id == ""

    def test_add_records_change_and_count(
        self, store: PointStore, changes: list[EntityChange]
    ) -> None:
        counts: list[int] = []
        store.on_count_change.connect(counts.append)
        store.add(1, 2, id="A-01")
        assert counts == [1]
        assert len(changes) == 1
        assert changes[0].action is ChangeAction.ADDED
        assert changes[0].index == 0

    def test_markers_not_counted(self, store: PointStore) -> None:
        store.add(1, 1, id="A-01")
        store.add(2, 2, id="M-01", is_marker=True)
        assert len(store) == 2
        assert store.count() == 1


class TestUpdateId:
    """Tests for live typing versus commit."""

    def test_live_typing_stores_raw_text(
        self, store: PointStore, changes: list[EntityChange]
    ) -> None:
        store.add(1, 1)
        changes.clear()
        store.update_id(0, "a", skip_formatting=True)
        assert _ids(store) == ["a"]
        assert changes == []

    def test_commit_formats_and_records(
        self, store: PointStore, changes: list[EntityChange]
    ) -> None:
        store.add(1, 1)
        changes.clear()
        store.update_id(0, "ａ７")
        assert _ids(store) == ["A-07"]
        assert len(changes) == 1
        assert changes[0].action is ChangeAction.UPDATED
        assert changes[0].previous is not None
        assert changes[0].previous.id == ""

    def test_blank_commit_removes_point(
        self, store: PointStore, changes: list[EntityChange]
    ) -> None:
        store.add(1, 1, id="A-01")
        changes.clear()
        store.update_id(0, "  ")
        assert len(store) == 0
        assert [c.action for c in changes] == [ChangeAction.REMOVED]

    def test_out_of_range_ignored(self, store: PointStore) -> None:
        store.update_id(5, "A-01")
        assert len(store) == 0


class TestDrag:
    def test_live_drag_then_commit_reports_origin(
        self, store: PointStore, changes: list[EntityChange]
    ) -> None:
        store.add(10, 10, id="A-01")
        changes.clear()
        store.update_geometry(0, 15, 15, commit=False)
        store.update_geometry(0, 20, 20, commit=False)
        assert changes == []

        store.update_geometry(0, 25.6, 30, commit=True)
        assert len(changes) == 1
        change = changes[0]
        assert change.entity.position.to_tuple() == (26, 30)
        assert isinstance(change.previous, MapPoint)
        assert change.previous.position.to_tuple() == (10, 10)


class TestTrailingCleanup:
    """Tests for remove_trailing_empty."""

    def test_removes_trailing_blanks(self, store: PointStore) -> None:
        store.add(0, 0, id="A-01")
        store.add(1, 1)
        store.add(2, 2)
        assert store.remove_trailing_empty() == 2
        assert _ids(store) == ["A-01"]

    def test_stops_at_first_labeled(self, store: PointStore) -> None:
        store.add(0, 0)
        store.add(1, 1, id="A-01")
        store.add(2, 2)
        assert store.remove_trailing_empty() == 1
        assert _ids(store) == ["", "A-01"]

    def test_steps_over_markers(self, store: PointStore) -> None:
        store.add(0, 0, id="A-01")
        store.add(1, 1)
        store.add(2, 2, is_marker=True)
        assert store.remove_trailing_empty() == 1
        assert len(store) == 2
        assert store.get(1) is not None and store.get(1).is_marker

    def test_cleanup_records_no_changes(
        self, store: PointStore, changes: list[EntityChange]
    ) -> None:
        store.add(0, 0)
        changes.clear()
        store.remove_trailing_empty()
        assert changes == []


class TestLookup:
    def test_find_by_id_ignores_spelling(self, store: PointStore) -> None:
        store.add(0, 0, id="A-01")
        found = store.find_by_id("a1")
        assert found is not None and found.id == "A-01"
        assert store.find_by_id("") is None

    def test_registered_ids_skip_blanks(self, store: PointStore) -> None:
        store.add(0, 0, id="A-01")
        store.add(1, 1)
        store.add(2, 2, id="B-02")
        assert store.registered_ids() == ["A-01", "B-02"]

    def test_find_at_is_first_match(self, store: PointStore) -> None:
        store.add(10, 10, id="A-01")
        store.add(12, 10, id="B-02")
        assert store.find_at(11, 10, threshold=8) == 0
        assert store.find_at(100, 100, threshold=8) is None

    def test_format_all_ids(self, store: PointStore, changes: list[EntityChange]) -> None:
        store.add(0, 0, id="a1")
        store.add(1, 1, id="B-02")
        changes.clear()
        assert store.format_all_ids() == 1
        assert _ids(store) == ["A-01", "B-02"]
        assert len(changes) == 1


class TestReplaceAndReframe:
    def test_replace_all_emits_no_entity_changes(
        self, store: PointStore, changes: list[EntityChange]
    ) -> None:
        seen: list[list[MapPoint]] = []
        store.on_change.connect(seen.append)
        store.replace_all([MapPoint(x=1, y=1, id="A-01")])
        assert changes == []
        assert len(seen) == 1

    def test_reframe_goes_through_image_space(self, store: PointStore) -> None:
        old = CanvasFrame(canvas=Size(width=500, height=250), image=Size(width=1000, height=500))
        new = CanvasFrame(canvas=Size(width=1000, height=500), image=Size(width=1000, height=500))
        store.add(50, 25, id="A-01")
        store.reframe(old, new)
        assert store.get(0) is not None
        assert store.get(0).position.to_tuple() == (100, 50)
