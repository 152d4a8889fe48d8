"""Unit tests for RouteStore."""

from __future__ import annotations

import pytest

from mapmark.geometry import Point
from mapmark.stores import (
    ChangeAction,
    EndpointsChange,
    EntityChange,
    Route,
    RouteStore,
    SelectionChange,
)
from mapmark.validation import ValidationResult


@pytest.fixture
def store() -> RouteStore:
    return RouteStore()


@pytest.fixture
def changes(store: RouteStore) -> list[EntityChange]:
    recorded: list[EntityChange] = []
    store.on_entity_change.connect(recorded.append)
    return recorded


class TestRouteCollections:
    """Tests for adding, selecting and deleting routes."""

    def test_add_route_names_and_selects(self, store: RouteStore) -> None:
        selections: list[SelectionChange] = []
        store.on_selection_change.connect(selections.append)
        assert store.add_route() == 0
        assert store.add_route() == 1
        assert [r.route_name for r in store.get_all()] == ["Route 1", "Route 2"]
        assert store.selected_index == 1
        assert selections[-1] == SelectionChange(index=1)

    def test_add_without_select(self, store: RouteStore) -> None:
        store.add_route(select=False)
        assert store.selected_index == -1

    def test_delete_before_selection_shifts_index(self, store: RouteStore) -> None:
        store.add_route()
        store.add_route()
        store.select_at(1)
        store.delete_route(0)
        assert store.selected_index == 0
        assert store.get_selected() is not None
        assert store.get_selected().route_name == "Route 2"

    def test_delete_selected_clears_selection(
        self, store: RouteStore, changes: list[EntityChange]
    ) -> None:
        store.add_route()
        changes.clear()
        deleted = store.delete_route(0)
        assert deleted is not None
        assert store.selected_index == -1
        assert [c.action for c in changes] == [ChangeAction.REMOVED]

    def test_select_out_of_range_clears(self, store: RouteStore) -> None:
        store.add_route()
        store.select_at(7)
        assert store.get_selected() is None

    def test_append_complete_route(
        self, store: RouteStore, changes: list[EntityChange]
    ) -> None:
        endpoints: list[EndpointsChange] = []
        store.on_endpoints_change.connect(endpoints.append)
        route = Route(
            route_name="Imported",
            start_point_id="A-01",
            end_point_id="B-02",
            waypoints=[Point(x=1, y=1)],
        )
        index = store.append(route)
        assert index == 0
        assert store.get_selected() is route
        assert [c.action for c in changes] == [ChangeAction.ADDED]
        assert endpoints[-1] == EndpointsChange(start="A-01", end="B-02")


class TestWaypoints:
    """Tests for waypoint editing on the selected route."""

    def test_add_without_selection_is_rejected(self, store: RouteStore) -> None:
        rejected: list[ValidationResult] = []
        store.on_rejected.connect(rejected.append)
        assert store.add(1, 1) is None
        assert rejected[0].message == "Select or add a route first"

    def test_waypoints_keep_insertion_order(self, store: RouteStore) -> None:
        store.add_route()
        for x, y in [(30, 30), (10, 10), (20, 20)]:
            store.add(x, y)
        route = store.get_selected()
        assert route is not None
        assert [p.to_tuple() for p in route.waypoints] == [(30, 30), (10, 10), (20, 20)]
        assert route.is_modified
        assert store.count() == 3

    def test_add_records_previous_state(
        self, store: RouteStore, changes: list[EntityChange]
    ) -> None:
        store.add_route()
        changes.clear()
        store.add(5, 5)
        assert changes[0].action is ChangeAction.UPDATED
        assert isinstance(changes[0].previous, Route)
        assert changes[0].previous.waypoints == []

    def test_remove_several(self, store: RouteStore) -> None:
        store.add_route()
        for x in range(5):
            store.add(x * 10, 0)
        assert store.remove_waypoints([0, 2, 9]) == 2
        route = store.get_selected()
        assert route is not None
        assert [p.x for p in route.waypoints] == [10, 30, 40]

    def test_clear_waypoints_keeps_endpoints(self, store: RouteStore) -> None:
        store.add_route()
        store.assign_endpoint_from_pick("A-01")
        store.add(1, 1)
        store.add(2, 2)
        assert store.clear_waypoints() == 2
        route = store.get_selected()
        assert route is not None
        assert route.waypoints == []
        assert route.start_point_id == "A-01"

    def test_drag_commit_records_one_change(
        self, store: RouteStore, changes: list[EntityChange]
    ) -> None:
        store.add_route()
        store.add(10, 10)
        changes.clear()
        store.update_geometry(0, 12, 12, commit=False)
        store.update_geometry(0, 14, 14, commit=True)
        assert len(changes) == 1
        assert changes[0].previous is not None
        assert changes[0].previous.waypoints == [Point(x=10, y=10)]

    def test_find_waypoints(self, store: RouteStore) -> None:
        store.add_route()
        store.add(10, 10)
        store.add(40, 40)
        store.add(60, 10)
        assert store.find_waypoint_at(12, 12) == 0
        assert store.find_nearest_waypoint(45, 38) == 1
        assert store.find_nearest_waypoint(500, 500) is None
        assert store.find_waypoints_in_rectangle(50, 50, 5, 5) == [0, 1]


class TestEndpoints:
    """Tests for endpoint typing and picking."""

    def test_pick_order(self, store: RouteStore) -> None:
        store.add_route()
        assert store.assign_endpoint_from_pick("A-01") == "start"
        assert store.assign_endpoint_from_pick("B-02") == "end"
        assert store.assign_endpoint_from_pick("C-03") is None
        assert store.get_endpoints() == EndpointsChange(start="A-01", end="B-02")

    def test_pick_blank_rejected(self, store: RouteStore) -> None:
        rejected: list[ValidationResult] = []
        store.on_rejected.connect(rejected.append)
        store.add_route()
        assert store.assign_endpoint_from_pick("  ") is None
        assert len(rejected) == 1

    def test_typed_start_commit_formats(
        self, store: RouteStore, changes: list[EntityChange]
    ) -> None:
        store.add_route()
        changes.clear()
        store.set_start_point("a1", skip_formatting=True)
        assert store.get_endpoints().start == "a1"
        assert changes == []
        store.set_start_point("a1")
        assert store.get_endpoints().start == "A-01"
        assert len(changes) == 1

    def test_typed_end_resolves_unique_spot(self, store: RouteStore) -> None:
        store.add_route()
        store.set_end_point("par", spot_names=["Park", "Gate"])
        assert store.get_endpoints().end == "Park"

    def test_display_name(self, store: RouteStore) -> None:
        store.add_route()
        assert store.display_name() == "Route 1"
        store.assign_endpoint_from_pick("A-01")
        store.assign_endpoint_from_pick("B-02")
        assert store.display_name() == "A-01 ～ B-02"


class TestValidateEndpoints:
    """Tests for route validity."""

    def test_same_endpoints_invalid(self, store: RouteStore) -> None:
        store.add_route()
        store.assign_endpoint_from_pick("A-01")
        store.set_end_point("A-01")
        store.add(1, 1)
        store.add(2, 2)
        result = store.validate_endpoints(["A-01"])
        assert not result
        assert result.message == "Start and end point are the same"

    def test_needs_one_waypoint(self, store: RouteStore) -> None:
        store.add_route()
        store.assign_endpoint_from_pick("A-01")
        store.assign_endpoint_from_pick("B-02")
        assert not store.validate_endpoints(["A-01", "B-02"])
        store.add(5, 5)
        assert store.validate_endpoints(["A-01", "B-02"])

    def test_spot_endpoint(self, store: RouteStore) -> None:
        store.add_route()
        store.assign_endpoint_from_pick("A-01")
        store.assign_endpoint_from_pick("Park")
        store.add(5, 5)
        assert not store.validate_endpoints(["A-01"])
        assert store.validate_endpoints(["A-01"], ["Park"])

    def test_no_selection(self, store: RouteStore) -> None:
        assert store.validate_endpoints([]).message == "Select or add a route first"


class TestRouteCleanup:
    def test_trailing_unlabeled_routes_removed(self, store: RouteStore) -> None:
        store.add_route()
        store.assign_endpoint_from_pick("A-01")
        store.add_route()
        store.add_route()
        assert store.remove_trailing_empty() == 2
        assert len(store) == 1
        assert store.selected_index == -1

    def test_mark_saved(self, store: RouteStore) -> None:
        store.add_route()
        store.add(1, 1)
        store.mark_saved(0)
        assert store.get(0) is not None
        assert not store.get(0).is_modified
