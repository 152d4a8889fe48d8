"""Unit tests for validation rules."""

from __future__ import annotations

import pytest

from mapmark.validation import (
    EndpointStatus,
    ValidationResult,
    check_duplicate_ids,
    check_duplicate_spot_names,
    check_point_id_formats,
    check_route_references,
    classify_endpoint,
    find_spots_by_partial_name,
    resolve_endpoint_input,
)


class TestValidationResult:
    def test_ok_is_truthy(self) -> None:
        result = ValidationResult.ok()
        assert result
        assert result.message == ""

    def test_fail_is_falsy(self) -> None:
        result = ValidationResult.fail("nope")
        assert not result
        assert result.message == "nope"


class TestDuplicates:
    """Tests for duplicate id and name detection."""

    def test_duplicate_ids_compared_canonically(self) -> None:
        result = check_duplicate_ids(["A-01", "a1", "B-02"])
        assert not result
        assert result.message == "Duplicate point ids: A-01"

    def test_blank_ids_ignored(self) -> None:
        assert check_duplicate_ids(["", " ", "A-01", ""])

    def test_duplicate_reported_once(self) -> None:
        result = check_duplicate_ids(["A-01", "A-01", "A-01"])
        assert result.message == "Duplicate point ids: A-01"

    def test_duplicate_spot_names_ignore_case_and_width(self) -> None:
        result = check_duplicate_spot_names(["Park", "ｐａｒｋ", "Gate"])
        assert not result
        assert result.message == "Duplicate spot names: Park"

    def test_distinct_spot_names(self) -> None:
        assert check_duplicate_spot_names(["Park", "Gate"])


class TestPointIdFormats:
    def test_all_valid(self) -> None:
        assert check_point_id_formats(["A-01", "", "B-22"])

    def test_lists_bad_ids(self) -> None:
        result = check_point_id_formats(["A-01", "XX", "A-1"])
        assert result.message == "Point ids not in X-nn form: XX, A-1"


class TestSpotSearch:
    def test_partial_match_ignores_case(self) -> None:
        assert find_spots_by_partial_name(["Main Gate", "Park", "gatehouse"], "GATE") == [
            "Main Gate",
            "gatehouse",
        ]

    def test_blank_search_matches_nothing(self) -> None:
        assert find_spots_by_partial_name(["Park"], "  ") == []


class TestClassifyEndpoint:
    """Tests for per-endpoint classification."""

    def test_empty(self) -> None:
        assert classify_endpoint("  ", ["A-01"]).status is EndpointStatus.EMPTY

    def test_registered_point(self) -> None:
        check = classify_endpoint("A-01", ["A-01"])
        assert check.status is EndpointStatus.REGISTERED_POINT
        assert check.is_acceptable

    def test_unique_spot(self) -> None:
        check = classify_endpoint("par", [], ["Park", "Gate"])
        assert check.status is EndpointStatus.SPOT
        assert check.matches == ("Park",)

    def test_ambiguous_spots(self) -> None:
        check = classify_endpoint("ga", [], ["Gate", "Garden"])
        assert check.status is EndpointStatus.AMBIGUOUS_SPOTS
        assert not check.is_acceptable
        assert "Gate" in check.message

    def test_missing_point(self) -> None:
        check = classify_endpoint("B-02", ["A-01"])
        assert check.status is EndpointStatus.MISSING_POINT
        assert "B-02" in check.message

    def test_unknown(self) -> None:
        check = classify_endpoint("???", ["A-01"])
        assert check.status is EndpointStatus.UNKNOWN


class TestResolveEndpointInput:
    def test_unique_spot_resolves_to_full_name(self) -> None:
        assert resolve_endpoint_input("par", ["Park", "Gate"]) == "Park"

    def test_otherwise_formats_as_point_id(self) -> None:
        assert resolve_endpoint_input("a1", ["Park"]) == "A-01"

    def test_ambiguous_falls_back_to_point_id(self) -> None:
        assert resolve_endpoint_input("ga", ["Gate", "Garden"]) == "GA"


class TestCheckRouteReferences:
    """Tests for route save validation, in check order."""

    def test_valid_route(self) -> None:
        assert check_route_references("A-01", "B-02", 3, ["A-01", "B-02"])

    def test_spot_endpoint_accepted(self) -> None:
        assert check_route_references("A-01", "Park", 1, ["A-01"], ["Park"])

    def test_unregistered_start(self) -> None:
        result = check_route_references("X-99", "B-02", 3, ["B-02"])
        assert result.message == "Start point 'X-99' is not registered as a point or spot"

    def test_unregistered_end(self) -> None:
        result = check_route_references("A-01", "X-99", 3, ["A-01"])
        assert result.message == "End point 'X-99' is not registered as a point or spot"

    @pytest.mark.parametrize(("start", "end"), [("", "B-02"), ("A-01", ""), ("", "")])
    def test_missing_endpoint(self, start: str, end: str) -> None:
        result = check_route_references(start, end, 3, ["A-01", "B-02"])
        assert result.message == "Set both a start and an end point"

    def test_same_endpoints(self) -> None:
        result = check_route_references("A-01", "A-01", 3, ["A-01"])
        assert result.message == "Start and end point are the same"

    def test_no_waypoints(self) -> None:
        result = check_route_references("A-01", "B-02", 0, ["A-01", "B-02"])
        assert result.message == "A route needs at least one waypoint"

    def test_registration_checked_before_waypoints(self) -> None:
        result = check_route_references("X-99", "B-02", 0, ["B-02"])
        assert "not registered" in result.message
