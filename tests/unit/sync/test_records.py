"""Unit tests for remote document schemas."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import TypeAdapter, ValidationError

from mapmark.geometry import Point
from mapmark.stores import EntityKind
from mapmark.sync import (
    AddDuplicate,
    AddResult,
    AddSuccess,
    Document,
    ProjectMetadata,
    RemotePoint,
    RemoteRoute,
    SaveOutcome,
)


class TestRemoteRecords:
    """Tests for alias handling and remote ids."""

    def test_point_from_document(self) -> None:
        document = Document(
            id="doc1",
            data={"id": "A-01", "x": 10, "y": 20, "index": 3, "isMarker": True, "createdAt": 1},
        )
        point = RemotePoint.from_document(document)
        assert point.remote_id == "doc1"
        assert point.is_marker
        assert point.index == 3

    def test_to_data_uses_remote_names_and_drops_id(self) -> None:
        point = RemotePoint(id="A-01", x=1, y=2, remote_id="doc1")
        assert point.to_data() == {"id": "A-01", "x": 1, "y": 2, "index": 0, "isMarker": False}

    def test_route_defaults(self) -> None:
        route = RemoteRoute.from_document(Document(id="r1", data={}))
        assert route.route_name == "Unnamed Route"
        assert route.waypoints == []

    def test_route_waypoints_are_points(self) -> None:
        route = RemoteRoute.model_validate(
            {"startPoint": "A-01", "endPoint": "B-02", "waypoints": [{"x": 1, "y": 2}]}
        )
        assert route.waypoints == [Point(x=1, y=2)]
        assert route.to_data()["startPoint"] == "A-01"

    def test_records_are_frozen(self) -> None:
        point = RemotePoint(id="A-01", x=1, y=2)
        with pytest.raises(ValidationError):
            point.x = 5  # type: ignore[misc]


class TestProjectMetadata:
    def test_from_document(self) -> None:
        now = datetime(2024, 1, 1, tzinfo=UTC)
        metadata = ProjectMetadata.from_document(
            Document(
                id="map.png",
                data={"projectName": "map", "pointCount": 4, "lastAccessedAt": now},
            )
        )
        assert metadata.project_id == "map.png"
        assert metadata.point_count == 4
        assert metadata.last_accessed_at == now
        assert metadata.route_count == 0


class TestResults:
    """Tests for add and save results."""

    def test_add_result_discriminates_on_status(self) -> None:
        adapter: TypeAdapter[AddSuccess | AddDuplicate] = TypeAdapter(AddResult)
        success = adapter.validate_python(
            {"status": "success", "kind": "points", "remote_id": "doc1"}
        )
        assert isinstance(success, AddSuccess)
        assert success.kind is EntityKind.POINTS

    def test_duplicate_carries_both_records(self) -> None:
        existing = RemotePoint(id="A-01", x=1, y=1, remote_id="doc1")
        attempted = RemotePoint(id="A-01", x=2, y=2)
        result = AddDuplicate(kind=EntityKind.POINTS, existing=existing, attempted=attempted)
        assert result.status == "duplicate"
        assert result.existing.remote_id == "doc1"

    def test_save_outcome_skipped(self) -> None:
        assert SaveOutcome(status="skipped", message="Point has no id").is_skipped
        assert not SaveOutcome(status="added", remote_id="doc1").is_skipped
