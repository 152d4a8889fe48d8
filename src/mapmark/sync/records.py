"""Remote document schemas.

Each model mirrors one document shape in the remote store, using the
store's camelCase field names as aliases. Coordinates are image-space
integers. Server bookkeeping fields (createdAt, updatedAt) are written by
the gateway and ignored when reading.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field

from mapmark.geometry.primitives import Point
from mapmark.stores.models import EntityKind
from mapmark.sync.protocol import Document

DEFAULT_ROUTE_NAME = "Unnamed Route"


class RemoteRecord(BaseModel):
    """Base for documents of the per-project sub-collections."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    remote_id: str | None = Field(default=None, exclude=True)

    @classmethod
    def from_document(cls, document: Document) -> Self:
        return cls.model_validate({**document.data, "remote_id": document.id})

    def to_data(self) -> dict[str, Any]:
        """Field data to write, keyed by the remote field names."""
        return self.model_dump(by_alias=True)


class RemotePoint(RemoteRecord):
    id: str
    x: int
    y: int
    index: int = 0
    is_marker: bool = Field(default=False, alias="isMarker")


class RemoteSpot(RemoteRecord):
    name: str
    x: int
    y: int
    index: int = 0
    description: str = ""
    category: str = ""


class RemoteRoute(RemoteRecord):
    route_name: str = Field(default=DEFAULT_ROUTE_NAME, alias="routeName")
    start_point: str = Field(default="", alias="startPoint")
    end_point: str = Field(default="", alias="endPoint")
    waypoints: list[Point] = Field(default_factory=list)
    waypoint_count: int = Field(default=0, alias="waypointCount")
    description: str = ""


class RemoteArea(RemoteRecord):
    area_name: str = Field(default="", alias="areaName")
    vertices: list[Point] = Field(default_factory=list)


AnyRemoteRecord = RemotePoint | RemoteSpot | RemoteRoute | RemoteArea


class ProjectMetadata(BaseModel):
    """The project document at ``projects/{project_id}``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    project_id: str = Field(default="", exclude=True)
    project_name: str = Field(default="", alias="projectName")
    image_name: str = Field(default="", alias="imageName")
    image_width: int | None = Field(default=None, alias="imageWidth")
    image_height: int | None = Field(default=None, alias="imageHeight")
    created_by: str = Field(default="", alias="createdBy")
    last_updated_by: str = Field(default="", alias="lastUpdatedBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    last_accessed_at: datetime | None = Field(default=None, alias="lastAccessedAt")
    point_count: int = Field(default=0, alias="pointCount")
    route_count: int = Field(default=0, alias="routeCount")
    spot_count: int = Field(default=0, alias="spotCount")

    @classmethod
    def from_document(cls, document: Document) -> ProjectMetadata:
        return cls.model_validate({**document.data, "project_id": document.id})


# =============================================================================
# Operation Results
# =============================================================================


class AddSuccess(BaseModel, frozen=True):
    """The record was inserted under a new server-assigned id."""

    status: Literal["success"] = "success"
    kind: EntityKind
    remote_id: str


class AddDuplicate(BaseModel, frozen=True):
    """A record with the same natural key exists; nothing was written."""

    status: Literal["duplicate"] = "duplicate"
    kind: EntityKind
    existing: AnyRemoteRecord
    attempted: AnyRemoteRecord


AddResult = Annotated[AddSuccess | AddDuplicate, Field(discriminator="status")]


class SaveOutcome(BaseModel, frozen=True):
    """Result of an upsert: what happened and the document id involved."""

    status: Literal["added", "updated", "skipped"]
    remote_id: str | None = None
    message: str = ""

    @property
    def is_skipped(self) -> bool:
        return self.status == "skipped"


class SyncSummary(BaseModel, frozen=True):
    """Per-kind counts for save_all and load_into."""

    points: int = 0
    spots: int = 0
    routes: int = 0
    areas: int = 0
    skipped: int = 0
