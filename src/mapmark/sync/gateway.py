"""Remote synchronization gateway.

RemoteSyncGateway maps local entities onto documents in the shared
document store under ``projects/{project_id}/{kind}``. It owns the
canvas <-> image translation (using the CanvasFrame current at call time),
duplicate detection by natural key, the project counters, and the
subscription handles of an open project.

Two failure policies apply:

- Metadata access, ``save_*``, ``save_all`` and ``load_into`` are
  user-initiated and raise RemoteSyncError.
- ``push_*`` methods run in the background after local edits; they log
  the failure and return None. Nothing is rolled back locally.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import AbstractContextManager, asynccontextmanager
from typing import Any

from mapmark.config import settings
from mapmark.geometry.polygon import MIN_POLYGON_VERTICES
from mapmark.geometry.primitives import Point, Size
from mapmark.geometry.transforms import CanvasFrame
from mapmark.stores.area_store import AreaStore
from mapmark.stores.models import Area, Entity, EntityKind, MapPoint, Route, Spot
from mapmark.stores.point_store import PointStore
from mapmark.stores.route_store import RouteStore
from mapmark.stores.spot_store import SpotStore
from mapmark.sync.exceptions import ProjectNotFoundError, RemoteSyncError
from mapmark.sync.protocol import (
    SERVER_TIMESTAMP,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    Increment,
    Unsubscribe,
)
from mapmark.sync.records import (
    DEFAULT_ROUTE_NAME,
    AddDuplicate,
    AddSuccess,
    ProjectMetadata,
    RemoteArea,
    RemotePoint,
    RemoteRecord,
    RemoteRoute,
    RemoteSpot,
    SaveOutcome,
    SyncSummary,
)
from mapmark.utils.logging import correlation_scope, get_logger
from mapmark.validation.identifiers import point_id_key, spot_name_key

logger = get_logger(__name__)

_COUNTER_FIELDS: dict[EntityKind, str] = {
    EntityKind.POINTS: "pointCount",
    EntityKind.ROUTES: "routeCount",
    EntityKind.SPOTS: "spotCount",
}

_ORDER_FIELDS: dict[EntityKind, str] = {
    EntityKind.POINTS: "index",
    EntityKind.SPOTS: "index",
    EntityKind.ROUTES: "createdAt",
    EntityKind.AREAS: "createdAt",
}


def _natural_key(entity: MapPoint | Spot) -> str:
    if isinstance(entity, MapPoint):
        return point_id_key(entity.id)
    return spot_name_key(entity.name)


class RemoteSyncGateway:
    """Reconciles local entities with one project in the remote store.

    Constructed when a project is opened and closed with it; there is no
    module-level instance.

    Args:
        store: Remote document store backend.
        project_id: Project document id (the image file name without its extension).
        user_id: Opaque user id stamped into createdBy/lastUpdatedBy.
        frame: Canvas/image sizes used to translate coordinates.
        tolerance: Image-space distance for delete-by-position.
            Defaults to settings.POSITION_TOLERANCE.
        collection: Top-level collection. Defaults to
            settings.PROJECTS_COLLECTION.

    Example:
        >>> gateway = RemoteSyncGateway(store, "map", "user-1", frame)
        >>> await gateway.ensure_project()
        >>> result = await gateway.add_point(RemotePoint(id="A-01", x=10, y=20))
        >>> result.status
        'success'
    """

    def __init__(
        self,
        store: DocumentStore,
        project_id: str,
        user_id: str,
        frame: CanvasFrame,
        *,
        tolerance: float | None = None,
        collection: str | None = None,
    ) -> None:
        if not project_id:
            raise ValueError("project_id must not be empty")
        self.store = store
        self.project_id = project_id
        self.user_id = user_id
        self._frame = frame
        self.tolerance = settings.POSITION_TOLERANCE if tolerance is None else tolerance
        self._collection = collection or settings.PROJECTS_COLLECTION
        self._subscriptions: dict[EntityKind, list[Unsubscribe]] = {}

    # -- frame and paths ----------------------------------------------------

    @property
    def frame(self) -> CanvasFrame:
        return self._frame

    def set_frame(self, frame: CanvasFrame) -> None:
        """Use a new canvas/image pair for all later translations."""
        self._frame = frame

    @property
    def project_path(self) -> str:
        return f"{self._collection}/{self.project_id}"

    def collection_path(self, kind: EntityKind) -> str:
        return f"{self.project_path}/{kind.value}"

    def _document_path(self, kind: EntityKind, remote_id: str) -> str:
        return f"{self.collection_path(kind)}/{remote_id}"

    def _scope(self, kind: EntityKind | None = None) -> AbstractContextManager[None]:
        return correlation_scope(
            project_id=self.project_id,
            user_id=self.user_id,
            entity_kind=kind.value if kind is not None else None,
        )

    @asynccontextmanager
    async def _remote_call(
        self, operation: str, kind: EntityKind | None = None
    ) -> AsyncIterator[None]:
        """Run a block against the store, wrapping backend failures."""
        with self._scope(kind):
            try:
                yield
            except RemoteSyncError:
                raise
            except Exception as e:
                raise RemoteSyncError(
                    str(e) or type(e).__name__,
                    operation=operation,
                    project_id=self.project_id,
                    collection=kind,
                ) from e

    # -- project metadata ---------------------------------------------------

    async def get_project(self) -> ProjectMetadata | None:
        async with self._remote_call("get_project"):
            document = await self.store.get(self.project_path)
        return ProjectMetadata.from_document(document) if document is not None else None

    async def create_project(
        self,
        *,
        project_name: str | None = None,
        image_name: str | None = None,
        image_size: Size | None = None,
    ) -> None:
        """Write a fresh project document with zeroed counters."""
        data: dict[str, Any] = {
            "projectName": project_name or self.project_id,
            "imageName": image_name or f"{self.project_id}.png",
            "createdBy": self.user_id,
            "lastUpdatedBy": self.user_id,
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
            "lastAccessedAt": SERVER_TIMESTAMP,
            "pointCount": 0,
            "routeCount": 0,
            "spotCount": 0,
        }
        if image_size is not None:
            data["imageWidth"] = image_size.width
            data["imageHeight"] = image_size.height
        async with self._remote_call("create_project"):
            await self.store.set(self.project_path, data)
        logger.info("project_created", image_name=data["imageName"])

    async def update_project(self, fields: Mapping[str, Any]) -> None:
        """Merge fields into the project document.

        Raises:
            ProjectNotFoundError: If the project document does not exist.
        """
        data = {**fields, "lastUpdatedBy": self.user_id, "updatedAt": SERVER_TIMESTAMP}
        async with self._remote_call("update_project"):
            try:
                await self.store.update(self.project_path, data)
            except DocumentNotFoundError as e:
                raise ProjectNotFoundError(self.project_id, operation="update_project") from e

    async def touch_project(self) -> None:
        await self.update_project({"lastAccessedAt": SERVER_TIMESTAMP})

    async def ensure_project(self, image_size: Size | None = None) -> ProjectMetadata:
        """Create the project document if needed and mark it accessed."""
        if await self.get_project() is None:
            await self.create_project(image_size=image_size)
        else:
            await self.touch_project()
        metadata = await self.get_project()
        if metadata is None:
            raise ProjectNotFoundError(self.project_id, operation="ensure_project")
        return metadata

    async def list_projects(self) -> list[ProjectMetadata]:
        """All projects, most recently accessed first."""
        async with self._remote_call("list_projects"):
            documents = await self.store.query(
                self._collection, order_by="lastAccessedAt", descending=True
            )
        return [ProjectMetadata.from_document(d) for d in documents]

    async def _adjust_counter(self, kind: EntityKind, amount: int) -> None:
        field = _COUNTER_FIELDS.get(kind)
        if field is None:
            return
        try:
            await self.store.update(self.project_path, {field: Increment(amount)})
        except Exception:
            logger.exception("counter_update_failed", counter=field, amount=amount)

    # -- generic document operations ----------------------------------------

    async def _find_one(
        self, kind: EntityKind, filters: Sequence[FieldFilter]
    ) -> Document | None:
        documents = await self.store.query(self.collection_path(kind), filters, limit=1)
        return documents[0] if documents else None

    async def _documents(self, kind: EntityKind) -> list[Document]:
        return await self.store.query(self.collection_path(kind), order_by=_ORDER_FIELDS[kind])

    async def _insert(
        self,
        kind: EntityKind,
        record: RemoteRecord,
        existing: RemoteRecord | None,
    ) -> AddSuccess | AddDuplicate:
        if existing is not None:
            logger.debug("add_duplicate", existing_id=existing.remote_id)
            return AddDuplicate(kind=kind, existing=existing, attempted=record)
        data = {**record.to_data(), "createdAt": SERVER_TIMESTAMP, "updatedAt": SERVER_TIMESTAMP}
        remote_id = await self.store.add(self.collection_path(kind), data)
        logger.debug("record_added", remote_id=remote_id)
        await self._adjust_counter(kind, 1)
        return AddSuccess(kind=kind, remote_id=remote_id)

    async def _update(self, kind: EntityKind, remote_id: str, record: RemoteRecord) -> None:
        data = {**record.to_data(), "updatedAt": SERVER_TIMESTAMP}
        await self.store.update(self._document_path(kind, remote_id), data)
        logger.debug("record_updated", remote_id=remote_id)

    async def _delete(self, kind: EntityKind, remote_id: str) -> None:
        await self.store.delete(self._document_path(kind, remote_id))
        logger.debug("record_deleted", remote_id=remote_id)
        await self._adjust_counter(kind, -1)

    # -- points -------------------------------------------------------------

    async def find_point_by_id(self, point_id: str) -> RemotePoint | None:
        async with self._remote_call("find_point_by_id", EntityKind.POINTS):
            document = await self._find_one(EntityKind.POINTS, [FieldFilter("id", point_id)])
        return RemotePoint.from_document(document) if document is not None else None

    async def add_point(self, record: RemotePoint) -> AddSuccess | AddDuplicate:
        """Insert a point unless one with the same id exists."""
        existing = await self.find_point_by_id(record.id) if record.id else None
        async with self._remote_call("add_point", EntityKind.POINTS):
            return await self._insert(EntityKind.POINTS, record, existing)

    async def update_point(self, remote_id: str, record: RemotePoint) -> None:
        async with self._remote_call("update_point", EntityKind.POINTS):
            await self._update(EntityKind.POINTS, remote_id, record)

    async def delete_point(self, remote_id: str) -> None:
        async with self._remote_call("delete_point", EntityKind.POINTS):
            await self._delete(EntityKind.POINTS, remote_id)

    async def get_points(self) -> list[RemotePoint]:
        async with self._remote_call("get_points", EntityKind.POINTS):
            documents = await self._documents(EntityKind.POINTS)
        return [RemotePoint.from_document(d) for d in documents]

    # -- spots --------------------------------------------------------------

    async def find_spot_by_name(self, name: str) -> RemoteSpot | None:
        """Spot whose name matches ignoring width and case."""
        key = spot_name_key(name)
        for spot in await self.get_spots():
            if spot_name_key(spot.name) == key:
                return spot
        return None

    async def add_spot(self, record: RemoteSpot) -> AddSuccess | AddDuplicate:
        """Insert a spot unless one with the same name exists."""
        existing = await self.find_spot_by_name(record.name) if record.name else None
        async with self._remote_call("add_spot", EntityKind.SPOTS):
            return await self._insert(EntityKind.SPOTS, record, existing)

    async def update_spot(self, remote_id: str, record: RemoteSpot) -> None:
        async with self._remote_call("update_spot", EntityKind.SPOTS):
            await self._update(EntityKind.SPOTS, remote_id, record)

    async def delete_spot(self, remote_id: str) -> None:
        async with self._remote_call("delete_spot", EntityKind.SPOTS):
            await self._delete(EntityKind.SPOTS, remote_id)

    async def get_spots(self) -> list[RemoteSpot]:
        async with self._remote_call("get_spots", EntityKind.SPOTS):
            documents = await self._documents(EntityKind.SPOTS)
        return [RemoteSpot.from_document(d) for d in documents]

    # -- routes -------------------------------------------------------------

    async def find_route_by_endpoints(self, start: str, end: str) -> RemoteRoute | None:
        filters = [FieldFilter("startPoint", start), FieldFilter("endPoint", end)]
        async with self._remote_call("find_route_by_endpoints", EntityKind.ROUTES):
            document = await self._find_one(EntityKind.ROUTES, filters)
        return RemoteRoute.from_document(document) if document is not None else None

    async def add_route(self, record: RemoteRoute) -> AddSuccess | AddDuplicate:
        """Insert a route unless one with the same (start, end) exists."""
        existing = await self.find_route_by_endpoints(record.start_point, record.end_point)
        async with self._remote_call("add_route", EntityKind.ROUTES):
            return await self._insert(EntityKind.ROUTES, record, existing)

    async def update_route(self, remote_id: str, record: RemoteRoute) -> None:
        """Overwrite a route; waypointCount is recomputed from the waypoints."""
        record = record.model_copy(update={"waypoint_count": len(record.waypoints)})
        async with self._remote_call("update_route", EntityKind.ROUTES):
            await self._update(EntityKind.ROUTES, remote_id, record)

    async def delete_route(self, remote_id: str) -> None:
        async with self._remote_call("delete_route", EntityKind.ROUTES):
            await self._delete(EntityKind.ROUTES, remote_id)

    async def get_routes(self) -> list[RemoteRoute]:
        async with self._remote_call("get_routes", EntityKind.ROUTES):
            documents = await self._documents(EntityKind.ROUTES)
        return [RemoteRoute.from_document(d) for d in documents]

    # -- areas --------------------------------------------------------------

    async def find_area_by_name(self, area_name: str) -> RemoteArea | None:
        async with self._remote_call("find_area_by_name", EntityKind.AREAS):
            document = await self._find_one(
                EntityKind.AREAS, [FieldFilter("areaName", area_name)]
            )
        return RemoteArea.from_document(document) if document is not None else None

    async def add_area(self, record: RemoteArea) -> AddSuccess | AddDuplicate:
        """Insert an area unless one with the same name exists."""
        existing = await self.find_area_by_name(record.area_name)
        async with self._remote_call("add_area", EntityKind.AREAS):
            return await self._insert(EntityKind.AREAS, record, existing)

    async def update_area(self, remote_id: str, record: RemoteArea) -> None:
        async with self._remote_call("update_area", EntityKind.AREAS):
            await self._update(EntityKind.AREAS, remote_id, record)

    async def delete_area(self, remote_id: str) -> None:
        async with self._remote_call("delete_area", EntityKind.AREAS):
            await self._delete(EntityKind.AREAS, remote_id)

    async def get_areas(self) -> list[RemoteArea]:
        async with self._remote_call("get_areas", EntityKind.AREAS):
            documents = await self._documents(EntityKind.AREAS)
        return [RemoteArea.from_document(d) for d in documents]

    # -- delete by position -------------------------------------------------

    async def delete_at_position(self, kind: EntityKind, position: Point) -> bool:
        """Delete the first point or spot within tolerance of an image position.

        Returns:
            True if a document was deleted.
        """
        if kind not in (EntityKind.POINTS, EntityKind.SPOTS):
            raise ValueError(f"{kind.value} have no single position")
        async with self._remote_call("delete_at_position", kind):
            for document in await self._documents(kind):
                x, y = document.data.get("x"), document.data.get("y")
                if x is None or y is None:
                    continue
                if abs(x - position.x) <= self.tolerance and abs(y - position.y) <= self.tolerance:
                    await self._delete(kind, document.id)
                    return True
        logger.debug("delete_at_position_missed", x=position.x, y=position.y)
        return False

    # -- local <-> remote conversion ----------------------------------------

    def point_to_record(self, point: MapPoint, index: int) -> RemotePoint:
        image = self._frame.to_image(point.position)
        return RemotePoint(
            id=point.id, x=image.x, y=image.y, index=index, is_marker=point.is_marker
        )

    def record_to_point(self, record: RemotePoint) -> MapPoint:
        canvas = self._frame.to_canvas(Point(x=record.x, y=record.y))
        return MapPoint(
            x=canvas.x,
            y=canvas.y,
            id=record.id,
            is_marker=record.is_marker,
            remote_id=record.remote_id,
        )

    def spot_to_record(self, spot: Spot, index: int) -> RemoteSpot:
        image = self._frame.to_image(spot.position)
        return RemoteSpot(name=spot.name, x=image.x, y=image.y, index=index)

    def record_to_spot(self, record: RemoteSpot) -> Spot:
        canvas = self._frame.to_canvas(Point(x=record.x, y=record.y))
        return Spot(x=canvas.x, y=canvas.y, name=record.name, remote_id=record.remote_id)

    def route_to_record(self, route: Route) -> RemoteRoute:
        return RemoteRoute(
            route_name=route.route_name or DEFAULT_ROUTE_NAME,
            start_point=route.start_point_id,
            end_point=route.end_point_id,
            waypoints=[self._frame.to_image(p) for p in route.waypoints],
            waypoint_count=len(route.waypoints),
            description=route.description,
        )

    def record_to_route(self, record: RemoteRoute) -> Route:
        return Route(
            route_name=record.route_name or f"{record.start_point} ～ {record.end_point}",
            start_point_id=record.start_point,
            end_point_id=record.end_point,
            waypoints=[self._frame.to_canvas(p) for p in record.waypoints],
            description=record.description,
            remote_id=record.remote_id,
        )

    def area_to_record(self, area: Area) -> RemoteArea:
        return RemoteArea(
            area_name=area.area_name,
            vertices=[self._frame.to_image(p) for p in area.vertices],
        )

    def record_to_area(self, record: RemoteArea) -> Area:
        return Area(
            area_name=record.area_name,
            vertices=[self._frame.to_canvas(p) for p in record.vertices],
            is_modified=bool(record.area_name.strip())
            and len(record.vertices) >= MIN_POLYGON_VERTICES,
            remote_id=record.remote_id,
        )

    def _points_from(self, documents: Sequence[Document]) -> list[MapPoint]:
        records = (RemotePoint.from_document(d) for d in documents)
        return [self.record_to_point(r) for r in records if r.id.strip()]

    def _spots_from(self, documents: Sequence[Document]) -> list[Spot]:
        records = (RemoteSpot.from_document(d) for d in documents)
        return [self.record_to_spot(r) for r in records if r.name.strip()]

    def _routes_from(self, documents: Sequence[Document]) -> list[Route]:
        return [self.record_to_route(RemoteRoute.from_document(d)) for d in documents]

    def _areas_from(self, documents: Sequence[Document]) -> list[Area]:
        return [self.record_to_area(RemoteArea.from_document(d)) for d in documents]

    def _entities_from(self, kind: EntityKind, documents: Sequence[Document]) -> list[Entity]:
        """Convert documents to local entities, dropping unlabeled points and spots."""
        converters: dict[EntityKind, Callable[[Sequence[Document]], Sequence[Entity]]] = {
            EntityKind.POINTS: self._points_from,
            EntityKind.SPOTS: self._spots_from,
            EntityKind.ROUTES: self._routes_from,
            EntityKind.AREAS: self._areas_from,
        }
        return list(converters[kind](documents))

    # -- user-initiated saves and loads (raise RemoteSyncError) -------------

    async def _upsert(
        self,
        record: RemoteRecord,
        add: Callable[[Any], Any],
        update: Callable[[str, Any], Any],
    ) -> SaveOutcome:
        result = await add(record)
        if isinstance(result, AddDuplicate):
            remote_id = result.existing.remote_id or ""
            await update(remote_id, record)
            return SaveOutcome(status="updated", remote_id=remote_id)
        return SaveOutcome(status="added", remote_id=result.remote_id)

    async def save_point(self, point: MapPoint, index: int) -> SaveOutcome:
        """Add or update a point by its id. Unlabeled points are skipped."""
        if not point.is_labeled:
            return SaveOutcome(status="skipped", message="Point has no id")
        record = self.point_to_record(point, index)
        outcome = await self._upsert(record, self.add_point, self.update_point)
        point.remote_id = outcome.remote_id
        return outcome

    async def save_spot(self, spot: Spot, index: int) -> SaveOutcome:
        """Add or update a spot by its name. Unnamed spots are skipped."""
        if not spot.is_labeled:
            return SaveOutcome(status="skipped", message="Spot has no name")
        record = self.spot_to_record(spot, index)
        outcome = await self._upsert(record, self.add_spot, self.update_spot)
        spot.remote_id = outcome.remote_id
        return outcome

    async def save_route(self, route: Route) -> SaveOutcome:
        """Write a route, updating in place once it has a remote id.

        Routes without both endpoints or without waypoints are skipped.
        """
        if not (route.start_point_id and route.end_point_id):
            return SaveOutcome(status="skipped", message="Route needs a start and an end point")
        if not route.waypoints:
            return SaveOutcome(status="skipped", message="Route has no waypoints")
        record = self.route_to_record(route)
        if route.remote_id:
            await self.update_route(route.remote_id, record)
            return SaveOutcome(status="updated", remote_id=route.remote_id)
        outcome = await self._upsert(record, self.add_route, self.update_route)
        route.remote_id = outcome.remote_id
        return outcome

    async def save_area(self, area: Area) -> SaveOutcome:
        """Write an area, updating in place once it has a remote id.

        Areas without a name or with fewer than three vertices are skipped.
        """
        if not area.is_labeled:
            return SaveOutcome(status="skipped", message="Area has no name")
        if len(area.vertices) < MIN_POLYGON_VERTICES:
            return SaveOutcome(status="skipped", message="Area has fewer than 3 vertices")
        record = self.area_to_record(area)
        if area.remote_id:
            await self.update_area(area.remote_id, record)
            return SaveOutcome(status="updated", remote_id=area.remote_id)
        outcome = await self._upsert(record, self.add_area, self.update_area)
        area.remote_id = outcome.remote_id
        return outcome

    async def save_all(
        self,
        points: Sequence[MapPoint],
        spots: Sequence[Spot],
        routes: Sequence[Route],
        areas: Sequence[Area],
    ) -> SyncSummary:
        """Push every local entity. Stops at the first remote failure."""
        with self._scope():
            await self.ensure_project(image_size=self._frame.image)
            outcomes: dict[str, list[SaveOutcome]] = {
                "points": [await self.save_point(p, i) for i, p in enumerate(points)],
                "spots": [await self.save_spot(s, i) for i, s in enumerate(spots)],
                "routes": [await self.save_route(r) for r in routes],
                "areas": [await self.save_area(a) for a in areas],
            }
            summary = SyncSummary(
                **{k: sum(not o.is_skipped for o in v) for k, v in outcomes.items()},
                skipped=sum(o.is_skipped for v in outcomes.values() for o in v),
            )
            logger.info("project_saved", **summary.model_dump())
        return summary

    async def load_into(
        self,
        points: PointStore,
        spots: SpotStore,
        routes: RouteStore,
        areas: AreaStore,
    ) -> SyncSummary:
        """Replace the local stores with the remote contents.

        Everything is fetched before any store is touched, so a failure
        leaves the local state as it was.
        """
        fetched: dict[EntityKind, list[Document]] = {}
        for kind in EntityKind:
            async with self._remote_call("load_into", kind):
                fetched[kind] = await self._documents(kind)

        async with self._remote_call("load_into"):
            new_points = self._points_from(fetched[EntityKind.POINTS])
            new_spots = self._spots_from(fetched[EntityKind.SPOTS])
            new_routes = self._routes_from(fetched[EntityKind.ROUTES])
            new_areas = self._areas_from(fetched[EntityKind.AREAS])
            points.replace_all(new_points)
            spots.replace_all(new_spots)
            routes.replace_all(new_routes)
            areas.replace_all(new_areas)
            summary = SyncSummary(
                points=len(new_points),
                spots=len(new_spots),
                routes=len(new_routes),
                areas=len(new_areas),
                skipped=len(fetched[EntityKind.POINTS])
                - len(new_points)
                + len(fetched[EntityKind.SPOTS])
                - len(new_spots),
            )
            logger.info("project_loaded", **summary.model_dump())
        return summary

    # -- background pushes (log and swallow) --------------------------------

    async def _background(
        self, operation: str, kind: EntityKind, action: Callable[[], Any]
    ) -> Any:
        with self._scope(kind):
            try:
                return await action()
            except Exception:
                logger.exception("background_sync_failed", operation=operation)
                return None

    async def _retire_previous(
        self, kind: EntityKind, previous: MapPoint | Spot, current: MapPoint | Spot
    ) -> None:
        """Delete the record an edit replaced.

        A moved or renamed entity that knows its remote id is deleted by that
        id. Otherwise a moved one is deleted at its old position and a renamed
        one under its old natural key. The caller then upserts the new state.
        """
        moved = previous.position != current.position
        if previous.remote_id and (moved or _natural_key(previous) != _natural_key(current)):
            await self._delete_by_remote_id(kind, previous.remote_id)
            current.remote_id = None
            return
        if moved:
            await self.delete_at_position(kind, self._frame.to_image(previous.position))
            return
        if not previous.is_labeled:
            return
        if isinstance(previous, MapPoint) and isinstance(current, MapPoint):
            if point_id_key(previous.id) != point_id_key(current.id):
                old = await self.find_point_by_id(previous.id)
                if old is not None and old.remote_id:
                    await self.delete_point(old.remote_id)
        elif isinstance(previous, Spot) and isinstance(current, Spot):
            if spot_name_key(previous.name) != spot_name_key(current.name):
                old = await self.find_spot_by_name(previous.name)
                if old is not None and old.remote_id:
                    await self.delete_spot(old.remote_id)

    async def push_point(
        self, point: MapPoint, index: int, previous: MapPoint | None = None
    ) -> SaveOutcome | None:
        async def action() -> SaveOutcome:
            if previous is not None:
                await self._retire_previous(EntityKind.POINTS, previous, point)
            return await self.save_point(point, index)

        return await self._background("push_point", EntityKind.POINTS, action)

    async def push_spot(
        self, spot: Spot, index: int, previous: Spot | None = None
    ) -> SaveOutcome | None:
        async def action() -> SaveOutcome:
            if previous is not None:
                await self._retire_previous(EntityKind.SPOTS, previous, spot)
            return await self.save_spot(spot, index)

        return await self._background("push_spot", EntityKind.SPOTS, action)

    async def push_route(self, route: Route) -> SaveOutcome | None:
        return await self._background(
            "push_route", EntityKind.ROUTES, lambda: self.save_route(route)
        )

    async def push_area(self, area: Area) -> SaveOutcome | None:
        return await self._background(
            "push_area", EntityKind.AREAS, lambda: self.save_area(area)
        )

    async def _delete_by_remote_id(self, kind: EntityKind, remote_id: str) -> None:
        if kind is EntityKind.POINTS:
            await self.delete_point(remote_id)
        else:
            await self.delete_spot(remote_id)

    async def _delete_removed(self, kind: EntityKind, entity: MapPoint | Spot) -> bool:
        if entity.remote_id:
            await self._delete_by_remote_id(kind, entity.remote_id)
            return True
        return await self.delete_at_position(kind, self._frame.to_image(entity.position))

    async def push_point_removal(self, point: MapPoint) -> bool | None:
        """Delete a removed point's record, by remote id when known, else by position."""
        return await self._background(
            "push_point_removal",
            EntityKind.POINTS,
            lambda: self._delete_removed(EntityKind.POINTS, point),
        )

    async def push_spot_removal(self, spot: Spot) -> bool | None:
        return await self._background(
            "push_spot_removal",
            EntityKind.SPOTS,
            lambda: self._delete_removed(EntityKind.SPOTS, spot),
        )

    async def push_route_removal(self, route: Route) -> None:
        if route.remote_id:
            remote_id = route.remote_id
            await self._background(
                "push_route_removal", EntityKind.ROUTES, lambda: self.delete_route(remote_id)
            )

    async def push_area_removal(self, area: Area) -> None:
        if area.remote_id:
            remote_id = area.remote_id
            await self._background(
                "push_area_removal", EntityKind.AREAS, lambda: self.delete_area(remote_id)
            )

    # -- subscriptions ------------------------------------------------------

    def subscribe(
        self, kind: EntityKind, callback: Callable[[list[Entity]], None]
    ) -> Unsubscribe:
        """Receive the converted collection on every remote change.

        Errors raised while converting or inside ``callback`` are logged
        and never reach the store. The returned function removes this
        subscription; unsubscribe_all() removes every one.
        """

        def on_snapshot(documents: list[Document]) -> None:
            with self._scope(kind):
                try:
                    callback(self._entities_from(kind, documents))
                except Exception:
                    logger.exception("subscription_callback_failed")

        handle = self.store.subscribe(
            self.collection_path(kind), on_snapshot, order_by=_ORDER_FIELDS[kind]
        )
        self._subscriptions.setdefault(kind, []).append(handle)

        def unsubscribe() -> None:
            handles = self._subscriptions.get(kind, [])
            if handle in handles:
                handles.remove(handle)
                handle()

        return unsubscribe

    def unsubscribe(self, kind: EntityKind) -> int:
        """Remove every subscription for one kind; returns how many."""
        handles = self._subscriptions.pop(kind, [])
        for handle in handles:
            handle()
        return len(handles)

    def unsubscribe_all(self) -> int:
        removed = sum(self.unsubscribe(kind) for kind in list(self._subscriptions))
        if removed:
            with self._scope():
                logger.info("subscriptions_removed", count=removed)
        return removed

    def subscription_count(self) -> int:
        return sum(len(handles) for handles in self._subscriptions.values())

    def close(self) -> None:
        self.unsubscribe_all()
