"""An open annotation project.

ProjectSession owns everything that lives as long as one image is open:
the four entity stores, the viewport, the hit tester, the remote gateway
and the background sync pipeline. Closing the session drains pending
pushes and removes every remote subscription.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Self

from mapmark.config import settings
from mapmark.core.hit_tester import HitTester
from mapmark.geometry.primitives import Size, Viewport
from mapmark.geometry.transforms import CanvasFrame
from mapmark.stores.area_store import AreaStore
from mapmark.stores.models import Entity, EntityKind
from mapmark.stores.point_store import PointStore
from mapmark.stores.route_store import RouteStore
from mapmark.stores.spot_store import SpotStore
from mapmark.sync.gateway import RemoteSyncGateway
from mapmark.sync.pipeline import SyncPipeline
from mapmark.sync.protocol import DocumentStore
from mapmark.sync.records import ProjectMetadata, SyncSummary
from mapmark.utils.logging import get_logger
from mapmark.validation.rules import ValidationResult

logger = get_logger(__name__)

RemoteChangeCallback = Callable[[EntityKind, list[Entity]], None]


class ProjectSession:
    """Stores, gateway and pipeline for one open project.

    Args:
        store: Remote document store backend.
        project_id: Project id (the image file name without its extension).
        frame: Initial canvas and image sizes.
        user_id: Id stamped on remote writes. Defaults to the configured
            USER_ID.
        on_remote_change: If given, called with (kind, entities) whenever a
            remote collection changes, for as long as the session is open.

    Example:
        >>> session = await ProjectSession.open(store, "map", frame)
        >>> session.points.add(120, 80, id="A-01")
        >>> await session.close()
    """

    def __init__(
        self,
        store: DocumentStore,
        project_id: str,
        frame: CanvasFrame,
        *,
        user_id: str | None = None,
        on_remote_change: RemoteChangeCallback | None = None,
    ) -> None:
        self.points = PointStore()
        self.spots = SpotStore()
        self.routes = RouteStore()
        self.areas = AreaStore()
        self.viewport = Viewport()
        self.hit_tester = HitTester(self.points, self.spots, self.routes, self.areas)
        self.gateway = RemoteSyncGateway(
            store, project_id, user_id or settings.require_user_id(), frame
        )
        self.pipeline = SyncPipeline(
            self.gateway, self.points, self.spots, self.routes, self.areas
        )
        self.metadata: ProjectMetadata | None = None
        self._on_remote_change = on_remote_change
        self._is_open = False

    @classmethod
    async def open(
        cls,
        store: DocumentStore,
        project_id: str,
        frame: CanvasFrame,
        *,
        user_id: str | None = None,
        on_remote_change: RemoteChangeCallback | None = None,
    ) -> Self:
        """Create a session, load the project and start syncing."""
        session = cls(
            store, project_id, frame, user_id=user_id, on_remote_change=on_remote_change
        )
        await session.start()
        return session

    @property
    def project_id(self) -> str:
        return self.gateway.project_id

    @property
    def frame(self) -> CanvasFrame:
        return self.gateway.frame

    @property
    def is_open(self) -> bool:
        return self._is_open

    async def start(self) -> SyncSummary:
        """Ensure the project exists, load it, then follow local and remote changes."""
        self.metadata = await self.gateway.ensure_project(image_size=self.frame.image)
        summary = await self.gateway.load_into(self.points, self.spots, self.routes, self.areas)
        self.pipeline.start()
        if self._on_remote_change is not None:
            callback = self._on_remote_change
            for kind in EntityKind:
                self.gateway.subscribe(kind, lambda entities, k=kind: callback(k, entities))
        self._is_open = True
        logger.info("project_opened", project=self.project_id, **summary.model_dump())
        return summary

    async def close(self) -> None:
        """Stop syncing, wait for pending pushes and drop all subscriptions."""
        if not self._is_open:
            return
        await self.pipeline.close()
        self.gateway.close()
        self._is_open = False
        logger.info("project_closed", project=self.project_id)

    async def __aenter__(self) -> Self:
        if not self._is_open:
            await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def resize(self, canvas: Size) -> None:
        """Move every entity to a new canvas size, keeping image positions."""
        old = self.frame
        new = CanvasFrame(canvas=canvas, image=old.image)
        for store in (self.points, self.spots, self.routes, self.areas):
            store.reframe(old, new)
        self.gateway.set_frame(new)
        logger.debug("canvas_resized", width=canvas.width, height=canvas.height)

    def cleanup_trailing_empty(self) -> int:
        """Drop trailing unlabeled entities of every kind; returns how many went."""
        return sum(
            store.remove_trailing_empty()
            for store in (self.points, self.spots, self.routes, self.areas)
        )

    def validate_selected_route(self) -> ValidationResult:
        return self.routes.validate_endpoints(self.points.registered_ids(), self.spots.names())

    async def save_selected_route(self) -> ValidationResult:
        """Validate and write the selected route.

        Raises:
            RemoteSyncError: If the remote write fails.
        """
        result = self.validate_selected_route()
        route = self.routes.get_selected()
        if not result or route is None:
            return result
        outcome = await self.gateway.save_route(route)
        if outcome.is_skipped:
            return ValidationResult.fail(outcome.message)
        self.routes.mark_saved(self.routes.selected_index)
        return ValidationResult.ok()

    async def save_selected_area(self) -> ValidationResult:
        """Validate and write the selected area.

        Raises:
            RemoteSyncError: If the remote write fails.
        """
        result = self.areas.validate()
        area = self.areas.get_selected()
        if not result or area is None:
            return result
        outcome = await self.gateway.save_area(area)
        if outcome.is_skipped:
            return ValidationResult.fail(outcome.message)
        return ValidationResult.ok()

    async def save_all(self) -> SyncSummary:
        """Write every local entity to the remote store.

        Raises:
            RemoteSyncError: On the first remote failure.
        """
        await self.pipeline.drain()
        summary = await self.gateway.save_all(
            self.points.get_all(),
            self.spots.get_all(),
            self.routes.get_all(),
            self.areas.get_all(),
        )
        for index, route in enumerate(self.routes.get_all()):
            if route.remote_id:
                self.routes.mark_saved(index)
        return summary

    async def reload(self) -> SyncSummary:
        """Replace local state with the remote contents.

        Raises:
            RemoteSyncError: If any collection cannot be read.
        """
        await self.pipeline.drain()
        return await self.gateway.load_into(self.points, self.spots, self.routes, self.areas)
