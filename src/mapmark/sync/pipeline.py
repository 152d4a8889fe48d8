"""Background sync pipeline.

Local stores apply edits immediately and emit an EntityChange for every
committed mutation. SyncPipeline turns each change into one asyncio task
running the matching gateway push. Tasks are not serialized per entity:
two quick edits of the same point may reach the remote store in either
order, and the last write to resolve wins.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

from mapmark.geometry.polygon import MIN_POLYGON_VERTICES
from mapmark.stores.area_store import AreaStore
from mapmark.stores.events import ChangeAction, EntityChange
from mapmark.stores.models import Area, MapPoint, Route, Spot
from mapmark.stores.point_store import PointStore
from mapmark.stores.route_store import RouteStore
from mapmark.stores.spot_store import SpotStore
from mapmark.sync.gateway import RemoteSyncGateway
from mapmark.utils.logging import get_logger
from mapmark.validation.rules import check_route_references

logger = get_logger(__name__)

PushCoroutine = Coroutine[Any, Any, Any]


class SyncPipeline:
    """Schedules remote pushes for local entity changes.

    Args:
        gateway: Gateway for the open project.
        points: Point store to follow.
        spots: Spot store to follow.
        routes: Route store to follow.
        areas: Area store to follow.

    Example:
        >>> pipeline = SyncPipeline(gateway, points, spots, routes, areas)
        >>> pipeline.start()
        >>> points.add(10, 20, id="A-01")
        >>> await pipeline.drain()
    """

    def __init__(
        self,
        gateway: RemoteSyncGateway,
        points: PointStore,
        spots: SpotStore,
        routes: RouteStore,
        areas: AreaStore,
    ) -> None:
        self.gateway = gateway
        self.points = points
        self.spots = spots
        self.routes = routes
        self.areas = areas
        self._tasks: set[asyncio.Task[Any]] = set()
        self._disconnects: list[Callable[[], None]] = []

    @property
    def is_running(self) -> bool:
        return bool(self._disconnects)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def start(self) -> None:
        """Begin following the stores. Calling it twice is a no-op."""
        if self.is_running:
            return
        for store in (self.points, self.spots, self.routes, self.areas):
            self._disconnects.append(store.on_entity_change.connect(self.handle_change))

    def stop(self) -> None:
        """Stop following the stores; tasks already scheduled keep running."""
        for disconnect in self._disconnects:
            disconnect()
        self._disconnects.clear()

    async def drain(self) -> None:
        """Wait until every scheduled push, including ones they schedule, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self.stop()
        await self.drain()

    def handle_change(self, change: EntityChange) -> None:
        """Schedule the push for one committed change, if it needs one."""
        factory = self._push_for(change)
        if factory is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "sync_skipped_no_event_loop",
                kind=change.kind.value,
                action=change.action.value,
            )
            return
        task = loop.create_task(factory())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _push_for(self, change: EntityChange) -> Callable[[], PushCoroutine] | None:
        entity = change.entity
        gateway = self.gateway
        if change.action is ChangeAction.REMOVED:
            if isinstance(entity, MapPoint):
                return lambda: gateway.push_point_removal(entity)
            if isinstance(entity, Spot):
                return lambda: gateway.push_spot_removal(entity)
            if isinstance(entity, Route):
                return lambda: gateway.push_route_removal(entity)
            if isinstance(entity, Area):
                return lambda: gateway.push_area_removal(entity)
            return None

        if isinstance(entity, MapPoint):
            previous = change.previous if isinstance(change.previous, MapPoint) else None
            if not entity.is_labeled:
                return None
            return lambda: gateway.push_point(entity, change.index, previous)
        if isinstance(entity, Spot):
            previous_spot = change.previous if isinstance(change.previous, Spot) else None
            if not entity.is_labeled:
                return None
            return lambda: gateway.push_spot(entity, change.index, previous_spot)
        if isinstance(entity, Route):
            return self._route_push(entity)
        if isinstance(entity, Area):
            if not entity.is_labeled or len(entity.vertices) < MIN_POLYGON_VERTICES:
                return None
            return lambda: gateway.push_area(entity)
        return None

    def _route_push(self, route: Route) -> Callable[[], PushCoroutine] | None:
        result = check_route_references(
            route.start_point_id,
            route.end_point_id,
            len(route.waypoints),
            self.points.registered_ids(),
            self.spots.names(),
        )
        if not result:
            logger.debug(
                "route_push_skipped",
                reason=result.message,
            )
            return None
        return lambda: self.gateway.push_route(route)
