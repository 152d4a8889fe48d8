"""Entity stores for mapmark.

Each store owns the in-memory collection for one entity kind, exposes
CRUD and geometry queries, and reports changes through typed signals.

Key Components:
    - PointStore, SpotStore: flat lists of positioned, labeled entities
    - RouteStore, AreaStore: several collections with one selected
    - Signal, EntityChange: the notification channel the sync layer
      listens on

Example:
    from mapmark.stores import PointStore

    points = PointStore()
    points.on_count_change.connect(print)
    points.add(120, 80)
    points.update_id(0, "b7")  # stored as "B-07"
"""

from mapmark.stores.area_store import AreaStore
from mapmark.stores.events import (
    ChangeAction,
    EndpointsChange,
    EntityChange,
    SelectionChange,
    Signal,
)
from mapmark.stores.models import Area, Entity, EntityKind, MapPoint, Route, Spot
from mapmark.stores.point_store import PointStore
from mapmark.stores.route_store import RouteStore
from mapmark.stores.spot_store import SpotStore

__all__ = [
    "Area",
    "AreaStore",
    "ChangeAction",
    "EndpointsChange",
    "Entity",
    "EntityChange",
    "EntityKind",
    "MapPoint",
    "PointStore",
    "Route",
    "RouteStore",
    "SelectionChange",
    "Signal",
    "Spot",
    "SpotStore",
]
