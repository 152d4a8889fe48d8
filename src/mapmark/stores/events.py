"""Typed change notifications for entity stores.

Each notification kind is its own Signal, so listeners get a typed
payload instead of looking callbacks up by event name.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from mapmark.stores.models import Entity, EntityKind

T = TypeVar("T")


class Signal(Generic[T]):
    """A synchronous observer list for one notification kind.

    Listeners run in connection order. A listener that raises propagates
    to the code that caused the emit; callers that must not fail wrap
    their listeners.

    Example:
        >>> counts = Signal[int]()
        >>> seen = []
        >>> disconnect = counts.connect(seen.append)
        >>> counts.emit(3)
        >>> disconnect()
        >>> counts.emit(4)
        >>> seen
        [3]
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[T], None]] = []

    def connect(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Add a listener and return a function that removes it again."""
        self._listeners.append(listener)

        def disconnect() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return disconnect

    def emit(self, value: T) -> None:
        for listener in list(self._listeners):
            listener(value)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)


class ChangeAction(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


@dataclass(frozen=True)
class EntityChange:
    """A committed change to one entity.

    Live edits (typing, drag moves) do not produce an EntityChange; only
    the commit that ends them does.

    Attributes:
        kind: Which collection changed.
        action: What happened to the entity.
        index: Position of the entity in its collection at the time of the
            change (before removal, for REMOVED).
        entity: The entity itself, not a copy. Async consumers see its
            state at the time they run, and may record a remote id on it.
        previous: Snapshot before the change, for UPDATED. For a committed
            drag this holds the position the drag started from.
    """

    kind: EntityKind
    action: ChangeAction
    index: int
    entity: Entity
    previous: Entity | None = None


@dataclass(frozen=True)
class SelectionChange:
    """Selected index of a Route or Area store; -1 means none."""

    index: int


@dataclass(frozen=True)
class EndpointsChange:
    start: str
    end: str
