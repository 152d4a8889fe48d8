"""Document store protocol for mapmark.

The sync gateway talks to the shared remote store only through the
DocumentStore protocol defined here: get/set/update/delete by document
path, add with a server-assigned id, equality queries, and push-based
subscriptions. Any backend (a cloud document database client, the
in-memory store used in tests) can be plugged in.

Paths are slash-separated, alternating collection and document ids:
``projects/map`` is a document, ``projects/map/points`` is a
collection.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple, Protocol

from pydantic import BaseModel, Field

# =============================================================================
# Data Models
# =============================================================================


class Document(BaseModel, frozen=True):
    """A stored document: its id (last path segment) and field data."""

    id: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class FieldFilter(NamedTuple):
    """Equality filter ``field == value`` for query()."""

    field: str
    value: Any


# =============================================================================
# Write Sentinels
# =============================================================================


@dataclass(frozen=True)
class Increment:
    """Write sentinel: add ``amount`` to the stored number (missing counts as 0)."""

    amount: int


class _ServerTimestamp:
    _instance: _ServerTimestamp | None = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()
"""Write sentinel: the store replaces it with its own clock at write time."""


# =============================================================================
# Errors
# =============================================================================


class DocumentNotFoundError(LookupError):
    """Raised by update() when the target document does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No document at {path}")


# =============================================================================
# Store Protocol
# =============================================================================

SnapshotCallback = Callable[[list[Document]], None]
Unsubscribe = Callable[[], None]


class DocumentStore(Protocol):
    """Protocol for the remote document store.

    All I/O methods are coroutines. subscribe() is synchronous: it
    registers the callback and returns a function that removes it. The
    callback receives the full, ordered collection every time anything in
    it changes, including this client's own writes.
    """

    async def get(self, path: str) -> Document | None:
        """Fetch one document, or None if it does not exist."""
        ...

    async def set(self, path: str, data: Mapping[str, Any]) -> None:
        """Create or overwrite a document."""
        ...

    async def update(self, path: str, data: Mapping[str, Any]) -> None:
        """Merge fields into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        ...

    async def delete(self, path: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""
        ...

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        """Create a document with a server-assigned id and return the id."""
        ...

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        """Documents of a collection matching every equality filter."""
        ...

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        *,
        order_by: str | None = None,
    ) -> Unsubscribe:
        """Call ``callback`` with the collection now and after every change."""
        ...
