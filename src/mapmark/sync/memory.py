"""In-memory DocumentStore.

Behaves like the shared remote store closely enough for tests and offline
use: server-assigned ids, SERVER_TIMESTAMP and Increment sentinels,
equality queries with ordering, and synchronous snapshot delivery to
subscribers after every write.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from mapmark.sync.protocol import (
    SERVER_TIMESTAMP,
    Document,
    DocumentNotFoundError,
    FieldFilter,
    Increment,
    SnapshotCallback,
    Unsubscribe,
)
from mapmark.utils.logging import get_logger

logger = get_logger(__name__)


def _parent(path: str) -> str:
    collection, _, _ = path.rpartition("/")
    return collection


def _sort_key(value: Any) -> tuple[bool, Any]:
    return (value is None, value)


class InMemoryDocumentStore:
    """A DocumentStore kept in a dict keyed by document path.

    Args:
        clock: Source of server timestamps. Defaults to UTC now.

    Example:
        >>> store = InMemoryDocumentStore()
        >>> doc_id = await store.add("projects/p/points", {"id": "A-01"})
        >>> [d.data["id"] for d in await store.query("projects/p/points")]
        ['A-01']
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))
        self._documents: dict[str, dict[str, Any]] = {}
        self._subscribers: dict[str, list[tuple[SnapshotCallback, str | None]]] = {}

    # -- helpers ------------------------------------------------------------

    def _resolve(self, data: Mapping[str, Any], current: Mapping[str, Any]) -> dict[str, Any]:
        resolved: dict[str, Any] = {}
        for key, value in data.items():
            if value is SERVER_TIMESTAMP:
                resolved[key] = self._clock()
            elif isinstance(value, Increment):
                resolved[key] = (current.get(key) or 0) + value.amount
            else:
                resolved[key] = value
        return resolved

    def _collection_docs(self, collection: str) -> list[Document]:
        return [
            Document(id=path.rsplit("/", 1)[1], data=dict(data))
            for path, data in self._documents.items()
            if _parent(path) == collection
        ]

    def _snapshot(self, collection: str, order_by: str | None) -> list[Document]:
        docs = self._collection_docs(collection)
        if order_by is not None:
            docs.sort(key=lambda d: _sort_key(d.data.get(order_by)))
        return docs

    def _notify(self, collection: str) -> None:
        for callback, order_by in list(self._subscribers.get(collection, [])):
            callback(self._snapshot(collection, order_by))

    # -- DocumentStore ------------------------------------------------------

    async def get(self, path: str) -> Document | None:
        data = self._documents.get(path)
        if data is None:
            return None
        return Document(id=path.rsplit("/", 1)[1], data=dict(data))

    async def set(self, path: str, data: Mapping[str, Any]) -> None:
        self._documents[path] = self._resolve(data, {})
        self._notify(_parent(path))

    async def update(self, path: str, data: Mapping[str, Any]) -> None:
        current = self._documents.get(path)
        if current is None:
            raise DocumentNotFoundError(path)
        current.update(self._resolve(data, current))
        self._notify(_parent(path))

    async def delete(self, path: str) -> None:
        if self._documents.pop(path, None) is not None:
            self._notify(_parent(path))

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self._documents[f"{collection}/{doc_id}"] = self._resolve(data, {})
        self._notify(collection)
        return doc_id

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        docs = [
            doc
            for doc in self._collection_docs(collection)
            if all(f.field in doc.data and doc.data[f.field] == f.value for f in filters)
        ]
        if order_by is not None:
            docs.sort(key=lambda d: _sort_key(d.data.get(order_by)), reverse=descending)
        if limit is not None:
            docs = docs[:limit]
        return docs

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        *,
        order_by: str | None = None,
    ) -> Unsubscribe:
        entry = (callback, order_by)
        self._subscribers.setdefault(collection, []).append(entry)
        callback(self._snapshot(collection, order_by))

        def unsubscribe() -> None:
            entries = self._subscribers.get(collection, [])
            if entry in entries:
                entries.remove(entry)

        return unsubscribe

    def subscriber_count(self, collection: str | None = None) -> int:
        """Active subscriptions, for one collection or overall."""
        if collection is not None:
            return len(self._subscribers.get(collection, []))
        return sum(len(entries) for entries in self._subscribers.values())
