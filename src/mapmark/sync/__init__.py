"""Remote synchronization for mapmark.

Key Components:
    - DocumentStore: Protocol for the shared remote document store.
    - InMemoryDocumentStore: In-process DocumentStore for tests and offline use.
    - RemoteSyncGateway: Maps local entities onto remote documents, with
      duplicate detection, counters and subscriptions.
    - SyncPipeline: Schedules background pushes for local entity changes.
    - ProjectSession: Everything that lives while one project is open.

Example:
    >>> from mapmark.sync import InMemoryDocumentStore, ProjectSession
    >>> session = await ProjectSession.open(InMemoryDocumentStore(), "map", frame)
    >>> session.points.add(120, 80, id="A-01")
    >>> await session.close()
"""

from mapmark.sync.exceptions import ProjectNotFoundError, RemoteSyncError
from mapmark.sync.gateway import RemoteSyncGateway
from mapmark.sync.memory import InMemoryDocumentStore
from mapmark.sync.pipeline import SyncPipeline
from mapmark.sync.protocol import (
    SERVER_TIMESTAMP,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    Increment,
)
from mapmark.sync.records import (
    AddDuplicate,
    AddResult,
    AddSuccess,
    ProjectMetadata,
    RemoteArea,
    RemotePoint,
    RemoteRoute,
    RemoteSpot,
    SaveOutcome,
    SyncSummary,
)
from mapmark.sync.session import ProjectSession

__all__ = [
    "SERVER_TIMESTAMP",
    "AddDuplicate",
    "AddResult",
    "AddSuccess",
    "Document",
    "DocumentNotFoundError",
    "DocumentStore",
    "FieldFilter",
    "InMemoryDocumentStore",
    "Increment",
    "ProjectMetadata",
    "ProjectNotFoundError",
    "ProjectSession",
    "RemoteArea",
    "RemotePoint",
    "RemoteRoute",
    "RemoteSpot",
    "RemoteSyncError",
    "RemoteSyncGateway",
    "SaveOutcome",
    "SyncPipeline",
    "SyncSummary",
]
