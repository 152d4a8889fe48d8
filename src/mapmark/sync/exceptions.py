"""Exceptions for remote synchronization.

Background pushes never raise these; they log and carry on. Metadata
access and user-initiated saves and loads raise them so the caller can
tell the user.
"""

from mapmark.stores.models import EntityKind


class RemoteSyncError(Exception):
    """Base exception for failed remote store operations."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        project_id: str | None = None,
        collection: EntityKind | str | None = None,
    ) -> None:
        """Initialize with the failing operation's context.

        Args:
            message: Human-readable error description.
            operation: Gateway operation that failed (e.g. "add_point").
            project_id: Project the operation targeted.
            collection: Sub-collection involved, if any.
        """
        self.message = message
        self.operation = operation
        self.project_id = project_id
        self.collection = (
            collection.value if isinstance(collection, EntityKind) else collection
        )
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with operation context."""
        parts = [self.message]
        if self.operation:
            parts.append(f"operation={self.operation}")
        if self.project_id:
            parts.append(f"project={self.project_id}")
        if self.collection:
            parts.append(f"collection={self.collection}")

        if len(parts) == 1:
            return parts[0]
        return f"{parts[0]} ({', '.join(parts[1:])})"


class ProjectNotFoundError(RemoteSyncError):
    """Raised when the project document does not exist."""

    def __init__(self, project_id: str, *, operation: str | None = None) -> None:
        super().__init__("Project not found", operation=operation, project_id=project_id)
