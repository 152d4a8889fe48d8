"""Structured logging configuration using structlog.

Provides correlation fields for tracing remote sync work back to the
project, user and entity kind that triggered it, with configurable output
formats (JSON for production, colored console for dev).
"""

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, cast

import structlog
from structlog.types import Processor

from mapmark.config import settings

# Context variables for correlation fields
_project_id: ContextVar[str | None] = ContextVar("project_id", default=None)
_user_id: ContextVar[str | None] = ContextVar("user_id", default=None)
_entity_kind: ContextVar[str | None] = ContextVar("entity_kind", default=None)


def set_correlation_context(
    project_id: str | None = None,
    user_id: str | None = None,
    entity_kind: str | None = None,
) -> None:
    """Set correlation fields for the current async context.

    Args:
        project_id: Image-filename key of the open project
        user_id: Opaque id of the editing user
        entity_kind: Entity collection being synced (points, spots, ...)
    """
    if project_id is not None:
        _project_id.set(project_id)
    if user_id is not None:
        _user_id.set(user_id)
    if entity_kind is not None:
        _entity_kind.set(entity_kind)


def clear_correlation_context() -> None:
    """Reset project, user and entity kind to unset."""
    _project_id.set(None)
    _user_id.set(None)
    _entity_kind.set(None)


@contextmanager
def correlation_scope(
    project_id: str | None = None,
    user_id: str | None = None,
    entity_kind: str | None = None,
) -> Iterator[None]:
    """Temporarily set correlation fields, restoring the previous values on exit.

    Example:
        >>> with correlation_scope(project_id="map", entity_kind="spots"):
        ...     get_logger(__name__).info("spot_pushed")
    """
    tokens = [
        var.set(value)
        for var, value in (
            (_project_id, project_id),
            (_user_id, user_id),
            (_entity_kind, entity_kind),
        )
        if value is not None
    ]
    try:
        yield
    finally:
        for token in reversed(tokens):
            token.var.reset(token)


def _add_correlation_ids(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor to add correlation fields to log events."""
    _ = logger, method_name  # Required by structlog processor signature
    project_id = _project_id.get()
    user_id = _user_id.get()
    entity_kind = _entity_kind.get()

    if project_id is not None:
        event_dict["project_id"] = project_id
    if user_id is not None:
        event_dict["user_id"] = user_id
    if entity_kind is not None:
        event_dict["entity_kind"] = entity_kind

    return event_dict


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
) -> None:
    """Set up structlog and the stdlib root logger for mapmark output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to settings.LOG_LEVEL.
        log_format: Output format ("console" or "json").
                    Defaults to settings.LOG_FORMAT.
    """
    level = level or settings.LOG_LEVEL
    log_format = log_format or settings.LOG_FORMAT

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_correlation_ids,
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging to match
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger for a module.

    Args:
        name: Logger name. If None, uses the calling module's name.

    Returns:
        A bound structlog logger instance.
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
