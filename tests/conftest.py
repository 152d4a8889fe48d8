"""Shared pytest fixtures and configuration."""

from collections.abc import Iterator

import pytest

from mapmark.config import Settings
from mapmark.geometry.primitives import Size
from mapmark.geometry.transforms import CanvasFrame
from mapmark.sync.gateway import RemoteSyncGateway
from mapmark.sync.memory import InMemoryDocumentStore
from mapmark.utils.logging import clear_correlation_context, configure_logging


@pytest.fixture(autouse=True)
def reset_logging_context() -> Iterator[None]:
    """Reset correlation context between tests."""
    clear_correlation_context()
    yield
    clear_correlation_context()


@pytest.fixture
def test_settings() -> Settings:
    """Create a Settings instance with test-safe defaults."""
    return Settings(
        USER_ID="test-user",
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
    )


@pytest.fixture
def configure_test_logging() -> Iterator[None]:
    """Configure logging for tests with console output."""
    configure_logging(level="DEBUG", log_format="console")
    yield


@pytest.fixture
def half_frame() -> CanvasFrame:
    """Canvas drawn at half the image resolution."""
    return CanvasFrame(canvas=Size(width=500, height=250), image=Size(width=1000, height=500))


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def gateway(memory_store: InMemoryDocumentStore, half_frame: CanvasFrame) -> RemoteSyncGateway:
    return RemoteSyncGateway(memory_store, "map", "test-user", half_frame)
