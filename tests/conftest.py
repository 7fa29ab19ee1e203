"""Shared pytest fixtures and configuration."""

from collections.abc import Iterator

import pytest
from fakes import FakeContainer, ventana_container

from bifslide.config import Settings
from bifslide.tiff.types import SlideHandle
from bifslide.utils.logging import clear_correlation_context, configure_logging


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
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
        _env_file=None,  # type: ignore[call-arg]
    )


@pytest.fixture
def configure_test_logging() -> Iterator[None]:
    """Configure logging for tests with console output."""
    configure_logging(level="DEBUG", log_format="console")
    yield


@pytest.fixture
def slide() -> SlideHandle:
    """Provide an empty slide handle."""
    return SlideHandle()


@pytest.fixture
def scenario_a() -> FakeContainer:
    """Label, thumbnail, level=0 (4096 wide, iScan XML), level=1 (2048 wide)."""
    return ventana_container()
