"""Test configuration."""

import os
from collections.abc import Generator
from pathlib import Path
from typing import List

import pytest
import structlog
from pytest import Config

# Must be set before reelsync.core.config is imported anywhere
os.environ.setdefault("TESTING", "true")

from reelsync.core.logging import configure_logging  # noqa: E402

# Configure logging for test environment before any module binds a logger
configure_logging(testing=True)

fixture = pytest.fixture


@fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


pytest_plugins: List[str] = [
    "tests.fixtures.content_store",
    "tests.fixtures.provider",
]


@fixture(autouse=True)
def restore_structlog_config() -> Generator[None, None, None]:
    """Put back the structlog configuration a test may have replaced.

    Module-level loggers keep a reference to the processor list that was
    active when they were bound, so the same list object is restored.
    """
    config = structlog.get_config()
    yield
    structlog.configure(**config)


def pytest_configure(config: Config) -> None:
    """Configure pytest.

    Args:
        config: Pytest configuration object
    """
    config.addinivalue_line("markers", "integration: mark test as an integration test")
