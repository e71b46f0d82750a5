"""Test configuration."""

import os
from pathlib import Path
from typing import List

import pytest
from pytest import Config

# Keep a developer's real credentials and Redis out of the test run
os.environ.pop("LOCATIONIQ_API_KEY", None)
os.environ.pop("REDIS_URL", None)

from locator.core.logging import configure_logging  # noqa: E402

fixture = pytest.fixture


@fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


pytest_plugins: List[str] = [
    "tests.fixtures.geocoding",
    "tests.fixtures.api",
]


def pytest_configure(config: Config) -> None:
    """Configure pytest.

    Args:
        config: Pytest configuration object
    """
    # Configure logging for test environment
    configure_logging(testing=True)
    config.addinivalue_line("markers", "integration: mark test as an integration test")
