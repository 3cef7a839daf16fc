"""Shared pytest fixtures and configuration."""

import pytest

from examwatch.student_store import StudentStore


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


# Shared fixtures


@pytest.fixture
def store():
    """Create an in-memory StudentStore."""
    s = StudentStore(":memory:")
    yield s
    s.close()
