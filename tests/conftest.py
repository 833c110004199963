"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Tests never touch the configured file or Redis store: every notebook and
repository is built on an in-memory store unless a test asks for a
temporary directory.
"""

from datetime import datetime, timezone

import pytest


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed reference time for clock-dependent tests."""
    return datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
