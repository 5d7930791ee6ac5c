# tests/conftest.py

"""Shared pytest fixtures for all tests."""

from collections.abc import Generator
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def mock_sleep() -> Generator[None, None, None]:
    """Patch time.sleep globally so nothing in a test really waits."""
    with patch("time.sleep"):
        yield
