"""
Shared pytest fixtures and configuration for resynx tests.
"""

import pytest

from resynx import StreamController, observable
from tests.utils import ManualFetcher


@pytest.fixture
def fetcher():
    """A fetcher whose calls are settled by the test."""
    return ManualFetcher()


@pytest.fixture
def source():
    """A fresh observable to drive refetches."""
    return observable(1)


@pytest.fixture
def controller():
    """A synchronous stream controller."""
    return StreamController(sync=True)
