"""
Test utilities for resynx.

This package contains shared helpers for driving resources deterministically.
"""

from .async_utils import ManualFetcher, Recorder, flush
from .memory_utils import assert_collected

__all__ = [
    "ManualFetcher",
    "Recorder",
    "assert_collected",
    "flush",
]
