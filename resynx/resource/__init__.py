"""
Resynx Resource - Async Resource State Machine
==============================================
"""

from .resource import Resource, create_resource
from .state import (
    ResourceError,
    ResourceLoading,
    ResourceReady,
    ResourceState,
    ResourceUnresolved,
)

__all__ = [
    "Resource",
    "create_resource",
    "ResourceState",
    "ResourceUnresolved",
    "ResourceLoading",
    "ResourceReady",
    "ResourceError",
]
