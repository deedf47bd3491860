"""
Resynx - Reactive Async Resources

Observable values plus a Resource that wraps a coroutine-producing fetcher or a
push stream and publishes its lifecycle (unresolved, loading, ready, error) to
listeners.
"""

# Exceptions
from .exceptions import (
    ConfigurationError,
    DomainError,
    InvalidStateError,
    ProjectionError,
)

# Observable primitives
from .observable import ObservableValue, Subscription, observable

# Configuration
from .options import ResourceOptions, SignalOptions

# Resources
from .resource import (
    Resource,
    ResourceError,
    ResourceLoading,
    ResourceReady,
    ResourceState,
    ResourceUnresolved,
    create_resource,
)

# Streams
from .stream import (
    AsyncIterableStream,
    Stream,
    StreamController,
    StreamSubscription,
    as_stream,
)
from .common_types import Listenable

__all__ = [
    # Observable primitives
    "ObservableValue",
    "Subscription",
    "observable",
    "Listenable",
    # Resources
    "Resource",
    "create_resource",
    "ResourceState",
    "ResourceUnresolved",
    "ResourceLoading",
    "ResourceReady",
    "ResourceError",
    # Streams
    "Stream",
    "StreamSubscription",
    "StreamController",
    "AsyncIterableStream",
    "as_stream",
    # Configuration
    "SignalOptions",
    "ResourceOptions",
    # Exceptions
    "DomainError",
    "ConfigurationError",
    "InvalidStateError",
    "ProjectionError",
]
