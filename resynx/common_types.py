"""
Resynx Common Types - Shared Type Definitions
=============================================

Type variables, callback aliases and the structural protocol for anything a
resource can be driven by.
"""

from typing import Any, Awaitable, Callable, Protocol, TypeVar, runtime_checkable

# ============================================================================
# TYPE VARIABLES
# ============================================================================

T = TypeVar("T")
R = TypeVar("R")

# ============================================================================
# CALLBACK TYPES
# ============================================================================

Listener = Callable[[Any], None]
DisposeCallback = Callable[[], None]
Fetcher = Callable[[], Awaitable[T]]

# ============================================================================
# COLLABORATOR PROTOCOLS
# ============================================================================


@runtime_checkable
class Listenable(Protocol):
    """
    Anything that can drive a resource's refetch.

    Only change notifications are observed; the value itself is ignored.
    ``ObservableValue`` satisfies this protocol.
    """

    def add_listener(self, listener: Listener) -> None: ...

    def remove_listener(self, listener: Listener) -> None: ...

    def on_dispose(self, callback: DisposeCallback) -> None: ...
