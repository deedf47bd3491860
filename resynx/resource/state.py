"""
Resynx ResourceState - Lifecycle of an Async Value
==================================================

This module defines the closed set of states a Resource moves through:

- ResourceUnresolved: initial state, never re-entered
- ResourceLoading:    a fetch or subscription is outstanding, no value yet
- ResourceReady:      a value is available; ``refreshing`` marks a refetch in flight
- ResourceError:      the last fetch or stream event failed

Every state is an immutable, structurally comparable dataclass. Consumers read
them through the projection API instead of isinstance checks:

    ```python
    text = resource.state.on(
        ready=lambda value, refreshing: f"{value}{' (refreshing)' if refreshing else ''}",
        error=lambda error, stack_trace: f"failed: {error}",
        loading=lambda: "loading...",
    )
    ```

``map``/``on`` are exhaustive and refuse an unresolved state;
``maybe_map``/``maybe_on`` take an ``or_else`` fallback and accept any state.
"""

from dataclasses import dataclass, replace
from types import TracebackType
from typing import Callable, Generic, Optional

from ..exceptions import ProjectionError
from ..common_types import R, T


class ResourceState(Generic[T]):
    """
    Base of the resource state union.

    Subclasses implement ``_select`` to pick the handler for their variant;
    everything else is derived from it.
    """

    __slots__ = ()

    def _select(
        self,
        ready: Optional[Callable[["ResourceReady[T]"], R]],
        error: Optional[Callable[["ResourceError[T]"], R]],
        loading: Optional[Callable[["ResourceLoading[T]"], R]],
        unresolved: Optional[Callable[["ResourceUnresolved[T]"], R]],
    ) -> Optional[Callable[..., R]]:
        raise NotImplementedError

    # ============================================================
    # Projection
    # ============================================================

    def map(
        self,
        ready: Callable[["ResourceReady[T]"], R],
        error: Callable[["ResourceError[T]"], R],
        loading: Callable[["ResourceLoading[T]"], R],
        unresolved: Optional[Callable[["ResourceUnresolved[T]"], R]] = None,
    ) -> R:
        """
        Call the handler matching this state with the state object itself.

        Raises:
            ProjectionError: If no handler was given for this variant, which
                by default is the case for an unresolved state.
        """
        handler = self._select(ready, error, loading, unresolved)
        if handler is None:
            raise ProjectionError(
                f"no handler given for {type(self).__name__}; cannot project it"
            )
        return handler(self)

    def maybe_map(
        self,
        or_else: Callable[[], R],
        ready: Optional[Callable[["ResourceReady[T]"], R]] = None,
        error: Optional[Callable[["ResourceError[T]"], R]] = None,
        loading: Optional[Callable[["ResourceLoading[T]"], R]] = None,
        unresolved: Optional[Callable[["ResourceUnresolved[T]"], R]] = None,
    ) -> R:
        """Like ``map``, but states without a handler call ``or_else()``."""
        handler = self._select(ready, error, loading, unresolved)
        if handler is None:
            return or_else()
        return handler(self)

    def on(
        self,
        ready: Callable[[T, bool], R],
        error: Callable[[BaseException, Optional[TracebackType]], R],
        loading: Callable[[], R],
    ) -> R:
        """
        Call the handler matching this state with the state's payload.

        ``ready`` receives ``(value, refreshing)``, ``error`` receives
        ``(error, stack_trace)`` and ``loading`` receives nothing.

        Raises:
            ProjectionError: If the state is unresolved.
        """
        return self.map(
            ready=lambda r: ready(r.value, r.refreshing),
            error=lambda e: error(e.error, e.stack_trace),
            loading=lambda _: loading(),
        )

    def maybe_on(
        self,
        or_else: Callable[[], R],
        ready: Optional[Callable[[T, bool], R]] = None,
        error: Optional[Callable[[BaseException, Optional[TracebackType]], R]] = None,
        loading: Optional[Callable[[], R]] = None,
    ) -> R:
        """Like ``on``, but states without a handler call ``or_else()``."""
        return self.maybe_map(
            or_else,
            ready=None if ready is None else (lambda r: ready(r.value, r.refreshing)),
            error=None if error is None else (lambda e: error(e.error, e.stack_trace)),
            loading=None if loading is None else (lambda _: loading()),
        )

    # ============================================================
    # Queries and narrowing
    # ============================================================

    @property
    def is_unresolved(self) -> bool:
        return isinstance(self, ResourceUnresolved)

    @property
    def is_loading(self) -> bool:
        return isinstance(self, ResourceLoading)

    @property
    def has_error(self) -> bool:
        return isinstance(self, ResourceError)

    @property
    def is_ready(self) -> bool:
        return isinstance(self, ResourceReady)

    @property
    def is_refreshing(self) -> bool:
        return isinstance(self, ResourceReady) and self.refreshing

    @property
    def as_ready(self) -> Optional["ResourceReady[T]"]:
        return self if isinstance(self, ResourceReady) else None

    @property
    def as_error(self) -> Optional["ResourceError[T]"]:
        return self if isinstance(self, ResourceError) else None

    # Variants supply `value` (the ready value; re-raises the stored error in
    # the error state; None otherwise) and `error` (the stored error or None).

    def __call__(self) -> Optional[T]:
        return self.value  # type: ignore[attr-defined]


@dataclass(frozen=True)
class ResourceUnresolved(ResourceState[T]):
    """Initial state of every resource."""

    def _select(self, ready, error, loading, unresolved):
        return unresolved

    @property
    def value(self) -> Optional[T]:
        return None

    @property
    def error(self) -> Optional[BaseException]:
        return None


@dataclass(frozen=True)
class ResourceLoading(ResourceState[T]):
    """A fetch or subscription is outstanding and no value is available."""

    def _select(self, ready, error, loading, unresolved):
        return loading

    @property
    def value(self) -> Optional[T]:
        return None

    @property
    def error(self) -> Optional[BaseException]:
        return None


@dataclass(frozen=True)
class ResourceReady(ResourceState[T]):
    """
    A value is available.

    Attributes:
        value: The value currently exposed. May be None.
        refreshing: True while a refetch is in flight and ``value`` is stale.
    """

    value: T
    refreshing: bool = False

    def _select(self, ready, error, loading, unresolved):
        return ready

    @property
    def error(self) -> Optional[BaseException]:
        return None

    def copy_with(self, refreshing: Optional[bool] = None) -> "ResourceReady[T]":
        if refreshing is None:
            return replace(self)
        return replace(self, refreshing=refreshing)


@dataclass(frozen=True)
class ResourceError(ResourceState[T]):
    """
    The last fetch or stream event failed.

    Attributes:
        error: The exception raised by the fetcher or emitted by the stream.
        stack_trace: The traceback captured alongside ``error``, if any.
    """

    error: BaseException
    stack_trace: Optional[TracebackType] = None

    def _select(self, ready, error, loading, unresolved):
        return error

    @property
    def value(self) -> Optional[T]:
        if self.stack_trace is not None:
            raise self.error.with_traceback(self.stack_trace)
        raise self.error

    def __repr__(self) -> str:
        return f"ResourceError(error={self.error!r})"
