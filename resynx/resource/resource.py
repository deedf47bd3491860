"""
Resynx Resource - Reactive Async Values
=======================================

A Resource is an ObservableValue whose value is a ResourceState. It wraps one
asynchronous driver and publishes the driver's lifecycle to listeners:

- a fetcher: a zero-argument callable returning an awaitable, optionally
  re-run whenever a separate *source* listenable changes
- a stream: a push source whose every value or error replaces the state

Lifecycle:

    Unresolved --resolve()--> Loading --settle--> Ready | Error
    Ready --refetch()--> Ready(refreshing=True) --settle--> Ready | Error
    Error --refetch()--> Loading --settle--> Ready | Error

Fetcher and stream failures never propagate out of the resource; they are
captured into ``ResourceError`` together with their traceback.

Example:
    ```python
    user_id = observable(1)

    async def fetch_user():
        return await api.get_user(user_id.value)

    user = create_resource(fetcher=fetch_user, source=user_id)
    await user.resolve()
    user.state.value      # the user
    user_id.value = 2     # refetches; state goes Ready(refreshing=True) -> Ready
    user.dispose()
    ```

``resolve()`` and ``refetch()`` perform their first state transition
synchronously and return a future that completes once the driver settles. They
must be called while an asyncio event loop is running.
"""

import asyncio
import inspect
import logging
from typing import Any, Optional, Set, Tuple

from ..common_types import Fetcher, Listenable, T
from ..exceptions import ConfigurationError, InvalidStateError
from ..observable.subscription import Subscription
from ..observable.value import ObservableValue
from ..options import ResourceOptions
from ..stream import Stream, StreamSubscription, as_stream
from .state import (
    ResourceError,
    ResourceLoading,
    ResourceReady,
    ResourceState,
    ResourceUnresolved,
)


class Resource(ObservableValue[ResourceState[T]]):
    """
    Observable lifecycle of one asynchronous data source.

    Exactly one of ``fetcher`` and ``stream`` must be supplied. ``source`` is
    only used together with ``fetcher``.

    Overlapping fetches are guarded by default: only the most recently
    started fetch may publish. Pass ``ResourceOptions(guard_stale_fetches=False)``
    to let whichever fetch settles last win instead.

    Raises:
        ConfigurationError: If neither or both drivers are supplied.
    """

    def __init__(
        self,
        fetcher: Optional[Fetcher[T]] = None,
        stream: Optional[Any] = None,
        source: Optional[Listenable] = None,
        options: Optional[ResourceOptions] = None,
    ) -> None:
        if (fetcher is None) == (stream is None):
            raise ConfigurationError("provide exactly one of fetcher or stream")
        options = options or ResourceOptions()
        super().__init__(ResourceUnresolved(), options)

        self._fetcher = fetcher
        self._stream: Optional[Stream[T]] = None if stream is None else as_stream(stream)
        self._source = source if fetcher is not None else None
        if stream is not None and source is not None:
            logging.debug(f"Resource {self.name}: source is ignored for stream drivers")

        self._guard_stale = options.guard_stale_fetches
        self._generation = 0
        self._source_subscription: Optional[Subscription] = None
        self._stream_subscription: Optional[StreamSubscription] = None
        self._pending: Set["asyncio.Future[None]"] = set()

    # ============================================================
    # Read surface
    # ============================================================

    @property
    def state(self) -> ResourceState[T]:
        return self.value

    @property
    def fetcher(self) -> Optional[Fetcher[T]]:
        return self._fetcher

    @property
    def stream(self) -> Optional[Stream[T]]:
        return self._stream

    @property
    def source(self) -> Optional[Listenable]:
        return self._source

    # ============================================================
    # Lifecycle
    # ============================================================

    def resolve(self) -> "asyncio.Future[None]":
        """
        Start the driver. Must be called exactly once.

        With a fetcher, the returned future completes after the first fetch
        settles; the source, if any, is subscribed afterwards. With a stream,
        the stream is subscribed immediately and the future is already done.

        Raises:
            InvalidStateError: If the resource was already resolved or has
                been disposed.
            RuntimeError: If no event loop is running; the state is left untouched.
        """
        self._ensure_alive("resolve")
        if not isinstance(self.value, ResourceUnresolved):
            raise InvalidStateError(
                "resource has already been resolved; use refetch() to refresh it"
            )

        loop = asyncio.get_running_loop()

        if self._fetcher is not None:
            self.set(ResourceLoading())
            return self._track(loop, self._resolve_fetch(*self._start_fetch()))

        self.set(ResourceLoading())
        self._listen_to_stream()
        done = loop.create_future()
        done.set_result(None)
        return done

    def refetch(self) -> "asyncio.Future[None]":
        """
        Run the fetcher again.

        A ready resource keeps exposing its value with ``refreshing=True``
        while the fetch is in flight; any other state becomes Loading.

        Raises:
            InvalidStateError: If the resource is stream-driven or disposed.
            RuntimeError: If no event loop is running.
        """
        if self._fetcher is None:
            raise InvalidStateError("a stream-driven resource cannot be refetched")
        self._ensure_alive("refetch")
        loop = asyncio.get_running_loop()

        current = self.value
        if isinstance(current, ResourceReady):
            self.set(current.copy_with(refreshing=True))
        else:
            self.set(ResourceLoading())
        return self._track(loop, self._settle(*self._start_fetch()))

    def dispose(self) -> None:
        """
        Cancel the stream subscription, unregister from the source, then
        release all listeners. Pending fetches are not cancelled, but their
        results are dropped.
        """
        if self.disposed:
            return
        if self._stream_subscription is not None:
            self._stream_subscription.cancel()
            self._stream_subscription = None
        if self._source_subscription is not None:
            self._source_subscription.cancel()
            self._source_subscription = None
        super().dispose()

    # ============================================================
    # Fetcher driver
    # ============================================================

    async def _resolve_fetch(
        self, generation: int, pending: Any, failure: Optional[Exception]
    ) -> None:
        await self._settle(generation, pending, failure)
        if self._source is None or self.disposed:
            return
        listener = self._on_source_change
        self._source_subscription = Subscription(self._source, listener)
        self._source.add_listener(listener)
        self._source.on_dispose(self._source_subscription.cancel)

    def _start_fetch(self) -> Tuple[int, Any, Optional[Exception]]:
        generation = self._next_generation()
        try:
            return generation, self._fetcher(), None
        except Exception as error:
            return generation, None, error

    async def _settle(
        self, generation: int, pending: Any, failure: Optional[Exception]
    ) -> None:
        if failure is None:
            try:
                result = await pending if inspect.isawaitable(pending) else pending
            except Exception as error:
                failure = error
            else:
                self._commit(generation, ResourceReady(result))
                return
        self._commit(generation, ResourceError(failure, failure.__traceback__))

    def _commit(self, generation: int, state: ResourceState[T]) -> None:
        if self.disposed:
            logging.debug(f"Resource {self.name}: dropping {state!r} after dispose")
            return
        if self._guard_stale and generation != self._generation:
            logging.debug(
                f"Resource {self.name}: dropping stale fetch #{generation} "
                f"(latest is #{self._generation})"
            )
            return
        self.set(state)

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _on_source_change(self, _value: Any) -> None:
        self.refetch()

    def _track(
        self, loop: asyncio.AbstractEventLoop, coro: Any
    ) -> "asyncio.Future[None]":
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: "asyncio.Future[None]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logging.error(f"Resource {self.name}: error while publishing state: {error!r}")

    # ============================================================
    # Stream driver
    # ============================================================

    def _listen_to_stream(self) -> None:
        self._stream_subscription = self._stream.listen(
            self._on_stream_data, on_error=self._on_stream_error
        )

    def _on_stream_data(self, data: T) -> None:
        self.set(ResourceReady(data))

    def _on_stream_error(self, error: BaseException, stack_trace: Any = None) -> None:
        self.set(ResourceError(error, stack_trace))

    # ============================================================
    # Helpers
    # ============================================================

    def _ensure_alive(self, operation: str) -> None:
        if self.disposed:
            raise InvalidStateError(f"cannot {operation} a disposed resource")

    def __repr__(self) -> str:
        return (
            f"Resource({self.name!r}, state={self.value!r}, "
            f"previous={self.previous_value!r})"
        )


def create_resource(
    fetcher: Optional[Fetcher[T]] = None,
    stream: Optional[Any] = None,
    source: Optional[Listenable] = None,
    options: Optional[ResourceOptions] = None,
) -> Resource[T]:
    """
    Create a Resource driven by a fetcher or a stream.

    Args:
        fetcher: Zero-argument callable returning an awaitable of the value.
        stream: A Stream, or any async iterable.
        source: Listenable whose changes trigger a refetch (fetcher only).
        options: Naming, equality and stale-fetch configuration.

    Raises:
        ConfigurationError: If neither or both of fetcher and stream are given.
    """
    return Resource(fetcher=fetcher, stream=stream, source=source, options=options)
