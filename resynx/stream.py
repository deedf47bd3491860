"""
Resynx Streams - Push Sources for Stream-Driven Resources
=========================================================

A stream is a push source of values that may emit indefinitely and may report
errors without terminating. Anything with a compatible ``listen`` method can
drive a resource; this module provides the protocol plus two implementations:

- ``StreamController``: a broadcast source you push values and errors into.
- ``AsyncIterableStream``: adapts an async iterable (e.g. an async generator)
  by pumping it in an asyncio task. An exception from the iterator is
  delivered as an error, after which the stream ends.

Cancellation contract: once ``cancel()`` returns, the subscription's callbacks
never fire again, including for events that were already scheduled.
"""

import asyncio
import logging
import threading
from types import TracebackType
from typing import (
    Any,
    AsyncIterable,
    Callable,
    Generic,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

from .common_types import T
from .exceptions import InvalidStateError

DataCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException, Optional[TracebackType]], None]
DoneCallback = Callable[[], None]

# ============================================================================
# PROTOCOLS
# ============================================================================


@runtime_checkable
class StreamSubscription(Protocol):
    """Handle returned by ``Stream.listen``."""

    @property
    def is_cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


@runtime_checkable
class Stream(Protocol[T]):
    """A push source of ``T`` values with out-of-band errors."""

    def listen(
        self,
        on_data: DataCallback,
        on_error: Optional[ErrorCallback] = None,
        on_done: Optional[DoneCallback] = None,
    ) -> StreamSubscription: ...


# ============================================================================
# SUBSCRIPTION BASE
# ============================================================================


class _CallbackSubscription:
    """Holds the three callbacks and drops every event after cancellation."""

    def __init__(
        self,
        on_data: DataCallback,
        on_error: Optional[ErrorCallback],
        on_done: Optional[DoneCallback],
    ) -> None:
        self._on_data = on_data
        self._on_error = on_error
        self._on_done = on_done
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def _emit_data(self, value: Any) -> None:
        if not self._cancelled:
            self._on_data(value)

    def _emit_error(
        self, error: BaseException, stack_trace: Optional[TracebackType]
    ) -> None:
        if self._cancelled:
            return
        if self._on_error is None:
            logging.error(f"Unhandled stream error: {error!r}")
            return
        self._on_error(error, stack_trace)

    def _emit_done(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_done is not None:
            self._on_done()


# ============================================================================
# STREAM CONTROLLER
# ============================================================================


class _ControllerSubscription(_CallbackSubscription):
    def __init__(self, controller: "StreamController[Any]", *callbacks: Any) -> None:
        super().__init__(*callbacks)
        self._controller = controller

    def cancel(self) -> None:
        super().cancel()
        self._controller._detach(self)


class _ControllerStream(Generic[T]):
    def __init__(self, controller: "StreamController[T]") -> None:
        self._controller = controller

    def listen(
        self,
        on_data: DataCallback,
        on_error: Optional[ErrorCallback] = None,
        on_done: Optional[DoneCallback] = None,
    ) -> StreamSubscription:
        return self._controller._attach(on_data, on_error, on_done)

    def __repr__(self) -> str:
        return f"Stream({self._controller!r})"


class StreamController(Generic[T]):
    """
    Broadcast push source.

    Every listener attached at the moment an event is added receives it. With
    ``sync=False`` (the default) each event is delivered on a later iteration
    of the running event loop via ``call_soon``, so ``add`` must be called from
    inside a running loop. With ``sync=True`` events are delivered inline.

    Example:
        ```python
        controller = StreamController()
        sub = controller.stream.listen(print)
        controller.add(1)
        await asyncio.sleep(0)   # prints 1
        sub.cancel()
        ```
    """

    def __init__(self, sync: bool = False) -> None:
        self._sync = sync
        self._subscriptions: List[_ControllerSubscription] = []
        self._closed = False
        self._lock = threading.RLock()
        self._stream: _ControllerStream[T] = _ControllerStream(self)

    @property
    def stream(self) -> Stream[T]:
        return self._stream

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def has_listener(self) -> bool:
        with self._lock:
            return bool(self._subscriptions)

    def add(self, value: T) -> None:
        self._ensure_open()
        for sub in self._snapshot():
            self._deliver(sub._emit_data, value)

    def add_error(
        self, error: BaseException, stack_trace: Optional[TracebackType] = None
    ) -> None:
        if not isinstance(error, BaseException):
            raise TypeError(f"stream errors must be exceptions, got {error!r}")
        self._ensure_open()
        trace = stack_trace if stack_trace is not None else error.__traceback__
        for sub in self._snapshot():
            self._deliver(sub._emit_error, error, trace)

    def close(self) -> None:
        """Deliver a done event to every listener. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        for sub in self._snapshot():
            self._deliver(sub._emit_done)
        with self._lock:
            self._subscriptions.clear()

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidStateError("cannot add events to a closed stream controller")

    def _snapshot(self) -> List[_ControllerSubscription]:
        with self._lock:
            return list(self._subscriptions)

    def _deliver(self, emit: Callable[..., None], *args: Any) -> None:
        if self._sync:
            emit(*args)
        else:
            asyncio.get_running_loop().call_soon(emit, *args)

    def _attach(
        self,
        on_data: DataCallback,
        on_error: Optional[ErrorCallback],
        on_done: Optional[DoneCallback],
    ) -> _ControllerSubscription:
        sub = _ControllerSubscription(self, on_data, on_error, on_done)
        if self._closed:
            self._deliver(sub._emit_done)
            return sub
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def _detach(self, sub: _ControllerSubscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"StreamController({state}, listeners={len(self._subscriptions)})"


# ============================================================================
# ASYNC ITERABLE ADAPTER
# ============================================================================


class _TaskSubscription(_CallbackSubscription):
    def __init__(self, *callbacks: Any) -> None:
        super().__init__(*callbacks)
        self._task: Optional["asyncio.Task[None]"] = None

    def cancel(self) -> None:
        super().cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()


class AsyncIterableStream(Generic[T]):
    """
    Single-subscription stream over an async iterable.

    ``listen`` starts a task on the running loop that forwards each item. The
    iterable can only be listened to once.
    """

    def __init__(self, source: AsyncIterable[T]) -> None:
        self._source = source
        self._listened = False

    def listen(
        self,
        on_data: DataCallback,
        on_error: Optional[ErrorCallback] = None,
        on_done: Optional[DoneCallback] = None,
    ) -> StreamSubscription:
        if self._listened:
            raise InvalidStateError("async iterable stream has already been listened to")
        self._listened = True
        sub = _TaskSubscription(on_data, on_error, on_done)
        sub._task = asyncio.get_running_loop().create_task(self._pump(sub))
        return sub

    async def _pump(self, sub: _TaskSubscription) -> None:
        iterator = self._source.__aiter__()
        while not sub.is_cancelled:
            try:
                item = await iterator.__anext__()
            except StopAsyncIteration:
                break
            except Exception as error:
                sub._emit_error(error, error.__traceback__)
                break
            try:
                sub._emit_data(item)
            except Exception as error:
                # Consumer failures are not stream failures
                logging.error(f"AsyncIterableStream: listener failed on {item!r}: {error!r}")
        sub._emit_done()

    def __repr__(self) -> str:
        return f"AsyncIterableStream({self._source!r})"


def as_stream(source: Any) -> Stream[Any]:
    """
    Return ``source`` as a Stream.

    Objects with a ``listen`` method are returned unchanged; async iterables
    are wrapped in an AsyncIterableStream.

    Raises:
        TypeError: If ``source`` is neither.
    """
    if callable(getattr(source, "listen", None)):
        return source
    if hasattr(source, "__aiter__"):
        return AsyncIterableStream(source)
    raise TypeError(f"expected a stream or async iterable, got {type(source).__name__}")
