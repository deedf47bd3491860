"""
Resynx ObservableValue - Reactive Value Container
=================================================

This module provides ObservableValue, a holder of a single value that notifies
its registered listeners synchronously whenever the value is replaced.

Key Features:
- Synchronous, registration-ordered notification
- Snapshot-then-iterate notification, so listeners may add or remove listeners
  while a notification is in progress
- Identity-based listener removal and owned ``Subscription`` handles
- Dispose callbacks run exactly once, then all listeners are released

Example:
    ```python
    from resynx import observable

    name = observable("Ada")
    name.add_listener(lambda v: print(f"hello {v}"))
    name.value = "Grace"   # prints "hello Grace"
    name.dispose()
    ```
"""

import logging
import threading
from typing import Callable, Generic, List, Optional

from ..common_types import DisposeCallback, Listener, T
from ..options import SignalOptions
from .subscription import Subscription

_MISSING = object()


class ObservableValue(Generic[T]):
    """
    A reactive value that notifies listeners when it is replaced.

    Listeners are invoked with the new value. Writing a disposed value is a
    no-op.
    """

    def __init__(self, initial_value: T, options: Optional[SignalOptions] = None) -> None:
        self._value = initial_value
        self._previous = _MISSING
        self._options = options or SignalOptions()
        self._listeners: List[Listener] = []
        self._dispose_callbacks: List[DisposeCallback] = []
        self._disposed = False
        self._lock = threading.RLock()

    # ============================================================
    # Value access
    # ============================================================

    @property
    def name(self) -> str:
        return self._options.name or "<unnamed>"

    @property
    def options(self) -> SignalOptions:
        return self._options

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self.set(new_value)

    @property
    def previous_value(self) -> Optional[T]:
        """The value replaced by the last ``set``, or None if never replaced."""
        return None if self._previous is _MISSING else self._previous

    @property
    def has_previous_value(self) -> bool:
        return self._previous is not _MISSING

    def set(self, new_value: T) -> "ObservableValue[T]":
        """Replace the value and notify every registered listener."""
        if self._disposed:
            logging.debug(f"Ignoring write to disposed observable {self.name}")
            return self
        if self._options.equals and new_value == self._value:
            return self

        self._previous = self._value
        self._value = new_value
        self._notify_listeners(new_value)
        return self

    def update(self, fn: Callable[[T], T]) -> "ObservableValue[T]":
        """Replace the value with ``fn(current)``."""
        return self.set(fn(self._value))

    def __call__(self) -> T:
        return self._value

    # ============================================================
    # Listener management
    # ============================================================

    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        """Remove the first registration of exactly ``listener``."""
        with self._lock:
            for index, registered in enumerate(self._listeners):
                if registered is listener:
                    del self._listeners[index]
                    return

    def subscribe(self, listener: Listener) -> Subscription:
        """Register ``listener`` and return a handle that unregisters it."""
        self.add_listener(listener)
        return Subscription(self, listener)

    @property
    def has_listeners(self) -> bool:
        with self._lock:
            return bool(self._listeners)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _notify_listeners(self, value: T) -> None:
        with self._lock:
            snapshot = tuple(self._listeners)
        for listener in snapshot:
            listener(value)

    # ============================================================
    # Disposal
    # ============================================================

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on_dispose(self, callback: DisposeCallback) -> None:
        """
        Register a cleanup callback run once when this value is disposed.

        If the value is already disposed the callback runs immediately.
        """
        if self._disposed:
            callback()
            return
        with self._lock:
            self._dispose_callbacks.append(callback)

    def dispose(self) -> None:
        """Run dispose callbacks, then release all listeners. Idempotent."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            callbacks, self._dispose_callbacks = self._dispose_callbacks, []
        try:
            for callback in callbacks:
                callback()
        finally:
            with self._lock:
                self._listeners.clear()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r}, {self._value!r})"


def observable(
    initial_value: T, options: Optional[SignalOptions] = None
) -> ObservableValue[T]:
    """
    Create a standalone observable value.

    Args:
        initial_value: The value held before the first ``set``.
        options: Optional naming and equality configuration.

    Returns:
        A new ObservableValue.
    """
    return ObservableValue(initial_value, options)
