"""
Resynx Subscription - Owned Listener Handle
===========================================

A Subscription records the exact callable that was registered on a listenable
and removes that same callable when cancelled. Holding the handle avoids having
to rebuild an equivalent-looking closure at unregistration time, which would
not match the one originally registered.
"""

import threading
from typing import Any, Optional

from ..common_types import Listenable, Listener


class Subscription:
    """
    Handle for one listener registered on one listenable.

    Example:
        ```python
        count = observable(0)
        sub = count.subscribe(print)
        count.set(1)   # prints 1
        sub.cancel()
        count.set(2)   # prints nothing
        ```
    """

    def __init__(self, target: Listenable, listener: Listener) -> None:
        self._target: Optional[Listenable] = target
        self._listener: Optional[Listener] = listener
        self._lock = threading.Lock()

    @property
    def listener(self) -> Optional[Listener]:
        """The registered callable, or None once cancelled."""
        return self._listener

    @property
    def is_cancelled(self) -> bool:
        return self._target is None

    def cancel(self) -> None:
        """Unregister the listener. Calling it again does nothing."""
        with self._lock:
            target, self._target = self._target, None
            listener, self._listener = self._listener, None
        if target is not None:
            target.remove_listener(listener)

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "active"
        return f"Subscription({self._listener!r}, {state})"

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.cancel()
