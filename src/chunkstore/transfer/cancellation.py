from __future__ import annotations

import threading
from collections.abc import Callable

from .errors import TransferCancelledError


class CancellationToken:
    """A cancellation signal scoped to one transfer call.

    Every transfer operation takes one; ``CancellationToken.none()`` is a
    token nobody can cancel. ``register`` lets the component that owns an
    open response close it the moment the token fires, from any thread.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @classmethod
    def none(cls) -> CancellationToken:
        return _NeverCancelled()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TransferCancelledError()

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` on cancellation; returns a function that unregisters it."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)
        callback()
        return lambda: None

    def _unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)


class _NeverCancelled(CancellationToken):
    def cancel(self) -> None:
        raise TypeError("CancellationToken.none() cannot be cancelled")

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        return lambda: None


__all__ = ["CancellationToken"]
