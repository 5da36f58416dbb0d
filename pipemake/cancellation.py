"""Cancellation token used to stop a running pipeline."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Registration:
    """Handle for a callback registered on a CancellationToken."""

    def __init__(self, token: Optional["CancellationToken"], callback: Callable[[], None]):
        self._token = token
        self._callback = callback

    def unregister(self) -> None:
        if self._token is not None:
            self._token._unregister(self._callback)
            self._token = None

    def __enter__(self) -> "Registration":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unregister()


class CancellationToken:
    """A one-shot signal that runs registered callbacks when cancelled.

    Callbacks run once, on the thread that calls cancel(). Registering on
    an already cancelled token runs the callback immediately.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._cancelled.wait(timeout)

    def register(self, callback: Callable[[], None]) -> Registration:
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                return Registration(self, callback)
        self._invoke(callback)
        return Registration(None, callback)

    def _unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks = self._callbacks
            self._callbacks = []
        logger.debug("Cancellation requested, running %d callbacks", len(callbacks))
        for callback in callbacks:
            self._invoke(callback)

    @staticmethod
    def _invoke(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Cancellation callback %r failed", callback)
