"""CancellationToken: write-once cancel flag plus best-effort interrupt hooks."""

import logging
import threading
from typing import Callable, Optional

from domain.errors import OperationCancelled

logger = logging.getLogger(__name__)


class CancellationToken:
    """Shared signal observed by every stage of a run.

    ``cancel()`` may be called from any thread. Interrupt callbacks registered
    with ``on_cancel`` run once, on the cancelling thread, so they can abort
    whatever external call is currently blocking the pipeline thread.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Signal the token. Returns False if it was already signaled."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Cancellation callback failed: {e}")
        return True

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Register an interrupt hook; runs immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)
