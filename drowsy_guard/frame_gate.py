"""
Frame Gate Module
Single-flight admission of observations into the analysis path

While one observation is being analyzed, newly arriving ones are dropped,
not queued: a stale eye-state decision is worse than a missing one.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class FrameGate:
    """
    Admits at most one item at a time into `handler`.

    The busy flag is a non-blocking lock acquire, so inspect-and-set is
    atomic across threads.
    """

    def __init__(self, handler):
        """
        Args:
            handler: Callable run for each admitted item
        """
        self._handler = handler
        self._busy = threading.Lock()
        self._counter_lock = threading.Lock()
        self._closed = False
        self.admitted = 0
        self.dropped = 0

    def submit(self, item) -> bool:
        """
        Run `handler(item)` unless another item is in flight.

        Returns:
            True if the item was admitted, False if it was dropped
        """
        if self._closed or not self._busy.acquire(blocking=False):
            with self._counter_lock:
                self.dropped += 1
            return False

        try:
            self.admitted += 1
            self._handler(item)
        except Exception:
            logger.exception("Frame analysis failed")
        finally:
            self._busy.release()
        return True

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        """
        Reject every later submission.

        Blocks until the item in flight (if any) has been handled, then keeps
        the busy lock so nothing is admitted afterwards. Must not be called
        from inside the handler.
        """
        with self._counter_lock:
            if self._closed:
                return
            self._closed = True
        self._busy.acquire()
