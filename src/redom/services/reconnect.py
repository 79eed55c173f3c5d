"""Supervisor that reconnects after Chrome drops the managed target.

The transport only reports a remote close; this thread decides whether and
when to reconnect, outside the transport's close handling.
"""

import logging
import queue
import threading
import time
from typing import Callable

from redom.errors import RedomError

logger = logging.getLogger(__name__)

_STOP = object()


class ReconnectSupervisor:
    """One reconnect attempt per remote close, after a fixed delay.

    Attributes:
        delay: Seconds to wait before reconnecting.
        armed: Whether close notifications trigger a reconnect.
    """

    def __init__(self, reconnect: Callable[[], bool], delay: float = 1.0):
        """Initialize supervisor.

        Args:
            reconnect: Forgets the managed target and connects again. Returns False if
                cancelled; may raise RedomError
            delay: Seconds to wait before reconnecting
        """
        self._reconnect = reconnect
        self.delay = delay
        self.armed = False
        self._queue: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def start(self) -> None:
        """Start the supervisor thread. No-op if running."""
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            self._thread = threading.Thread(target=self._run, name="redom-reconnect", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        """Stop the supervisor thread."""
        self.armed = False
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread and thread.is_alive():
            self._queue.put(_STOP)
            if thread is not threading.current_thread():
                thread.join(timeout=2)

    def arm(self) -> None:
        self.armed = True

    def disarm(self) -> None:
        self.armed = False

    def notify_closed(self, code: int | None = None, reason: str | None = None) -> None:
        """Report a remote close. Safe to call from the transport's reader thread."""
        self._queue.put((code, reason))

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            self._handle_close(*item)

    def _handle_close(self, code: int | None, reason: str | None) -> bool:
        """Attempt one reconnect.

        Returns:
            True if the reconnect succeeded
        """
        if not self.armed:
            logger.debug(f"Connection closed ({code} {reason}), auto-reconnect not armed")
            return False

        logger.info(f"Connection closed by Chrome ({code} {reason}), reconnecting in {self.delay}s")
        time.sleep(self.delay)

        # disconnect() may have run during the delay
        if not self.armed:
            return False

        try:
            if not self._reconnect():
                return False
            logger.info("Reconnected to Chrome")
            return True
        except RedomError as e:
            logger.error(f"Auto-reconnect failed: {e}")
            return False
