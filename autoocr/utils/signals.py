"""Thread synchronisation primitives shared by the watcher and processor."""

from __future__ import annotations

import threading
import time
from typing import Optional

# Upper bound for how long a blocked thread goes without checking cancellation.
POLL_INTERVAL = 0.1


class TriggerChannel:
    """
    Unbuffered, payload-free signal between two threads.

    ``send`` only returns once a receiver has taken the signal, so at most one
    signal is ever in flight and nothing is queued while the receiver is busy.
    Both sides give up once ``cancel`` is set.
    """

    def __init__(self, cancel: threading.Event) -> None:
        self.cancel = cancel
        self._cond = threading.Condition()
        self._send_lock = threading.Lock()
        self._offered = False
        self._taken = False

    def send(self) -> bool:
        """
        Offer a signal and block until it is received.

        Returns:
            True if a receiver took the signal, False if cancelled first
        """
        while not self._send_lock.acquire(timeout=POLL_INTERVAL):
            if self.cancel.is_set():
                return False

        try:
            with self._cond:
                if self.cancel.is_set():
                    return False
                self._offered = True
                self._taken = False
                self._cond.notify_all()

                while not self._taken:
                    if self.cancel.is_set():
                        self._offered = False
                        return False
                    self._cond.wait(POLL_INTERVAL)

                self._taken = False
                return True
        finally:
            self._send_lock.release()

    def receive(self, timeout: Optional[float] = POLL_INTERVAL) -> bool:
        """
        Wait up to ``timeout`` seconds (forever if None) for a signal.

        Returns:
            True if a signal was taken, False on timeout or cancellation
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        with self._cond:
            while not self._offered:
                if self.cancel.is_set():
                    return False
                wait = POLL_INTERVAL
                if deadline is not None:
                    wait = min(wait, deadline - time.monotonic())
                    if wait <= 0:
                        return False
                self._cond.wait(wait)

            if self.cancel.is_set():
                return False

            self._offered = False
            self._taken = True
            self._cond.notify_all()
            return True
