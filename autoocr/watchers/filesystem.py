"""
Debounced file system watcher for the input directory.

Uses the watchdog library to receive file system events and collapses bursts
of them into a single trigger once the directory has been quiet for the
configured delay.
"""

import queue
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from autoocr.exceptions import WatchSetupError
from autoocr.utils.signals import POLL_INTERVAL, TriggerChannel

# Access-only events; reading a file or listing the directory is not a change.
IGNORED_EVENT_TYPES = {"opened", "closed_no_write"}


class DebounceEventHandler(FileSystemEventHandler):
    """Forwards every change event to the watcher thread."""

    def __init__(self, events: queue.Queue):
        super().__init__()
        self.events = events

    def on_any_event(self, event: FileSystemEvent):
        """Queue the event; the watcher thread does the debouncing."""
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        self.events.put(event)


class DirectoryWatcher:
    """
    Watches one directory and signals ``trigger`` after a quiet period.

    The event subscription is opened at construction time. Call ``start()``
    to begin debouncing; the background thread runs until ``cancel`` is set.
    """

    def __init__(
        self,
        input_dir: Path,
        delay: float,
        cancel: threading.Event,
        log=logger,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        """
        Open the event subscription for ``input_dir``.

        Args:
            input_dir: Directory to watch (not recursive)
            delay: Quiet period in seconds before triggering
            cancel: Shared cancellation signal
            log: Logger to bind the watcher context to
            observer_factory: Creates the watchdog observer

        Raises:
            WatchSetupError: If the directory can not be watched
        """
        self.input_dir = Path(input_dir)
        self.delay = delay
        self.cancel = cancel
        self.log = log.bind(component="watcher")

        self.events: queue.Queue = queue.Queue()
        self.handler = DebounceEventHandler(self.events)
        self.trigger = TriggerChannel(cancel)
        self._thread: Optional[threading.Thread] = None

        if not self.input_dir.is_dir():
            raise WatchSetupError(f"error adding watch for input: {self.input_dir} is not a directory")

        self.observer = observer_factory()
        try:
            self.observer.schedule(self.handler, str(self.input_dir), recursive=False)
            self.observer.start()
        except OSError as e:
            raise WatchSetupError(f"error adding watch for input {self.input_dir}: {e}") from e

        self.log.debug(f"Watching {self.input_dir} with delay {self.delay}s")

    def start(self) -> threading.Thread:
        """Start the debounce thread."""
        self._thread = threading.Thread(target=self._run, name="autoocr-watcher", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None):
        """Wait for the debounce thread to exit."""
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self):
        # Armed at start so files left over from a previous run get processed.
        deadline: Optional[float] = time.monotonic() + self.delay

        try:
            while not self.cancel.is_set():
                if deadline is not None and time.monotonic() >= deadline:
                    deadline = None
                    self.log.debug("Directory settled.")
                    if not self.trigger.send():
                        break
                    continue

                wait = POLL_INTERVAL
                if deadline is not None:
                    wait = min(wait, max(deadline - time.monotonic(), 0))

                try:
                    event = self.events.get(timeout=wait)
                except queue.Empty:
                    continue

                self.log.trace(f"{event.event_type}: {event.src_path}")
                deadline = time.monotonic() + self.delay
        finally:
            self._close()

    def _close(self):
        self.log.info("Stopping.")
        try:
            self.observer.stop()
            self.observer.join()
        except RuntimeError as e:
            self.log.error(f"Error closing watcher: {e}")
