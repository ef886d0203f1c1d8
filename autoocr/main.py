#!/usr/bin/env python3
"""
autoocr - Main entry point.

Wires the directory watcher to the pdfsandwich processor:
- the watcher signals once the input directory has settled
- the supervisor forwards that signal to the processor
- SIGINT/SIGTERM cancel everything and the process waits for all threads
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from typing import Any, Dict, List, Optional

from loguru import logger

from autoocr import __version__
from autoocr.exceptions import ConfigError, WatchSetupError
from autoocr.processors.pdf_sandwich import Processor
from autoocr.utils.config import LOG_LEVELS, Settings, load_settings
from autoocr.utils.helpers import ensure_directory
from autoocr.utils.logging import configure_logging
from autoocr.utils.signals import POLL_INTERVAL
from autoocr.watchers.filesystem import DirectoryWatcher


class Supervisor:
    """Owns the cancellation signal and the background threads."""

    def __init__(self, settings: Settings, log=logger):
        self.settings = settings
        self.cancel = threading.Event()
        self._base_log = log
        self.log = log.bind(component="supervisor")

        self.watcher: Optional[DirectoryWatcher] = None
        self.processor: Optional[Processor] = None
        self._threads: List[threading.Thread] = []

    def start(self):
        """
        Create and start watcher, processor and the forwarding thread.

        Raises:
            WatchSetupError: If the input directory can not be watched
        """
        self.watcher = DirectoryWatcher(
            self.settings.input_dir,
            self.settings.delay,
            self.cancel,
            log=self._base_log,
        )
        self.processor = Processor(self.settings, self.cancel, log=self._base_log)

        self._threads.append(self.watcher.start())
        self._threads.append(self.processor.start())

        bridge = threading.Thread(target=self._forward, name="autoocr-supervisor", daemon=True)
        bridge.start()
        self._threads.append(bridge)

    def _forward(self):
        self.log.info("Waiting for changes...")
        while not self.cancel.is_set():
            if self.watcher.trigger.receive():
                self.processor.trigger()

    def stop(self):
        """Raise the cancellation signal. Safe to call more than once."""
        if not self.cancel.is_set():
            self.log.info("Shutting down...")
        self.cancel.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Join all background threads.

        Returns:
            True if every thread has exited
        """
        for thread in self._threads:
            thread.join(timeout)
        return not any(thread.is_alive() for thread in self._threads)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments. Unset flags fall back to environment/defaults."""

    parser = argparse.ArgumentParser(
        prog="autoocr",
        description="Watch a directory and convert incoming PDFs into searchable PDFs using pdfsandwich.",
    )
    parser.add_argument("-i", "--input", dest="input_dir", help="Directory to use for input.")
    parser.add_argument("-o", "--output", dest="output_dir", help="Directory to use for output.")
    parser.add_argument("--pdf-sandwich", dest="pdf_sandwich", help="Path to pdfsandwich utility.")
    parser.add_argument("--languages", help="OCR Languages to use.")
    parser.add_argument(
        "--delay",
        help="Processing delay after receiving watch events (e.g. 5s, 500ms, 1m30s).",
    )
    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=["plain", "json"],
        help="Logging format to use.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level to show.",
    )
    parser.add_argument(
        "--keep-original",
        dest="keep_original",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Keep backup of original file.",
    )
    parser.add_argument(
        "--permissions",
        dest="out_permissions",
        help="Permissions on output files, in octal (e.g. 644).",
    )
    parser.add_argument(
        "--dir-permissions",
        dest="dir_permissions",
        help="Permissions for a newly created output directory, in octal (e.g. 755).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser.parse_args(argv)


def settings_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Return the flags that were actually given on the command line."""
    return {key: value for key, value in vars(args).items() if value is not None}


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI."""

    args = parse_args(argv)

    try:
        settings = load_settings(settings_overrides(args))
    except ConfigError as e:
        configure_logging()
        logger.error(f"Error parsing arguments: {e}")
        return 2

    configure_logging(settings.log_format, settings.log_level)

    logger.debug(f"Input: {settings.input_dir}")
    logger.debug(f"Output: {settings.output_dir}")

    try:
        if ensure_directory(settings.output_dir, settings.dir_permissions):
            logger.info(f"Created output directory {settings.output_dir}")
    except OSError as e:
        logger.error(f"Error creating output directory: {e}")
        return 1

    supervisor = Supervisor(settings)
    try:
        supervisor.start()
    except WatchSetupError as e:
        logger.error(f"Error creating watcher: {e}")
        return 1

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}.")
        supervisor.stop()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        while not supervisor.cancel.is_set():
            supervisor.cancel.wait(POLL_INTERVAL)
    finally:
        supervisor.stop()
        supervisor.wait()

    logger.info("All done. Exiting.")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
