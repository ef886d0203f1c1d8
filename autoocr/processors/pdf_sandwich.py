"""
pdfsandwich processing worker.

Runs one pass over the input directory whenever it is triggered:
1. List the input directory and pick the eligible PDF files
2. Run each file through pdfsandwich, one at a time
3. Set permissions, optionally keep a backup and clean up

A failing file is logged and left in place; the pass moves on to the next one.
"""

import os
import subprocess
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Iterator, List, Optional

from loguru import logger

from autoocr.exceptions import (
    BackupError,
    CleanupError,
    ConversionError,
    FileProcessingError,
    ListError,
    OutputPermissionError,
)
from autoocr.utils.config import Settings
from autoocr.utils.helpers import copy_file, format_duration
from autoocr.utils.signals import TriggerChannel

PDF_EXTENSION = ".pdf"
MARKER_SUFFIX = ".processing"
DEBUG_SUFFIX = ".debug.txt"
BACKUP_SUFFIX = ".backup"


@dataclass
class PassResult:
    """Outcome of one processing pass."""

    processed: List[Path] = field(default_factory=list)
    failed: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)


class Processor:
    """Serialized pdfsandwich runs over the input directory."""

    def __init__(self, settings: Settings, cancel: threading.Event, log=logger):
        """
        Initialize processor. No I/O happens until a pass runs.

        Args:
            settings: Validated settings
            cancel: Shared cancellation signal
            log: Logger to bind the processor context to
        """
        self.settings = settings
        self.cancel = cancel
        self.input_dir = Path(settings.input_dir)
        self.output_dir = Path(settings.output_dir)
        self.log = log.bind(component="processor")

        self._trigger = TriggerChannel(cancel)
        self._thread: Optional[threading.Thread] = None

    def start(self) -> threading.Thread:
        """Start the background thread that waits for triggers."""
        self._thread = threading.Thread(target=self._run, name="autoocr-processor", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None):
        """Wait for the background thread to exit."""
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def trigger(self) -> bool:
        """
        Request one processing pass.

        Blocks while a pass is running. Returns False without blocking
        further once cancellation has been raised.
        """
        return self._trigger.send()

    def _run(self):
        while not self.cancel.is_set():
            if not self._trigger.receive():
                continue

            try:
                self.run_pass()
            except ListError as e:
                self.log.error(f"Error during processing: {e}")
            except Exception:
                self.log.exception("Unexpected error during processing.")

        self.log.info("Stopping.")

    def eligible_files(self) -> List[Path]:
        """
        List the files a pass should process.

        Returns:
            Regular files with extension ``.pdf``, in directory listing order

        Raises:
            ListError: If the input directory can not be read
        """
        try:
            with os.scandir(self.input_dir) as entries:
                names = [
                    entry.name
                    for entry in entries
                    if entry.is_file() and Path(entry.name).suffix == PDF_EXTENSION
                ]
        except OSError as e:
            raise ListError(f"error reading directory {self.input_dir}: {e}") from e

        return [self.input_dir / name for name in names]

    def run_pass(self) -> PassResult:
        """
        Process every eligible file once.

        Raises:
            ListError: If the input directory can not be read
        """
        files = self.eligible_files()
        result = PassResult()

        if not files:
            self.log.debug("No files to process.")
            return result

        for index, path in enumerate(files):
            if self.cancel.is_set():
                result.skipped.extend(files[index:])
                self.log.info(f"Cancelled, leaving {len(result.skipped)} file(s) for the next run.")
                break

            filelog = self.log.bind(file=str(path))
            filelog.info("Start processing.")
            start = time.monotonic()

            try:
                self.process_file(path)
            except FileProcessingError as e:
                filelog.error(f"Error processing file: {e}")
                result.failed.append(path)
                continue

            filelog.info(f"Processing successful in {format_duration(time.monotonic() - start)}.")
            result.processed.append(path)

        return result

    def process_file(self, path: Path):
        """
        Convert a single file and clean up after it.

        Args:
            path: Eligible file inside the input directory

        Raises:
            FileProcessingError: Subclass naming the stage that failed
        """
        name = path.name
        out_file = self.output_dir / name
        debug_file = self.output_dir / f"{name}{DEBUG_SUFFIX}"

        with self._processing_marker(path):
            with self._open_debug_file(path, debug_file) as debug:
                self._convert(path, out_file, debug)

            try:
                out_file.chmod(self.settings.out_permissions)
            except OSError as e:
                raise OutputPermissionError(path, "error setting permissions") from e

            if self.settings.keep_original:
                backup_file = self.output_dir / f"{name}{BACKUP_SUFFIX}"
                try:
                    copy_file(path, backup_file, self.settings.out_permissions)
                except OSError as e:
                    raise BackupError(path, "error creating backup") from e

            try:
                path.unlink()
            except OSError as e:
                raise CleanupError(path, "error deleting original") from e

            try:
                debug_file.unlink()
            except OSError as e:
                raise CleanupError(path, "error removing debug file") from e

    def _convert(self, path: Path, out_file: Path, debug: IO[bytes]):
        args = [
            self.settings.pdf_sandwich,
            "-o", str(out_file),
            "-lang", self.settings.languages,
            "-rgb",
            str(path),
        ]
        self.log.bind(file=str(path)).debug(f"Running {' '.join(args)}")

        try:
            subprocess.run(
                args,
                stdin=subprocess.DEVNULL,
                stdout=debug,
                stderr=debug,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise ConversionError(path, "error running pdfsandwich") from e

    @contextmanager
    def _processing_marker(self, path: Path) -> Iterator[Path]:
        marker = self.input_dir / f"{path.name}{MARKER_SUFFIX}"
        try:
            fd = os.open(marker, os.O_RDWR | os.O_CREAT | os.O_TRUNC, 0o600)
            os.close(fd)
        except OSError as e:
            raise FileProcessingError(path, "error creating status file") from e

        try:
            yield marker
        finally:
            try:
                marker.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                self.log.bind(file=str(path)).warning(f"Could not remove status file: {e}")

    @contextmanager
    def _open_debug_file(self, path: Path, debug_file: Path) -> Iterator[IO[bytes]]:
        try:
            fd = os.open(
                debug_file,
                os.O_RDWR | os.O_CREAT | os.O_TRUNC,
                self.settings.out_permissions,
            )
        except OSError as e:
            raise FileProcessingError(path, "error creating debug file") from e

        with os.fdopen(fd, "wb") as debug:
            yield debug
