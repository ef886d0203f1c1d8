"""Directory watchers that turn filesystem activity into trigger signals."""

from autoocr.watchers.filesystem import DirectoryWatcher

__all__ = ["DirectoryWatcher"]
