"""Exception hierarchy for autoocr."""

from pathlib import Path


class AutoOCRError(Exception):
    """Base exception for autoocr."""
    pass


class ConfigError(AutoOCRError):
    """Raised when settings are missing or invalid."""
    pass


class WatchSetupError(AutoOCRError):
    """Raised when the input directory cannot be watched."""
    pass


class ListError(AutoOCRError):
    """Raised when the input directory cannot be listed. Aborts one pass."""
    pass


class FileProcessingError(AutoOCRError):
    """Raised when a single file fails to process. Aborts only that file."""

    def __init__(self, path: Path, message: str):
        self.path = Path(path)
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.__cause__ is not None:
            return f"{message}: {self.__cause__}"
        return message


class ConversionError(FileProcessingError):
    """pdfsandwich could not be launched or exited non-zero."""
    pass


class OutputPermissionError(FileProcessingError):
    """Permissions could not be set on the converted file."""
    pass


class BackupError(FileProcessingError):
    """The original could not be copied to its backup location."""
    pass


class CleanupError(FileProcessingError):
    """The original or the debug file could not be removed."""
    pass
