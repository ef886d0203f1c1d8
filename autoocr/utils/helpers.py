"""
Helper utilities for autoocr.

Parsing and filesystem functions shared by the settings layer and the
processing pipeline.
"""

import math
import re
import shutil
from pathlib import Path
from typing import Union

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) and compound strings such as
    ``"500ms"``, ``"5s"`` or ``"1m30s"``.

    Args:
        value: Duration as number or string

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the string is not a valid duration
    """
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ValueError(f"invalid duration: {value!r}")
        return seconds

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text) or position == 0:
        raise ValueError(f"invalid duration: {value!r}")

    return total


def format_duration(seconds: float) -> str:
    """Format seconds as a short human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}m{rest:04.1f}s"


def parse_file_mode(value: Union[str, int]) -> int:
    """
    Parse permission bits.

    Strings are read as octal (``"644"``, ``"0644"``, ``"0o644"``);
    integers are taken as-is.

    Args:
        value: Permission bits

    Returns:
        Mode as integer

    Raises:
        ValueError: If the value is not a valid mode
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid file mode: {value!r}")

    if isinstance(value, int):
        mode = value
    else:
        text = value.strip().lower()
        if text.startswith("0o"):
            text = text[2:]
        try:
            mode = int(text, 8)
        except ValueError:
            raise ValueError(f"invalid file mode: {value!r}") from None

    if not 0 <= mode <= 0o7777:
        raise ValueError(f"file mode out of range: {oct(mode)}")

    return mode


def ensure_directory(path: Path, mode: int) -> bool:
    """
    Create ``path`` with ``mode`` unless it already exists.

    Returns:
        True if the directory was created
    """
    if path.is_dir():
        return False
    path.mkdir(parents=True, mode=mode)
    # mkdir is subject to the umask
    path.chmod(mode)
    return True


def copy_file(src: Path, dst: Path, mode: int) -> None:
    """Copy ``src`` to ``dst`` and give the copy ``mode`` permissions."""
    with open(src, "rb") as source, open(dst, "wb") as target:
        shutil.copyfileobj(source, target)
    dst.chmod(mode)
