"""
Logging setup for autoocr.

All modules log through loguru. Components receive a logger and bind their
own ``component`` field so entries stay attributable in both formats.
"""

import sys

from loguru import logger

PLAIN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> - "
    "<level>{message}</level>"
    "{extra[file_suffix]}"
)


def _patch_extra(record):
    extra = record["extra"]
    extra.setdefault("component", "main")
    path = extra.get("file")
    extra["file_suffix"] = f" file={path}" if path else ""


def configure_logging(log_format: str = "plain", level: str = "INFO", sink=None) -> int:
    """
    Replace loguru's default handler with one for the chosen format.

    Args:
        log_format: ``plain`` for coloured text, ``json`` for one JSON
            object per line
        level: Minimum level name
        sink: Where to write, stdout by default

    Returns:
        Handler id of the added sink
    """
    if sink is None:
        sink = sys.stdout

    logger.remove()
    logger.configure(patcher=_patch_extra)

    if log_format == "json":
        return logger.add(sink, level=level, serialize=True)

    return logger.add(sink, level=level, format=PLAIN_FORMAT, colorize=None)
