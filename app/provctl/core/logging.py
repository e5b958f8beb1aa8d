"""Logging configuration for the provctl CLI.

Called once at startup by the CLI. Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Console output goes to stderr so it never mixes with command output on
stdout. The log file is append-only and always carries full detail.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Console at WARNING and above: message only
_FMT_MINIMAL = "%(levelname)s: %(message)s"

# Console at INFO/DEBUG: timestamped with module context
_FMT_VERBOSE = "%(asctime)s %(levelname)-5s %(name)s - %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

# File output
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s - %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Marker attribute for handlers installed here
_HANDLER_TAG = "_provctl_handler"


def parse_level(level: str | None, default: int = logging.WARNING) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return default
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return default
    return numeric


def setup_logging(
    level: str = "WARNING",
    log_file: Path | None = None,
    log_file_level: str = "INFO",
) -> None:
    """Configure logging for the provctl package.

    Handlers are attached to the ``provctl`` logger, replacing any
    installed by an earlier call.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional append-only log file. A file that cannot be
            opened is reported on the console and skipped.
        log_file_level: Level name for the log file.
    """
    console_level = parse_level(level)

    if console_level <= logging.INFO:
        console_fmt = logging.Formatter(_FMT_VERBOSE, datefmt=_DATEFMT_VERBOSE)
    else:
        console_fmt = logging.Formatter(_FMT_MINIMAL)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(console_fmt)
    setattr(console, _HANDLER_TAG, True)

    logger = logging.getLogger("provctl")
    for handler in [h for h in logger.handlers if getattr(h, _HANDLER_TAG, False)]:
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(console)

    effective_level = console_level

    if log_file is not None:
        file_level = parse_level(log_file_level, default=logging.INFO)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot open log file %s: %s", log_file, e)
        else:
            fh.setLevel(file_level)
            fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
            setattr(fh, _HANDLER_TAG, True)
            logger.addHandler(fh)
            effective_level = min(effective_level, file_level)

    logger.setLevel(effective_level)
    logger.propagate = False
