"""Logging setup for the CLI and scan pipeline.

Log output goes to stderr and, optionally, a log file; stdout carries only
index lines.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path


DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PACKAGE_LOGGER_NAME = "pkg_provides"


def resolve_level(level: int | str) -> int:
    """Map a level name such as ``"INFO"`` to its numeric value."""

    if isinstance(level, int):
        return level
    return getattr(logging, level.strip().upper(), logging.INFO)


def configure_logging(log_file: Path | None = None, level: int | str = logging.INFO) -> logging.Logger:
    """Configure process-wide stderr and optional file logging."""

    numeric_level = resolve_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    formatter = logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(numeric_level)
    root_logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(numeric_level)
        root_logger.addHandler(file_handler)

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(numeric_level)
    return logger
