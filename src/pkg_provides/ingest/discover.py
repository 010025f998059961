"""Discover package archives in a packages directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pkg_provides.errors import ConfigError

LOGGER = logging.getLogger(__name__)

DEFAULT_ARCHIVE_PATTERN = "*.pkg"


def validate_packages_dir(packages_dir: Path) -> Path:
    """Return ``packages_dir`` resolved, or raise :class:`ConfigError` if it cannot be scanned."""

    if not packages_dir.exists():
        raise ConfigError(f"packages directory does not exist: {packages_dir}")
    if not packages_dir.is_dir():
        raise ConfigError(f"packages path is not a directory: {packages_dir}")
    if not os.access(packages_dir, os.R_OK | os.X_OK):
        raise ConfigError(f"packages directory is not readable: {packages_dir}")
    return packages_dir.resolve(strict=False)


def discover_archives(
    packages_dir: Path,
    pattern: str = DEFAULT_ARCHIVE_PATTERN,
    logger: logging.Logger | None = None,
) -> list[Path]:
    """List archives matching ``pattern`` directly inside ``packages_dir`` (non-recursive)."""

    effective_logger = logger or LOGGER
    root = validate_packages_dir(packages_dir)
    try:
        candidates = sorted(root.glob(pattern))
    except OSError as exc:
        raise ConfigError(f"cannot list packages directory {root}: {exc}") from exc

    archives = [path for path in candidates if path.is_file()]
    skipped = len(candidates) - len(archives)
    if skipped:
        effective_logger.warning("discover.non_file_matches_skipped packages_dir=%s skipped=%s", root, skipped)
    effective_logger.info("discover.complete packages_dir=%s pattern=%s archives=%s", root, pattern, len(archives))
    return archives
