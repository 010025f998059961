"""Query a generated index for the packages that provide matching files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import polars as pl

from pkg_provides.errors import SearchError
from pkg_provides.index.records import ProvidesRecord

LOGGER = logging.getLogger(__name__)

INDEX_SCHEMA: dict[str, pl.DataType] = {"package": pl.String, "path": pl.String}


@dataclass(frozen=True, slots=True)
class ProvidesMatch:
    """A package and the matching paths it owns, in index order."""

    package: str
    paths: tuple[str, ...]


def load_index_frame(lines: Iterable[str], logger: logging.Logger | None = None) -> pl.DataFrame:
    """Parse index lines into a ``package``/``path`` frame, skipping lines without ``*``."""

    effective_logger = logger or LOGGER
    packages: list[str] = []
    paths: list[str] = []
    skipped = 0
    for line in lines:
        record = ProvidesRecord.parse(line)
        if record is None:
            skipped += 1
            continue
        packages.append(record.package)
        paths.append(record.path)
    if skipped:
        effective_logger.debug("search.lines_skipped count=%s", skipped)
    return pl.DataFrame({"package": packages, "path": paths}, schema=INDEX_SCHEMA)


def read_index_file(index_path: Path, logger: logging.Logger | None = None) -> pl.DataFrame:
    """Load an index file written by ``pkg-provides build``."""

    try:
        with index_path.open("r", encoding="utf-8", errors="surrogateescape") as handle:
            return load_index_frame(handle, logger=logger)
    except FileNotFoundError as exc:
        raise SearchError(
            f"cannot read index {index_path}: not found, run `pkg-provides update` or "
            f"`pkg-provides build --output {index_path}` first"
        ) from exc
    except OSError as exc:
        raise SearchError(f"cannot read index {index_path}: {exc}") from exc


def search_frame(index: pl.DataFrame, pattern: str) -> pl.DataFrame:
    """Filter ``index`` to rows whose path matches ``pattern``.

    A pattern containing ``/`` is matched against the full path; otherwise it
    is matched against the basename only, ignoring trailing slashes. Patterns
    use the Rust regex syntax of polars, which has no lookaround or
    backreferences.
    """

    if "/" in pattern:
        target = pl.col("path")
    else:
        target = pl.col("path").str.strip_chars_end("/").str.split("/").list.last()
    try:
        return index.filter(target.str.contains(pattern))
    except pl.exceptions.PolarsError as exc:
        raise SearchError(f"invalid search pattern {pattern!r}: {exc}") from exc


def search_index(
    index: pl.DataFrame,
    pattern: str,
    logger: logging.Logger | None = None,
) -> list[ProvidesMatch]:
    """Return matches grouped by package, packages in order of first hit."""

    effective_logger = logger or LOGGER
    hits = search_frame(index, pattern)
    grouped = hits.group_by("package", maintain_order=True).agg(pl.col("path"))
    matches = [
        ProvidesMatch(package=row["package"], paths=tuple(row["path"])) for row in grouped.iter_rows(named=True)
    ]
    effective_logger.info(
        "search.complete pattern=%s rows=%s hits=%s packages=%s",
        pattern,
        index.height,
        hits.height,
        len(matches),
    )
    return matches


def format_matches(matches: list[ProvidesMatch]) -> str:
    """Render matches as blocks of ``Name``/``Filename`` lines separated by blank lines."""

    blocks: list[str] = []
    for match in matches:
        lines = [f"Name    : {match.package}"]
        for position, path in enumerate(match.paths):
            label = "Filename: " if position == 0 else "          "
            lines.append(f"{label}{path}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
