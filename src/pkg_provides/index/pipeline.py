"""Index build orchestration: discover archives, scan them, record the run."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from uuid import uuid4

import polars as pl

from pkg_provides.config import AppSettings
from pkg_provides.index.scheduler import ScanResult, scan_archives, validate_max_concurrency
from pkg_provides.index.sink import LineSink
from pkg_provides.ingest.discover import discover_archives
from pkg_provides.utils.paths import write_json_atomically, write_parquet_atomically
from pkg_provides.utils.time_utils import now_utc

LOGGER = logging.getLogger(__name__)

ARCHIVE_RESULTS_SCHEMA: dict[str, pl.DataType] = {
    "archive_path": pl.String,
    "success": pl.Boolean,
    "package": pl.String,
    "codec": pl.String,
    "records_emitted": pl.Int64,
    "payload_bytes": pl.Int64,
    "duration_ms": pl.Float64,
    "error_kind": pl.String,
    "error_message": pl.String,
}


@dataclass(frozen=True, slots=True)
class IndexRunOptions:
    """Runtime overrides for one index build."""

    packages_dir: Path | None = None
    max_concurrency: int | None = None
    limit: int | None = None
    dry_run: bool = False
    write_artifacts: bool | None = None


@dataclass(frozen=True, slots=True)
class IndexRunResult:
    """Return object for index build outcomes."""

    run_id: str
    summary: dict[str, Any]
    scan: ScanResult | None
    summary_path: Path | None
    failed_archives_path: Path | None
    archive_results_path: Path | None


def archive_results_frame(scan: ScanResult | None) -> pl.DataFrame:
    """Per-archive outcomes as a frame with a stable schema."""

    if scan is None or not scan.results:
        return pl.DataFrame(schema=ARCHIVE_RESULTS_SCHEMA)
    return pl.DataFrame([result.as_row() for result in scan.results], schema_overrides=ARCHIVE_RESULTS_SCHEMA)


def run_index_build(
    settings: AppSettings,
    *,
    sink: LineSink,
    options: IndexRunOptions | None = None,
    logger: logging.Logger | None = None,
) -> IndexRunResult:
    """Build the reverse index for every archive in the packages directory.

    Invalid concurrency or an unusable packages directory raises
    :class:`~pkg_provides.errors.ConfigError` before any archive is read.
    """

    effective_logger = logger or LOGGER
    run_options = options or IndexRunOptions()

    max_concurrency = validate_max_concurrency(
        run_options.max_concurrency if run_options.max_concurrency is not None else settings.scan.max_concurrency
    )
    packages_dir = run_options.packages_dir or settings.paths.packages_dir
    write_artifacts = (
        run_options.write_artifacts if run_options.write_artifacts is not None else settings.summary.write_artifacts
    )

    run_id = f"index-run-{uuid4().hex[:12]}"
    started_ts = now_utc()
    started_mono = time.monotonic()

    archives = discover_archives(packages_dir, pattern=settings.scan.pattern, logger=effective_logger)
    archives_discovered_total = len(archives)
    if run_options.limit is not None:
        archives = archives[: max(0, run_options.limit)]

    effective_logger.info(
        "index_run.start run_id=%s packages_dir=%s discovered=%s selected=%s max_concurrency=%s dry_run=%s",
        run_id,
        packages_dir,
        archives_discovered_total,
        len(archives),
        max_concurrency,
        run_options.dry_run,
    )

    scan: ScanResult | None = None
    if not run_options.dry_run:
        scan = scan_archives(
            archives,
            max_concurrency,
            sink,
            logger=effective_logger,
            progress_every=settings.scan.progress_every,
        )

    finished_ts = now_utc()
    failures = [result.as_row() for result in scan.failures] if scan is not None else []
    summary: dict[str, Any] = {
        "run_id": run_id,
        "started_ts": started_ts.isoformat(),
        "finished_ts": finished_ts.isoformat(),
        "duration_sec": round(time.monotonic() - started_mono, 3),
        "packages_dir": str(packages_dir),
        "pattern": settings.scan.pattern,
        "dry_run": run_options.dry_run,
        "max_concurrency": max_concurrency,
        "peak_running": scan.peak_running if scan is not None else 0,
        "archives_discovered_total": archives_discovered_total,
        "archives_selected_total": len(archives),
        "archives_processed_success": scan.archives_succeeded if scan is not None else 0,
        "archives_processed_failed": scan.archives_failed if scan is not None else 0,
        "records_emitted": scan.records_emitted if scan is not None else 0,
        "error_kind_counts": scan.error_kind_counts() if scan is not None else {},
        "failed_archives": failures[: settings.summary.max_failed_in_summary],
    }

    summary_path: Path | None = None
    failed_archives_path: Path | None = None
    archive_results_path: Path | None = None
    if write_artifacts:
        artifacts_dir = settings.paths.artifacts_root / "run_summaries"
        summary_path = write_json_atomically(summary, artifacts_dir / f"{run_id}_index_run_summary.json")
        failed_archives_path = write_json_atomically(
            {"run_id": run_id, "failed_archives": failures},
            artifacts_dir / f"{run_id}_failed_archives.json",
        )
        archive_results_path = write_parquet_atomically(
            archive_results_frame(scan),
            artifacts_dir / f"{run_id}_archive_results.parquet",
        )

    effective_logger.info(
        "index_run.complete run_id=%s success=%s failed=%s records=%s summary_path=%s",
        run_id,
        summary["archives_processed_success"],
        summary["archives_processed_failed"],
        summary["records_emitted"],
        summary_path,
    )

    return IndexRunResult(
        run_id=run_id,
        summary=summary,
        scan=scan,
        summary_path=summary_path,
        failed_archives_path=failed_archives_path,
        archive_results_path=archive_results_path,
    )
