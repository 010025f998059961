"""Bounded-concurrency scanning of package archives.

Each archive runs the full pipeline (read, decompress, extract ``+MANIFEST``,
parse, emit) in its own worker task. Admission is gated by a bounded
semaphore sized to ``max_concurrency``: a file is submitted only once a slot
is free, and the slot is returned when its task finishes, successfully or
not. A failing archive is logged and contributes no lines; it never stops
the scan.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent import futures
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from pkg_provides.errors import ArchiveError, ConfigError
from pkg_provides.index.records import records_for
from pkg_provides.index.sink import LineSink
from pkg_provides.ingest.codecs import detect_codec
from pkg_provides.ingest.container import extract_manifest
from pkg_provides.ingest.manifest import PackageManifest, parse_manifest
from pkg_provides.utils.time_utils import elapsed_ms

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ArchiveResult:
    """Outcome of scanning one archive."""

    archive_path: Path
    success: bool
    package: str | None
    codec: str | None
    records_emitted: int
    payload_bytes: int
    duration_ms: float
    error_kind: str | None = None
    error_message: str | None = None

    def as_row(self) -> dict[str, object]:
        return {
            "archive_path": str(self.archive_path),
            "success": self.success,
            "package": self.package,
            "codec": self.codec,
            "records_emitted": self.records_emitted,
            "payload_bytes": self.payload_bytes,
            "duration_ms": self.duration_ms,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
        }


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Aggregate outcome of :func:`scan_archives`."""

    max_concurrency: int
    peak_running: int
    duration_sec: float
    results: list[ArchiveResult] = field(default_factory=list)

    @property
    def archives_total(self) -> int:
        return len(self.results)

    @property
    def archives_succeeded(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def archives_failed(self) -> int:
        return self.archives_total - self.archives_succeeded

    @property
    def records_emitted(self) -> int:
        return sum(result.records_emitted for result in self.results)

    @property
    def failures(self) -> list[ArchiveResult]:
        return [result for result in self.results if not result.success]

    def error_kind_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for result in self.failures:
            kind = result.error_kind or "unknown"
            counts[kind] = counts.get(kind, 0) + 1
        return dict(sorted(counts.items()))


class _RunningGauge:
    """Lock-guarded count of tasks currently inside the pipeline."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._running = 0
        self._peak = 0

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak

    def __enter__(self) -> "_RunningGauge":
        with self._lock:
            self._running += 1
            self._peak = max(self._peak, self._running)
        return self

    def __exit__(self, *exc_info: object) -> None:
        with self._lock:
            self._running -= 1


def validate_max_concurrency(max_concurrency: object) -> int:
    """Return ``max_concurrency`` if it is a positive int, else raise :class:`ConfigError`."""

    if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int) or max_concurrency < 1:
        raise ConfigError(f"max_concurrency must be a positive integer, got {max_concurrency!r}")
    return max_concurrency


def read_archive_manifest(
    archive_path: Path,
    logger: logging.Logger | None = None,
) -> tuple[str, int, PackageManifest]:
    """Run read, decompress, extract, and parse for one archive.

    Returns ``(codec_name, payload_bytes, manifest)``. Raises an
    :class:`ArchiveError` subclass or :class:`OSError` on failure.
    """

    payload = archive_path.read_bytes()
    codec_name, container = detect_codec(payload, logger=logger)
    manifest_bytes = extract_manifest(container, logger=logger)
    return codec_name, len(payload), parse_manifest(manifest_bytes, logger=logger)


def process_archive(
    archive_path: Path,
    sink: LineSink,
    logger: logging.Logger | None = None,
) -> ArchiveResult:
    """Scan one archive and emit its records; per-archive failures become a failed result."""

    effective_logger = logger or LOGGER
    started_mono = time.monotonic()
    try:
        codec_name, payload_bytes, manifest = read_archive_manifest(archive_path, logger=effective_logger)
    except ArchiveError as exc:
        effective_logger.error(
            "scan.archive_failed path=%s error_kind=%s error=%s",
            archive_path,
            exc.kind,
            exc,
        )
        return _failed_result(archive_path, exc.kind, str(exc), started_mono)
    except OSError as exc:
        effective_logger.error("scan.archive_unreadable path=%s error=%s", archive_path, exc)
        return _failed_result(archive_path, type(exc).__name__, str(exc), started_mono)
    except Exception as exc:
        effective_logger.exception("scan.archive_crashed path=%s", archive_path)
        return _failed_result(archive_path, type(exc).__name__, str(exc), started_mono)

    # Sink errors (for example a closed stdout) are not archive failures and propagate.
    emitted = sink.emit_many(records_for(manifest.name, manifest.file_paths))
    effective_logger.debug(
        "scan.archive_done path=%s package=%s codec=%s records=%s",
        archive_path,
        manifest.name,
        codec_name,
        emitted,
    )
    return ArchiveResult(
        archive_path=archive_path,
        success=True,
        package=manifest.name,
        codec=codec_name,
        records_emitted=emitted,
        payload_bytes=payload_bytes,
        duration_ms=elapsed_ms(started_mono, time.monotonic()),
    )


def _failed_result(archive_path: Path, kind: str, message: str, started_mono: float) -> ArchiveResult:
    return ArchiveResult(
        archive_path=archive_path,
        success=False,
        package=None,
        codec=None,
        records_emitted=0,
        payload_bytes=0,
        duration_ms=elapsed_ms(started_mono, time.monotonic()),
        error_kind=kind,
        error_message=message,
    )


def scan_archives(
    files: Iterable[Path],
    max_concurrency: int,
    sink: LineSink,
    *,
    logger: logging.Logger | None = None,
    progress_every: int = 100,
) -> ScanResult:
    """Scan every archive in ``files`` with at most ``max_concurrency`` running at once.

    Returns after every dispatched task has finished. Results are listed in
    input order; lines reach ``sink`` in completion order.
    """

    effective_logger = logger or LOGGER
    limit = validate_max_concurrency(max_concurrency)
    progress_every = max(1, progress_every)

    started_mono = time.monotonic()
    slots = threading.BoundedSemaphore(limit)
    gauge = _RunningGauge()
    progress_lock = threading.Lock()
    counters = {"done": 0, "failed": 0}

    def _task(archive_path: Path) -> ArchiveResult:
        with gauge:
            return process_archive(archive_path, sink, logger=effective_logger)

    def _on_done(future: futures.Future[ArchiveResult]) -> None:
        slots.release()
        failed = future.cancelled() or future.exception() is not None or not future.result().success
        with progress_lock:
            counters["done"] += 1
            counters["failed"] += int(failed)
            done = counters["done"]
            failed_total = counters["failed"]
        if done % progress_every == 0:
            effective_logger.info(
                "scan.progress done=%s failed=%s elapsed_sec=%.2f",
                done,
                failed_total,
                time.monotonic() - started_mono,
            )

    effective_logger.info("scan.start max_concurrency=%s", limit)
    submitted: list[futures.Future[ArchiveResult]] = []
    with futures.ThreadPoolExecutor(max_workers=limit, thread_name_prefix="pkg-provides-scan") as executor:
        for archive_path in files:
            slots.acquire()
            try:
                future = executor.submit(_task, Path(archive_path))
            except BaseException:
                slots.release()
                raise
            future.add_done_callback(_on_done)
            submitted.append(future)
        results = [future.result() for future in submitted]

    scan_result = ScanResult(
        max_concurrency=limit,
        peak_running=gauge.peak,
        duration_sec=round(time.monotonic() - started_mono, 3),
        results=results,
    )
    effective_logger.info(
        "scan.complete archives=%s success=%s failed=%s records=%s peak_running=%s duration_sec=%.3f",
        scan_result.archives_total,
        scan_result.archives_succeeded,
        scan_result.archives_failed,
        scan_result.records_emitted,
        scan_result.peak_running,
        scan_result.duration_sec,
    )
    return scan_result
