"""Index building: records, sinks, scheduling, orchestration, search, and update."""

from pkg_provides.index.pipeline import IndexRunOptions, IndexRunResult, archive_results_frame, run_index_build
from pkg_provides.index.records import ProvidesRecord, records_for
from pkg_provides.index.scheduler import (
    ArchiveResult,
    ScanResult,
    process_archive,
    read_archive_manifest,
    scan_archives,
    validate_max_concurrency,
)
from pkg_provides.index.search import (
    ProvidesMatch,
    format_matches,
    load_index_frame,
    read_index_file,
    search_frame,
    search_index,
)
from pkg_provides.index.sink import LineSink, MemoryLineSink, StreamLineSink
from pkg_provides.index.update import IndexUpdateResult, download_index, update_index

__all__ = [
    "IndexRunOptions",
    "IndexRunResult",
    "archive_results_frame",
    "run_index_build",
    "ProvidesRecord",
    "records_for",
    "ArchiveResult",
    "ScanResult",
    "process_archive",
    "read_archive_manifest",
    "scan_archives",
    "validate_max_concurrency",
    "ProvidesMatch",
    "format_matches",
    "load_index_frame",
    "read_index_file",
    "search_frame",
    "search_index",
    "LineSink",
    "MemoryLineSink",
    "StreamLineSink",
    "IndexUpdateResult",
    "download_index",
    "update_index",
]
