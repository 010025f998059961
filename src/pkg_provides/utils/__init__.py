"""Shared utility helpers."""

from pkg_provides.utils.paths import (
    atomic_temp_path,
    write_bytes_atomically,
    write_json_atomically,
    write_parquet_atomically,
)
from pkg_provides.utils.time_utils import elapsed_ms, now_utc

__all__ = [
    "atomic_temp_path",
    "write_bytes_atomically",
    "write_json_atomically",
    "write_parquet_atomically",
    "elapsed_ms",
    "now_utc",
]
