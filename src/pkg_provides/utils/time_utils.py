"""Time utility helpers for UTC-safe timestamps."""

from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return current timezone-aware UTC timestamp."""

    return datetime.now(timezone.utc)


def elapsed_ms(started_mono: float, finished_mono: float) -> float:
    """Return a monotonic interval in milliseconds rounded to 0.01 ms."""

    return round((finished_mono - started_mono) * 1000.0, 2)
