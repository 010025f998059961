"""Thread-safe destinations for index lines."""

from __future__ import annotations

import threading
from typing import Iterable, Protocol, TextIO

from pkg_provides.index.records import ProvidesRecord


class LineSink(Protocol):
    """Receives index records from concurrent scan workers."""

    def emit(self, record: ProvidesRecord) -> None: ...

    def emit_many(self, records: Iterable[ProvidesRecord]) -> int: ...


class StreamLineSink:
    """Write rendered records to a text stream under a lock.

    Each line is written with a single ``write`` call while holding the lock,
    so concurrent emitters never interleave bytes within a line.
    """

    def __init__(self, stream: TextIO, *, flush: bool = False) -> None:
        self._stream = stream
        self._flush = flush
        self._lock = threading.Lock()
        self._line_count = 0

    @property
    def line_count(self) -> int:
        with self._lock:
            return self._line_count

    def emit(self, record: ProvidesRecord) -> None:
        line = record.render() + "\n"
        with self._lock:
            self._stream.write(line)
            self._line_count += 1
            if self._flush:
                self._stream.flush()

    def emit_many(self, records: Iterable[ProvidesRecord]) -> int:
        """Write a batch contiguously, in iteration order; return the number written."""

        lines = [record.render() + "\n" for record in records]
        if not lines:
            return 0
        with self._lock:
            for line in lines:
                self._stream.write(line)
            self._line_count += len(lines)
            if self._flush:
                self._stream.flush()
        return len(lines)


class MemoryLineSink:
    """Collect rendered lines in memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._lines: list[str] = []

    @property
    def lines(self) -> list[str]:
        with self._lock:
            return list(self._lines)

    @property
    def line_count(self) -> int:
        with self._lock:
            return len(self._lines)

    def emit(self, record: ProvidesRecord) -> None:
        with self._lock:
            self._lines.append(record.render())

    def emit_many(self, records: Iterable[ProvidesRecord]) -> int:
        rendered = [record.render() for record in records]
        with self._lock:
            self._lines.extend(rendered)
        return len(rendered)
