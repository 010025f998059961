"""Tests for index records and thread-safe sinks."""

from __future__ import annotations

import io
import threading

from pkg_provides.index.records import ProvidesRecord, records_for
from pkg_provides.index.sink import MemoryLineSink, StreamLineSink


def test_record_render_and_parse_split_on_first_separator() -> None:
    record = ProvidesRecord(package="foo", path="/usr/share/foo/a*b")

    assert record.render() == "foo*/usr/share/foo/a*b"
    assert ProvidesRecord.parse(record.render() + "\n") == record


def test_record_parse_without_separator() -> None:
    assert ProvidesRecord.parse("no separator here\n") is None


def test_stream_sink_writes_terminated_lines() -> None:
    stream = io.StringIO()
    sink = StreamLineSink(stream)

    sink.emit(ProvidesRecord("foo", "/usr/bin/foo"))
    written = sink.emit_many(records_for("bar", ["/a", "/b"]))

    assert written == 2
    assert sink.line_count == 3
    assert stream.getvalue() == "foo*/usr/bin/foo\nbar*/a\nbar*/b\n"


def test_stream_sink_empty_batch_writes_nothing() -> None:
    stream = io.StringIO()
    sink = StreamLineSink(stream, flush=True)

    assert sink.emit_many([]) == 0
    assert stream.getvalue() == ""


class _SlowStream(io.StringIO):
    """StringIO that yields the GIL mid-write to provoke interleaving."""

    def write(self, text: str) -> int:
        half = len(text) // 2
        super().write(text[:half])
        threading.Event().wait(0.0001)
        return super().write(text[half:])


def test_stream_sink_never_interleaves_lines_across_threads() -> None:
    stream = _SlowStream()
    sink = StreamLineSink(stream)
    workers = 8
    per_worker = 50

    def _produce(worker: int) -> None:
        for idx in range(per_worker):
            if idx % 2:
                sink.emit(ProvidesRecord(f"pkg{worker}", f"/path/{worker}/{idx}"))
            else:
                sink.emit_many([ProvidesRecord(f"pkg{worker}", f"/path/{worker}/{idx}")])

    threads = [threading.Thread(target=_produce, args=(worker,)) for worker in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    lines = stream.getvalue().splitlines()
    assert len(lines) == workers * per_worker
    expected = {f"pkg{w}*/path/{w}/{i}" for w in range(workers) for i in range(per_worker)}
    assert set(lines) == expected


def test_memory_sink_collects_rendered_lines() -> None:
    sink = MemoryLineSink()

    sink.emit_many(records_for("foo", ["/a", "/b"]))
    sink.emit(ProvidesRecord("bar", "/c"))

    assert sink.lines == ["foo*/a", "foo*/b", "bar*/c"]
    assert sink.line_count == 3
