"""Decompress archive payloads by trying each supported codec in order."""

from __future__ import annotations

import logging
import lzma
from dataclasses import dataclass
from typing import Callable

import zstandard

from pkg_provides.errors import UnsupportedFormat

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Codec:
    """One candidate decompressor and the errors that mean "not this codec"."""

    name: str
    decompress: Callable[[bytes], bytes]
    errors: tuple[type[Exception], ...]


def _zstd_decompress(payload: bytes) -> bytes:
    """Decompress consecutive zstd frames, including frames without a declared content size.

    Input that ends before a frame is complete raises :class:`zstandard.ZstdError`.
    """

    dctx = zstandard.ZstdDecompressor()
    chunks: list[bytes] = []
    remaining = payload
    while remaining:
        dobj = dctx.decompressobj()
        chunks.append(dobj.decompress(remaining))
        if not dobj.eof:
            raise zstandard.ZstdError(f"zstd input ends mid-frame after {len(payload)} bytes")
        remaining = dobj.unused_data
    return b"".join(chunks)


def _xz_decompress(payload: bytes) -> bytes:
    return lzma.decompress(payload, format=lzma.FORMAT_XZ)


ZSTD = Codec(name="zstd", decompress=_zstd_decompress, errors=(zstandard.ZstdError,))
XZ = Codec(name="xz", decompress=_xz_decompress, errors=(lzma.LZMAError, EOFError))

DEFAULT_CODECS: tuple[Codec, ...] = (ZSTD, XZ)


def detect_codec(
    payload: bytes,
    codecs: tuple[Codec, ...] = DEFAULT_CODECS,
    logger: logging.Logger | None = None,
) -> tuple[str, bytes]:
    """Return ``(codec_name, decompressed)`` for the first codec that accepts ``payload``.

    Codecs are tried by trial in the given order; no magic bytes are inspected.
    Raises :class:`UnsupportedFormat` listing every codec failure when none succeeds.
    """

    effective_logger = logger or LOGGER
    if not payload:
        raise UnsupportedFormat("empty payload")

    failures: list[str] = []
    for codec in codecs:
        try:
            decompressed = codec.decompress(payload)
        except codec.errors as exc:
            effective_logger.debug("codecs.attempt_failed codec=%s error=%s", codec.name, exc)
            failures.append(f"{codec.name}: {exc}")
            continue
        return codec.name, decompressed

    raise UnsupportedFormat("no supported codec could decompress payload (" + "; ".join(failures) + ")")


def decode(payload: bytes, logger: logging.Logger | None = None) -> bytes:
    """Decompress ``payload`` with zstd, falling back to xz."""

    _, decompressed = detect_codec(payload, logger=logger)
    return decompressed
