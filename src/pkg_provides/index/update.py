"""Download a published provides index and install it where search reads it.

The remote file is a compressed index (xz for the public database, zstd also
accepted). It is decoded with the same codec trial used for package archives
and replaces the local index atomically, so a failed download never leaves a
partial index behind.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

import httpx

from pkg_provides import __version__
from pkg_provides.config import AppSettings
from pkg_provides.errors import UnsupportedFormat, UpdateError
from pkg_provides.index.records import ProvidesRecord
from pkg_provides.ingest.codecs import DEFAULT_CODECS, Codec, detect_codec
from pkg_provides.utils.paths import write_bytes_atomically

LOGGER = logging.getLogger(__name__)

USER_AGENT = f"pkg-provides/{__version__}"


@dataclass(frozen=True, slots=True)
class IndexUpdateResult:
    """Outcome of one index download."""

    url: str
    index_path: Path
    codec: str
    downloaded_bytes: int
    index_bytes: int
    records: int
    duration_sec: float


def download_index(
    url: str,
    *,
    timeout_sec: float,
    progress_every_bytes: int,
    transport: httpx.BaseTransport | None = None,
    logger: logging.Logger | None = None,
) -> bytes:
    """Fetch ``url`` and return the response body, logging progress as it arrives."""

    effective_logger = logger or LOGGER
    step = max(1, progress_every_bytes)
    received = bytearray()
    next_report = step
    try:
        with httpx.Client(
            timeout=timeout_sec,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        ) as client:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                total = response.headers.get("content-length", "unknown")
                effective_logger.info("update.fetch_start url=%s total_bytes=%s", url, total)
                for chunk in response.iter_bytes():
                    received.extend(chunk)
                    if len(received) >= next_report:
                        effective_logger.info(
                            "update.progress received_bytes=%s total_bytes=%s",
                            len(received),
                            total,
                        )
                        while next_report <= len(received):
                            next_report += step
    except httpx.HTTPStatusError as exc:
        raise UpdateError(f"fetching {url} failed with HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise UpdateError(f"fetching {url} failed: {exc}") from exc
    return bytes(received)


def count_index_records(data: bytes) -> int:
    text = data.decode("utf-8", errors="surrogateescape")
    return sum(1 for line in text.splitlines() if ProvidesRecord.parse(line) is not None)


def update_index(
    settings: AppSettings,
    *,
    url: str | None = None,
    index_path: Path | None = None,
    transport: httpx.BaseTransport | None = None,
    codecs: tuple[Codec, ...] = DEFAULT_CODECS,
    logger: logging.Logger | None = None,
) -> IndexUpdateResult:
    """Download, decode, and install the remote index.

    Raises :class:`~pkg_provides.errors.UpdateError` when the download fails
    or the body is not a zstd or xz stream. The existing index is left
    untouched in both cases.
    """

    effective_logger = logger or LOGGER
    source_url = url or settings.update.url
    target_path = index_path or settings.paths.index_file
    started_mono = time.monotonic()

    payload = download_index(
        source_url,
        timeout_sec=settings.update.timeout_sec,
        progress_every_bytes=settings.update.progress_every_bytes,
        transport=transport,
        logger=effective_logger,
    )
    try:
        codec_name, index_bytes = detect_codec(payload, codecs, logger=effective_logger)
    except UnsupportedFormat as exc:
        raise UpdateError(f"index downloaded from {source_url} could not be decoded: {exc}") from exc

    records = count_index_records(index_bytes)
    if records == 0:
        effective_logger.warning("update.empty_index url=%s index_bytes=%s", source_url, len(index_bytes))

    write_bytes_atomically(index_bytes, target_path)
    result = IndexUpdateResult(
        url=source_url,
        index_path=target_path,
        codec=codec_name,
        downloaded_bytes=len(payload),
        index_bytes=len(index_bytes),
        records=records,
        duration_sec=round(time.monotonic() - started_mono, 3),
    )
    effective_logger.info(
        "update.complete url=%s codec=%s downloaded_bytes=%s records=%s index_path=%s",
        result.url,
        result.codec,
        result.downloaded_bytes,
        result.records,
        result.index_path,
    )
    return result
