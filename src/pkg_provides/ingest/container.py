"""Pull a single named member out of a decompressed tar stream."""

from __future__ import annotations

import io
import logging
import tarfile

from pkg_provides.errors import MalformedContainer, ManifestNotFound

LOGGER = logging.getLogger(__name__)

MANIFEST_ENTRY = "+MANIFEST"


def extract_member(
    container: bytes,
    entry_name: str,
    logger: logging.Logger | None = None,
) -> bytes:
    """Return the body of the first member named exactly ``entry_name``.

    The container is read as a forward-only tar stream in storage order and
    reading stops at the first match, so members stored after it are never
    read. Names are compared verbatim: ``./+MANIFEST`` does not match.
    """

    effective_logger = logger or LOGGER
    scanned = 0
    try:
        with tarfile.open(fileobj=io.BytesIO(container), mode="r|") as tar:
            for member in tar:
                scanned += 1
                if member.name != entry_name:
                    continue
                handle = tar.extractfile(member)
                if handle is None:
                    raise MalformedContainer(f"{entry_name} is not a regular file (type={member.type!r})")
                body = handle.read()
                effective_logger.debug(
                    "container.member_found entry=%s position=%s size=%s",
                    entry_name,
                    scanned,
                    len(body),
                )
                return body
    except tarfile.TarError as exc:
        raise MalformedContainer(f"unreadable tar stream after {scanned} member(s): {exc}") from exc

    raise ManifestNotFound(f"no {entry_name} entry among {scanned} member(s)")


def extract_manifest(container: bytes, logger: logging.Logger | None = None) -> bytes:
    """Return the raw bytes of the container's ``+MANIFEST`` entry."""

    return extract_member(container, MANIFEST_ENTRY, logger=logger)
