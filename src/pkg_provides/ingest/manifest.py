"""Parse ``+MANIFEST`` entries into typed package manifests."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError

from pkg_provides.errors import InvalidManifest, MissingName

LOGGER = logging.getLogger(__name__)


class PackageManifest(BaseModel):
    """Fields of a package manifest that the index needs.

    ``files`` maps installed paths to per-file metadata; the metadata is kept
    but never inspected. Unknown manifest fields are ignored.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: StrictStr
    files: dict[str, Any] | None = None

    @property
    def file_paths(self) -> list[str]:
        """Owned paths in manifest key order; empty when ``files`` is absent."""

        return list(self.files) if self.files else []


def first_manifest_line(data: bytes) -> bytes:
    """Return the bytes of the first line of a manifest entry, without the newline.

    Only this line is ever decoded. A manifest whose JSON spans several lines
    therefore fails to parse instead of being read in full.
    """

    if not data:
        raise InvalidManifest("manifest entry is empty")
    return data.split(b"\n", 1)[0]


def parse_manifest(data: bytes, logger: logging.Logger | None = None) -> PackageManifest:
    """Decode the first line of ``data`` as a JSON object and validate it."""

    effective_logger = logger or LOGGER
    line = first_manifest_line(data)
    try:
        payload = json.loads(line.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise InvalidManifest(f"manifest is not UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidManifest(f"manifest is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise InvalidManifest(f"manifest must be a JSON object, got {type(payload).__name__}")
    if payload.get("name") is None:
        raise MissingName("manifest has no package name")

    try:
        manifest = PackageManifest.model_validate(payload)
    except ValidationError as exc:
        problems = ", ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise InvalidManifest(f"manifest fields are invalid ({problems})") from exc

    _require_encodable("name", manifest.name)
    for path in manifest.file_paths:
        _require_encodable("files key", path)

    if manifest.files is None:
        effective_logger.debug("manifest.no_files name=%s", manifest.name)
    return manifest


def _require_encodable(field_name: str, value: str) -> None:
    # JSON "\ud800" escapes decode to lone surrogates that no UTF-8 stream can write.
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidManifest(f"manifest {field_name} {value!r} is not valid unicode: {exc.reason}") from exc


def read_package_files(data: bytes, logger: logging.Logger | None = None) -> tuple[str, list[str]]:
    """Return ``(package_name, owned_paths)`` for a raw manifest entry."""

    manifest = parse_manifest(data, logger=logger)
    return manifest.name, manifest.file_paths
