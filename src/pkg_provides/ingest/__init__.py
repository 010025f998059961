"""Ingestion package: archive discovery, decompression, and manifest parsing."""

from pkg_provides.ingest.codecs import DEFAULT_CODECS, Codec, decode, detect_codec
from pkg_provides.ingest.container import MANIFEST_ENTRY, extract_manifest, extract_member
from pkg_provides.ingest.discover import DEFAULT_ARCHIVE_PATTERN, discover_archives, validate_packages_dir
from pkg_provides.ingest.manifest import (
    PackageManifest,
    first_manifest_line,
    parse_manifest,
    read_package_files,
)

__all__ = [
    "Codec",
    "DEFAULT_CODECS",
    "decode",
    "detect_codec",
    "MANIFEST_ENTRY",
    "extract_member",
    "extract_manifest",
    "DEFAULT_ARCHIVE_PATTERN",
    "discover_archives",
    "validate_packages_dir",
    "PackageManifest",
    "first_manifest_line",
    "parse_manifest",
    "read_package_files",
]
