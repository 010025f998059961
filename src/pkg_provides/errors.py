"""Exception hierarchy for archive scanning, index building, and search.

Per-archive failures derive from :class:`ArchiveError` and are never fatal to
a scan: the scheduler logs them and the archive contributes no lines.
:class:`ConfigError` is the only condition that stops a run, and it is raised
before any archive is touched.
"""

from __future__ import annotations

__all__ = [
    "ProvidesError",
    "ConfigError",
    "SearchError",
    "UpdateError",
    "ArchiveError",
    "UnsupportedFormat",
    "MalformedContainer",
    "ManifestNotFound",
    "InvalidManifest",
    "MissingName",
]


class ProvidesError(RuntimeError):
    """Base exception for pkg_provides failures."""


class ConfigError(ProvidesError):
    """Raised when run inputs (concurrency, packages directory) are invalid."""


class SearchError(ProvidesError):
    """Raised when an index search cannot run (bad pattern, unreadable index)."""


class UpdateError(ProvidesError):
    """Raised when a published index cannot be downloaded, decoded, or installed."""


class ArchiveError(ProvidesError):
    """Failure local to one archive; the scan skips the archive and continues."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class UnsupportedFormat(ArchiveError):
    """Raised when no known codec can decompress the archive payload."""


class MalformedContainer(ArchiveError):
    """Raised when decompressed bytes are not a readable tar stream."""


class ManifestNotFound(ArchiveError):
    """Raised when the container has no ``+MANIFEST`` entry."""


class InvalidManifest(ArchiveError):
    """Raised when the manifest entry is not a usable JSON object."""


class MissingName(ArchiveError):
    """Raised when the manifest object lacks a package name."""
