"""Index line records."""

from __future__ import annotations

from dataclasses import dataclass

RECORD_SEPARATOR = "*"


@dataclass(frozen=True, slots=True)
class ProvidesRecord:
    """One (package, owned path) pair of the reverse index."""

    package: str
    path: str

    def render(self) -> str:
        """Render as ``<package>*<path>`` without a line terminator."""

        return f"{self.package}{RECORD_SEPARATOR}{self.path}"

    @classmethod
    def parse(cls, line: str) -> "ProvidesRecord | None":
        """Split an index line on its first ``*``; return ``None`` when there is none."""

        package, separator, path = line.rstrip("\r\n").partition(RECORD_SEPARATOR)
        if not separator:
            return None
        return cls(package=package, path=path)


def records_for(package: str, paths: list[str]) -> list[ProvidesRecord]:
    """Build records for every owned path, preserving order."""

    return [ProvidesRecord(package=package, path=path) for path in paths]
