"""Shared fixtures: build package archives on the fly."""

from __future__ import annotations

import io
import json
import logging
import lzma
import tarfile
from pathlib import Path
from typing import Callable

import pytest
import yaml
import zstandard

from pkg_provides.logging_utils import DEFAULT_LOG_FORMAT


def make_tar(entries: list[tuple[str, bytes]]) -> bytes:
    """Return an uncompressed tar stream holding ``entries`` in order."""

    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        for name, body in entries:
            info = tarfile.TarInfo(name)
            info.size = len(body)
            tar.addfile(info, io.BytesIO(body))
    return buffer.getvalue()


def compress(data: bytes, codec: str) -> bytes:
    if codec == "zstd":
        return zstandard.ZstdCompressor().compress(data)
    if codec == "xz":
        return lzma.compress(data, format=lzma.FORMAT_XZ)
    if codec == "none":
        return data
    raise ValueError(f"unknown codec {codec}")


def manifest_line(name: str | None = None, files: list[str] | None = None, **extra: object) -> bytes:
    payload: dict[str, object] = {}
    if name is not None:
        payload["name"] = name
    if files is not None:
        payload["files"] = {path: {"sum": "1$abc"} for path in files}
    payload.update(extra)
    return json.dumps(payload).encode("utf-8") + b"\n"


def package_bytes(manifest: bytes, codec: str = "zstd", extra_entries: list[tuple[str, bytes]] | None = None) -> bytes:
    entries = [("+COMPACT_MANIFEST", b'{"name":"compact"}\n'), ("+MANIFEST", manifest)]
    entries.extend(extra_entries or [])
    return compress(make_tar(entries), codec)


@pytest.fixture
def write_package(tmp_path: Path) -> Callable[..., Path]:
    """Write a ``<stem>.pkg`` archive into ``tmp_path / "packages"``."""

    packages_dir = tmp_path / "packages"
    packages_dir.mkdir(exist_ok=True)

    def _write(stem: str, manifest: bytes | None = None, codec: str = "zstd", raw: bytes | None = None) -> Path:
        path = packages_dir / f"{stem}.pkg"
        if raw is None:
            raw = package_bytes(manifest if manifest is not None else manifest_line(stem, []), codec=codec)
        path.write_bytes(raw)
        return path

    return _write


@pytest.fixture
def packages_dir(tmp_path: Path) -> Path:
    path = tmp_path / "packages"
    path.mkdir(exist_ok=True)
    return path


@pytest.fixture
def settings_file(tmp_path: Path, packages_dir: Path) -> Path:
    """Write a settings YAML that keeps every path inside ``tmp_path``."""

    config_dir = tmp_path / "configs"
    config_dir.mkdir(exist_ok=True)
    path = config_dir / "settings.yaml"
    payload = {
        "paths": {
            "packages_dir": str(packages_dir),
            "artifacts_root": str(tmp_path / "artifacts"),
            "logs_root": str(tmp_path / "logs"),
            "index_file": str(tmp_path / "db" / "provides.db"),
        },
        "scan": {"max_concurrency": 3, "pattern": "*.pkg", "progress_every": 2},
        "logging": {"level": "DEBUG", "log_to_file": True},
    }
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo ``configure_logging`` side effects on the root and package loggers."""

    root_logger = logging.getLogger()
    package_logger = logging.getLogger("pkg_provides")
    handlers_before = list(root_logger.handlers)
    root_level = root_logger.level
    package_level = package_logger.level
    yield
    for handler in list(root_logger.handlers):
        formatter = handler.formatter
        if handler not in handlers_before and formatter is not None and formatter._fmt == DEFAULT_LOG_FORMAT:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(root_level)
    package_logger.setLevel(package_level)
