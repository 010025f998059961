"""Tests for the Typer CLI."""

from __future__ import annotations

import functools
from pathlib import Path

import httpx
from conftest import compress, manifest_line
from typer.testing import CliRunner

from pkg_provides import cli as cli_mod
from pkg_provides.cli import app
from pkg_provides.index.update import update_index

runner = CliRunner()


def test_build_writes_index_file(settings_file: Path, write_package, tmp_path: Path) -> None:
    write_package("foo", manifest_line("foo", ["/usr/bin/foo", "/usr/share/foo/doc"]))
    write_package("bar", b'{"name":"bar"}\n')
    write_package("broken", raw=b"garbage")
    output = tmp_path / "out" / "provides.idx"

    result = runner.invoke(
        app,
        ["build", "--config-file", str(settings_file), "--output", str(output), "-j", "2"],
    )

    assert result.exit_code == 0, result.output
    assert sorted(output.read_text(encoding="utf-8").splitlines()) == [
        "foo*/usr/bin/foo",
        "foo*/usr/share/foo/doc",
    ]
    assert (tmp_path / "logs" / "pkg_provides.log").exists()
    assert list((tmp_path / "artifacts" / "run_summaries").glob("*_index_run_summary.json"))


def test_build_to_stdout_without_artifacts(settings_file: Path, write_package, tmp_path: Path) -> None:
    write_package("foo", manifest_line("foo", ["/usr/bin/foo"]))

    result = runner.invoke(app, ["build", "--config-file", str(settings_file), "--no-artifacts"])

    assert result.exit_code == 0, result.output
    assert "foo*/usr/bin/foo" in result.output
    assert not (tmp_path / "artifacts" / "run_summaries").exists()


def test_build_missing_directory_exits_with_error(settings_file: Path, tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["build", "--config-file", str(settings_file), "--packages-dir", str(tmp_path / "absent")],
    )

    assert result.exit_code == 2


def test_build_rejects_zero_concurrency(settings_file: Path) -> None:
    result = runner.invoke(app, ["build", "--config-file", str(settings_file), "--max-concurrency", "0"])

    assert result.exit_code != 0


def test_search_reports_matching_packages(settings_file: Path, tmp_path: Path) -> None:
    index = tmp_path / "provides.idx"
    index.write_text("bash*/usr/local/bin/bash\nzsh*/usr/local/bin/zsh\n", encoding="utf-8")

    result = runner.invoke(app, ["search", "^zsh$", "--index", str(index), "--config-file", str(settings_file)])

    assert result.exit_code == 0, result.output
    assert "Name    : zsh" in result.output
    assert "Filename: /usr/local/bin/zsh" in result.output
    assert "bash" not in result.output


def test_search_without_matches_exits_one(settings_file: Path, tmp_path: Path) -> None:
    index = tmp_path / "provides.idx"
    index.write_text("bash*/usr/local/bin/bash\n", encoding="utf-8")

    result = runner.invoke(app, ["search", "python", "--index", str(index), "--config-file", str(settings_file)])

    assert result.exit_code == 1


def test_show_config(settings_file: Path) -> None:
    result = runner.invoke(app, ["show-config", "--config-file", str(settings_file)])

    assert result.exit_code == 0
    assert "max_concurrency: 3" in result.output


def test_search_defaults_to_configured_index(settings_file: Path, tmp_path: Path) -> None:
    index = tmp_path / "db" / "provides.db"
    index.parent.mkdir(parents=True)
    index.write_text("bash*/usr/local/bin/bash\nzsh*/usr/local/bin/zsh\n", encoding="utf-8")

    result = runner.invoke(app, ["search", "^zsh$", "--config-file", str(settings_file)])

    assert result.exit_code == 0, result.output
    assert "Name    : zsh" in result.output


def test_search_without_index_exits_with_error(settings_file: Path) -> None:
    result = runner.invoke(app, ["search", "bash", "--config-file", str(settings_file)])

    assert result.exit_code == 2
    assert "pkg-provides update" in result.output


def test_update_then_search(settings_file: Path, monkeypatch) -> None:
    payload = compress(b"bash*/usr/local/bin/bash\nzsh*/usr/local/bin/zsh\n", "xz")
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=payload))
    monkeypatch.setattr(cli_mod, "update_index", functools.partial(update_index, transport=transport))

    updated = runner.invoke(app, ["update", "--config-file", str(settings_file)])
    found = runner.invoke(app, ["search", "^bash$", "--config-file", str(settings_file)])

    assert updated.exit_code == 0, updated.output
    assert "records: 2" in updated.output
    assert found.exit_code == 0, found.output
    assert "Filename: /usr/local/bin/bash" in found.output


def test_update_failure_exits_with_error(settings_file: Path, monkeypatch) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503, content=b"down"))
    monkeypatch.setattr(cli_mod, "update_index", functools.partial(update_index, transport=transport))

    result = runner.invoke(app, ["update", "--config-file", str(settings_file)])

    assert result.exit_code == 2
    assert "HTTP 503" in result.output
