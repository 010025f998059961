"""Typer CLI entrypoint for pkg_provides."""

from __future__ import annotations

import logging
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import NoReturn

import typer
import yaml

from pkg_provides.config import AppSettings, load_settings
from pkg_provides.errors import ConfigError, SearchError, UpdateError
from pkg_provides.index.pipeline import IndexRunOptions, run_index_build
from pkg_provides.index.search import format_matches, read_index_file, search_index
from pkg_provides.index.sink import StreamLineSink
from pkg_provides.index.update import update_index
from pkg_provides.logging_utils import PACKAGE_LOGGER_NAME, configure_logging

app = typer.Typer(
    add_completion=False,
    help="Build, download, and query a reverse index of package-owned files.",
    no_args_is_help=True,
)


def _load_and_optionally_configure_logger(
    config_file: Path | None,
    configure: bool,
) -> tuple[AppSettings, logging.Logger]:
    settings = load_settings(config_file=config_file)
    if configure:
        log_file = settings.paths.logs_root / settings.logging.log_file_name if settings.logging.log_to_file else None
        logger = configure_logging(log_file, level=settings.logging.level)
    else:
        logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    return settings, logger


def _fail(message: str) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    raise typer.Exit(code=2)


@app.command("show-config")
def show_config(
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Print the effective configuration after env overrides."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


@app.command("build")
def build(
    packages_dir: Path | None = typer.Option(
        None,
        "--packages-dir",
        help="Directory holding *.pkg archives (overrides paths.packages_dir).",
        file_okay=False,
        dir_okay=True,
    ),
    max_concurrency: int | None = typer.Option(
        None,
        "--max-concurrency",
        "-j",
        min=1,
        help="Maximum number of archives scanned at once (overrides scan.max_concurrency).",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write index lines to this file instead of stdout.",
        file_okay=True,
        dir_okay=False,
    ),
    limit: int | None = typer.Option(
        None,
        "--limit",
        min=1,
        help="Scan at most N discovered archives.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Discover archives without scanning them.",
    ),
    no_artifacts: bool = typer.Option(
        False,
        "--no-artifacts",
        help="Skip writing run summary artifacts.",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Scan package archives and emit one ``<package>*<path>`` line per owned file."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    options = IndexRunOptions(
        packages_dir=packages_dir,
        max_concurrency=max_concurrency,
        limit=limit,
        dry_run=dry_run,
        write_artifacts=False if no_artifacts else None,
    )

    with ExitStack() as stack:
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            stream = stack.enter_context(output.open("w", encoding="utf-8"))
        else:
            stream = sys.stdout
        sink = StreamLineSink(stream, flush=settings.output.flush_each_line)
        try:
            result = run_index_build(settings, sink=sink, options=options, logger=logger)
        except ConfigError as exc:
            _fail(str(exc))
        stream.flush()

    summary = result.summary
    typer.echo(f"run_id: {summary['run_id']}", err=True)
    typer.echo(f"archives_discovered_total: {summary['archives_discovered_total']}", err=True)
    typer.echo(f"archives_selected_total: {summary['archives_selected_total']}", err=True)
    typer.echo(f"archives_processed_success: {summary['archives_processed_success']}", err=True)
    typer.echo(f"archives_processed_failed: {summary['archives_processed_failed']}", err=True)
    typer.echo(f"records_emitted: {summary['records_emitted']}", err=True)
    if result.summary_path is not None:
        typer.echo(f"summary_path: {result.summary_path}", err=True)


@app.command("update")
def update(
    url: str | None = typer.Option(
        None,
        "--url",
        help="Compressed index to download (overrides update.url).",
    ),
    index: Path | None = typer.Option(
        None,
        "--index",
        "-i",
        help="Where to install the index (overrides paths.index_file).",
        file_okay=True,
        dir_okay=False,
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Download the published provides index and install it for `search`."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    try:
        result = update_index(settings, url=url, index_path=index, logger=logger)
    except UpdateError as exc:
        _fail(str(exc))

    typer.echo(f"index_path: {result.index_path}", err=True)
    typer.echo(f"codec: {result.codec}", err=True)
    typer.echo(f"downloaded_bytes: {result.downloaded_bytes}", err=True)
    typer.echo(f"records: {result.records}", err=True)


@app.command("search")
def search(
    pattern: str = typer.Argument(
        ...,
        help=(
            "Regular expression (Rust regex syntax: no lookaround or backreferences); "
            "matched against basenames unless it contains '/'."
        ),
    ),
    index: Path | None = typer.Option(
        None,
        "--index",
        "-i",
        help="Index file to query (defaults to paths.index_file).",
        file_okay=True,
        dir_okay=False,
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Show which packages provide files matching PATTERN."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=False)
    index_path = index or settings.paths.index_file
    try:
        frame = read_index_file(index_path, logger=logger)
        matches = search_index(frame, pattern, logger=logger)
    except SearchError as exc:
        _fail(str(exc))

    if not matches:
        typer.echo(f"no package provides files matching {pattern!r}", err=True)
        raise typer.Exit(code=1)
    typer.echo(format_matches(matches))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
