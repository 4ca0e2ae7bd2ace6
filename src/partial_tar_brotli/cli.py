"""Typer CLI entrypoint for partial_tar_brotli."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
import yaml

from partial_tar_brotli.config import AppSettings, load_settings
from partial_tar_brotli.errors import ConfigError, PackError
from partial_tar_brotli.logging_utils import configure_logging
from partial_tar_brotli.pack.pipeline import resolve_pack_options, run_pack
from partial_tar_brotli.pack.reader import read_archive_file
from partial_tar_brotli.pack.report import report_lines

CONFIG_ERROR_EXIT_CODE = 2
FAILURE_EXIT_CODE = 1

app = typer.Typer(
    add_completion=False,
    help="Pack as many files as fit into a size-limited brotli-compressed tar archive.",
    no_args_is_help=True,
)


def _load_and_optionally_configure_logger(
    config_file: Path | None,
    configure: bool,
) -> tuple[AppSettings, logging.Logger]:
    settings = load_settings(config_file=config_file)
    if configure:
        try:
            logger = configure_logging(settings.logging.level, settings.logging.log_file)
        except OSError as exc:
            raise ConfigError(f"Could not open log file {settings.logging.log_file}: {exc}") from exc
    else:
        logger = logging.getLogger("partial_tar_brotli")
    return settings, logger


def _fail(exc: PackError) -> typer.Exit:
    typer.echo(f"Error: {exc}", err=True)
    code = CONFIG_ERROR_EXIT_CODE if isinstance(exc, ConfigError) else FAILURE_EXIT_CODE
    return typer.Exit(code=code)


@app.command("pack")
def pack_command(
    files: list[str] | None = typer.Argument(
        None,
        help="Input files, in priority order. Earlier files win the budget.",
        show_default=False,
    ),
    max_size: int | None = typer.Option(
        None,
        "--max-size",
        "-m",
        help="Maximum size of the compressed archive in bytes.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Destination archive path.",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Also print the compressed bytes used by each added file.",
    ),
    stop_on_first_skip: bool | None = typer.Option(
        None,
        "--stop-on-first-skip/--continue-past-skips",
        help="Stop trying files after the first one that does not fit. Defaults to pack.stop_on_first_skip.",
        show_default=False,
    ),
    reserve_bytes: int | None = typer.Option(
        None,
        "--reserve-bytes",
        help="Bytes held back for the manifest when deciding whether a file fits.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Replace the output file if it already exists.",
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
    """Pack the input files that fit into a brotli-compressed tar archive."""

    try:
        if output is None:
            raise ConfigError("--output is required.")
        candidates = list(files or [])
        if not candidates:
            raise ConfigError("At least one input file is required.")
        settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
        budget, options = resolve_pack_options(
            settings,
            max_size=max_size,
            stop_on_first_skip=stop_on_first_skip,
            reserve_bytes=reserve_bytes,
        )
        result = run_pack(
            candidates,
            output_path=output,
            max_size=budget,
            options=options,
            overwrite=force,
            logger=logger,
        )
    except PackError as exc:
        raise _fail(exc) from exc

    for line in report_lines(result.report, verbose=verbose):
        typer.echo(line)


@app.command("inspect")
def inspect_command(
    archive: Path = typer.Argument(
        ...,
        help="Archive produced by the pack command.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """List archive members and summarize the embedded manifest."""

    try:
        contents = read_archive_file(archive)
    except PackError as exc:
        raise _fail(exc) from exc

    typer.echo(f"members: {len(contents.data_members)}")
    for member in contents.data_members:
        typer.echo(f"  {member.name} ({member.size} bytes)")
    manifest = contents.manifest
    if manifest is None:
        typer.echo("manifest: missing")
        return
    typer.echo(f"max_size: {manifest.get('max_size')}")
    typer.echo(f"included: {len(manifest.get('included', []))}")
    typer.echo(f"skipped: {len(manifest.get('skipped', []))}")
    for entry in manifest.get("skipped", []):
        typer.echo(f"  {entry.get('path')}: {entry.get('reason')}")


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

    try:
        settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    except PackError as exc:
        raise _fail(exc) from exc
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


def main() -> None:
    """CLI script entrypoint."""

    app()


if __name__ == "__main__":
    main()
