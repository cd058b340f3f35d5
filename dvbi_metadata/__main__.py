"""Click-based command line entry point for dvbi-metadata."""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import click

from . import __version__
from .config import AppConfig, ConfigError, load_config
from .logging_conf import configure_logging
from .programs import parse_program_info, parse_schedule, parse_timestamp
from .registry import parse_provider_registry
from .service_list import parse_service_list
from .sources import SourceError, read_source
from .validate import ValidationError, assert_minimums, validate_service_list


@click.group(help="DVB-I metadata parsing toolkit")
@click.version_option(__version__)
@click.option("--verbose", is_flag=True, help="Enable verbose logging output.")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="YAML file with parser options and HTTP timeout.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Optional[Path]) -> None:
    """
    Root CLI group configuring logging before subcommands execute.
    """

    configure_logging("DEBUG" if verbose else "INFO")
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    try:
        ctx.obj["config"] = load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command("service-list")
@click.argument("source")
@click.option("--drm", "drm_systems", multiple=True, help="Supported DRM system id, repeatable.")
@click.option("--lcn-services-only", is_flag=True, default=False, help="Drop services without a channel number.")
@click.option("--min-channels", default=0, show_default=True, type=int, help="Minimum channels required.")
@click.option("--strict", is_flag=True, default=False, help="Treat validation warnings as fatal.")
@click.pass_context
def cli_service_list(
    ctx: click.Context,
    source: str,
    drm_systems: Tuple[str, ...],
    lcn_services_only: bool,
    min_channels: int,
    strict: bool,
) -> None:
    """Parse a DVB-I service list and print it as JSON."""

    config: AppConfig = ctx.obj["config"]
    options = config.options
    if lcn_services_only:
        options = dataclasses.replace(options, lcn_services_only=True)
    supported = [item.strip().lower() for item in drm_systems] if drm_systems else None

    parsed = parse_service_list(_read(source, config), supported_drm_systems=supported, options=options)
    report = validate_service_list(parsed)
    logger = logging.getLogger(__name__)
    for warning in report.warnings:
        logger.warning(warning)
    logger.info("service list stats: %s", report.stats.to_dict())
    if strict and report.warnings:
        raise click.ClickException(f"{len(report.warnings)} validation warnings in strict mode")
    try:
        assert_minimums(report.stats, min_channels)
    except ValidationError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(to_json(parsed))


@cli.command("now-next")
@click.argument("source")
@click.option("--at", "at", default=None, help="Reference time (ISO-8601), defaults to now.")
@click.pass_context
def cli_now_next(ctx: click.Context, source: str, at: Optional[str]) -> None:
    """Parse a Now/Next document and print the current and following programme."""

    now = None
    if at is not None:
        now = parse_timestamp(at)
        if now is None:
            raise click.BadParameter(f"invalid timestamp {at!r}", param_hint="--at")
    click.echo(to_json(parse_program_info(_read(source, ctx.obj["config"]), now=now)))


@cli.command("schedule")
@click.argument("source")
@click.pass_context
def cli_schedule(ctx: click.Context, source: str) -> None:
    """Parse a schedule document and print the programmes ordered by start time."""

    programs = parse_schedule(_read(source, ctx.obj["config"]))
    logging.getLogger(__name__).info("schedule contains %d programmes", len(programs))
    click.echo(to_json(programs))


@cli.command("registry")
@click.argument("source")
@click.pass_context
def cli_registry(ctx: click.Context, source: str) -> None:
    """Parse a service list registry answer."""

    click.echo(to_json(parse_provider_registry(_read(source, ctx.obj["config"]))))


def _read(source: str, config: AppConfig) -> bytes:
    try:
        return read_source(source, timeout=config.http_timeout)
    except SourceError as exc:
        raise click.ClickException(str(exc)) from exc


def to_json(value: Any) -> str:
    """Serialise parse results, dropping ``None`` fields."""

    return json.dumps(_prune(_plain(value)), indent=2, sort_keys=True, ensure_ascii=False)


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def _prune(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _prune(item) for key, item in value.items() if item is not None}
    if isinstance(value, (list, tuple)):
        return [_prune(item) for item in value]
    return value


def main(argv: Optional[Iterable[str]] = None) -> int:
    """
    Entry point returning an exit code for setuptools console scripts.
    """

    argv_list = list(argv or sys.argv[1:])
    try:
        cli.main(args=argv_list, prog_name="dvbi-metadata", standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return 1
    except click.exceptions.Abort:
        return 1
    except SystemExit as exc:
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
