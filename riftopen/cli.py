"""Command-line interface for the rift encoder."""

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console

from . import __version__
from .config import (
    ConfigManager,
    RiftConfig,
    create_default_config_file,
    parse_value,
)
from .core.entry import Polarity
from .errors import ConfigError, RiftError
from .pipeline import RiftSession
from .reporting import HexDumpRenderer, IndexReport, hex_dump
from .utils.logging_setup import setup_logging, log_operation

logger = logging.getLogger(__name__)


Measurement = Tuple[int, float, Optional[Polarity]]

POLARITY_CHOICE = click.Choice(["A", "B"], case_sensitive=False)


def parse_measurement(raw: str) -> Measurement:
    """Parse ``KEY:CONFIDENCE[:POLARITY]``, e.g. ``12:0.4`` or ``3:0.9:-``."""
    parts = raw.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"expected KEY:CONFIDENCE[:POLARITY], got {raw!r}")
    key = int(parts[0])
    confidence = float(parts[1])
    polarity = Polarity.parse(parts[2]) if len(parts) == 3 and parts[2] else None
    return key, confidence, polarity


def _measurements_callback(ctx, param, values) -> List[Measurement]:
    try:
        return [parse_measurement(v) for v in values]
    except ValueError as e:
        raise click.BadParameter(str(e))


def _load_config(config_path: Optional[str]) -> RiftConfig:
    try:
        config = ConfigManager(Path(config_path) if config_path else None).load()
        return config.require_valid()
    except ConfigError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(2)


def _start_session(config: RiftConfig, verbose: bool) -> RiftSession:
    setup_logging(level="DEBUG" if verbose else config.log_level)
    return RiftSession(config)


@click.group(name="riftopen")
@click.version_option(__version__, prog_name="riftopen")
def cli():
    """Sparse duplex 2->1 byte encoder with a pruned position index."""


@cli.command(name="encode")
@click.argument("path", type=click.Path())
@click.option("--polarity", "-p", type=POLARITY_CHOICE, default="A", show_default=True,
              help="A conjugates the second byte of each pair, B the first")
@click.option("--capacity", type=click.IntRange(min=0), default=None,
              help="Maximum number of output bytes (default from config)")
@click.option("--limit", type=int, default=None,
              help="Bytes shown in the hex dump (default from config)")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--panel", is_flag=True, help="Show the hex dump in an offset-annotated panel")
@click.option("--output", "-o", type=click.Path(), help="Write the encoded bytes to a file")
@click.option("--config", "config_path", type=click.Path(exists=True),
              help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def encode(path, polarity, capacity, limit, as_json, panel, output, config_path, verbose):
    """Encode PATH and print a hex dump of the output."""
    config = _load_config(config_path)
    session = _start_session(config, verbose)
    log_operation(logger, "encode", path=path, polarity=polarity)

    polarity_a = polarity.upper() == "A"
    try:
        result = session.transform_file(path, capacity, polarity_a)
    except RiftError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    if output and result.source_available:
        Path(output).write_bytes(result.output)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        dump_limit = config.hex_dump_limit if limit is None else limit
        if panel:
            HexDumpRenderer(Console(), limit=dump_limit).render(result, panel=True)
        else:
            renderer = HexDumpRenderer(limit=dump_limit)
            click.echo(renderer.summary_line(result))
            click.echo(hex_dump(result.output, dump_limit))

    if not result.source_available:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(1)


@cli.command(name="inspect")
@click.argument("path", type=click.Path())
@click.option("--polarity", "-p", type=POLARITY_CHOICE, default="A", show_default=True)
@click.option("--capacity", type=click.IntRange(min=0), default=None,
              help="Maximum number of output bytes")
@click.option("--measure", "-m", "measurements", multiple=True,
              callback=_measurements_callback, metavar="KEY:CONF[:POL]",
              help="Apply a measurement (repeatable), e.g. 3:0.4 or 5:0.9:-")
@click.option("--prune-negative", is_flag=True, help="Eagerly prune all negative entries")
@click.option("--entries", type=int, default=16, show_default=True,
              help="Number of entries to list (0 to hide)")
@click.option("--verify", is_flag=True, help="Check the index balance and ordering invariants")
@click.option("--config", "config_path", type=click.Path(exists=True),
              help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def inspect(path, polarity, capacity, measurements, prune_negative, entries, verify,
            config_path, verbose):
    """Encode PATH, apply measurements and report on the position index."""
    config = _load_config(config_path)
    session = _start_session(config, verbose)
    console = Console()

    result = session.transform_file(path, capacity, polarity.upper() == "A")
    if not result.source_available:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(1)

    pruned = 0
    for key, confidence, measured_polarity in measurements:
        if key not in session.index:
            console.print(f"[yellow]No entry at key {key}, measurement ignored[/yellow]")
            continue
        if session.mark_measurement(key, confidence, measured_polarity):
            pruned += 1
    if measurements:
        console.print(f"Applied {len(measurements)} measurements, pruned {pruned}")

    if prune_negative:
        count = session.prune_negative()
        console.print(f"Bulk-pruned {count} negative entries")

    IndexReport(session.index, console).render(entries=entries)

    if verify:
        try:
            session.index.check_invariants()
        except RiftError as e:
            console.print(f"[red]✗ {e.message}[/red]")
            sys.exit(1)
        console.print("[green]✓ Index invariants hold[/green]")


@cli.group(name="config")
def config_group():
    """Manage riftopen configuration."""


@config_group.command(name="init")
@click.option("--path", type=click.Path(), default=ConfigManager.DEFAULT_CONFIG_FILE,
              show_default=True, help="Path for config file")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path, force):
    """Write a default configuration file."""
    config_path = Path(path)
    if config_path.exists() and not force:
        if not click.confirm(f"Config file {path} already exists. Overwrite?"):
            click.echo("Aborted")
            return

    if not create_default_config_file(config_path):
        sys.exit(1)


@config_group.command(name="show")
@click.option("--path", type=click.Path(exists=True), help="Path to config file")
def config_show(path):
    """Display the effective configuration."""
    manager = ConfigManager(Path(path) if path else None)
    try:
        config = manager.load()
    except ConfigError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(2)
    manager.display(config, console=Console())


@config_group.command(name="validate")
@click.option("--path", type=click.Path(exists=True), help="Path to config file")
def config_validate(path):
    """Validate a configuration file."""
    console = Console()
    try:
        config = ConfigManager(Path(path) if path else None).load()
    except ConfigError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        sys.exit(1)

    if config.validate():
        console.print("[green]✓ Configuration is valid[/green]")
    else:
        console.print("[red]✗ Configuration has validation errors[/red]")
        sys.exit(1)


@config_group.command(name="set")
@click.argument("parameter")
@click.argument("value")
@click.option("--path", type=click.Path(), help="Path to config file")
def config_set(parameter, value, path):
    """Set a configuration parameter."""
    manager = ConfigManager(Path(path) if path else None)
    try:
        parsed = parse_value(parameter, value)
        config = manager.update(**{parameter: parsed})
        errors = config.errors()
        if errors:
            raise ConfigError(errors[0], field_name=parameter, value=parsed)
    except ConfigError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    manager.save(config)
    click.echo(f"Set {parameter} = {parsed}")


def main():
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
