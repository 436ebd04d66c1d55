"""CLI entry point for closelog.

Usage::

    closelog settings status
    closelog settings toggle
    closelog logs path
    closelog config validate

The host plugin flips the same settings file through its toggle command; this
CLI is for inspecting and scripting it outside the host.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from closelog import __version__
from closelog.config import Config, ConfigError
from closelog.settings import SettingsStore
from closelog.writer import CsvAppendWriter

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_config(ctx: click.Context) -> Config:
    path = ctx.obj.get("config_path") if ctx.obj else None
    try:
        return Config.load_or_default(path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


def _status_text(enabled: bool) -> str:
    return "enabled" if enabled else "disabled"


@click.group()
@click.version_option(__version__, prog_name="closelog")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: $CLOSELOG_CONFIG or ~/.closelog/config.yaml).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None):
    """Project close logger: append document metrics to monthly CSV files."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.group()
def settings():
    """Inspect or change the export setting."""


@settings.command("status")
@click.pass_context
def settings_status(ctx: click.Context):
    """Show whether export is enabled."""
    config = _load_config(ctx)
    store = SettingsStore(config.settings_file)
    click.echo(f"Export {_status_text(store.is_export_enabled())} ({config.settings_file})")


@settings.command("enable")
@click.pass_context
def settings_enable(ctx: click.Context):
    """Enable export on project close."""
    _set_export(ctx, True)


@settings.command("disable")
@click.pass_context
def settings_disable(ctx: click.Context):
    """Disable export on project close."""
    _set_export(ctx, False)


@settings.command("toggle")
@click.pass_context
def settings_toggle(ctx: click.Context):
    """Flip the export setting."""
    config = _load_config(ctx)
    store = SettingsStore(config.settings_file)
    enabled = store.toggle()
    click.echo(f"Export {_status_text(enabled)}")


def _set_export(ctx: click.Context, enabled: bool) -> None:
    config = _load_config(ctx)
    store = SettingsStore(config.settings_file)
    store.set_export_enabled(enabled)
    # Writes are best effort; report what is actually on disk.
    actual = store.is_export_enabled()
    click.echo(f"Export {_status_text(actual)}")
    if actual != enabled:
        click.echo(f"Warning: could not persist setting to {config.settings_file}", err=True)
        sys.exit(1)


@cli.group()
def logs():
    """Locate the CSV log files."""


@logs.command("path")
@click.option(
    "--month",
    default=None,
    help="Month as YYYY-MM (default: current month).",
)
@click.pass_context
def logs_path(ctx: click.Context, month: str | None):
    """Print the log file for a month."""
    config = _load_config(ctx)
    writer = CsvAppendWriter(config.logs_dir, file_prefix=config.file_prefix)

    when = None
    if month:
        try:
            when = datetime.strptime(month, "%Y-%m")
        except ValueError:
            raise click.BadParameter("expected YYYY-MM", param_hint="--month")

    click.echo(str(writer.monthly_log_path(when)))


@cli.group()
def config():
    """Configuration management."""


@config.command("validate")
@click.pass_context
def config_validate(ctx: click.Context):
    """Validate the configuration file."""
    path = ctx.obj.get("config_path")
    try:
        cfg = Config.load(path)
    except FileNotFoundError as e:
        click.echo(f"No configuration found: {e}", err=True)
        click.echo("Using defaults.", err=True)
        cfg = Config()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    else:
        click.echo(f"Configuration valid: {cfg.config_path}")

    click.echo(f"  Logs dir: {cfg.logs_dir}")
    click.echo(f"  Settings file: {cfg.settings_file}")
    click.echo(f"  File prefix: {cfg.file_prefix}")
    click.echo(f"  Desktop connector markers: {', '.join(cfg.desktop_connector_markers)}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
