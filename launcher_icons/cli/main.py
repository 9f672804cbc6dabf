"""Entry point for the ``launcher-icons`` command."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from launcher_icons import __version__
from launcher_icons.cli.commands import batch, cache, resolve, set_icon
from launcher_icons.config import LOG_LEVELS, Config
from launcher_icons.exceptions import ConfigError

console = Console(stderr=True)


def configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(__version__, prog_name="launcher-icons")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML config file",
)
@click.option(
    "--icon-folder",
    type=click.Path(file_okay=False, path_type=Path),
    help="Folder holding cached icons (overrides config)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (overrides config)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    icon_folder: Path | None,
    log_level: str | None,
) -> None:
    """Resolve and cache icons for launcher items."""
    try:
        config = Config.load(config_path)
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        raise SystemExit(2) from e

    if icon_folder is not None:
        config.icon_folder = icon_folder.expanduser()
    if log_level is not None:
        config.log_level = log_level.upper()

    configure_logging(config.logging_level)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


cli.add_command(resolve)
cli.add_command(set_icon)
cli.add_command(batch)
cli.add_command(cache)


if __name__ == "__main__":
    cli()
