"""Cache command - inspect and prune cached icons."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from launcher_icons.cache import IconCache
from launcher_icons.config import Config

console = Console()


def _open_cache(ctx: click.Context) -> IconCache:
    config: Config = ctx.obj["config"]
    return IconCache(config.icon_folder)


@click.group()
def cache() -> None:
    """Icon cache commands."""
    pass


@cache.command("list")
@click.pass_context
def list_icons(ctx: click.Context) -> None:
    """List cached icons."""
    icon_cache = _open_cache(ctx)
    entries = icon_cache.entries()

    table = Table(title=f"Icons in {icon_cache.folder}")
    table.add_column("File", style="cyan")
    table.add_column("Size", style="yellow", justify="right")

    for entry in entries:
        table.add_row(entry.name, f"{entry.stat().st_size / 1024:.1f} KB")

    console.print(table)
    console.print(f"\n[bold]Total:[/bold] {len(entries)} icons")


@cache.command("path")
@click.argument("identifier")
@click.pass_context
def icon_path(ctx: click.Context, identifier: str) -> None:
    """Print the icon path for IDENTIFIER; exit 1 if it is not cached."""
    icon_cache = _open_cache(ctx)
    path = icon_cache.lookup(identifier)
    if path is None:
        console.print(f"[yellow]Not cached:[/yellow] {icon_cache.path_for(identifier)}")
        raise SystemExit(1)
    console.print(str(path), highlight=False, soft_wrap=True)


@cache.command("remove")
@click.argument("identifier")
@click.pass_context
def remove_icon(ctx: click.Context, identifier: str) -> None:
    """Delete the cached icon of IDENTIFIER."""
    icon_cache = _open_cache(ctx)
    if icon_cache.remove(identifier):
        console.print(f"[green]Removed[/green] {icon_cache.path_for(identifier)}")
    else:
        console.print("[yellow]No cached icon to remove[/yellow]")
