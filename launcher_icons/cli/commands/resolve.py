"""Resolve and set-icon commands - single item operations."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console

from launcher_icons.config import Config
from launcher_icons.resolver import IconResolver, ResolveResult

console = Console()


async def _resolve(config: Config, identifier: str, source: str) -> ResolveResult:
    async with IconResolver.from_config(config) as resolver:
        return await resolver.resolve(identifier, source)


async def _set_icon(config: Config, identifier: str, source: str) -> str:
    async with IconResolver.from_config(config) as resolver:
        return await resolver.set_custom_icon(identifier, source)


@click.command()
@click.argument("identifier")
@click.argument("source")
@click.pass_context
def resolve(ctx: click.Context, identifier: str, source: str) -> None:
    """Resolve the icon for an item and print its path.

    IDENTIFIER: Item identifier (used for the icon file name).
    SOURCE: Local file, folder, or http(s) URL.
    """
    config: Config = ctx.obj["config"]

    success, path = asyncio.run(_resolve(config, identifier, source))
    if not success:
        console.print(f"[red]No icon found for[/red] {source}")
        raise SystemExit(1)

    console.print(path, highlight=False, soft_wrap=True)


@click.command("set-icon")
@click.argument("identifier")
@click.argument("source")
@click.pass_context
def set_icon(ctx: click.Context, identifier: str, source: str) -> None:
    """Replace the cached icon of an item.

    SOURCE: Image file to copy, or a folder/URL to resolve an icon from.
    """
    config: Config = ctx.obj["config"]

    path = asyncio.run(_set_icon(config, identifier, source))
    if not path:
        console.print(f"[red]Could not set icon from[/red] {source}")
        raise SystemExit(1)

    console.print(path, highlight=False, soft_wrap=True)
