"""Batch command - resolve icons for many items at once."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.progress import Progress
from rich.table import Table

from launcher_icons.config import Config
from launcher_icons.resolver import IconRequest, IconResolver, ResolveResult

console = Console()


def load_requests(items_file: Path) -> list[IconRequest]:
    """Read item records from a YAML or JSON list of ``{id, source}`` mappings.

    A mapping with an ``items`` key is accepted as well, matching record
    store documents.

    Raises:
        click.ClickException: If the file cannot be parsed.
    """
    text = items_file.read_text(encoding="utf-8")
    try:
        if items_file.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise click.ClickException(f"Cannot parse {items_file}: {e}") from e

    if isinstance(data, dict):
        data = data.get("items")
    if not isinstance(data, list):
        raise click.ClickException(f"{items_file} must contain a list of items")

    requests = []
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise click.ClickException(f"Item #{index} is not a mapping")
        try:
            requests.append(IconRequest.from_mapping(record))
        except ValueError as e:
            raise click.ClickException(f"Item #{index}: {e}") from e
    return requests


async def _resolve_all(
    config: Config, requests: list[IconRequest], jobs: int
) -> dict[str, ResolveResult]:
    results: dict[str, ResolveResult] = {}
    async with IconResolver.from_config(config) as resolver:
        semaphore = asyncio.Semaphore(max(1, jobs))
        with Progress(console=console, transient=True) as progress:
            task = progress.add_task("[green]Resolving icons...", total=len(requests))

            async def _one(request: IconRequest) -> None:
                async with semaphore:
                    results[request.identifier] = await resolver.resolve(
                        request.identifier, request.source
                    )
                progress.advance(task)

            await asyncio.gather(*(_one(r) for r in requests))
    return results


@click.command()
@click.argument("items_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-j", "--jobs", type=int, default=8, help="Concurrent resolutions")
@click.option("--continue-on-error", is_flag=True, help="Exit 0 even if some items fail")
@click.pass_context
def batch(ctx: click.Context, items_file: Path, jobs: int, continue_on_error: bool) -> None:
    """Resolve icons for every item listed in ITEMS_FILE (YAML or JSON)."""
    config: Config = ctx.obj["config"]

    requests = load_requests(items_file)
    if not requests:
        console.print("[yellow]No items to resolve[/yellow]")
        return

    results = asyncio.run(_resolve_all(config, requests, jobs))

    table = Table(title="Icon resolution")
    table.add_column("Item", style="cyan")
    table.add_column("Source", style="dim")
    table.add_column("Icon")

    failed = 0
    for request in requests:
        result = results[request.identifier]
        if result.success:
            table.add_row(request.identifier, request.source, f"[green]{result.path}[/green]")
        else:
            failed += 1
            table.add_row(request.identifier, request.source, "[red]not found[/red]")

    console.print(table)
    console.print(f"\n[bold]Resolved:[/bold] {len(requests) - failed}/{len(requests)}")

    if failed and not continue_on_error:
        raise SystemExit(1)
