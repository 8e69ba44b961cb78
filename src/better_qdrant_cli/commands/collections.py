"""Collection management commands."""

import asyncio
import json

import typer
from rich.console import Console

from better_qdrant_core.errors import BetterQdrantError
from better_qdrant_ops import DocumentService

from ..util import fail, load_app_config

app = typer.Typer(help="Collection management")
console = Console()


@app.command("list")
def list_collections(
    output_format: str = typer.Option("plain", "--format", help="Output format: plain|json"),
):
    """List the collections in the vector store."""
    config = load_app_config()

    async def _run():
        async with DocumentService(config) as service:
            return await service.store.list_collections()

    try:
        names = asyncio.run(_run())
    except BetterQdrantError as e:
        raise fail("Listing collections", e)

    if output_format == "json":
        typer.echo(json.dumps(names, indent=2))
        return
    if not names:
        console.print("[yellow]No collections found[/yellow]")
        return
    for name in names:
        typer.echo(name)


@app.command("delete")
def delete_collection(
    name: str = typer.Argument(..., help="Collection to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a collection and every point in it."""
    config = load_app_config()
    if not yes:
        typer.confirm(f"Delete collection {name!r}?", abort=True)

    async def _run():
        async with DocumentService(config) as service:
            await service.store.delete_collection(name)

    try:
        asyncio.run(_run())
    except BetterQdrantError as e:
        raise fail("Deleting collection", e)

    console.print(f"[green]Deleted collection:[/green] {name}")
