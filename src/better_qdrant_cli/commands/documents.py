"""Document ingestion and search commands."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from better_qdrant_core.errors import BetterQdrantError
from better_qdrant_ops import DocumentService, format_results
from better_qdrant_ops.retrieve import result_source, result_text

from ..util import fail, load_app_config

console = Console()


def ingest(
    file: Path = typer.Argument(..., help="File inside the upload directory (relative or absolute)"),
    collection: str = typer.Option(..., "--collection", "-c", help="Target collection"),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="openai|openrouter|ollama|sentence-transformers"
    ),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", help="Characters per chunk"),
    chunk_overlap: Optional[int] = typer.Option(
        None, "--chunk-overlap", help="Characters shared by consecutive chunks"
    ),
):
    """Chunk, embed and upsert a UTF-8 text file."""
    config = load_app_config()

    async def _run():
        async with DocumentService(config) as service:
            return await service.ingest(
                file,
                collection,
                provider=provider,
                chunk_size=chunk_size,
                chunk_overlap=chunk_overlap,
            )

    try:
        result = asyncio.run(_run())
    except BetterQdrantError as e:
        raise fail("Ingest", e)

    if result.chunks_count == 0:
        console.print(f"[yellow]Nothing to ingest:[/yellow] {escape(str(file))} is empty")
        return
    created = " (new collection)" if result.created_collection else ""
    console.print(
        f"[green]Added {result.chunks_count} chunks[/green] to {escape(result.collection)}{created} "
        f"[dim]via {result.provider}, d={result.vector_size}[/dim]"
    )


def search(
    query: str = typer.Argument(..., help="Query text"),
    collection: str = typer.Option(..., "--collection", "-c", help="Collection to search"),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="openai|openrouter|ollama|sentence-transformers"
    ),
    limit: int = typer.Option(10, "--limit", "-k", min=1, help="Number of results to return"),
    output_format: str = typer.Option("table", "--format", help="Output format: table|text|json"),
):
    """Search a collection for text similar to QUERY."""
    if output_format not in ("table", "text", "json"):
        raise typer.BadParameter("must be one of table, text, json", param_hint="--format")
    config = load_app_config()

    async def _run():
        async with DocumentService(config) as service:
            return await service.query(query, collection, provider=provider, limit=limit)

    try:
        results = asyncio.run(_run())
    except BetterQdrantError as e:
        raise fail("Search", e)

    if output_format == "json":
        payload = [{"id": r.id, "score": r.score, "payload": r.payload} for r in results]
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return
    if output_format == "text":
        typer.echo(format_results(results))
        return

    if not results:
        console.print("[yellow]No results found[/yellow]")
        return

    table = Table(title=escape(f"Search Results [{collection}] (query: '{query[:50]}')"))
    table.add_column("Rank", style="cyan", width=6)
    table.add_column("Score", style="green", width=8)
    table.add_column("Source", style="magenta")
    table.add_column("Text", style="white", width=60)

    for i, result in enumerate(results, 1):
        text = result_text(result.payload)
        preview = text[:100] + "..." if len(text) > 100 else text
        table.add_row(
            str(i),
            f"{result.score:.4f}",
            escape(result_source(result.payload) or "-"),
            escape(preview),
        )
    console.print(table)
