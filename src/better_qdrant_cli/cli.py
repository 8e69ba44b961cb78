from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .util import configure_stdio, set_global_options

app = typer.Typer(help="better-qdrant: index documents into Qdrant and search them")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _validate_log_level(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    level = value.strip().upper()
    if level not in LOG_LEVELS:
        raise typer.BadParameter(f"must be one of {', '.join(LOG_LEVELS)}")
    return level


@app.callback()
def _init(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config-file",
        help="Path to a TOML config file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="DEBUG|INFO|WARNING|ERROR|CRITICAL (overrides config and BETTER_QDRANT_LOG_LEVEL)",
        callback=_validate_log_level,
    ),
):
    configure_stdio()
    set_global_options(config_file, log_level)


from .commands import collections as collections_cmd  # noqa: E402
from .commands import documents as documents_cmd  # noqa: E402
from .commands.serve import serve as serve_fn  # noqa: E402

app.add_typer(collections_cmd.app, name="collections", help="Collection management")
app.command(name="ingest")(documents_cmd.ingest)
app.command(name="search")(documents_cmd.search)
app.command(name="serve")(serve_fn)


def main():
    app()
