from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from better_qdrant_core.config import AppConfig, ConfigLoader
from better_qdrant_core.errors import BetterQdrantError

# stdout carries command output (and the MCP protocol in serve mode).
err_console = Console(stderr=True)

_global_config_file: Optional[Path] = None
_global_log_level: Optional[str] = None

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def set_global_options(config_file: Optional[Path], log_level: Optional[str]) -> None:
    """Remember the root callback options for the subcommand that runs next."""
    global _global_config_file, _global_log_level
    _global_config_file = config_file.resolve() if config_file else None
    _global_log_level = log_level.strip().upper() if log_level else None


def get_global_config_file() -> Optional[Path]:
    return _global_config_file


def configure_stdio() -> None:
    """Make CLI output robust across Windows console encodings."""

    if os.name != "nt":
        return

    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(errors="replace")


def configure_logging(level: str) -> None:
    """Send all package logs to stderr at ``level``."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_better_qdrant", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._better_qdrant = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)


def load_app_config() -> AppConfig:
    """Load config for a command and apply the effective log level.

    Exits with code 2 when the configuration is invalid.
    """
    try:
        config = ConfigLoader.load(_global_config_file)
    except BetterQdrantError as e:
        configure_logging(_global_log_level or "WARNING")
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    configure_logging(_global_log_level or config.log_level)
    return config


def fail(action: str, exc: Exception) -> typer.Exit:
    """Report ``exc`` on stderr and build the exit to raise."""
    err_console.print(f"[red]{action} failed:[/red] {escape(str(exc))}")
    return typer.Exit(1)
