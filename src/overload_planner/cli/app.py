"""Shared Typer app object, shared option types, and store utility."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..io.session_store import SessionStore, get_default_store_path

# Shared --store-path option type used across all commands
StorePathOption = Annotated[
    Optional[Path],
    typer.Option("--store-path", "-p", help="Path to sessions JSONL file"),
]

app = typer.Typer(
    name="overload-planner",
    help="Progressive-overload planner: logs sets and plans the next session's targets.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show engine debug logging"),
    ] = False,
) -> None:
    """
    Progressive-overload planner for a four-workout upper/lower rotation.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


def get_store(store_path: Path | None) -> SessionStore:
    """Get session store from path or default location."""
    if store_path is None:
        store_path = get_default_store_path()
    return SessionStore(store_path)
