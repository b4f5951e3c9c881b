"""Clean CLI command -- apply the history retention policy."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import PersistenceError
from . import app
from ._common import console, open_repository, resolve_config


@app.command()
def clean(
    ctx: typer.Context,
    days: Optional[int] = typer.Option(
        None,
        "--days",
        "-d",
        help="Delete builds older than this many days (default: retention_days from config)",
        min=0,
    ),
    delete_all: bool = typer.Option(False, "--all", help="Delete every recorded build"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation with --all"),
):
    """
    Delete old builds from the history database.

    [bold cyan]Examples:[/bold cyan]

      perf-audit clean

      perf-audit clean --days 7

      perf-audit clean --all --yes
    """
    config = resolve_config(ctx)

    if config.database_path != ":memory:" and not Path(config.database_path).exists():
        console.print("[yellow]No history found.[/yellow] Nothing to clean.")
        raise typer.Exit(0)

    if delete_all and not yes:
        typer.confirm("Delete ALL recorded builds?", abort=True)

    retention = config.retention_days if days is None else days
    try:
        with open_repository(config) as repository:
            deleted = repository.delete_all() if delete_all else repository.cleanup(retention)
    except PersistenceError as e:
        console.print(f"[red]Cleanup failed:[/red] {e}")
        raise typer.Exit(1)

    if delete_all:
        console.print(f"Deleted {deleted} build(s).")
    else:
        console.print(f"Deleted {deleted} build(s) older than {retention} day(s).")
