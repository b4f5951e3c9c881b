"""History CLI command -- list or inspect recorded builds."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import BuildNotFoundError, PersistenceError
from ..persistence import BuildRecord, StoredBuild
from ..sizes import format_size
from . import app
from ._common import artifact_table, console, open_repository, resolve_config, short_timestamp, styled_status


@app.command()
def history(
    ctx: typer.Context,
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        help="Maximum number of builds to list",
        min=1,
        max=1000,
    ),
    since: Optional[str] = typer.Option(
        None, "--since", help="Only builds at or after this date (YYYY-MM-DD or ISO-8601)"
    ),
    until: Optional[str] = typer.Option(
        None, "--until", help="Only builds at or before this date (a bare date covers the whole day)"
    ),
    order: str = typer.Option("desc", "--order", help="Sort by timestamp: asc | desc"),
    build_id: Optional[int] = typer.Option(
        None, "--build", "-b", help="Show one build in full instead of listing"
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List past builds stored in the history database.

    [bold cyan]Examples:[/bold cyan]

      perf-audit history

      perf-audit history --since 2026-10-01 --order asc

      perf-audit history --build 42 --json
    """
    config = resolve_config(ctx)

    if not _history_exists(config.database_path):
        console.print(
            "[yellow]No history found.[/yellow] "
            "Run [bold]perf-audit analyze[/bold] first to record a build."
        )
        raise typer.Exit(0)

    try:
        with open_repository(config) as repository:
            if build_id is not None:
                stored = repository.load_build(build_id)
                if json_output:
                    print(json.dumps(stored.to_dict(), indent=2))
                else:
                    _output_build(stored)
                return

            if since or until:
                builds = repository.find_by_date_range(since, until, limit=limit, order=order)
            else:
                builds = repository.find_recent(limit=limit, order=order)
    except BuildNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except (PersistenceError, ValueError) as e:
        console.print(f"[red]Error reading history:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps([b.to_dict() for b in builds], indent=2))
        return

    if not builds:
        console.print("[yellow]No builds recorded in that range.[/yellow]")
        return
    _output_rich(builds)


def _history_exists(database_path: str) -> bool:
    return database_path == ":memory:" or Path(database_path).exists()


def _output_rich(builds: list[BuildRecord]):
    table = Table(title="Build History", show_lines=False, pad_edge=True)
    table.add_column("ID", justify="right", style="bold")
    table.add_column("Timestamp")
    table.add_column("Target", style="cyan")
    table.add_column("Branch")
    table.add_column("Commit", style="dim")
    table.add_column("Status")

    for b in builds:
        table.add_row(
            str(b.id),
            short_timestamp(b.timestamp),
            b.analysis_target,
            b.branch or "-",
            (b.commit_hash or "-")[:8],
            styled_status(b.budget_status),
        )

    console.print()
    console.print(table)
    console.print()


def _output_build(stored: StoredBuild):
    build = stored.build
    console.print()
    console.print(
        f"[bold]Build #{build.id}[/bold]  {short_timestamp(build.timestamp)}  "
        f"{build.analysis_target}  {styled_status(build.budget_status)}"
    )
    if build.branch or build.commit_hash:
        console.print(f"  {build.branch or '-'} @ {(build.commit_hash or '-')[:8]}")

    if stored.artifacts:
        console.print(artifact_table(stored.artifacts, title="Bundles"))
        total = sum(a.raw_size for a in stored.artifacts)
        console.print(f"Total: [bold]{format_size(total)}[/bold]")

    if stored.metrics:
        console.print("[bold]Metrics[/bold]")
        for name, value in sorted(stored.metrics.items()):
            console.print(f"  {name}: {value:g}")

    if stored.recommendations:
        console.print("[bold]Recommendations[/bold]")
        for rec in stored.recommendations:
            console.print(f"  • {rec.message}")
    console.print()
