"""Compare CLI command -- diff two recorded builds."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..diff import PerformanceComparison, compare_builds
from ..exceptions import BuildNotFoundError, PersistenceError
from ..persistence import BuildComparison
from ..sizes import format_delta, format_size
from . import app
from ._common import console, open_repository, resolve_config, short_timestamp


@app.command()
def compare(
    ctx: typer.Context,
    old_id: Optional[int] = typer.Argument(None, help="Older build id (default: second newest)"),
    new_id: Optional[int] = typer.Argument(None, help="Newer build id (default: newest)"),
    significant: bool = typer.Option(
        False,
        "--significant",
        "-s",
        help="Only report changes above the configured thresholds, including added and removed bundles",
    ),
    fail_on_regression: bool = typer.Option(
        False,
        "--fail-on-regression",
        help="Exit 1 if any significant regression is found (implies --significant)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Compare bundle sizes and metrics between two builds.

    [bold cyan]Examples:[/bold cyan]

      perf-audit compare

      perf-audit compare 12 15

      perf-audit compare --fail-on-regression --json
    """
    config = resolve_config(ctx)
    significant = significant or fail_on_regression

    if (old_id is None) != (new_id is None):
        console.print("[red]Give both build ids, or neither to compare the last two builds.[/red]")
        raise typer.Exit(1)

    if config.database_path != ":memory:" and not Path(config.database_path).exists():
        console.print("[yellow]No history found.[/yellow] Record at least two builds first.")
        raise typer.Exit(0)

    try:
        with open_repository(config) as repository:
            if old_id is None:
                recent = repository.find_recent(limit=2, order="ASC")
                if len(recent) < 2:
                    console.print("[yellow]Need at least two builds to compare.[/yellow]")
                    raise typer.Exit(0)
                old_id, new_id = recent[0].id, recent[1].id

            if significant:
                changes = compare_builds(repository, old_id, new_id, config.thresholds)
            else:
                diff = repository.get_comparison(old_id, new_id)
    except BuildNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except PersistenceError as e:
        console.print(f"[red]Error reading history:[/red] {e}")
        raise typer.Exit(1)

    if significant:
        _report_changes(changes, old_id, new_id, json_output)
        if fail_on_regression and changes.has_regression:
            raise typer.Exit(1)
        return

    if json_output:
        print(json.dumps(diff.to_dict(), indent=2))
    else:
        _output_rich(diff)


def _report_changes(changes: PerformanceComparison, old_id: int, new_id: int, json_output: bool):
    if json_output:
        data = changes.to_dict()
        data["build1"] = old_id
        data["build2"] = new_id
        print(json.dumps(data, indent=2))
        return

    console.print()
    if not changes:
        console.print(f"No significant changes between #{old_id} and #{new_id}.")
        console.print()
        return

    table = Table(title=f"Significant Changes #{old_id} -> #{new_id}", show_lines=False)
    table.add_column("Bundle", style="bold")
    table.add_column("Change")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")
    table.add_column("Delta", justify="right")
    table.add_column("%", justify="right")

    for c in changes.changes:
        style = "red" if c.is_regression else "green"
        table.add_row(
            c.name,
            c.kind.value,
            format_size(c.previous_size),
            format_size(c.current_size),
            f"[{style}]{format_delta(c.delta)}[/{style}]",
            f"[{style}]{c.percent:+.1f}%[/{style}]",
        )
    console.print(table)
    console.print(f"Net change: {format_delta(changes.total_delta)}")
    console.print()


def _output_rich(diff: BuildComparison):
    console.print()
    console.print(
        f"[bold]#{diff.build1.id}[/bold] {short_timestamp(diff.build1.timestamp)} -> "
        f"[bold]#{diff.build2.id}[/bold] {short_timestamp(diff.build2.timestamp)}"
    )

    if not diff.artifacts and not diff.metrics:
        console.print("[dim]No bundles or metrics in common.[/dim]")
        console.print()
        return

    if diff.artifacts:
        table = Table(show_lines=False)
        table.add_column("Bundle", style="bold")
        table.add_column("Before", justify="right")
        table.add_column("After", justify="right")
        table.add_column("Delta", justify="right")
        table.add_column("Gzip Delta", justify="right")
        for d in diff.artifacts:
            style = "red" if d.delta > 0 else "green" if d.delta < 0 else "dim"
            table.add_row(
                d.name,
                format_size(d.old_size),
                format_size(d.new_size),
                f"[{style}]{format_delta(d.delta)}[/{style}]",
                format_delta(d.compressed_delta) if d.compressed_delta is not None else "-",
            )
        console.print(table)

    for m in diff.metrics:
        console.print(f"  {m.name}: {m.old_value:g} -> {m.new_value:g} ({m.delta:+g})")
    console.print()
