"""Trend CLI command -- daily bundle size per target and its growth rate."""

import json
from pathlib import Path

import typer
from rich.table import Table

from ..exceptions import PersistenceError
from ..persistence import TrendPoint, TrendSummary
from ..persistence.queries import summarize_trend
from ..sizes import format_delta, format_size
from . import app
from ._common import console, open_repository, resolve_config


@app.command()
def trend(
    ctx: typer.Context,
    days: int = typer.Option(
        30,
        "--days",
        "-d",
        help="How many days of history to aggregate",
        min=1,
        max=3650,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Show how total bundle size moved day by day.

    Sizes are summed per UTC day and target. The growth rate is a
    least-squares slope over the daily totals.

    [bold cyan]Examples:[/bold cyan]

      perf-audit trend

      perf-audit trend --days 90 --json
    """
    config = resolve_config(ctx)

    if config.database_path != ":memory:" and not Path(config.database_path).exists():
        console.print(
            "[yellow]No history found.[/yellow] "
            "Run [bold]perf-audit analyze[/bold] a few times to build a trend."
        )
        raise typer.Exit(0)

    try:
        with open_repository(config) as repository:
            points = repository.get_trend_data(days)
    except PersistenceError as e:
        console.print(f"[red]Error reading history:[/red] {e}")
        raise typer.Exit(1)

    summaries = summarize_trend(points)

    if json_output:
        _output_json(points, summaries)
    elif not points:
        console.print(f"[yellow]No builds in the last {days} day(s).[/yellow]")
    else:
        _output_rich(points, summaries, days)


def _output_json(points: list[TrendPoint], summaries: list[TrendSummary]):
    data = {
        "points": [p.to_dict() for p in points],
        "summary": [
            {
                "target": s.target.value,
                "points": s.points,
                "first_size": s.first_size,
                "last_size": s.last_size,
                "mean_size": round(s.mean_size, 1),
                "slope_bytes_per_day": round(s.slope_bytes_per_day, 2),
                "direction": s.direction,
            }
            for s in summaries
        ],
    }
    print(json.dumps(data, indent=2))


def _output_rich(points: list[TrendPoint], summaries: list[TrendSummary], days: int):
    table = Table(title=f"Bundle Size Trend (last {days} days)", show_lines=False)
    table.add_column("Date")
    table.add_column("Target", style="cyan")
    table.add_column("Builds", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Gzip", justify="right")
    table.add_column("Metrics (max)")

    for p in points:
        metrics = ", ".join(f"{name}={value:g}" for name, value in sorted(p.metrics.items()))
        # Metric-only bucket: no target, no size
        if p.target is None:
            table.add_row(p.date, "-", str(p.build_count), "-", "-", metrics or "-")
            continue
        table.add_row(
            p.date,
            p.target.value,
            str(p.build_count),
            format_size(p.raw_size),
            format_size(p.compressed_size) if p.compressed_size is not None else "-",
            metrics or "-",
        )

    console.print()
    console.print(table)

    for s in summaries:
        style = {"growing": "red", "shrinking": "green"}.get(s.direction, "dim")
        console.print(
            f"  {s.target.value}: [{style}]{s.direction}[/{style}] "
            f"{format_delta(int(round(s.slope_bytes_per_day)))}/day over {s.points} day(s), "
            f"{format_size(s.first_size)} -> {format_size(s.last_size)}"
        )
    console.print()
