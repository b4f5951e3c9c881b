"""Analyze command -- scan bundles, apply budgets, save to history."""

import json
from typing import List, Optional

import typer

from ..audit import BundleAudit
from ..budget import calculate_totals
from ..exceptions import AnalysisError
from ..models import EXIT_ERROR, EXIT_SUCCESS, AnalysisResult
from ..sizes import format_size
from . import app
from ._common import artifact_table, console, open_repository, resolve_config, styled_status


@app.command()
def analyze(
    ctx: typer.Context,
    target: Optional[str] = typer.Option(
        None,
        "--target",
        "-t",
        help="Targets to analyze: client | server | both",
    ),
    no_gzip: bool = typer.Option(False, "--no-gzip", help="Skip compressed size measurement"),
    no_save: bool = typer.Option(False, "--no-save", help="Do not record this build in history"),
    url: Optional[str] = typer.Option(None, "--url", help="Audited page URL to record with the build"),
    device: Optional[str] = typer.Option(None, "--device", help="Audited device profile to record"),
    metric: Optional[List[str]] = typer.Option(
        None,
        "--metric",
        "-m",
        help="Named metric to record with the build, as NAME=VALUE (repeatable)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Scan build output and report every bundle against its budget.

    [bold cyan]Examples:[/bold cyan]

      perf-audit analyze

      perf-audit analyze --target both --json

      perf-audit analyze --metric performance=92 --metric lcp=2400
    """
    overrides = {"target": target.lower() if target else None}
    if no_gzip:
        overrides["gzip"] = False
    if no_save:
        overrides["save_history"] = False
    metrics = _parse_metrics(metric or [])
    config = resolve_config(ctx, **overrides)

    audit = BundleAudit(config)
    try:
        result = audit.run()
    except AnalysisError as e:
        if json_output:
            print(json.dumps(e.to_dict(), indent=2))
        else:
            console.print(f"[red]Analysis failed:[/red] {e}")
        raise typer.Exit(EXIT_ERROR)

    if result.is_empty:
        if json_output:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            console.print(
                "[yellow]No bundles found for analysis.[/yellow] "
                "Make sure the project has been built and the output path is correct."
            )
        raise typer.Exit(EXIT_SUCCESS)

    build_id = None
    if config.save_history:
        repository = open_repository(config)
        try:
            result = audit.attach_deltas(repository, result)
            build_id = audit.save(repository, result, metrics=metrics, url=url, device=device)
        finally:
            repository.close()

    if json_output:
        data = result.to_dict()
        data["build_id"] = build_id
        print(json.dumps(data, indent=2))
    else:
        _output_rich(result, build_id)


def _output_rich(result: AnalysisResult, build_id):
    console.print()
    console.print(artifact_table(result.artifacts))

    totals = calculate_totals(result.artifacts)
    gzip_total = (
        f" (gzip {format_size(totals.compressed_size)})"
        if totals.compressed_size is not None
        else ""
    )
    console.print(
        f"Total: [bold]{format_size(totals.raw_size)}[/bold]{gzip_total} "
        f"across {totals.count} bundle(s), status {styled_status(result.budget_status)}"
    )

    if result.recommendations:
        console.print()
        console.print("[bold]Recommendations[/bold]")
        for rec in result.recommendations:
            console.print(f"  • {rec}")

    if build_id is not None:
        console.print(f"[dim]Saved as build #{build_id}[/dim]")
    console.print()


def _parse_metrics(values: list[str]) -> dict[str, float]:
    """``["performance=92", "lcp=2400"]`` -> ``{"performance": 92.0, "lcp": 2400.0}``."""
    metrics: dict[str, float] = {}
    for item in values:
        name, sep, raw = item.partition("=")
        name = name.strip()
        try:
            if not sep or not name:
                raise ValueError
            metrics[name] = float(raw)
        except ValueError:
            raise typer.BadParameter(f"expected NAME=VALUE, got '{item}'", param_hint="--metric")
    return metrics
