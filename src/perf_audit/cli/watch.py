"""Watch command -- re-analyze on every rebuild and alert on regressions."""

from typing import Optional

import typer

from ..diff import PerformanceComparison
from ..models import AnalysisResult
from ..sizes import format_delta, format_size
from ..watch import WatchSession
from . import app
from ._common import artifact_table, console, open_repository, resolve_config, short_timestamp, styled_status


@app.command()
def watch(
    ctx: typer.Context,
    target: Optional[str] = typer.Option(
        None,
        "--target",
        "-t",
        help="Targets to watch: client | server | both",
    ),
    debounce: Optional[float] = typer.Option(
        None,
        "--debounce",
        help="Minimum seconds between two scans",
        min=0.0,
    ),
    no_save: bool = typer.Option(False, "--no-save", help="Do not record scans in history"),
):
    """
    Watch the build output and report size changes as they happen.

    The first scan becomes the baseline. Every significant change against
    it is reported and then becomes the new baseline. Press Ctrl+C to stop.

    [bold cyan]Examples:[/bold cyan]

      perf-audit watch

      perf-audit watch --target both --debounce 2
    """
    overrides = {
        "target": target.lower() if target else None,
        "debounce_seconds": debounce,
    }
    if no_save:
        overrides["save_history"] = False
    config = resolve_config(ctx, **overrides)

    console.print(
        f"[bold]Watching[/bold] {', '.join(config.output_path(t) for t in config.targets)} "
        "[dim](Ctrl+C to stop)[/dim]"
    )

    session = WatchSession(config, open_repository(config), on_scan=_render_scan)
    session.run()
    console.print("[dim]Watch mode stopped.[/dim]")


def _render_scan(result: AnalysisResult, comparison: Optional[PerformanceComparison]):
    stamp = short_timestamp(result.timestamp)
    if comparison is None:
        console.print(f"[dim]{stamp}[/dim] Baseline: {len(result.artifacts)} bundle(s)")
        if not result.is_empty:
            console.print(artifact_table(result.artifacts))
        return

    if not comparison:
        console.print(f"[dim]{stamp}[/dim] No significant changes")
        return

    console.print(
        f"[dim]{stamp}[/dim] {len(comparison.changes)} significant change(s), "
        f"net {format_delta(comparison.total_delta)}, status {styled_status(result.budget_status)}"
    )
    for change in comparison.changes:
        style = "red" if change.is_regression else "green"
        console.print(
            f"  [{style}]{change.kind.value:8}[/{style}] {change.name} "
            f"{format_size(change.previous_size)} -> {format_size(change.current_size)} "
            f"([{style}]{format_delta(change.delta)}, {change.percent:+.1f}%[/{style}])"
        )
