"""Budget command -- CI gate on per-bundle and total size budgets."""

import json
from typing import Optional

import typer
from rich.table import Table

from ..audit import BundleAudit
from ..budget import check_budgets
from ..config import PerfAuditConfig
from ..exceptions import AnalysisError
from ..models import EXIT_ERROR, BudgetReport, exit_code_for
from ..sizes import format_size
from . import app
from ._common import artifact_table, console, resolve_config, styled_status


@app.command()
def budget(
    ctx: typer.Context,
    target: Optional[str] = typer.Option(
        None,
        "--target",
        "-t",
        help="Targets to check: client | server | both",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Check bundles against their budgets and exit with the overall status.

    Exit code is 0 when everything is within budget, 2 on warnings and 1
    when any budget is exceeded.

    [bold cyan]Examples:[/bold cyan]

      perf-audit budget

      perf-audit budget --target server --json
    """
    config = resolve_config(ctx, target=target.lower() if target else None)

    try:
        result = BundleAudit(config).run()
    except AnalysisError as e:
        if json_output:
            print(json.dumps(e.to_dict(), indent=2))
        else:
            console.print(f"[red]Budget check failed:[/red] {e}")
        raise typer.Exit(EXIT_ERROR)

    report = check_budgets(result, config)

    if json_output:
        _output_json(report)
    else:
        _output_rich(report, config)

    raise typer.Exit(exit_code_for(report.status))


def _output_json(report: BudgetReport):
    data = {
        "status": report.status.value,
        "passed": report.passed,
        "violations": [a.to_dict() for a in report.violations],
        "totals": {
            target.value: {
                "raw_size": totals.raw_size,
                "compressed_size": totals.compressed_size,
                "count": totals.count,
                "status": report.total_status[target].value,
            }
            for target, totals in report.totals.items()
        },
    }
    print(json.dumps(data, indent=2))


def _output_rich(report: BudgetReport, config: PerfAuditConfig):
    console.print()
    if report.result.is_empty:
        console.print("[yellow]No bundles found for analysis.[/yellow]")
    elif report.violations:
        console.print(artifact_table(report.violations, title="Budget Violations"))
    else:
        console.print("[green]All bundles are within budget.[/green]")

    table = Table(title="Totals", show_lines=False)
    table.add_column("Target", style="cyan")
    table.add_column("Bundles", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Budget", justify="right")
    table.add_column("Status")

    for target, totals in report.totals.items():
        limit = config.budgets_for(target).total
        table.add_row(
            target.value,
            str(totals.count),
            format_size(totals.raw_size),
            format_size(limit.max) if limit is not None else "-",
            styled_status(report.total_status[target]),
        )
    console.print(table)

    if report.passed:
        console.print(f"Budget check: {styled_status(report.status)}")
    else:
        console.print(
            f"Budget check: {styled_status(report.status)} "
            f"({len(report.violations)} bundle(s) over budget)"
        )
    console.print()

