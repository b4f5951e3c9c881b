"""Shared CLI helpers."""

from collections.abc import Sequence
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import PerfAuditConfig, load_config
from ..exceptions import ConfigurationError
from ..logging_config import setup_logging
from ..models import EXIT_ERROR, Artifact, Status
from ..persistence import BuildRepository
from ..sizes import format_delta, format_size

console = Console()

STATUS_STYLE = {
    Status.OK: "green",
    Status.WARNING: "yellow",
    Status.ERROR: "red",
}


def resolve_config(ctx: typer.Context, **overrides) -> PerfAuditConfig:
    """Build the process configuration from global and command options.

    Configuration errors end the command with exit code 1. Logging is
    reconfigured when the merged verbosity differs from the global flags.
    """
    obj = ctx.obj or {}
    try:
        config = load_config(
            config_file=obj.get("config_file"),
            verbose=obj.get("verbose", False),
            quiet=obj.get("quiet", False),
            **overrides,
        )
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(EXIT_ERROR)

    # A config file or PERF_AUDIT_VERBOSITY can change the level set from flags
    flag_verbosity = "quiet" if obj.get("quiet") else "verbose" if obj.get("verbose") else "normal"
    if config.verbosity != flag_verbosity:
        setup_logging(
            verbose=config.verbosity == "verbose",
            quiet=config.verbosity == "quiet",
            log_file=obj.get("log_file"),
        )
    return config


def open_repository(config: PerfAuditConfig) -> BuildRepository:
    return BuildRepository(config.database_path)


def styled_status(status: Status) -> str:
    return f"[{STATUS_STYLE[status]}]{status.value}[/{STATUS_STYLE[status]}]"


def short_timestamp(ts: str) -> str:
    """``2026-10-19T12:34:56.789Z`` -> ``2026-10-19 12:34:56``."""
    ts = ts.replace("T", " ")
    for sep in (".", "+", "Z"):
        if sep in ts:
            ts = ts[: ts.index(sep)]
    return ts


def artifact_table(artifacts: Sequence[Artifact], title: Optional[str] = None) -> Table:
    table = Table(title=title or "Bundle Analysis", show_lines=False, pad_edge=True)
    table.add_column("Bundle", style="bold")
    table.add_column("Target", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Gzip", justify="right")
    table.add_column("Delta", justify="right")
    table.add_column("Status")

    for a in artifacts:
        table.add_row(
            a.name,
            a.target.value,
            format_size(a.raw_size),
            format_size(a.compressed_size) if a.compressed_size is not None else "-",
            format_delta(a.delta) if a.delta is not None else "-",
            styled_status(a.status),
        )
    return table
