"""CLI entry point -- registers all subcommands."""

from pathlib import Path
from typing import Optional

import typer

from .. import __version__
from ..logging_config import setup_logging
from ._common import console

app = typer.Typer(
    name="perf-audit",
    help="perf-audit - Bundle size budgets, regression detection and build history",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"perf-audit {__version__}")
        raise typer.Exit(0)


@app.callback()
def _root(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also append log records to this file", dir_okay=False
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """Enforce bundle size budgets and track them across builds."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["log_file"] = str(log_file) if log_file else None
    # Flags only; resolve_config re-applies the merged verbosity
    setup_logging(verbose=verbose, quiet=quiet, log_file=ctx.obj["log_file"])


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402
from .budget import budget as _budget  # noqa: F401, E402
from .watch import watch as _watch  # noqa: F401, E402
from .history import history as _history  # noqa: F401, E402
from .trend import trend as _trend  # noqa: F401, E402
from .compare import compare as _compare  # noqa: F401, E402
from .clean import clean as _clean  # noqa: F401, E402
from .init import init as _init  # noqa: F401, E402


def main() -> None:
    app()
