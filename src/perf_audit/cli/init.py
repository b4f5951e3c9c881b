"""Init command -- write a starter config and prepare the data directory."""

from pathlib import Path

import typer

from ..config import PROJECT_CONFIG_NAME, PerfAuditConfig, render_project_config
from . import app
from ._common import console

GITIGNORE_ENTRY = ".perf-audit/"


@app.command()
def init():
    """
    Create perf-audit.toml with the default budgets in the current directory.

    Also adds the history directory to an existing .gitignore and creates it.
    An existing perf-audit.toml is left untouched.

    [bold cyan]Examples:[/bold cyan]

      perf-audit init
    """
    root = Path.cwd()
    config_path = root / PROJECT_CONFIG_NAME

    if config_path.exists():
        console.print(f"[yellow]Configuration file already exists:[/yellow] {config_path}")
        raise typer.Exit(0)

    try:
        config_path.write_text(render_project_config(), encoding="utf-8")
        console.print(f"[green]Created[/green] {config_path}")

        if _update_gitignore(root / ".gitignore"):
            console.print(f"[green]Added[/green] {GITIGNORE_ENTRY} to .gitignore")

        data_dir = (root / PerfAuditConfig().database_path).parent
        if not data_dir.exists():
            data_dir.mkdir(parents=True)
            console.print(f"[green]Created[/green] {data_dir}")
    except OSError as e:
        console.print(f"[red]Failed to initialize:[/red] {e}")
        raise typer.Exit(1)

    console.print()
    console.print("[bold]Next steps:[/bold]")
    console.print(f"  • Edit {PROJECT_CONFIG_NAME} to match your build output")
    console.print("  • Run [bold]perf-audit analyze[/bold] to record the first build")
    console.print("  • Run [bold]perf-audit budget[/bold] in CI to enforce the budgets")


def _update_gitignore(path: Path) -> bool:
    """Append the history directory to an existing .gitignore, once."""
    if not path.exists():
        return False
    content = path.read_text(encoding="utf-8")
    if any(line.strip() == GITIGNORE_ENTRY for line in content.splitlines()):
        return False
    prefix = "" if not content or content.endswith("\n") else "\n"
    path.write_text(f"{content}{prefix}\n# perf-audit history\n{GITIGNORE_ENTRY}\n", encoding="utf-8")
    return True
