"""gpu update <plugin> - Install the latest release."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from git_plugin_updater.cli.bootstrap import build_registry
from git_plugin_updater.cli.options import ManifestOption, PluginsDirOption
from git_plugin_updater.core.errors import InstallFailedError

app = typer.Typer()
console = Console()


@app.callback(invoke_without_command=True)
def update(
    identifier: str = typer.Argument(help="Plugin identifier, e.g. hello/hello.php"),
    plugins_dir: Optional[Path] = PluginsDirOption,
    manifest: Optional[Path] = ManifestOption,
) -> None:
    """Download and install the newest release of a plugin."""
    registry = build_registry(plugins_dir, manifest)

    try:
        with console.status(f"[bold cyan]Updating {identifier}…"):
            outcome = registry.apply_update(identifier)
    except InstallFailedError as e:
        console.print(f"[red]Update failed:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]Updated {identifier}[/green] in {outcome.destination}")
    if outcome.installed_identifier and outcome.installed_identifier != identifier:
        console.print(f"Now installed as [bold]{outcome.installed_identifier}[/bold]")
    if outcome.warning is not None:
        console.print(f"[yellow]{outcome.warning}[/yellow]")
    elif outcome.reactivated:
        console.print("Plugin reactivated successfully.")
