"""gpu updates - Check for plugin updates."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from git_plugin_updater.cli.bootstrap import build_registry
from git_plugin_updater.cli.options import ManifestOption, OutputOption, PluginsDirOption
from git_plugin_updater.output.formatters import output_updates

app = typer.Typer()
console = Console()


@app.callback(invoke_without_command=True)
def updates(
    output: str = OutputOption,
    plugins_dir: Optional[Path] = PluginsDirOption,
    manifest: Optional[Path] = ManifestOption,
    force: bool = typer.Option(False, "--force", "-f", help="Ignore cached results and query every repository"),
) -> None:
    """Check every Git-hosted plugin for a newer release."""
    registry = build_registry(plugins_dir, manifest)

    with console.status("[bold cyan]Checking repositories…"):
        if force:
            registry.refresh(force=True)
        offers = registry.update_offers()

    output_updates(offers, output)
