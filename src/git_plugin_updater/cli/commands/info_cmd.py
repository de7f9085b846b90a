"""gpu info <plugin> - Show release details."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from git_plugin_updater.cli.bootstrap import build_registry
from git_plugin_updater.cli.options import ManifestOption, OutputOption, PluginsDirOption
from git_plugin_updater.output.formatters import output_record

app = typer.Typer()


@app.callback(invoke_without_command=True)
def info(
    identifier: str = typer.Argument(help="Plugin identifier, e.g. hello/hello.php"),
    output: str = OutputOption,
    plugins_dir: Optional[Path] = PluginsDirOption,
    manifest: Optional[Path] = ManifestOption,
) -> None:
    """Show the latest release known for a plugin."""
    registry = build_registry(plugins_dir, manifest)
    record = registry.describe(identifier)
    if record is None:
        typer.echo(f"No release information for '{identifier}'.", err=True)
        raise typer.Exit(code=1)
    output_record(identifier, record, output)
