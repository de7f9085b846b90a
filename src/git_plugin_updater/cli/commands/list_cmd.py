"""gpu list - List plugins that declare a Git repository."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from git_plugin_updater.cli.bootstrap import build_registry
from git_plugin_updater.cli.options import ManifestOption, OutputOption, PluginsDirOption
from git_plugin_updater.output.formatters import output_plugins

app = typer.Typer()


@app.callback(invoke_without_command=True)
def list_plugins(
    output: str = OutputOption,
    plugins_dir: Optional[Path] = PluginsDirOption,
    manifest: Optional[Path] = ManifestOption,
    all_plugins: bool = typer.Option(False, "--all", "-a", help="Include plugins without a usable Git URI"),
) -> None:
    """List installed plugins with a recognized repository URL."""
    registry = build_registry(plugins_dir, manifest)
    plugins = registry.installed_plugins() if all_plugins else registry.list_plugins()
    output_plugins(plugins, output)
