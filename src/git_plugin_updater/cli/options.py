"""Shared CLI options."""

from __future__ import annotations

import typer

OutputOption = typer.Option("table", "--output", "-o", help="Output format: table, json, yaml")
PluginsDirOption = typer.Option(
    None, "--plugins-dir", "-d", help="Directory of installed plugins (read from file headers)",
)
ManifestOption = typer.Option(
    None, "--manifest", "-m", help="YAML manifest listing installed plugins",
)
