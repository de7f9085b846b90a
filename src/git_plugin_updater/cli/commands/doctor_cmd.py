"""gpu doctor - Run diagnostic checks."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from git_plugin_updater.cli.bootstrap import build_registry, ssl_policy_from
from git_plugin_updater.cli.options import ManifestOption, OutputOption, PluginsDirOption
from git_plugin_updater.core.doctor_engine import run_diagnostics
from git_plugin_updater.output.formatters import output_diagnostics

app = typer.Typer()


@app.callback(invoke_without_command=True)
def doctor(
    output: str = OutputOption,
    plugins_dir: Optional[Path] = PluginsDirOption,
    manifest: Optional[Path] = ManifestOption,
    refresh: bool = typer.Option(False, "--refresh", help="Query every repository to report fetch failures"),
) -> None:
    """Run diagnostic checks on Git-hosted plugins."""
    registry = build_registry(plugins_dir, manifest)
    if refresh:
        registry.refresh(force=True)
    results = run_diagnostics(registry, ssl_policy=ssl_policy_from())
    output_diagnostics(results, output)
