"""gpu cache - Inspect or clear the update cache."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from git_plugin_updater.cli.bootstrap import build_registry
from git_plugin_updater.cli.options import ManifestOption, PluginsDirOption

app = typer.Typer(no_args_is_help=True)
console = Console()


@app.command("clear")
def clear(
    plugins_dir: Optional[Path] = PluginsDirOption,
    manifest: Optional[Path] = ManifestOption,
) -> None:
    """Drop cached release data; the next check queries every repository."""
    registry = build_registry(plugins_dir, manifest)
    registry.cache.invalidate()
    console.print("[green]Update cache cleared[/green]")


@app.command("status")
def status(
    plugins_dir: Optional[Path] = PluginsDirOption,
    manifest: Optional[Path] = ManifestOption,
) -> None:
    """Show how old the cached release data is."""
    registry = build_registry(plugins_dir, manifest)
    entry = registry.cache.peek()
    if entry is None:
        console.print("[dim]Update cache is empty.[/dim]")
        return
    now = registry.cache.clock()
    state = "[yellow]stale[/yellow]" if entry.is_stale(now, registry.ttl) else "[green]fresh[/green]"
    console.print(
        f"{len(entry.records)} plugin(s) cached, {int(entry.age(now))}s old "
        f"(interval {int(registry.ttl)}s): {state}"
    )
