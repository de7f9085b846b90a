"""Root Typer application, mounts sub-commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.logging import RichHandler

from git_plugin_updater.config.settings import settings

app = typer.Typer(
    name="gpu",
    help="Git Plugin Updater - Check Git-hosted plugins for new releases.",
    no_args_is_help=True,
)


@app.callback()
def root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Configure logging and settings before any sub-command runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=verbose)],
        force=True,
    )
    settings.load_file(config)


def _register_commands() -> None:
    from git_plugin_updater.cli.commands.list_cmd import app as list_app
    from git_plugin_updater.cli.commands.updates_cmd import app as updates_app
    from git_plugin_updater.cli.commands.info_cmd import app as info_app
    from git_plugin_updater.cli.commands.update_cmd import app as update_app
    from git_plugin_updater.cli.commands.cache_cmd import app as cache_app
    from git_plugin_updater.cli.commands.doctor_cmd import app as doctor_app

    app.add_typer(list_app, name="list", help="List plugins that declare a Git repository")
    app.add_typer(updates_app, name="updates", help="Check for available plugin updates")
    app.add_typer(info_app, name="info", help="Show release details for a plugin")
    app.add_typer(update_app, name="update", help="Install the latest release of a plugin")
    app.add_typer(cache_app, name="cache", help="Manage the update cache")
    app.add_typer(doctor_app, name="doctor", help="Run diagnostic checks")


_register_commands()


def main() -> None:
    app()
