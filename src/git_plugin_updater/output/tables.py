"""Rich table builders for each command."""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table

from git_plugin_updater.models.doctor import DiagnosticResult
from git_plugin_updater.models.plugin import PluginDescriptor
from git_plugin_updater.models.repo import UpdateOffer, UpdateRecord
from git_plugin_updater.output.themes import styled_severity, styled_update_type
from git_plugin_updater.utils.repo_url import strip_credentials


def plugin_list_table(plugins: list[PluginDescriptor]) -> Table:
    table = Table(title="Git-Hosted Plugins", expand=True, show_lines=False)
    table.add_column("Plugin", style="bold white", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Version", style="cyan")
    table.add_column("Repository", style="blue")
    table.add_column("Branch", style="dim")
    table.add_column("Active", justify="center")

    for p in plugins:
        table.add_row(
            p.identifier,
            p.name or "-",
            p.installed_version or "-",
            strip_credentials(p.repository_url),
            p.branch or "-",
            "[green]yes[/green]" if p.active else "[dim]no[/dim]",
        )
    return table


def updates_table(offers: list[UpdateOffer]) -> Table:
    table = Table(title="Plugin Updates", expand=True)
    table.add_column("Plugin", style="magenta", no_wrap=True)
    table.add_column("Current", style="dim")
    table.add_column("Latest", style="bold")
    table.add_column("Update Type", no_wrap=True)
    table.add_column("Homepage", style="dim", max_width=40)

    for o in offers:
        table.add_row(
            o.identifier,
            o.current_version or "-",
            o.new_version,
            styled_update_type(o.update_type),
            o.homepage or "-",
        )
    return table


def record_panel(identifier: str, record: UpdateRecord) -> Panel:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Plugin", identifier)
    table.add_row("Version", record.remote_version)
    table.add_row("Author", record.author or "-")
    table.add_row("Homepage", record.homepage or "-")
    table.add_row("Requires", record.requires or "-")
    table.add_row("Tested", record.tested or "-")
    table.add_row("Last Updated", record.last_updated or "-")
    table.add_row("Download", strip_credentials(record.download_url))
    if record.description:
        table.add_row("Description", record.description)

    return Panel(table, title=f"[bold]Plugin: {identifier}[/bold]", border_style="blue")


def diagnostics_table(results: list[DiagnosticResult]) -> Table:
    table = Table(title="Plugin Updater Doctor", expand=True)
    table.add_column("", width=3, no_wrap=True)
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Message", max_width=60)
    table.add_column("Suggestion", style="dim", max_width=50)

    for r in results:
        table.add_row(styled_severity(r.severity), r.check_name, r.message, r.suggestion or "")
    return table
