"""Table / JSON / YAML output dispatch."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import yaml
from rich.console import Console

from git_plugin_updater.models.doctor import DiagnosticResult
from git_plugin_updater.models.plugin import PluginDescriptor
from git_plugin_updater.models.repo import UpdateOffer, UpdateRecord
from git_plugin_updater.utils.repo_url import strip_credentials

console = Console()


def _plugin_to_dict(p: PluginDescriptor) -> dict[str, Any]:
    return {
        "identifier": p.identifier,
        "name": p.name,
        "version": p.installed_version,
        "repository": strip_credentials(p.repository_url),
        "branch": p.branch,
        "active": p.active,
    }


def _record_to_dict(identifier: str, record: UpdateRecord) -> dict[str, Any]:
    data: dict[str, Any] = {"identifier": identifier}
    data.update(record.to_dict())
    data["download_url"] = strip_credentials(record.download_url)
    return data


def _diagnostic_to_dict(r: DiagnosticResult) -> dict[str, Any]:
    return {
        "check": r.check_name,
        "severity": r.severity.value,
        "message": r.message,
        "suggestion": r.suggestion,
        "plugin": r.identifier,
    }


def _emit(data: Any, fmt: str) -> None:
    if fmt == "json":
        console.print_json(json.dumps(data, indent=2, default=str))
    else:
        console.print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))


def output_plugins(plugins: list[PluginDescriptor], fmt: str) -> None:
    if fmt in ("json", "yaml"):
        _emit([_plugin_to_dict(p) for p in plugins], fmt)
    else:
        from git_plugin_updater.output.tables import plugin_list_table
        console.print(plugin_list_table(plugins))


def output_updates(offers: list[UpdateOffer], fmt: str) -> None:
    if fmt in ("json", "yaml"):
        data = []
        for o in offers:
            item = asdict(o)
            item["download_url"] = strip_credentials(o.download_url)
            data.append(item)
        _emit(data, fmt)
        return

    from git_plugin_updater.output.tables import updates_table
    console.print(updates_table(offers))
    if offers:
        console.print(f"\n[yellow]{len(offers)} update(s) available[/yellow]")
    else:
        console.print("\n[green]All Git-hosted plugins are up to date[/green]")


def output_record(identifier: str, record: UpdateRecord, fmt: str) -> None:
    if fmt in ("json", "yaml"):
        _emit(_record_to_dict(identifier, record), fmt)
    else:
        from git_plugin_updater.output.tables import record_panel
        console.print(record_panel(identifier, record))


def output_diagnostics(results: list[DiagnosticResult], fmt: str) -> None:
    if fmt in ("json", "yaml"):
        _emit([_diagnostic_to_dict(r) for r in results], fmt)
        return

    from git_plugin_updater.models.doctor import Severity
    from git_plugin_updater.output.tables import diagnostics_table
    console.print(diagnostics_table(results))

    errors = sum(1 for r in results if r.severity == Severity.ERROR)
    warnings = sum(1 for r in results if r.severity == Severity.WARNING)
    infos = sum(1 for r in results if r.severity == Severity.INFO)

    summary_parts = []
    if errors:
        summary_parts.append(f"[red]{errors} error(s)[/red]")
    if warnings:
        summary_parts.append(f"[yellow]{warnings} warning(s)[/yellow]")
    if infos:
        summary_parts.append(f"[blue]{infos} info(s)[/blue]")

    console.print(f"\nDiagnostics complete: {', '.join(summary_parts) if summary_parts else '[green]all clear[/green]'}")
