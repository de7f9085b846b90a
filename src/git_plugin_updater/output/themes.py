"""Update-type and severity color maps."""

from git_plugin_updater.models.doctor import Severity

UPDATE_COLORS: dict[str, str] = {
    "major": "red bold",
    "minor": "yellow",
    "patch": "green",
    "up-to-date": "dim",
    "unknown": "dim",
}

SEVERITY_COLORS: dict[Severity, str] = {
    Severity.INFO: "blue",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red bold",
}

SEVERITY_ICONS: dict[Severity, str] = {
    Severity.INFO: "i",
    Severity.WARNING: "!",
    Severity.ERROR: "X",
}


def styled_update_type(update_type: str) -> str:
    color = UPDATE_COLORS.get(update_type, "white")
    return f"[{color}]{update_type}[/{color}]"


def styled_severity(severity: Severity) -> str:
    color = SEVERITY_COLORS.get(severity, "white")
    icon = SEVERITY_ICONS.get(severity, "?")
    return f"[{color}]{icon}[/{color}]"
