"""Installed-plugin enumeration and enabled-state tracking."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Protocol

import yaml

from git_plugin_updater.models.plugin import PluginDescriptor
from git_plugin_updater.utils.plugin_headers import read_header_file

logger = logging.getLogger(__name__)


class PluginSource(Protocol):
    def list_plugins(self) -> list[PluginDescriptor]: ...

    def is_active(self, identifier: str) -> bool: ...

    def activate(self, identifier: str) -> None: ...

    def record_update(self, identifier: str, installed_identifier: str, version: str) -> None: ...


class HeaderPluginSource:
    """Discovers plugins by reading the header block of ``*.php`` files.

    A plugin is either a single file directly in ``plugins_dir`` or a folder
    whose first header-bearing file is the main file. Enabled state lives in
    a small YAML file (``active: [identifier, ...]``).
    """

    def __init__(self, plugins_dir: Path, state_file: Path | None = None):
        self.plugins_dir = Path(plugins_dir)
        self.state_file = state_file or self.plugins_dir / ".gpu-state.yaml"
        self._lock = threading.Lock()

    def list_plugins(self) -> list[PluginDescriptor]:
        if not self.plugins_dir.is_dir():
            logger.warning("Plugins directory %s does not exist", self.plugins_dir)
            return []

        active = set(self._load_active())
        plugins: list[PluginDescriptor] = []
        for entry in sorted(self.plugins_dir.iterdir()):
            if entry.name.startswith("."):
                continue
            if entry.is_file() and entry.suffix == ".php":
                candidates = [(entry.name, entry)]
            elif entry.is_dir():
                candidates = [(f"{entry.name}/{f.name}", f) for f in sorted(entry.glob("*.php"))]
            else:
                continue

            for identifier, path in candidates:
                try:
                    headers = read_header_file(path)
                except OSError:
                    logger.debug("Could not read %s", path, exc_info=True)
                    continue
                if not headers["name"]:
                    continue
                plugins.append(PluginDescriptor(
                    identifier=identifier,
                    installed_version=headers["version"],
                    repository_url=headers["git_uri"],
                    branch=headers["git_branch"] or None,
                    name=headers["name"],
                    active=identifier in active,
                ))
                break
        return plugins

    def is_active(self, identifier: str) -> bool:
        return identifier in self._load_active()

    def activate(self, identifier: str) -> None:
        with self._lock:
            active = self._load_active()
            if identifier not in active:
                active.append(identifier)
            self._write_active(active)

    def record_update(self, identifier: str, installed_identifier: str, version: str) -> None:
        """Forget the enabled state of an identifier that no longer exists.

        The version is read back from the installed file's header, so only a
        changed identifier needs recording.
        """
        if installed_identifier == identifier:
            return
        with self._lock:
            active = self._load_active()
            if identifier not in active:
                return
            active.remove(identifier)
            self._write_active(active)

    def _write_active(self, active: list[str]) -> None:
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        self.state_file.write_text(
            yaml.safe_dump({"active": active}, default_flow_style=False),
            encoding="utf-8",
        )

    def _load_active(self) -> list[str]:
        if not self.state_file.exists():
            return []
        try:
            data = yaml.safe_load(self.state_file.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError):
            logger.warning("Failed to read plugin state file %s", self.state_file, exc_info=True)
            return []
        active = data.get("active", []) if isinstance(data, dict) else []
        return [str(a) for a in active] if isinstance(active, list) else []


class ManifestPluginSource:
    """Reads installed plugins from a YAML manifest::

        plugins:
          - identifier: hello/hello.php
            version: 1.2.0
            repository: https://github.com/acme/hello
            branch: main
            active: true
    """

    def __init__(self, manifest_file: Path):
        self.manifest_file = Path(manifest_file)
        self._lock = threading.Lock()

    def list_plugins(self) -> list[PluginDescriptor]:
        plugins: list[PluginDescriptor] = []
        for raw in self._load().get("plugins", []):
            if not isinstance(raw, dict):
                continue
            descriptor = PluginDescriptor.from_dict(raw)
            if descriptor.identifier:
                plugins.append(descriptor)
        return plugins

    def is_active(self, identifier: str) -> bool:
        return any(p.identifier == identifier and p.active for p in self.list_plugins())

    def activate(self, identifier: str) -> None:
        with self._lock:
            data = self._load()
            entries = data.get("plugins", [])
            for raw in entries:
                if isinstance(raw, dict) and (raw.get("identifier") or raw.get("slug")) == identifier:
                    raw["active"] = True
                    break
            else:
                raise KeyError(identifier)
            self.manifest_file.write_text(
                yaml.safe_dump(data, default_flow_style=False, sort_keys=False),
                encoding="utf-8",
            )

    def record_update(self, identifier: str, installed_identifier: str, version: str) -> None:
        """Record a newly installed version, and identifier, in the manifest."""
        with self._lock:
            data = self._load()
            for raw in data.get("plugins", []):
                if isinstance(raw, dict) and (raw.get("identifier") or raw.get("slug")) == identifier:
                    raw.pop("slug", None)
                    raw["identifier"] = installed_identifier
                    raw["version"] = version
                    break
            else:
                return
            self.manifest_file.write_text(
                yaml.safe_dump(data, default_flow_style=False, sort_keys=False),
                encoding="utf-8",
            )

    def _load(self) -> dict:
        if not self.manifest_file.exists():
            logger.warning("Plugin manifest %s does not exist", self.manifest_file)
            return {}
        try:
            data = yaml.safe_load(self.manifest_file.read_text(encoding="utf-8"))
        except yaml.YAMLError:
            logger.warning("Failed to parse plugin manifest %s", self.manifest_file, exc_info=True)
            return {}
        if not isinstance(data, dict) or not isinstance(data.get("plugins", []), list):
            return {}
        return data
