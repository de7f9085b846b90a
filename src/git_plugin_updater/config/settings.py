"""Application configuration and defaults."""

from __future__ import annotations

import logging
import os
import platform
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _default_cache_dir() -> Path:
    """Return the default cache directory for the current platform.

    GPU_CACHE_DIR wins, then the platform's usual cache location.
    """
    explicit = os.environ.get("GPU_CACHE_DIR", "")
    if explicit:
        return Path(explicit)
    if platform.system() == "Windows":
        local = os.environ.get("LOCALAPPDATA", "")
        if local:
            return Path(local) / "git-plugin-updater" / "cache"
        return Path.home() / "AppData" / "Local" / "git-plugin-updater" / "cache"
    xdg = os.environ.get("XDG_CACHE_HOME", "")
    if xdg:
        return Path(xdg) / "git-plugin-updater"
    return Path.home() / ".cache" / "git-plugin-updater"


def _default_config_dir() -> Path:
    explicit = os.environ.get("GPU_CONFIG_HOME", "")
    if explicit:
        return Path(explicit)
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "git-plugin-updater"
        return Path.home() / "AppData" / "Roaming" / "git-plugin-updater"
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / "git-plugin-updater"
    return Path.home() / ".config" / "git-plugin-updater"


def _env_path(name: str) -> Path | None:
    value = os.environ.get(name, "")
    return Path(value) if value else None


def _env_list(name: str) -> list[str]:
    value = os.environ.get(name, "")
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    plugins_dir: Path | None = field(default_factory=lambda: _env_path("GPU_PLUGINS_DIR"))
    manifest_file: Path | None = field(default_factory=lambda: _env_path("GPU_MANIFEST"))
    cache_dir: Path = field(default_factory=_default_cache_dir)
    config_dir: Path = field(default_factory=_default_config_dir)
    update_interval: float = 60 * 60  # seconds between remote checks
    http_timeout: float = 2.0
    max_workers: int = 4
    ssl_disabled_urls: list[str] = field(default_factory=lambda: _env_list("GPU_SSL_DISABLED_URLS"))
    github_token: str | None = field(default_factory=lambda: os.environ.get("GPU_GITHUB_TOKEN") or None)
    generic_archive_template: str = "{base}/archive/{ref}.zip"
    user_agent: str = "git-plugin-updater"
    debug: bool = field(default_factory=lambda: os.environ.get("GPU_DEBUG", "").lower() in _TRUTHY)

    @property
    def config_file(self) -> Path:
        return _env_path("GPU_CONFIG") or self.config_dir / "config.yaml"

    def load_file(self, path: Path | None = None) -> Settings:
        """Overlay values from a YAML config file, if it exists.

        Unknown keys are ignored with a warning; values keep their type.
        """
        path = path or self.config_file
        if not path.exists():
            return self
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError):
            logger.warning("Failed to read config file %s", path, exc_info=True)
            return self
        if not isinstance(data, dict):
            logger.warning("Ignoring config file %s: expected a mapping", path)
            return self

        known = {f.name: f for f in fields(self)}
        for key, value in data.items():
            if key not in known:
                logger.warning("Unknown setting %r in %s", key, path)
                continue
            setattr(self, key, _coerce(key, value))
        return self


def _coerce(key: str, value):
    if value is None:
        return None
    if key in ("plugins_dir", "manifest_file", "cache_dir", "config_dir"):
        return Path(str(value)).expanduser()
    if key in ("update_interval", "http_timeout"):
        return float(value)
    if key == "max_workers":
        return int(value)
    if key == "ssl_disabled_urls":
        return [str(v) for v in value] if isinstance(value, list) else [str(value)]
    if key == "debug":
        return value if isinstance(value, bool) else str(value).lower() in _TRUTHY
    return str(value)


# Global singleton
settings = Settings()
