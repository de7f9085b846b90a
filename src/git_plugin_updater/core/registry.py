"""Answer update queries for installed Git-hosted plugins and apply updates."""

from __future__ import annotations

import logging
from pathlib import Path

from git_plugin_updater.core.errors import (
    InstallFailedError,
    ParseError,
    ReactivationFailedError,
)
from git_plugin_updater.core.installer import Installer
from git_plugin_updater.core.plugin_source import PluginSource
from git_plugin_updater.core.update_cache import UpdateCache
from git_plugin_updater.models import Ordering
from git_plugin_updater.models.plugin import PluginDescriptor
from git_plugin_updater.models.repo import UpdateOffer, UpdateOutcome, UpdateRecord
from git_plugin_updater.utils.repo_url import parse_repository_url
from git_plugin_updater.utils.version_compare import classify_update, compare

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60 * 60

REACTIVATION_FAILED = "The plugin has been updated, but could not be reactivated. Please reactivate it manually."


class UpdateRegistry:
    """Ties plugin enumeration, the update cache and the installer together.

    Results are reported in enumeration order; nothing is sorted.
    """

    def __init__(
        self,
        source: PluginSource,
        cache: UpdateCache,
        installer: Installer | None = None,
        plugins_dir: Path | None = None,
        ttl: float = DEFAULT_TTL,
        debug: bool = False,
    ):
        self.source = source
        self.cache = cache
        self.installer = installer
        self.plugins_dir = Path(plugins_dir) if plugins_dir is not None else None
        self.ttl = ttl
        self.debug = debug

    def installed_plugins(self) -> list[PluginDescriptor]:
        """Every installed plugin, whether or not it declares a repository."""
        return self.source.list_plugins()

    def list_plugins(self) -> list[PluginDescriptor]:
        """Installed plugins whose repository URL maps to a known adapter."""
        resolvable: list[PluginDescriptor] = []
        for plugin in self.installed_plugins():
            if not plugin.repository_url:
                continue
            reference = parse_repository_url(plugin.repository_url, plugin.branch)
            try:
                self.cache.adapters.resolve(reference)
            except ParseError:
                logger.debug("No adapter for %s (%s)", plugin.identifier, plugin.repository_url)
                continue
            resolvable.append(plugin)
        return resolvable

    def refresh(self, force: bool = False) -> dict[str, UpdateRecord]:
        """Bring the cache up to date; ``force`` ignores the snapshot age."""
        if force:
            self.cache.invalidate()
        return self.cache.get_or_refresh(self.list_plugins(), self.ttl)

    def invalidate_if_debugging(self) -> bool:
        if not self.debug:
            return False
        logger.info("Debug mode: clearing update cache")
        self.cache.invalidate()
        return True

    def list_available_updates(self) -> list[tuple[PluginDescriptor, UpdateRecord]]:
        plugins = self.list_plugins()
        records = self.cache.get_or_refresh(plugins, self.ttl)
        updates: list[tuple[PluginDescriptor, UpdateRecord]] = []
        for plugin in plugins:
            record = records.get(plugin.identifier)
            if record is None:
                continue
            if compare(record.remote_version, plugin.installed_version) is Ordering.GREATER:
                updates.append((plugin, record))
        return updates

    def update_offers(self) -> list[UpdateOffer]:
        return [
            UpdateOffer(
                identifier=plugin.identifier,
                current_version=plugin.installed_version,
                new_version=record.remote_version,
                download_url=record.download_url,
                homepage=record.homepage,
                description=record.description,
                update_type=classify_update(plugin.installed_version, record.remote_version),
            )
            for plugin, record in self.list_available_updates()
        ]

    def describe(self, identifier: str) -> UpdateRecord | None:
        """Release details for one plugin, or None when nothing is known."""
        plugins = self.list_plugins()
        if not any(p.identifier == identifier for p in plugins):
            return None
        return self.cache.get_or_refresh(plugins, self.ttl).get(identifier)

    def apply_update(self, identifier: str) -> UpdateOutcome:
        """Install the cached release of ``identifier`` and restore its enabled state.

        Raises InstallFailedError when nothing was installed. A failed
        reactivation is returned as ``UpdateOutcome.warning`` instead.
        """
        plugins = self.list_plugins()
        plugin = next((p for p in plugins if p.identifier == identifier), None)
        if plugin is None:
            raise InstallFailedError(identifier, "not an installed Git-hosted plugin")
        record = self.cache.get_or_refresh(plugins, self.ttl).get(identifier)
        if record is None:
            raise InstallFailedError(identifier, "no release information available")
        if self.installer is None or self.plugins_dir is None:
            raise InstallFailedError(identifier, "no installer configured")

        try:
            was_active = self.source.is_active(identifier)
        except Exception:
            logger.warning("Could not read enabled state of %s", identifier, exc_info=True)
            was_active = False

        installed_identifier = plugin.installed_identifier
        destination = self.plugins_dir / plugin.folder_name
        try:
            self.installer.install(identifier, record.download_url, destination)
        except InstallFailedError:
            raise
        except Exception as e:
            raise InstallFailedError(identifier, str(e)) from e
        logger.info("Updated %s from %s to %s", identifier, plugin.installed_version, record.remote_version)

        if installed_identifier != identifier:
            self._remove_stale_file(identifier)

        try:
            self.source.record_update(identifier, installed_identifier, record.remote_version)
        except Exception:
            logger.warning("Could not record new version of %s", identifier, exc_info=True)

        outcome = UpdateOutcome(
            identifier=identifier,
            destination=destination,
            installed_identifier=installed_identifier,
        )
        if not was_active:
            return outcome

        try:
            if not (self.plugins_dir / installed_identifier).is_file():
                raise FileNotFoundError(f"main file {installed_identifier} missing after update")
            self.source.activate(installed_identifier)
        except Exception as e:
            logger.warning("Reactivation of %s failed: %s", identifier, e)
            outcome.warning = ReactivationFailedError(identifier, REACTIVATION_FAILED)
            outcome.warning.__cause__ = e
        else:
            outcome.reactivated = True
        return outcome

    def _remove_stale_file(self, identifier: str) -> None:
        # A single-file plugin now lives in its own folder
        stale = self.plugins_dir / identifier
        try:
            if stale.is_file():
                stale.unlink()
        except OSError:
            logger.warning("Could not remove previous file %s; it will still be listed", stale, exc_info=True)
