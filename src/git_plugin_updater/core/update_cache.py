"""Time-bounded cache of the latest release for every Git-hosted plugin.

The cache holds one immutable snapshot (:class:`CacheEntry`). A snapshot is
trusted until it is ``ttl`` seconds old; after that the next
:meth:`UpdateCache.get_or_refresh` call fetches every plugin again and swaps
in a complete replacement. Plugins whose fetch fails are simply absent from
the new snapshot and are retried on the next cycle.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Callable

from git_plugin_updater.core.adapters import AdapterSet, RepositoryAdapter
from git_plugin_updater.core.errors import FetchError, ParseError, UpdaterError
from git_plugin_updater.core.storage import KeyValueStore, MemoryStore
from git_plugin_updater.models.cache import CacheEntry
from git_plugin_updater.models.plugin import PluginDescriptor
from git_plugin_updater.models.repo import RepositoryReference, UpdateRecord
from git_plugin_updater.utils.repo_url import parse_repository_url

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

STORAGE_KEY = "git_plugins"
DEFAULT_MAX_WORKERS = 4


class UpdateCache:
    def __init__(
        self,
        adapters: AdapterSet,
        storage: KeyValueStore | None = None,
        clock: Clock = time.time,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.adapters = adapters
        self.storage = storage if storage is not None else MemoryStore(clock)
        self.clock = clock
        self.max_workers = max(1, max_workers)
        self._failures: dict[str, UpdaterError] = {}
        self._lock = threading.Lock()
        self._entry: CacheEntry | None = self._load()

    def get_or_refresh(self, plugins: list[PluginDescriptor], ttl: float) -> dict[str, UpdateRecord]:
        """Return the snapshot, refreshing it first when missing or stale."""
        entry = self._entry
        if entry is not None and not entry.is_stale(self.clock(), ttl):
            return dict(entry.records)

        with self._lock:
            # Another caller may have refreshed while we waited
            entry = self._entry
            if entry is not None and not entry.is_stale(self.clock(), ttl):
                return dict(entry.records)
            entry = self._refresh(plugins, ttl)
        return dict(entry.records)

    def invalidate(self) -> None:
        """Drop the snapshot so the next lookup performs a full refresh."""
        with self._lock:
            self._entry = None
            self._failures = {}
            try:
                self.storage.delete(STORAGE_KEY)
            except OSError:
                logger.warning("Could not delete persisted update cache", exc_info=True)
        logger.debug("Update cache invalidated")

    def peek(self) -> CacheEntry | None:
        """Current snapshot without triggering a refresh."""
        return self._entry

    @property
    def failures(self) -> dict[str, UpdaterError]:
        """Per-plugin errors absorbed during the last refresh."""
        return dict(self._failures)

    def _load(self) -> CacheEntry | None:
        raw = self.storage.get(STORAGE_KEY)
        return CacheEntry.from_dict(raw) if raw is not None else None

    def _refresh(self, plugins: list[PluginDescriptor], ttl: float) -> CacheEntry:
        failures: dict[str, UpdaterError] = {}
        jobs: list[tuple[PluginDescriptor, RepositoryAdapter, RepositoryReference]] = []

        for plugin in plugins:
            reference = replace(
                parse_repository_url(plugin.repository_url, plugin.branch),
                main_file=plugin.main_file,
            )
            try:
                adapter = self.adapters.resolve(reference)
            except ParseError as e:
                logger.debug("Skipping %s: %s", plugin.identifier, e)
                failures[plugin.identifier] = e
                continue
            jobs.append((plugin, adapter, reference))

        logger.info("Refreshing update cache for %d plugin(s)", len(jobs))
        fetched: dict[str, UpdateRecord] = {}
        if jobs:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(jobs))) as pool:
                futures = {
                    pool.submit(adapter.fetch_latest, reference): plugin
                    for plugin, adapter, reference in jobs
                }
                for future in as_completed(futures):
                    plugin = futures[future]
                    try:
                        fetched[plugin.identifier] = future.result()
                    except FetchError as e:
                        logger.warning("Update check failed for %s: %s", plugin.identifier, e)
                        failures[plugin.identifier] = e
                    except Exception as e:
                        logger.warning("Unexpected error checking %s", plugin.identifier, exc_info=True)
                        failures[plugin.identifier] = UpdaterError(str(e))

        # Keep enumeration order regardless of completion order
        records = {
            plugin.identifier: fetched[plugin.identifier]
            for plugin, _, _ in jobs
            if plugin.identifier in fetched
        }
        entry = CacheEntry(records=records, created_at=self.clock(), ttl=ttl)
        self._entry = entry
        self._failures = failures

        try:
            self.storage.set(STORAGE_KEY, entry.to_dict(), ttl)
        except (OSError, TypeError, ValueError):
            logger.warning("Could not persist update cache", exc_info=True)
        return entry
