"""Wire the registry and its collaborators from settings."""

from __future__ import annotations

from pathlib import Path

import typer

from git_plugin_updater.config.settings import Settings, settings
from git_plugin_updater.core.adapters import AdapterSet
from git_plugin_updater.core.http_client import HttpClient, SslPolicy
from git_plugin_updater.core.installer import ArchiveInstaller
from git_plugin_updater.core.plugin_source import HeaderPluginSource, ManifestPluginSource, PluginSource
from git_plugin_updater.core.registry import UpdateRegistry
from git_plugin_updater.core.storage import FileStore
from git_plugin_updater.core.update_cache import UpdateCache


def build_registry(
    plugins_dir: Path | None = None,
    manifest: Path | None = None,
    cfg: Settings | None = None,
) -> UpdateRegistry:
    """Build a registry for the plugins in ``plugins_dir`` or ``manifest``.

    Exits with an error when neither is given nor configured.
    """
    cfg = cfg or settings
    plugins_dir = plugins_dir or cfg.plugins_dir
    manifest = manifest or cfg.manifest_file

    source: PluginSource
    if manifest is not None:
        source = ManifestPluginSource(manifest)
        install_root = plugins_dir or Path(manifest).parent
    elif plugins_dir is not None:
        source = HeaderPluginSource(plugins_dir)
        install_root = plugins_dir
    else:
        typer.echo("No plugins configured: pass --plugins-dir or --manifest (or set GPU_PLUGINS_DIR).", err=True)
        raise typer.Exit(code=2)

    ssl_policy = SslPolicy(cfg.ssl_disabled_urls)
    http = HttpClient(user_agent=cfg.user_agent)
    adapters = AdapterSet.default(
        http,
        timeout=cfg.http_timeout,
        ssl_policy=ssl_policy,
        github_token=cfg.github_token,
        archive_template=cfg.generic_archive_template,
    )
    cache = UpdateCache(adapters, storage=FileStore(cfg.cache_dir), max_workers=cfg.max_workers)
    installer = ArchiveInstaller(ssl_policy=ssl_policy, user_agent=cfg.user_agent)
    registry = UpdateRegistry(
        source,
        cache,
        installer=installer,
        plugins_dir=install_root,
        ttl=cfg.update_interval,
        debug=cfg.debug,
    )
    registry.invalidate_if_debugging()
    return registry


def ssl_policy_from(cfg: Settings | None = None) -> SslPolicy:
    return SslPolicy((cfg or settings).ssl_disabled_urls)
