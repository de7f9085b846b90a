"""
Pytest configuration and fixtures for git-plugin-updater tests.

Provides fake collaborators (clock, HTTP client, adapters, plugin source,
installer) so the cache and registry can be exercised without a network.
"""

import json
import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from git_plugin_updater.core.adapters import AdapterSet, RepositoryAdapter
from git_plugin_updater.core.errors import FetchError, FetchErrorKind, InstallFailedError
from git_plugin_updater.core.http_client import HttpResponse
from git_plugin_updater.core.storage import MemoryStore
from git_plugin_updater.core.update_cache import UpdateCache
from git_plugin_updater.models import HostKind
from git_plugin_updater.models.plugin import PluginDescriptor
from git_plugin_updater.models.repo import UpdateRecord


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHttp:
    """Routes GET requests to canned responses; unknown URLs return 404."""

    def __init__(self, routes: Optional[Dict[str, object]] = None):
        self.routes = dict(routes or {})
        self.requests: List[dict] = []

    def get(self, url, *, timeout=2.0, verify=True, headers=None, auth=None):
        self.requests.append({
            "url": url, "timeout": timeout, "verify": verify, "headers": headers or {}, "auth": auth,
        })
        result = self.routes.get(url)
        if result is None:
            return HttpResponse(status=404, body=b'{"message": "Not Found"}')
        if isinstance(result, Exception):
            raise result
        return result


def json_response(data, status: int = 200, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
    return HttpResponse(status=status, body=json.dumps(data).encode("utf-8"), headers=headers or {})


class FakeAdapter(RepositoryAdapter):
    """Answers from a dict keyed by ``owner/name``; counts every fetch."""

    host_kind = HostKind.GITHUB

    def __init__(self, releases: Optional[Dict[str, object]] = None):
        super().__init__(http=None)
        self.releases = dict(releases or {})
        self.calls: List[str] = []
        self.references: list = []
        self._lock = threading.Lock()

    def fetch_latest(self, reference):
        with self._lock:
            self.calls.append(reference.full_name)
            self.references.append(reference)
        result = self.releases.get(reference.full_name)
        if result is None:
            raise FetchError(FetchErrorKind.NOT_FOUND, "no such repository")
        if isinstance(result, Exception):
            raise result
        return result


class FakePluginSource:
    def __init__(self, plugins: List[PluginDescriptor], fail_activate: bool = False):
        self.plugins = list(plugins)
        self.fail_activate = fail_activate
        self.activated: List[str] = []
        self.versions: Dict[str, str] = {}

    def list_plugins(self):
        return list(self.plugins)

    def is_active(self, identifier):
        return any(p.identifier == identifier and p.active for p in self.plugins)

    def activate(self, identifier):
        if self.fail_activate:
            raise RuntimeError("activation hook crashed")
        self.activated.append(identifier)

    def record_update(self, identifier, installed_identifier, version):
        self.versions[installed_identifier] = version


class FakeInstaller:
    """Writes the plugin's main file into the destination instead of downloading."""

    def __init__(self, fail: bool = False, main_file: Optional[str] = None, content: Optional[str] = None):
        self.fail = fail
        self.main_file = main_file
        self.content = content or "<?php\n/* Plugin Name: Updated */\n"
        self.calls: List[tuple] = []

    def install(self, identifier, download_url, destination: Path):
        self.calls.append((identifier, download_url, destination))
        if self.fail:
            raise InstallFailedError(identifier, "archive could not be extracted")
        destination.mkdir(parents=True, exist_ok=True)
        name = self.main_file or identifier.split("/")[-1]
        (destination / name).write_text(self.content, encoding="utf-8")
        return destination


def record(version: str, **kwargs) -> UpdateRecord:
    kwargs.setdefault("download_url", f"https://example.com/{version}.zip")
    return UpdateRecord(remote_version=version, **kwargs)


def plugin(identifier: str, version: str, repo: str = "", **kwargs) -> PluginDescriptor:
    if not repo:
        repo = f"https://github.com/acme/{identifier.split('/')[0]}"
    return PluginDescriptor(identifier=identifier, installed_version=version, repository_url=repo, **kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def update_cache(fake_adapter, clock):
    return UpdateCache(AdapterSet([fake_adapter]), storage=MemoryStore(clock), clock=clock)
