"""
Tests for UpdateRegistry queries and update application.
"""

import pytest

from git_plugin_updater.core.errors import InstallFailedError, ReactivationFailedError
from git_plugin_updater.core.plugin_source import HeaderPluginSource
from git_plugin_updater.core.registry import REACTIVATION_FAILED, UpdateRegistry

from conftest import FakeInstaller, FakePluginSource, plugin, record


def header(version):
    return (
        "<?php\n/*\n * Plugin Name: Hello\n"
        f" * Version: {version}\n"
        " * Git URI: https://github.com/acme/hello\n */\n"
    )


@pytest.fixture
def make_registry(update_cache, tmp_path):
    def _make(plugins, installer=None, **kwargs):
        source = kwargs.pop("source", None) or FakePluginSource(plugins)
        return UpdateRegistry(
            source,
            update_cache,
            installer=installer,
            plugins_dir=tmp_path,
            ttl=3600,
            **kwargs,
        )
    return _make


class TestListPlugins:
    def test_only_resolvable_plugins(self, make_registry):
        registry = make_registry([
            plugin("hello/hello.php", "1.0.0"),
            plugin("local/local.php", "1.0.0", repo=" "),
            plugin("odd/odd.php", "1.0.0", repo="https://example.com/odd"),
        ])
        assert [p.identifier for p in registry.list_plugins()] == ["hello/hello.php"]
        assert len(registry.installed_plugins()) == 3


class TestListAvailableUpdates:
    def test_newer_release_is_offered(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        registry = make_registry([plugin("hello/hello.php", "1.2.0")])

        updates = registry.list_available_updates()
        assert len(updates) == 1
        descriptor, rec = updates[0]
        assert descriptor.identifier == "hello/hello.php"
        assert rec.remote_version == "1.3.0"

    def test_older_release_is_not_offered(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.1.0")}
        assert make_registry([plugin("hello/hello.php", "1.2.0")]).list_available_updates() == []

    def test_equal_release_is_not_offered(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("v1.2.0")}
        assert make_registry([plugin("hello/hello.php", "1.2")]).list_available_updates() == []

    def test_numeric_ordering(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.10.0")}
        assert len(make_registry([plugin("hello/hello.php", "1.9.0")]).list_available_updates()) == 1

    def test_enumeration_order_is_kept(self, make_registry, fake_adapter):
        fake_adapter.releases = {
            "acme/zeta": record("2.0.0"),
            "acme/alpha": record("2.0.0"),
            "acme/mid": record("2.0.0"),
        }
        registry = make_registry([
            plugin("zeta/zeta.php", "1.0.0"),
            plugin("alpha/alpha.php", "1.0.0"),
            plugin("mid/mid.php", "1.0.0"),
        ])
        assert [p.identifier for p, _ in registry.list_available_updates()] == [
            "zeta/zeta.php", "alpha/alpha.php", "mid/mid.php",
        ]

    def test_failed_fetch_is_omitted(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/alpha": record("2.0.0")}
        registry = make_registry([plugin("alpha/alpha.php", "1.0.0"), plugin("broken/broken.php", "1.0.0")])
        assert [p.identifier for p, _ in registry.list_available_updates()] == ["alpha/alpha.php"]

    def test_update_offers_classify(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("2.0.0", description="Breaking")}
        offers = make_registry([plugin("hello/hello.php", "1.4.2")]).update_offers()
        assert len(offers) == 1
        assert offers[0].update_type == "major"
        assert offers[0].current_version == "1.4.2"
        assert offers[0].description == "Breaking"


class TestDescribe:
    def test_known_plugin(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.3.0", author="octocat")}
        rec = make_registry([plugin("hello/hello.php", "1.2.0")]).describe("hello/hello.php")
        assert rec.remote_version == "1.3.0"
        assert rec.author == "octocat"

    def test_describe_returns_record_even_when_not_newer(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.0.0")}
        assert make_registry([plugin("hello/hello.php", "1.2.0")]).describe("hello/hello.php") is not None

    def test_unknown_plugin(self, make_registry, fake_adapter):
        assert make_registry([plugin("hello/hello.php", "1.2.0")]).describe("other/other.php") is None
        assert fake_adapter.calls == []

    def test_failed_fetch(self, make_registry):
        assert make_registry([plugin("hello/hello.php", "1.2.0")]).describe("hello/hello.php") is None


class TestApplyUpdate:
    def test_inactive_plugin_is_installed(self, make_registry, fake_adapter, tmp_path):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        installer = FakeInstaller()
        source = FakePluginSource([plugin("hello/hello.php", "1.2.0")])
        registry = make_registry(source.plugins, installer=installer, source=source)

        outcome = registry.apply_update("hello/hello.php")
        assert outcome.destination == tmp_path / "hello"
        assert outcome.warning is None
        assert outcome.reactivated is False
        assert installer.calls == [("hello/hello.php", "https://example.com/1.3.0.zip", tmp_path / "hello")]
        assert source.versions == {"hello/hello.php": "1.3.0"}
        assert source.activated == []

    def test_active_plugin_is_reactivated(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        source = FakePluginSource([plugin("hello/hello.php", "1.2.0", active=True)])
        registry = make_registry(source.plugins, installer=FakeInstaller(), source=source)

        outcome = registry.apply_update("hello/hello.php")
        assert outcome.reactivated is True
        assert outcome.warning is None
        assert source.activated == ["hello/hello.php"]

    def test_reactivation_failure_is_a_warning(self, make_registry, fake_adapter, tmp_path):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        source = FakePluginSource([plugin("hello/hello.php", "1.2.0", active=True)], fail_activate=True)
        registry = make_registry(source.plugins, installer=FakeInstaller(), source=source)

        outcome = registry.apply_update("hello/hello.php")
        assert outcome.succeeded_with_warning
        assert isinstance(outcome.warning, ReactivationFailedError)
        assert REACTIVATION_FAILED in str(outcome.warning)
        assert isinstance(outcome.warning.__cause__, RuntimeError)
        assert (tmp_path / "hello" / "hello.php").is_file()

    def test_missing_main_file_fails_reactivation(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        source = FakePluginSource([plugin("hello/hello.php", "1.2.0", active=True)])
        registry = make_registry(source.plugins, installer=FakeInstaller(main_file="renamed.php"), source=source)

        outcome = registry.apply_update("hello/hello.php")
        assert isinstance(outcome.warning, ReactivationFailedError)
        assert source.activated == []

    def test_install_failure_raises(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        source = FakePluginSource([plugin("hello/hello.php", "1.2.0", active=True)])
        registry = make_registry(source.plugins, installer=FakeInstaller(fail=True), source=source)

        with pytest.raises(InstallFailedError):
            registry.apply_update("hello/hello.php")
        assert source.versions == {}
        assert source.activated == []

    def test_unexpected_installer_error_is_wrapped(self, make_registry, fake_adapter):
        class ExplodingInstaller:
            def install(self, identifier, download_url, destination):
                raise PermissionError("read-only file system")

        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        registry = make_registry([plugin("hello/hello.php", "1.2.0")], installer=ExplodingInstaller())
        with pytest.raises(InstallFailedError) as exc:
            registry.apply_update("hello/hello.php")
        assert isinstance(exc.value.__cause__, PermissionError)

    def test_unknown_plugin_raises(self, make_registry):
        with pytest.raises(InstallFailedError):
            make_registry([plugin("hello/hello.php", "1.2.0")], installer=FakeInstaller()).apply_update("nope.php")

    def test_no_release_information_raises(self, make_registry):
        with pytest.raises(InstallFailedError):
            make_registry([plugin("hello/hello.php", "1.2.0")], installer=FakeInstaller()).apply_update("hello/hello.php")

    def test_without_installer_raises(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        with pytest.raises(InstallFailedError):
            make_registry([plugin("hello/hello.php", "1.2.0")]).apply_update("hello/hello.php")

    def test_single_file_plugin_installs_into_stem_folder(self, make_registry, fake_adapter, tmp_path):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        installer = FakeInstaller()
        registry = make_registry(
            [plugin("hello.php", "1.2.0", repo="https://github.com/acme/hello")],
            installer=installer,
        )
        outcome = registry.apply_update("hello.php")
        assert outcome.destination == tmp_path / "hello"
        assert outcome.installed_identifier == "hello/hello.php"

    def test_single_file_plugin_is_not_offered_again(self, update_cache, fake_adapter, tmp_path):
        (tmp_path / "hello.php").write_text(header("1.2.0"), encoding="utf-8")
        source = HeaderPluginSource(tmp_path)
        source.activate("hello.php")
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        registry = UpdateRegistry(
            source,
            update_cache,
            installer=FakeInstaller(content=header("1.3.0")),
            plugins_dir=tmp_path,
        )

        outcome = registry.apply_update("hello.php")
        assert outcome.reactivated is True
        assert not (tmp_path / "hello.php").exists()
        assert [p.identifier for p in source.list_plugins()] == ["hello/hello.php"]
        assert source.is_active("hello/hello.php") is True
        assert source.is_active("hello.php") is False

        registry.refresh(force=True)
        assert registry.list_available_updates() == []


class TestRefresh:
    def test_force_refetches(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        registry = make_registry([plugin("hello/hello.php", "1.2.0")])
        registry.refresh()
        registry.refresh()
        assert len(fake_adapter.calls) == 1
        registry.refresh(force=True)
        assert len(fake_adapter.calls) == 2

    def test_debug_mode_invalidates(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        registry = make_registry([plugin("hello/hello.php", "1.2.0")], debug=True)
        registry.refresh()
        assert registry.invalidate_if_debugging() is True
        assert registry.cache.peek() is None

    def test_invalidate_is_noop_outside_debug(self, make_registry, fake_adapter):
        fake_adapter.releases = {"acme/hello": record("1.3.0")}
        registry = make_registry([plugin("hello/hello.php", "1.2.0")])
        registry.refresh()
        assert registry.invalidate_if_debugging() is False
        assert registry.cache.peek() is not None
