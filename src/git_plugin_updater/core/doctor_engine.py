"""Diagnostic checks for Git-hosted plugins and the update cache."""

from __future__ import annotations

from git_plugin_updater.core.errors import FetchError, FetchErrorKind, ParseError
from git_plugin_updater.core.http_client import SslPolicy
from git_plugin_updater.core.registry import UpdateRegistry
from git_plugin_updater.models.doctor import DiagnosticResult, Severity
from git_plugin_updater.utils.repo_url import parse_repository_url, strip_credentials

_FETCH_SUGGESTIONS = {
    FetchErrorKind.NOT_FOUND: "Check the Git URI header; the repository may be private, renamed or have no releases.",
    FetchErrorKind.RATE_LIMITED: "Set GPU_GITHUB_TOKEN (or github_token in config.yaml) to raise the API rate limit.",
    FetchErrorKind.UNAUTHORIZED: "Add credentials to the Git URI or configure a token with read access.",
    FetchErrorKind.TIMEOUT: "The host did not answer within the timeout; it will be retried next cycle.",
    FetchErrorKind.MALFORMED: "The host returned an unexpected payload; check that the URL points at a Git repository.",
    FetchErrorKind.TRANSPORT: "Check network connectivity and TLS configuration for this host.",
}


def run_diagnostics(registry: UpdateRegistry, ssl_policy: SslPolicy | None = None) -> list[DiagnosticResult]:
    """Run all diagnostic checks and return results."""
    results: list[DiagnosticResult] = []
    results.extend(_check_repository_urls(registry))
    results.extend(_check_ssl_exceptions(registry, ssl_policy))
    results.extend(_check_cache(registry))
    results.extend(_check_fetch_failures(registry))
    return results


def _check_repository_urls(registry: UpdateRegistry) -> list[DiagnosticResult]:
    results: list[DiagnosticResult] = []
    git_plugins = 0
    for plugin in registry.installed_plugins():
        if not plugin.repository_url:
            continue
        git_plugins += 1
        reference = parse_repository_url(plugin.repository_url, plugin.branch)
        try:
            registry.cache.adapters.resolve(reference)
        except ParseError:
            results.append(DiagnosticResult(
                check_name="repository_url",
                severity=Severity.ERROR,
                message=f"'{plugin.identifier}' declares an unrecognized Git URI: {strip_credentials(plugin.repository_url)}",
                suggestion="Use a github.com or bitbucket.org project URL, or an http(s) URL ending in .git.",
                identifier=plugin.identifier,
            ))
            continue
        if reference.has_credentials and not reference.url.startswith("https://"):
            results.append(DiagnosticResult(
                check_name="repository_url",
                severity=Severity.WARNING,
                message=f"'{plugin.identifier}' sends credentials over an unencrypted URL",
                suggestion="Switch the Git URI to https.",
                identifier=plugin.identifier,
            ))

    results.append(DiagnosticResult(
        check_name="plugins",
        severity=Severity.INFO,
        message=f"{git_plugins} plugin(s) declare a Git URI",
    ))
    return results


def _check_ssl_exceptions(registry: UpdateRegistry, ssl_policy: SslPolicy | None) -> list[DiagnosticResult]:
    if ssl_policy is None or not ssl_policy.disabled_prefixes:
        return []
    results: list[DiagnosticResult] = []
    for plugin in registry.list_plugins():
        reference = parse_repository_url(plugin.repository_url, plugin.branch)
        if not ssl_policy.verify_for(reference.url):
            results.append(DiagnosticResult(
                check_name="tls_verification",
                severity=Severity.WARNING,
                message=f"TLS verification is disabled for '{plugin.identifier}' ({reference.url})",
                suggestion="Install the host's CA certificate and remove it from ssl_disabled_urls.",
                identifier=plugin.identifier,
            ))
    return results


def _check_cache(registry: UpdateRegistry) -> list[DiagnosticResult]:
    entry = registry.cache.peek()
    if entry is None:
        return [DiagnosticResult(
            check_name="update_cache",
            severity=Severity.INFO,
            message="No cached update data; the next check will query every repository",
        )]
    now = registry.cache.clock()
    age = int(entry.age(now))
    if entry.is_stale(now, registry.ttl):
        return [DiagnosticResult(
            check_name="update_cache",
            severity=Severity.INFO,
            message=f"Cached update data is stale ({age}s old, interval {int(registry.ttl)}s)",
        )]
    return [DiagnosticResult(
        check_name="update_cache",
        severity=Severity.INFO,
        message=f"Cached update data for {len(entry.records)} plugin(s), {age}s old (interval {int(registry.ttl)}s)",
    )]


def _check_fetch_failures(registry: UpdateRegistry) -> list[DiagnosticResult]:
    results: list[DiagnosticResult] = []
    for identifier, error in registry.cache.failures.items():
        if isinstance(error, ParseError):
            # Already reported by the repository URL check
            continue
        if isinstance(error, FetchError):
            severity = Severity.WARNING if error.kind is FetchErrorKind.TIMEOUT else Severity.ERROR
            results.append(DiagnosticResult(
                check_name="fetch",
                severity=severity,
                message=f"Last update check for '{identifier}' failed: {error}",
                suggestion=_FETCH_SUGGESTIONS.get(error.kind, ""),
                identifier=identifier,
            ))
        else:
            results.append(DiagnosticResult(
                check_name="fetch",
                severity=Severity.ERROR,
                message=f"Last update check for '{identifier}' failed unexpectedly: {error}",
                suggestion="Re-run with --verbose for details.",
                identifier=identifier,
            ))
    return results
