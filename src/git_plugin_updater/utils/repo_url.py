"""Parse declared repository URLs into repository references."""

from __future__ import annotations

import re
from urllib.parse import unquote, urlsplit, urlunsplit

from git_plugin_updater.models import HostKind
from git_plugin_updater.models.repo import RepositoryReference

_GITHUB_HOSTS = frozenset({"github.com", "www.github.com"})
_BITBUCKET_HOSTS = frozenset({"bitbucket.org", "www.bitbucket.org"})

# git@github.com:owner/repo.git
_SCP_LIKE = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+):(?P<path>[^/].*)$")


def parse_repository_url(url: str | None, branch: str | None = None) -> RepositoryReference:
    """Map a declared URL to a :class:`RepositoryReference`.

    Anything that cannot be understood yields ``HostKind.UNKNOWN``; this
    function never raises.
    """
    raw = (url or "").strip()
    branch = (branch or "").strip() or None
    unknown = RepositoryReference(host_kind=HostKind.UNKNOWN, url=raw, branch=branch)
    if not raw:
        return unknown

    if "://" not in raw:
        scp = _SCP_LIKE.match(raw)
        if scp and "." in scp.group("host"):
            user = f"{scp.group('user')}@" if scp.group("user") else ""
            raw = f"ssh://{user}{scp.group('host')}/{scp.group('path')}"
        elif raw.split("/", 1)[0].lower() in _GITHUB_HOSTS | _BITBUCKET_HOSTS:
            raw = "https://" + raw
        else:
            return unknown

    try:
        parts = urlsplit(raw)
        host = (parts.hostname or "").lower()
        username = unquote(parts.username) if parts.username else None
        password = unquote(parts.password) if parts.password else None
        port = parts.port
    except ValueError:
        return unknown

    if not host or parts.scheme not in ("http", "https", "ssh", "git"):
        return unknown
    if parts.scheme in ("ssh", "git"):
        # The ssh user (usually "git") is not an API credential
        username = password = None

    segments = [s for s in parts.path.split("/") if s]

    if host in _GITHUB_HOSTS or host in _BITBUCKET_HOSTS:
        if len(segments) < 2:
            return unknown
        owner, name = segments[0], _strip_git_suffix(segments[1])
        if not owner or not name:
            return unknown
        kind = HostKind.GITHUB if host in _GITHUB_HOSTS else HostKind.BITBUCKET
        return RepositoryReference(
            host_kind=kind,
            owner=owner,
            name=name,
            url=f"https://{host.removeprefix('www.')}/{owner}/{name}",
            branch=branch,
            username=username,
            password=password,
        )

    if parts.scheme in ("http", "https") and segments and segments[-1].endswith(".git"):
        name = _strip_git_suffix(segments[-1])
        if not name:
            return unknown
        netloc = host if port is None else f"{host}:{port}"
        clean = urlunsplit((parts.scheme, netloc, parts.path.rstrip("/"), "", ""))
        return RepositoryReference(
            host_kind=HostKind.GENERIC_GIT,
            owner="/".join(segments[:-1]),
            name=name,
            url=clean,
            branch=branch,
            username=username,
            password=password,
        )

    return unknown


def strip_credentials(url: str) -> str:
    """Remove any ``user:pass@`` part so the URL can be logged or displayed."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.username and not parts.password:
        return url
    host = parts.hostname or ""
    netloc = host if parts.port is None else f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def _strip_git_suffix(name: str) -> str:
    return name[:-4] if name.endswith(".git") else name
