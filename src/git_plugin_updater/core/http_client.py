"""Thin wrapper around requests for repository API calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import requests

from git_plugin_updater.core.errors import HttpTimeout, HttpTransportError
from git_plugin_updater.utils.repo_url import strip_credentials

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 2.0


@dataclass
class HttpResponse:
    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def header(self, name: str, default: str = "") -> str:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default


class HttpClient:
    """GET-only HTTP client with a bounded timeout on every request.

    Connection pooling is left to the underlying ``requests.Session``.
    """

    def __init__(self, user_agent: str = "git-plugin-updater", session: requests.Session | None = None):
        self.user_agent = user_agent
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def get(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResponse:
        """Issue a GET and return the raw status and body.

        Raises HttpTimeout or HttpTransportError when no response arrives.
        """
        merged: dict[str, Any] = {"User-Agent": self.user_agent}
        if headers:
            merged.update(headers)
        safe_url = strip_credentials(url)
        logger.debug("GET %s (timeout=%ss, verify=%s)", safe_url, timeout, verify)
        try:
            resp = self.session.get(
                url,
                timeout=timeout,
                verify=verify,
                headers=merged,
                auth=auth,
                allow_redirects=True,
            )
        except requests.Timeout as e:
            raise HttpTimeout(f"timed out after {timeout}s: {safe_url}") from e
        except requests.RequestException as e:
            raise HttpTransportError(f"request failed for {safe_url}: {e.__class__.__name__}") from e
        return HttpResponse(status=resp.status_code, body=resp.content, headers=dict(resp.headers))

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None


class SslPolicy:
    """Per-URL TLS verification switch driven by an explicit allow-list.

    Verification stays on unless the request URL has the same scheme, host
    and port as a configured entry and its path lies under the entry's path
    (compared on ``/`` boundaries).
    """

    def __init__(self, disabled_prefixes: list[str] | tuple[str, ...] = ()):
        self.disabled_prefixes = tuple(p.strip() for p in disabled_prefixes if p and p.strip())
        self._endpoints: list[tuple[str, str, int, str]] = []
        for prefix in self.disabled_prefixes:
            endpoint = _endpoint(prefix)
            if endpoint is None:
                logger.warning("Ignoring invalid ssl_disabled_urls entry %r", prefix)
                continue
            self._endpoints.append(endpoint)

    def verify_for(self, url: str) -> bool:
        target = _endpoint(url)
        if target is None:
            return True
        scheme, host, port, path = target
        for e_scheme, e_host, e_port, e_path in self._endpoints:
            if (scheme, host, port) != (e_scheme, e_host, e_port):
                continue
            if not e_path or path == e_path or path.startswith(e_path + "/"):
                return False
        return True


_DEFAULT_PORTS = {"http": 80, "https": 443}


def _endpoint(url: str) -> tuple[str, str, int, str] | None:
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if not scheme or not host:
        return None
    return scheme, host, port or _DEFAULT_PORTS.get(scheme, 0), parts.path.rstrip("/")
