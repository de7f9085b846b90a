"""Per-host strategies for fetching the latest release of a repository."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, ClassVar

from git_plugin_updater.core.errors import (
    FetchError,
    FetchErrorKind,
    HttpTimeout,
    HttpTransportError,
    ParseError,
)
from git_plugin_updater.core.http_client import DEFAULT_TIMEOUT, HttpClient, HttpResponse, SslPolicy
from git_plugin_updater.models import HostKind
from git_plugin_updater.models.repo import RepositoryReference, UpdateRecord
from git_plugin_updater.utils.plugin_headers import HEADER_READ_BYTES, parse_headers
from git_plugin_updater.utils.repo_url import strip_credentials
from git_plugin_updater.utils.version_compare import newest, normalize_tag

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_TEMPLATE = "{base}/archive/{ref}.zip"


class RepositoryAdapter:
    """Base class for hosting-provider adapters.

    Subclasses set ``host_kind`` and implement :meth:`fetch_latest`.
    """

    host_kind: ClassVar[HostKind] = HostKind.UNKNOWN

    def __init__(
        self,
        http: HttpClient,
        timeout: float = DEFAULT_TIMEOUT,
        ssl_policy: SslPolicy | None = None,
    ):
        self.http = http
        self.timeout = timeout
        self.ssl_policy = ssl_policy or SslPolicy()

    @classmethod
    def recognizes(cls, reference: RepositoryReference) -> bool:
        return reference.host_kind is cls.host_kind and bool(reference.name)

    def fetch_latest(self, reference: RepositoryReference) -> UpdateRecord:
        raise NotImplementedError

    # -- helpers shared by every adapter --------------------------------

    def _get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResponse:
        try:
            return self.http.get(
                url,
                timeout=self.timeout,
                verify=self.ssl_policy.verify_for(url),
                headers=headers,
                auth=auth,
            )
        except HttpTimeout as e:
            raise FetchError(FetchErrorKind.TIMEOUT, str(e), url) from e
        except HttpTransportError as e:
            raise FetchError(FetchErrorKind.TRANSPORT, str(e), url) from e

    @staticmethod
    def _raise_for_status(resp: HttpResponse, url: str) -> None:
        if resp.ok:
            return
        if resp.status == 404:
            raise FetchError(FetchErrorKind.NOT_FOUND, "repository or release not found", url)
        if resp.status == 429 or (resp.status == 403 and resp.header("X-RateLimit-Remaining") == "0"):
            raise FetchError(FetchErrorKind.RATE_LIMITED, f"rate limit exceeded (HTTP {resp.status})", url)
        if resp.status in (401, 403):
            raise FetchError(FetchErrorKind.UNAUTHORIZED, f"access denied (HTTP {resp.status})", url)
        raise FetchError(FetchErrorKind.MALFORMED, f"unexpected HTTP {resp.status}", url)

    @staticmethod
    def _json(resp: HttpResponse, url: str) -> Any:
        try:
            return json.loads(resp.body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise FetchError(FetchErrorKind.MALFORMED, "response is not valid JSON", url) from e

    @staticmethod
    def _basic_auth(reference: RepositoryReference) -> tuple[str, str] | None:
        if reference.username:
            return (reference.username, reference.password or "")
        return None

    def _with_remote_headers(
        self,
        record: UpdateRecord,
        url: str,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
    ) -> UpdateRecord:
        """Fill ``requires`` and ``tested`` from the main file's header at ``url``.

        The header is optional metadata; any failure leaves the record as is.
        """
        try:
            resp = self._get(url, headers=headers, auth=auth)
            self._raise_for_status(resp, url)
        except FetchError as e:
            logger.debug("No plugin header at %s: %s", strip_credentials(url), e)
            return record
        text = resp.body[:HEADER_READ_BYTES].decode("utf-8", errors="replace")
        found = parse_headers(text)
        return replace(record, requires=found["requires"], tested=found["tested"])


class GitHubAdapter(RepositoryAdapter):
    host_kind = HostKind.GITHUB
    api_base = "https://api.github.com"
    raw_base = "https://raw.githubusercontent.com"

    def __init__(self, http: HttpClient, timeout: float = DEFAULT_TIMEOUT,
                 ssl_policy: SslPolicy | None = None, token: str | None = None):
        super().__init__(http, timeout=timeout, ssl_policy=ssl_policy)
        self.token = token

    def fetch_latest(self, reference: RepositoryReference) -> UpdateRecord:
        """Latest published release, falling back to the newest tag."""
        repo_api = f"{self.api_base}/repos/{reference.owner}/{reference.name}"
        url = f"{repo_api}/releases/latest"
        resp = self._get(url, headers=self._headers(reference), auth=self._basic_auth(reference))
        if resp.status == 404:
            logger.debug("No published release for %s, falling back to tags", reference.full_name)
            return self._from_tags(reference, repo_api)
        self._raise_for_status(resp, url)
        data = self._json(resp, url)
        if not isinstance(data, dict):
            raise FetchError(FetchErrorKind.MALFORMED, "release payload is not an object", url)

        tag = data.get("tag_name")
        if not isinstance(tag, str) or not tag.strip():
            raise FetchError(FetchErrorKind.MALFORMED, "release has no tag_name", url)
        version = normalize_tag(tag)

        download = data.get("zipball_url")
        if reference.branch:
            download = self._branch_archive(reference)
        if not isinstance(download, str) or not download:
            raise FetchError(FetchErrorKind.MALFORMED, "release has no zipball_url", url)

        author = data.get("author") if isinstance(data.get("author"), dict) else {}
        record = UpdateRecord(
            remote_version=version,
            download_url=download,
            homepage=_str(data.get("html_url")) or reference.url,
            author=_str(author.get("login")),
            last_updated=_str(data.get("published_at")),
            description=_str(data.get("body")),
        )
        return self._with_main_file_headers(reference, record, reference.branch or tag.strip())

    def _from_tags(self, reference: RepositoryReference, repo_api: str) -> UpdateRecord:
        url = f"{repo_api}/tags"
        resp = self._get(url, headers=self._headers(reference), auth=self._basic_auth(reference))
        self._raise_for_status(resp, url)
        data = self._json(resp, url)
        if not isinstance(data, list):
            raise FetchError(FetchErrorKind.MALFORMED, "tag list is not an array", url)

        by_version: dict[str, dict] = {}
        for entry in data:
            if isinstance(entry, dict) and isinstance(entry.get("name"), str):
                by_version.setdefault(normalize_tag(entry["name"]), entry)
        best = newest(by_version)
        if best is None:
            raise FetchError(FetchErrorKind.NOT_FOUND, "repository has no releases or tags", url)

        tag = by_version[best]
        download = self._branch_archive(reference) if reference.branch else _str(tag.get("zipball_url"))
        if not download:
            raise FetchError(FetchErrorKind.MALFORMED, "tag has no zipball_url", url)
        record = UpdateRecord(remote_version=best, download_url=download, homepage=reference.url)
        return self._with_main_file_headers(reference, record, reference.branch or tag["name"])

    def _with_main_file_headers(self, reference: RepositoryReference, record: UpdateRecord, ref: str) -> UpdateRecord:
        if not reference.main_file:
            return record
        url = f"{self.raw_base}/{reference.owner}/{reference.name}/{ref}/{reference.main_file}"
        return self._with_remote_headers(
            record, url, headers=self._headers(reference), auth=self._basic_auth(reference),
        )

    def _headers(self, reference: RepositoryReference) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token and not reference.has_credentials:
            headers["Authorization"] = f"token {self.token}"
        return headers

    @staticmethod
    def _branch_archive(reference: RepositoryReference) -> str:
        return f"https://github.com/{reference.owner}/{reference.name}/archive/refs/heads/{reference.branch}.zip"


class BitbucketAdapter(RepositoryAdapter):
    host_kind = HostKind.BITBUCKET
    api_base = "https://api.bitbucket.org/2.0"

    def fetch_latest(self, reference: RepositoryReference) -> UpdateRecord:
        """Newest tag of the repository by version order."""
        url = (
            f"{self.api_base}/repositories/{reference.owner}/{reference.name}"
            "/refs/tags?sort=-target.date&pagelen=100"
        )
        resp = self._get(url, auth=self._basic_auth(reference))
        self._raise_for_status(resp, url)
        data = self._json(resp, url)
        values = data.get("values") if isinstance(data, dict) else None
        if not isinstance(values, list):
            raise FetchError(FetchErrorKind.MALFORMED, "tag payload has no values", url)

        by_version: dict[str, dict] = {}
        for entry in values:
            if isinstance(entry, dict) and isinstance(entry.get("name"), str):
                by_version.setdefault(normalize_tag(entry["name"]), entry)
        best = newest(by_version)
        if best is None:
            raise FetchError(FetchErrorKind.NOT_FOUND, "repository has no tags", url)

        tag = by_version[best]
        target = tag.get("target") if isinstance(tag.get("target"), dict) else {}
        ref = reference.branch or tag["name"]
        record = UpdateRecord(
            remote_version=best,
            download_url=f"https://bitbucket.org/{reference.owner}/{reference.name}/get/{ref}.zip",
            homepage=reference.url,
            author=_bitbucket_author(target),
            last_updated=_str(target.get("date")),
            description=_str(tag.get("message")).strip(),
        )
        if not reference.main_file:
            return record
        src_url = (
            f"{self.api_base}/repositories/{reference.owner}/{reference.name}"
            f"/src/{ref}/{reference.main_file}"
        )
        return self._with_remote_headers(record, src_url, auth=self._basic_auth(reference))


class GenericGitAdapter(RepositoryAdapter):
    """Any Git server speaking the smart HTTP protocol.

    Tags are read from the ref advertisement; the download URL comes from a
    configurable archive template with ``{base}``, ``{name}`` and ``{ref}``.
    Smart HTTP offers no single-file endpoint, so ``requires`` and ``tested``
    stay empty.
    """

    host_kind = HostKind.GENERIC_GIT

    def __init__(self, http: HttpClient, timeout: float = DEFAULT_TIMEOUT,
                 ssl_policy: SslPolicy | None = None,
                 archive_template: str = DEFAULT_ARCHIVE_TEMPLATE):
        super().__init__(http, timeout=timeout, ssl_policy=ssl_policy)
        self.archive_template = archive_template

    def fetch_latest(self, reference: RepositoryReference) -> UpdateRecord:
        url = f"{reference.url}/info/refs?service=git-upload-pack"
        resp = self._get(url, auth=self._basic_auth(reference))
        self._raise_for_status(resp, url)
        try:
            refs = parse_ref_advertisement(resp.body)
        except ValueError as e:
            raise FetchError(FetchErrorKind.MALFORMED, str(e), url) from e

        tags: dict[str, str] = {}
        for ref in refs:
            if ref.startswith("refs/tags/"):
                tag = ref[len("refs/tags/"):].removesuffix("^{}")
                tags.setdefault(normalize_tag(tag), tag)
        best = newest(tags)
        if best is None:
            raise FetchError(FetchErrorKind.NOT_FOUND, "repository advertises no tags", url)

        base = reference.url.removesuffix(".git")
        download = self.archive_template.format(
            base=base,
            name=reference.name,
            ref=reference.branch or tags[best],
        )
        return UpdateRecord(remote_version=best, download_url=download, homepage=base)


def parse_ref_advertisement(body: bytes) -> list[str]:
    """Return ref names from a smart-HTTP ``info/refs`` response (pkt-line framed)."""
    refs: list[str] = []
    pos = 0
    while pos < len(body):
        size_hex = body[pos:pos + 4]
        if len(size_hex) < 4:
            raise ValueError("truncated pkt-line length")
        try:
            size = int(size_hex, 16)
        except ValueError as e:
            raise ValueError(f"invalid pkt-line length {size_hex!r}") from e
        if size == 0:
            pos += 4
            continue
        if size < 4 or pos + size > len(body):
            raise ValueError("pkt-line length out of range")
        line = body[pos + 4:pos + size]
        pos += size
        if line.startswith(b"#"):
            continue
        line = line.split(b"\0", 1)[0].rstrip(b"\n")
        sha, _, ref = line.partition(b" ")
        if len(sha) == 40 and ref:
            refs.append(ref.decode("utf-8", errors="replace"))
    return refs


class AdapterSet:
    """Holds one configured instance per adapter type and resolves references."""

    def __init__(self, adapters: list[RepositoryAdapter]):
        self.adapters = adapters

    def resolve(self, reference: RepositoryReference) -> RepositoryAdapter:
        """Return the first adapter that recognizes ``reference``.

        Raises ParseError when no adapter is available.
        """
        for adapter in self.adapters:
            if adapter.recognizes(reference):
                return adapter
        raise ParseError(reference.url)

    @classmethod
    def default(
        cls,
        http: HttpClient,
        timeout: float = DEFAULT_TIMEOUT,
        ssl_policy: SslPolicy | None = None,
        github_token: str | None = None,
        archive_template: str = DEFAULT_ARCHIVE_TEMPLATE,
    ) -> AdapterSet:
        policy = ssl_policy or SslPolicy()
        # Priority order matters: GitHub is by far the common case.
        return cls([
            GitHubAdapter(http, timeout=timeout, ssl_policy=policy, token=github_token),
            BitbucketAdapter(http, timeout=timeout, ssl_policy=policy),
            GenericGitAdapter(http, timeout=timeout, ssl_policy=policy, archive_template=archive_template),
        ])


def _str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _bitbucket_author(target: dict) -> str:
    author = target.get("author")
    if not isinstance(author, dict):
        return ""
    user = author.get("user")
    if isinstance(user, dict) and user.get("display_name"):
        return _str(user.get("display_name"))
    return _str(author.get("raw"))
