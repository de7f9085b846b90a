"""Download, extract and move a release archive into place."""

from __future__ import annotations

import logging
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Protocol

import requests

from git_plugin_updater.core.errors import InstallFailedError
from git_plugin_updater.core.http_client import SslPolicy
from git_plugin_updater.utils.repo_url import strip_credentials

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 60


class Installer(Protocol):
    def install(self, identifier: str, download_url: str, destination: Path) -> Path: ...


class ArchiveInstaller:
    """Installs zip archives as produced by GitHub, Bitbucket and Gitea.

    Those archives wrap everything in one top-level folder named after the
    repository and revision; its contents end up directly in ``destination``.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = DOWNLOAD_TIMEOUT,
        ssl_policy: SslPolicy | None = None,
        user_agent: str = "git-plugin-updater",
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.ssl_policy = ssl_policy or SslPolicy()
        self.user_agent = user_agent

    def install(self, identifier: str, download_url: str, destination: Path) -> Path:
        destination = Path(destination)
        with tempfile.TemporaryDirectory(prefix="gpu-") as tmp:
            tmp_path = Path(tmp)
            archive = tmp_path / "package.zip"
            self._download(identifier, download_url, archive)
            source = self._extract(identifier, archive, tmp_path / "extract")
            self._swap_into_place(identifier, source, destination)
        logger.info("Installed %s into %s", identifier, destination)
        return destination

    def _download(self, identifier: str, url: str, target: Path) -> None:
        safe_url = strip_credentials(url)
        logger.info("Downloading %s from %s", identifier, safe_url)
        try:
            with self.session.get(
                url,
                timeout=self.timeout,
                stream=True,
                verify=self.ssl_policy.verify_for(url),
                headers={"User-Agent": self.user_agent},
            ) as resp:
                resp.raise_for_status()
                with target.open("wb") as fh:
                    for chunk in resp.iter_content(chunk_size=8192):
                        fh.write(chunk)
        except requests.RequestException as e:
            raise InstallFailedError(identifier, f"download failed from {safe_url}: {e}") from e
        except OSError as e:
            raise InstallFailedError(identifier, f"could not write archive: {e}") from e

    @staticmethod
    def _extract(identifier: str, archive: Path, target: Path) -> Path:
        try:
            with zipfile.ZipFile(archive) as zf:
                names = zf.namelist()
                if not names:
                    raise InstallFailedError(identifier, "archive is empty")
                for name in names:
                    member = PurePosixPath(name)
                    if member.is_absolute() or ".." in member.parts:
                        raise InstallFailedError(identifier, f"unsafe path in archive: {name}")
                zf.extractall(target)
        except zipfile.BadZipFile as e:
            raise InstallFailedError(identifier, "download is not a zip archive") from e

        children = [c for c in target.iterdir() if not c.name.startswith("__MACOSX")]
        if len(children) == 1 and children[0].is_dir():
            return children[0]
        return target

    @staticmethod
    def _swap_into_place(identifier: str, source: Path, destination: Path) -> None:
        backup = destination.with_name(f".{destination.name}.gpu-old")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if backup.exists():
                shutil.rmtree(backup)
            if destination.exists():
                destination.rename(backup)
            shutil.move(str(source), str(destination))
        except OSError as e:
            if backup.exists() and not destination.exists():
                backup.rename(destination)
            raise InstallFailedError(identifier, f"could not move files into {destination}: {e}") from e
        shutil.rmtree(backup, ignore_errors=True)
