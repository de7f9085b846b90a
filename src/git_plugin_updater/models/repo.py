"""Repository, release and update models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path

from git_plugin_updater.core.errors import ReactivationFailedError
from git_plugin_updater.models import HostKind


@dataclass(frozen=True)
class RepositoryReference:
    host_kind: HostKind
    owner: str = ""
    name: str = ""
    url: str = ""
    branch: str | None = None
    username: str | None = field(default=None, repr=False)
    password: str | None = field(default=None, repr=False)
    main_file: str = ""

    @property
    def is_known(self) -> bool:
        return self.host_kind is not HostKind.UNKNOWN

    @property
    def full_name(self) -> str:
        if self.owner:
            return f"{self.owner}/{self.name}"
        return self.name

    @property
    def has_credentials(self) -> bool:
        return bool(self.username)


@dataclass(frozen=True)
class UpdateRecord:
    remote_version: str
    download_url: str
    homepage: str = ""
    author: str = ""
    requires: str = ""
    tested: str = ""
    last_updated: str = ""
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> UpdateRecord:
        return cls(
            remote_version=str(d.get("remote_version", "")),
            download_url=str(d.get("download_url", "")),
            homepage=str(d.get("homepage", "")),
            author=str(d.get("author", "")),
            requires=str(d.get("requires", "")),
            tested=str(d.get("tested", "")),
            last_updated=str(d.get("last_updated", "")),
            description=str(d.get("description", "")),
        )


@dataclass
class UpdateOffer:
    identifier: str
    current_version: str
    new_version: str
    download_url: str
    homepage: str
    description: str
    update_type: str  # "major", "minor", "patch", "unknown"


@dataclass
class UpdateOutcome:
    identifier: str
    destination: Path
    reactivated: bool = False
    warning: ReactivationFailedError | None = None
    installed_identifier: str = ""

    @property
    def succeeded_with_warning(self) -> bool:
        return self.warning is not None
