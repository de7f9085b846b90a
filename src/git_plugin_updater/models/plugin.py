"""Installed plugin models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PluginDescriptor:
    identifier: str
    installed_version: str
    repository_url: str = ""
    branch: str | None = None
    name: str = ""
    active: bool = False

    @property
    def folder_name(self) -> str:
        """Directory the plugin lives in, relative to the plugins root.

        Single-file plugins (``hello.php``) map to a folder named after the file.
        """
        head, sep, _ = self.identifier.partition("/")
        if sep:
            return head
        return self.identifier.rsplit(".", 1)[0] if "." in self.identifier else self.identifier

    @property
    def main_file(self) -> str:
        return self.identifier.rsplit("/", 1)[-1]

    @property
    def installed_identifier(self) -> str:
        """Identifier the plugin has once an update has been installed into its folder."""
        if "/" in self.identifier:
            return self.identifier
        return f"{self.folder_name}/{self.identifier}"

    @property
    def display_name(self) -> str:
        return self.name or self.folder_name

    @classmethod
    def from_dict(cls, d: dict) -> PluginDescriptor:
        branch = d.get("branch") or d.get("git_branch") or None
        return cls(
            identifier=str(d.get("identifier") or d.get("slug", "")),
            installed_version=str(d.get("version", "")),
            repository_url=str(d.get("repository") or d.get("git_uri") or ""),
            branch=str(branch) if branch else None,
            name=str(d.get("name", "")),
            active=bool(d.get("active", False)),
        )
