"""Data models for Git Plugin Updater."""

from __future__ import annotations

import enum


class HostKind(enum.Enum):
    GITHUB = "github"
    BITBUCKET = "bitbucket"
    GENERIC_GIT = "generic-git"
    UNKNOWN = "unknown"


class Ordering(enum.IntEnum):
    LESS = -1
    EQUAL = 0
    GREATER = 1
