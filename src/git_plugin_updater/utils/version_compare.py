"""Version comparison utilities.

Well-formed versions are ordered by PEP 440 rules via ``packaging``. When
either side cannot be parsed, both sides fall back to a tolerant segment
comparison so that the result is always defined: numeric chunks compare
numerically, other chunks compare case-insensitively, a numeric chunk sorts
above an alphabetic one at the same position and missing segments count as
zero. Blank versions sort below everything else.
"""

from __future__ import annotations

import re
from itertools import zip_longest
from typing import Iterable

from packaging.version import InvalidVersion, Version

from git_plugin_updater.models import Ordering


def parse_version(v: str | None) -> Version | None:
    """Parse a version string, returning None on failure."""
    if not v:
        return None
    v = v.strip()
    try:
        return Version(v)
    except InvalidVersion:
        # Try stripping leading 'v'
        if v[:1] in ("v", "V"):
            try:
                return Version(v[1:])
            except InvalidVersion:
                pass
    return None


def normalize_tag(tag: str) -> str:
    """Turn a release tag like ``v1.3.0`` into a bare version string."""
    tag = (tag or "").strip()
    if tag[:1] in ("v", "V") and tag[1:2].isdigit():
        return tag[1:]
    return tag


def compare(a: str | None, b: str | None) -> Ordering:
    """Compare two version strings. Never raises."""
    a = (a or "").strip()
    b = (b or "").strip()
    if not a or not b:
        if a == b:
            return Ordering.EQUAL
        return Ordering.GREATER if a else Ordering.LESS

    left = parse_version(a)
    right = parse_version(b)
    if left is not None and right is not None:
        if left == right:
            return Ordering.EQUAL
        return Ordering.GREATER if left > right else Ordering.LESS

    return _compare_loose(_loose_parts(a), _loose_parts(b))


def is_newer(current: str | None, candidate: str | None) -> bool:
    """Return True if candidate is newer than current."""
    return compare(candidate, current) is Ordering.GREATER


def newest(versions: Iterable[str]) -> str | None:
    """Pick the highest version from ``versions`` (first one wins on ties)."""
    best: str | None = None
    for v in versions:
        if not v:
            continue
        if best is None or compare(v, best) is Ordering.GREATER:
            best = v
    return best


def classify_update(current: str, latest: str) -> str:
    """Classify the update type between two version strings.

    Returns: "major", "minor", "patch", "up-to-date", or "unknown".
    """
    if not is_newer(current, latest):
        return "up-to-date"

    cur = parse_version(current)
    lat = parse_version(latest)
    if cur is None or lat is None:
        return "unknown"
    if lat.major > cur.major:
        return "major"
    if lat.minor > cur.minor:
        return "minor"
    return "patch"


def _loose_parts(version: str) -> list[int | str]:
    if version[:1] in ("v", "V"):
        version = version[1:]
    parts: list[int | str] = []
    for chunk in re.split(r"[.\-+_]", version):
        if not chunk:
            continue
        parts.append(int(chunk) if chunk.isdigit() else chunk.lower())
    return parts


def _compare_loose(left: list[int | str], right: list[int | str]) -> Ordering:
    for cur, other in zip_longest(left, right, fillvalue=0):
        if cur == other:
            continue
        if isinstance(cur, int) and isinstance(other, int):
            return Ordering.LESS if cur < other else Ordering.GREATER
        if isinstance(cur, int):
            return Ordering.GREATER
        if isinstance(other, int):
            return Ordering.LESS
        return Ordering.LESS if cur < other else Ordering.GREATER
    return Ordering.EQUAL
