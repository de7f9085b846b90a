"""Read plugin metadata from the comment header of a plugin's main file.

Only the first few kilobytes are inspected, and header names are matched
case-insensitively at the start of a (possibly comment-prefixed) line::

    /*
     * Plugin Name: Example
     * Version: 1.2.0
     * Git URI: https://github.com/acme/example
     * Git Branch: main
     */
"""

from __future__ import annotations

import re
from pathlib import Path

HEADER_READ_BYTES = 8192

PLUGIN_HEADERS: dict[str, str] = {
    "name": "Plugin Name",
    "version": "Version",
    "description": "Description",
    "author": "Author",
    "plugin_uri": "Plugin URI",
    "requires": "Requires at least",
    "tested": "Tested up to",
    "git_uri": "Git URI",
    "git_branch": "Git Branch",
}


def parse_headers(text: str, headers: dict[str, str] | None = None) -> dict[str, str]:
    """Extract ``headers`` (key -> header label) from ``text``.

    Missing headers map to an empty string.
    """
    headers = headers or PLUGIN_HEADERS
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    result: dict[str, str] = {}
    for key, label in headers.items():
        pattern = re.compile(
            r"^[ \t/*#@]*" + re.escape(label) + r":(.*)$",
            re.IGNORECASE | re.MULTILINE,
        )
        match = pattern.search(text)
        result[key] = _cleanup(match.group(1)) if match else ""
    return result


def read_header_file(path: Path) -> dict[str, str]:
    """Parse headers from the start of ``path``."""
    with path.open("rb") as fh:
        head = fh.read(HEADER_READ_BYTES)
    return parse_headers(head.decode("utf-8", errors="replace"))


def _cleanup(value: str) -> str:
    # Trailing "*/" or "?>" closes the comment block on the same line
    value = re.sub(r"\s*(?:\*/|\?>).*$", "", value)
    return value.strip()
