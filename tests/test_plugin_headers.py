"""
Tests for plugin header parsing.
"""

from git_plugin_updater.utils.plugin_headers import parse_headers, read_header_file

SAMPLE = """<?php
/**
 * Plugin Name: Hello Git
 * Version: 1.2.0
 * Description: Says hello.
 * Git URI: https://github.com/acme/hello
 * git branch: main */
"""


class TestParseHeaders:
    def test_reads_known_headers(self):
        headers = parse_headers(SAMPLE)
        assert headers["name"] == "Hello Git"
        assert headers["version"] == "1.2.0"
        assert headers["git_uri"] == "https://github.com/acme/hello"

    def test_case_insensitive_and_strips_comment_close(self):
        assert parse_headers(SAMPLE)["git_branch"] == "main"

    def test_missing_headers_are_empty(self):
        headers = parse_headers(SAMPLE)
        assert headers["tested"] == ""
        assert headers["requires"] == ""

    def test_windows_line_endings(self):
        headers = parse_headers(SAMPLE.replace("\n", "\r\n"))
        assert headers["version"] == "1.2.0"

    def test_read_header_file(self, tmp_path):
        path = tmp_path / "hello.php"
        path.write_text(SAMPLE, encoding="utf-8")
        assert read_header_file(path)["name"] == "Hello Git"
