"""Tests for reverie.core.utils.file_io."""

import pytest

from reverie.core.utils.file_io import (
    frontmatter_value,
    parse_frontmatter,
    read_text_async,
    split_frontmatter,
    write_text_async,
)

ENTRY = """---
title: "3:04:05 PM - May 31, 2025"
date: 2025-05-31T15:04:05.123+00:00
timestamp: 1748703845123
project: alpha
---

## User

Likes tea.
"""


class TestSplitFrontmatter:
    def test_splits_block(self):
        meta, body = split_frontmatter(ENTRY)
        assert meta[0].startswith("title:")
        assert meta[-1] == "project: alpha"
        assert body.strip().startswith("## User")

    def test_no_block(self):
        meta, body = split_frontmatter("just text\n---\nmore")
        assert meta is None
        assert body == "just text\n---\nmore"

    def test_unterminated_block(self):
        content = "---\ntitle: x\nno closing marker"
        meta, body = split_frontmatter(content)
        assert meta is None
        assert body == content

    def test_crlf(self):
        meta, body = split_frontmatter("---\r\nproject: beta\r\n---\r\nBody")
        assert meta == ["project: beta"]
        assert body == "Body"


class TestParseFrontmatter:
    def test_parse(self):
        fm, body = parse_frontmatter(ENTRY)
        assert fm["project"] == "alpha"
        assert fm["timestamp"] == 1748703845123
        assert body.startswith("## User")

    def test_no_frontmatter(self):
        content = "# Just a heading\n\nContent"
        fm, body = parse_frontmatter(content)
        assert fm == {}
        assert body == content

    def test_malformed_yaml_returns_empty(self):
        fm, body = parse_frontmatter("---\ntitle: [broken\n---\nBody")
        assert fm == {}
        assert body == "Body"


class TestFrontmatterValue:
    def test_reads_string(self):
        assert frontmatter_value(ENTRY, "project") == "alpha"

    @pytest.mark.parametrize("raw", ["on", "no", "010", "1_000"])
    def test_unquoted_scalars_read_verbatim(self, raw):
        assert frontmatter_value(f"---\nproject: {raw}\n---\n", "project") == raw

    def test_quoted_value(self):
        assert frontmatter_value('---\nproject: "on"\n---\n', "project") == "on"

    def test_numeric_value_stringified(self):
        assert frontmatter_value("---\nproject: 2024\n---\n", "project") == "2024"

    def test_missing_key(self):
        assert frontmatter_value(ENTRY, "mood") is None

    def test_no_block(self):
        assert frontmatter_value("project: alpha", "project") is None

    def test_falls_back_to_line_scan_when_yaml_breaks(self):
        content = "---\ntitle: [broken\nproject: gamma\n---\nBody"
        assert frontmatter_value(content, "project") == "gamma"


class TestAsyncIO:
    @pytest.mark.asyncio
    async def test_write_then_read(self, tmp_path):
        path = tmp_path / "note.md"
        await write_text_async(path, "hello")
        assert await read_text_async(path) == "hello"

    @pytest.mark.asyncio
    async def test_exclusive_refuses_existing(self, tmp_path):
        path = tmp_path / "note.md"
        path.write_text("first")
        with pytest.raises(FileExistsError):
            await write_text_async(path, "second", exclusive=True)
        assert path.read_text() == "first"
