"""
File I/O utilities: async text read/write and frontmatter handling.

All functions operate on explicit paths, with no implicit directory lookups.
"""

from __future__ import annotations

import re
from pathlib import Path

import aiofiles
import yaml
from loguru import logger

FRONTMATTER_MARKER = "---"


def split_frontmatter(content: str) -> tuple[list[str] | None, str]:
    """
    Split a leading ``---`` delimited metadata block from markdown content.

    The opening marker must be the very first line and the block ends at the
    next line consisting only of the marker.

    Returns:
        (metadata_lines, body). ``metadata_lines`` is None when the content
        has no complete metadata block, in which case body is the original content.
    """
    lines = content.replace("\r\n", "\n").split("\n")
    if not lines or lines[0].strip() != FRONTMATTER_MARKER:
        return None, content

    for idx in range(1, len(lines)):
        if lines[idx].strip() == FRONTMATTER_MARKER:
            return lines[1:idx], "\n".join(lines[idx + 1 :])
    return None, content


def parse_frontmatter(content: str) -> tuple[dict, str]:
    """
    Parse YAML frontmatter from markdown content.

    Returns:
        (frontmatter_dict, content_without_frontmatter).
        If no frontmatter found, returns ({}, original_content).
    """
    meta_lines, body = split_frontmatter(content)
    if meta_lines is None:
        return {}, content

    yaml_content = "\n".join(meta_lines).replace("\t", "    ").strip()
    if not yaml_content:
        return {}, body.lstrip()

    try:
        frontmatter = yaml.safe_load(yaml_content) or {}
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse markdown frontmatter: {e}")
        return {}, body.lstrip()

    if not isinstance(frontmatter, dict):
        logger.warning(f"Ignoring non-mapping frontmatter of type {type(frontmatter).__name__}")
        return {}, body.lstrip()
    return frontmatter, body.lstrip()


def frontmatter_value(content: str, key: str) -> str | None:
    """
    Return a single frontmatter field as a stripped string, or None if absent/blank.

    Unquoted scalars that YAML would retype (``on`` -> True, ``010`` -> 8) are
    read back verbatim from their line.
    """
    frontmatter, _ = parse_frontmatter(content)
    value = frontmatter.get(key)
    if not isinstance(value, str):
        return _scan_frontmatter_line(content, key)
    return value.strip() or None


def _scan_frontmatter_line(content: str, key: str) -> str | None:
    # Fallback for blocks YAML rejects as a whole but whose key line is intact
    meta_lines, _ = split_frontmatter(content)
    if meta_lines is None:
        return None
    pattern = re.compile(rf"^{re.escape(key)}:\s*(.+?)\s*$")
    for line in meta_lines:
        match = pattern.match(line)
        if match:
            return match.group(1).strip("\"'") or None
    return None


async def read_text_async(path: str | Path, encoding: str = "utf-8") -> str:
    """Read a whole text file without blocking the event loop."""
    async with aiofiles.open(path, encoding=encoding) as f:
        return await f.read()


async def write_text_async(path: str | Path, content: str, *, exclusive: bool = False, encoding: str = "utf-8") -> None:
    """
    Write a whole text file without blocking the event loop.

    Args:
        path: Target file. Parent directories must already exist.
        content: Text to write.
        exclusive: Open with mode ``x`` so an existing file raises FileExistsError.
        encoding: Text encoding.
    """
    async with aiofiles.open(path, "x" if exclusive else "w", encoding=encoding) as f:
        await f.write(content)
