"""Extract embeddable plain text from stored journal entries."""

from __future__ import annotations

from reverie.core.utils.file_io import split_frontmatter

from .models import SearchableText

SECTION_MARKER = "## "


def extract_searchable_text(raw_content: str) -> SearchableText:
    """
    Strip the metadata block and headings from an entry, returning its body text.

    Section names are collected in first-seen order. Body lines are joined
    with single spaces, so the result is one line of plain text. Content
    without a metadata block is treated as plain body text with no sections.

    Example::

        >>> extract_searchable_text("---\\ntitle: x\\n---\\n\\n## User\\n\\nLikes tea")
        SearchableText(text='Likes tea', sections=['User'])
    """
    meta_lines, body = split_frontmatter(raw_content)

    if meta_lines is None:
        text = " ".join(line.strip() for line in raw_content.splitlines() if line.strip())
        return SearchableText(text=text, sections=[])

    sections: list[str] = []
    parts: list[str] = []
    for line in body.splitlines():
        stripped = line.strip()
        if line.startswith(SECTION_MARKER):
            name = line[len(SECTION_MARKER) :].strip()
            if name and name not in sections:
                sections.append(name)
            continue
        if stripped:
            parts.append(stripped)

    return SearchableText(text=" ".join(parts), sections=sections)
