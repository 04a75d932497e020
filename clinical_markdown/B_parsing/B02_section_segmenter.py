# clinical_markdown/B_parsing/B02_section_segmenter.py
"""
Section segmentation for clinical markdown documents.

Splits a document on level-1 (``# ``) and level-2 (``## ``) headings. The
text between two heading lines belongs to the earlier heading; deeper
headings stay inside their section. Clinical Findings sections keep their own
heading line in ``raw_content`` so the findings parser can be run on them as
a self-contained document, and ``render_sections`` turns a section list back
into text that segments to the same boundaries.

Text with no heading above it becomes an implicit level-2 section titled from
its first line. Malformed heading markers (``#Title``, ``####### x``) are
body text; nothing here raises for document content.

Example:
    >>> sections = segment_sections("# Myocarditis\\n## Background\\nText\\n## Studies\\n...")
    >>> [(s.id, s.level, s.is_collapsed_by_default) for s in sections]
    [('myocarditis', 1, False), ('background', 2, False), ('studies', 2, True)]

Dependencies:
    - B_parsing.B01_markdown_tokenizer: Heading recognition (fence aware)
    - G_config: Collapse keywords
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from A_core.A00_logging import get_logger
from A_core.A01_document_models import Section
from B_parsing.B01_markdown_tokenizer import TokenKind, tokenize
from G_config.G02_parser_config import ParserConfig, default_config
from Z_utils.Z02_text_helpers import normalize_whitespace, slugify, strip_inline_markup

logger = get_logger(__name__)

IMPLICIT_TITLE_MAX_CHARS = 60
_LEADING_MARKERS = re.compile(r"^(?:#{1,6}\s+|[-*+]\s+|\d+[.)]\s+|>\s*)+")


def retains_heading(title: str) -> bool:
    """Clinical Findings sections store their own heading line."""
    lowered = title.lower()
    return "clinical" in lowered and "findings" in lowered


def is_collapsed_title(title: str, config: Optional[ParserConfig] = None) -> bool:
    config = config or default_config()
    lowered = title.lower()
    return any(keyword in lowered for keyword in config.collapsed_title_keywords)


def implicit_title(text: str) -> str:
    """Title for headingless text: its first non-blank line, shortened."""
    for line in text.splitlines():
        candidate = normalize_whitespace(strip_inline_markup(_LEADING_MARKERS.sub("", line.strip())))
        if not candidate:
            continue
        if len(candidate) <= IMPLICIT_TITLE_MAX_CHARS:
            return candidate
        cut = candidate[:IMPLICIT_TITLE_MAX_CHARS].rsplit(" ", 1)[0]
        return cut.rstrip(" ,;:.") + "..."
    return "Untitled"


class SectionSegmenter:
    """
    Splits documents into Section values.

    Args:
        config: Parser configuration; the packaged default when omitted.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or default_config()

    def segment(self, text: str) -> List[Section]:
        lines = text.splitlines()
        boundaries = [
            (token.line_no, token.level, token.text)
            for token in tokenize(text)
            if token.kind == TokenKind.HEADING and token.level <= 2
        ]

        sections: List[Section] = []
        used_ids: Dict[str, int] = {}

        preamble_end = boundaries[0][0] if boundaries else len(lines)
        preamble = "\n".join(lines[:preamble_end]).strip()
        if preamble:
            sections.append(self._implicit_section(preamble, used_ids))

        for index, (line_no, level, title) in enumerate(boundaries):
            end = boundaries[index + 1][0] if index + 1 < len(boundaries) else len(lines)
            start = line_no if retains_heading(title) else line_no + 1
            content = "\n".join(lines[start:end]).strip()
            sections.append(
                Section(
                    id=self._unique_id(title, used_ids),
                    title=title,
                    level=level,
                    raw_content=content,
                    is_collapsed_by_default=is_collapsed_title(title, self.config),
                )
            )

        logger.debug(
            f"Segmented {len(sections)} sections "
            f"({len(boundaries)} headings, implicit preamble={bool(preamble)})"
        )
        return sections

    def _implicit_section(self, content: str, used_ids: Dict[str, int]) -> Section:
        title = implicit_title(content)
        return Section(
            id=self._unique_id(title, used_ids),
            title=title,
            level=2,
            raw_content=content,
            is_collapsed_by_default=is_collapsed_title(title, self.config),
            is_implicit=True,
        )

    @staticmethod
    def _unique_id(title: str, used_ids: Dict[str, int]) -> str:
        """Slug of the title; repeated titles get ``-2``, ``-3``... suffixes."""
        base = slugify(title) or "section"
        count = used_ids.get(base, 0) + 1
        used_ids[base] = count
        return base if count == 1 else f"{base}-{count}"


def segment_sections(text: str, config: Optional[ParserConfig] = None) -> List[Section]:
    """Convenience wrapper around SectionSegmenter.segment."""
    return SectionSegmenter(config).segment(text)


def render_section(section: Section) -> str:
    """Markdown text of one section, heading included."""
    if section.is_implicit:
        return section.raw_content
    if retains_heading(section.title) and section.raw_content.lstrip().startswith("#"):
        return section.raw_content
    heading = f"{'#' * section.level} {section.title}"
    if not section.raw_content:
        return heading
    return f"{heading}\n{section.raw_content}"


def render_sections(sections: Sequence[Section]) -> str:
    """Concatenate sections back into a document that re-segments identically."""
    return "\n\n".join(render_section(s) for s in sections)


def section_outline(sections: Sequence[Section]) -> List[Tuple[int, str]]:
    """``(level, title)`` pairs, the boundaries compared by re-segmentation."""
    return [(s.level, s.title) for s in sections]


__all__ = [
    "SectionSegmenter",
    "implicit_title",
    "is_collapsed_title",
    "render_section",
    "render_sections",
    "retains_heading",
    "section_outline",
    "segment_sections",
]
