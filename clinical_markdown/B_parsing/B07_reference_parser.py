# clinical_markdown/B_parsing/B07_reference_parser.py
"""
Bibliography line structuring.

Each non-blank line becomes a ReferenceEntry: the leading ``N.`` numbering
token is captured separately, and the remainder is split left to right into
text, bold (``**...**``) and link (``[label](href)``) parts. The parts cover
the remainder exactly, so joining their ``content`` gives it back.

Example:
    >>> entry = parse_reference_line("3. Smith J. **Lancet**. [PubMed](https://pubmed.ncbi.nlm.nih.gov/1/)")
    >>> entry.number, [p.kind.value for p in entry.parts]
    ('3', ['text', 'bold', 'text', 'link'])
"""

from __future__ import annotations

import re
from typing import List, Optional

from A_core.A00_logging import get_logger
from A_core.A01_document_models import ReferenceEntry, ReferencePart, ReferencePartKind

logger = get_logger(__name__)

_NUMBERING = re.compile(r"^\s*(\d+)\.\s+")
_INLINE = re.compile(r"\*\*(?P<bold>.+?)\*\*|\[(?P<label>[^\]]+)\]\((?P<href>[^)\s]+)\)")


def split_reference_parts(text: str) -> List[ReferencePart]:
    """Typed parts covering ``text`` with no gaps or overlaps."""
    parts: List[ReferencePart] = []
    position = 0
    for match in _INLINE.finditer(text):
        if match.start() > position:
            gap = text[position:match.start()]
            parts.append(ReferencePart(kind=ReferencePartKind.TEXT, content=gap, text=gap))
        if match.group("bold") is not None:
            parts.append(
                ReferencePart(kind=ReferencePartKind.BOLD, content=match.group(0), text=match.group("bold"))
            )
        else:
            parts.append(
                ReferencePart(
                    kind=ReferencePartKind.LINK,
                    content=match.group(0),
                    text=match.group("label"),
                    href=match.group("href"),
                )
            )
        position = match.end()
    if position < len(text) or not parts:
        rest = text[position:]
        parts.append(ReferencePart(kind=ReferencePartKind.TEXT, content=rest, text=rest))
    return parts


def parse_reference_line(line: str) -> Optional[ReferenceEntry]:
    """Entry for one line; None for a blank line."""
    if not line.strip():
        return None
    number = None
    remainder = line
    match = _NUMBERING.match(line)
    if match:
        number = match.group(1)
        remainder = line[match.end():]
    return ReferenceEntry(number=number, parts=tuple(split_reference_parts(remainder)))


def parse_references(content: str) -> List[ReferenceEntry]:
    entries = [entry for entry in map(parse_reference_line, content.splitlines()) if entry is not None]
    logger.debug(f"Parsed {len(entries)} reference lines")
    return entries


__all__ = ["parse_reference_line", "parse_references", "split_reference_parts"]
