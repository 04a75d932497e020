# clinical_markdown/B_parsing/B01_markdown_tokenizer.py
"""
Line tokenizer for clinical markdown documents.

Turns a document into a flat sequence of typed line tokens. Real markdown
constructs (ATX headings, bullets, numbered items, tables, blockquotes,
fenced code) and the pseudo-tags used by disease documents
(``<ClinicalSection type="...">``, ``</ClinicalSection>``,
``<ClinicalItem>...</ClinicalItem>``) are recognized by the same pass, so
every later stage works on one token type instead of re-scanning strings.

Key Components:
    - TokenKind: Tag of the token union
    - LineToken: Frozen token carrying the source line and its payload
    - tokenize: Tokenize a whole document (handles fences and pipe tables)
    - parse_heading: Heading level and title of a single line, if any

Example:
    >>> tokens = tokenize("## Symptoms\\n- Chest pain\\n<ClinicalItem>Dyspnea</ClinicalItem>")
    >>> [(t.kind.value, t.text) for t in tokens]
    [('heading', 'Symptoms'), ('bullet', 'Chest pain'), ('clinical_item', 'Dyspnea')]

Dependencies:
    - Z_utils.Z02_text_helpers: Table cell splitting
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from Z_utils.Z02_text_helpers import split_table_cells


class TokenKind(str, Enum):
    HEADING = "heading"
    BULLET = "bullet"
    ORDERED_ITEM = "ordered_item"
    CLINICAL_SECTION_OPEN = "clinical_section_open"
    CLINICAL_SECTION_CLOSE = "clinical_section_close"
    CLINICAL_ITEM = "clinical_item"
    TABLE_ROW = "table_row"
    TABLE_SEPARATOR = "table_separator"
    BLOCKQUOTE = "blockquote"
    FENCE = "fence"
    CODE = "code"
    BLANK = "blank"
    TEXT = "text"


@dataclass(frozen=True)
class LineToken:
    """
    One token of the document.

    Attributes:
        kind: Token tag.
        line_no: 0-based index of the source line.
        raw: The complete source line.
        text: Payload: heading title, item text, tag type or stripped line.
        level: Heading depth for HEADING, indentation for list items.
    """

    kind: TokenKind
    line_no: int
    raw: str
    text: str = ""
    level: int = 0


_HEADING = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.*?)(?:[ \t]+#+)?[ \t]*$")
_BULLET = re.compile(r"^([ \t]*)[-*+][ \t]+(.*)$")
_ORDERED = re.compile(r"^([ \t]*)\d{1,9}[.)][ \t]+(.*)$")
_BLOCKQUOTE = re.compile(r"^[ \t]{0,3}>[ \t]?(.*)$")
_FENCE = re.compile(r"^[ \t]{0,3}(```|~~~)")
_SEPARATOR_CELL = re.compile(r"^:?-+:?$")

# Pseudo-tags are matched anywhere in a line, in order of appearance
_CLINICAL_TAG = re.compile(
    r"<ClinicalSection\s+type\s*=\s*(?:\"([^\"]*)\"|'([^']*)')\s*>"
    r"|</ClinicalSection\s*>"
    r"|<ClinicalItem>(.*?)</ClinicalItem>",
    re.IGNORECASE,
)
_LIST_MARKER_ONLY = re.compile(r"^[-*+]?$")


def parse_heading(line: str) -> Optional[Tuple[int, str]]:
    """
    Return ``(level, title)`` for an ATX heading line, else None.

    A ``#`` run that is not followed by whitespace, or that has no title,
    is body text.
    """
    match = _HEADING.match(line)
    if not match:
        return None
    title = match.group(2).strip()
    if not title:
        return None
    return len(match.group(1)), title


def has_clinical_tag(line: str) -> bool:
    return "<" in line and _CLINICAL_TAG.search(line) is not None


def _is_table_separator(stripped: str) -> bool:
    if "|" not in stripped or "-" not in stripped:
        return False
    cells = split_table_cells(stripped)
    return bool(cells) and all(_SEPARATOR_CELL.match(c) for c in cells)


def _tag_tokens(line: str, line_no: int) -> List[LineToken]:
    """Tokens for a line holding at least one pseudo-tag."""
    tokens: List[LineToken] = []
    position = 0

    def gap(text: str) -> None:
        stripped = text.strip()
        if stripped and not _LIST_MARKER_ONLY.match(stripped):
            tokens.append(LineToken(TokenKind.TEXT, line_no, line, stripped))

    for match in _CLINICAL_TAG.finditer(line):
        gap(line[position:match.start()])
        position = match.end()
        section_type = match.group(1) if match.group(1) is not None else match.group(2)
        if section_type is not None:
            tokens.append(
                LineToken(TokenKind.CLINICAL_SECTION_OPEN, line_no, line, section_type.strip())
            )
        elif match.group(0).startswith("</"):
            tokens.append(LineToken(TokenKind.CLINICAL_SECTION_CLOSE, line_no, line))
        else:
            tokens.append(
                LineToken(TokenKind.CLINICAL_ITEM, line_no, line, (match.group(3) or "").strip())
            )
    gap(line[position:])
    return tokens


def _tokenize_line(line: str, line_no: int) -> List[LineToken]:
    stripped = line.strip()
    if not stripped:
        return [LineToken(TokenKind.BLANK, line_no, line)]

    if has_clinical_tag(line):
        return _tag_tokens(line, line_no)

    heading = parse_heading(line)
    if heading:
        level, title = heading
        return [LineToken(TokenKind.HEADING, line_no, line, title, level)]

    if _is_table_separator(stripped):
        return [LineToken(TokenKind.TABLE_SEPARATOR, line_no, line, stripped)]
    if stripped.startswith("|"):
        return [LineToken(TokenKind.TABLE_ROW, line_no, line, stripped)]

    match = _BULLET.match(line)
    if match:
        indent = len(match.group(1).expandtabs(4))
        return [LineToken(TokenKind.BULLET, line_no, line, match.group(2).strip(), indent)]

    match = _ORDERED.match(line)
    if match:
        indent = len(match.group(1).expandtabs(4))
        return [LineToken(TokenKind.ORDERED_ITEM, line_no, line, match.group(2).strip(), indent)]

    match = _BLOCKQUOTE.match(line)
    if match:
        return [LineToken(TokenKind.BLOCKQUOTE, line_no, line, match.group(1).strip())]

    return [LineToken(TokenKind.TEXT, line_no, line, stripped)]


def _promote_pipe_tables(tokens: List[LineToken]) -> List[LineToken]:
    """
    Turn ``a | b`` text lines into table rows when a separator follows.

    Tables written without leading pipes are only recognizable by their
    separator line, which the per-line pass cannot see ahead to.
    """
    result = list(tokens)
    i = 0
    while i < len(result) - 1:
        token = result[i]
        following = result[i + 1]
        if (
            token.kind == TokenKind.TEXT
            and "|" in token.text
            and following.kind == TokenKind.TABLE_SEPARATOR
        ):
            result[i] = replace(token, kind=TokenKind.TABLE_ROW)
            j = i + 2
            while j < len(result) and result[j].kind == TokenKind.TEXT and "|" in result[j].text:
                result[j] = replace(result[j], kind=TokenKind.TABLE_ROW)
                j += 1
            i = j
            continue
        i += 1
    return result


def tokenize(text: str) -> Tuple[LineToken, ...]:
    """
    Tokenize a document line by line.

    Lines inside fenced code blocks become CODE tokens and are never read as
    headings or tags. One line may produce several tokens when it holds
    several pseudo-tags.
    """
    tokens: List[LineToken] = []
    fence: Optional[str] = None

    for line_no, line in enumerate(text.splitlines()):
        fence_match = _FENCE.match(line)
        if fence is not None:
            if fence_match and fence_match.group(1) == fence:
                tokens.append(LineToken(TokenKind.FENCE, line_no, line, line.strip()))
                fence = None
            else:
                tokens.append(LineToken(TokenKind.CODE, line_no, line, line))
            continue
        if fence_match:
            fence = fence_match.group(1)
            tokens.append(LineToken(TokenKind.FENCE, line_no, line, line.strip()))
            continue
        tokens.extend(_tokenize_line(line, line_no))

    return tuple(_promote_pipe_tables(tokens))


__all__ = ["LineToken", "TokenKind", "has_clinical_tag", "parse_heading", "tokenize"]
