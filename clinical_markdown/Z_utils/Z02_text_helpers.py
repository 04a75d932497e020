# clinical_markdown/Z_utils/Z02_text_helpers.py
"""
Text helpers shared by the parse stages.

Slugs for section ids, reading-time estimates, inline markup stripping,
table cell splitting and whole-word keyword search.
"""

from __future__ import annotations

import math
import re
from typing import Iterable, List, Optional

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
_WORD_PATTERN = re.compile(r"\S+")
_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_EMPHASIS_PATTERN = re.compile(r"(\*\*|\*)(?=\S)(.+?)(?<=\S)\1")
_YEAR_PATTERN = re.compile(r"\b(1[89]\d{2}|2\d{3})\b")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def slugify(title: str) -> str:
    """
    Lower-case slug of a heading title.

    Runs of characters outside ``[a-z0-9]`` become a single hyphen and
    leading/trailing hyphens are dropped.

    >>> slugify("Clinical Findings & Diagnosis")
    'clinical-findings-diagnosis'
    """
    return _SLUG_PATTERN.sub("-", title.lower()).strip("-")


def estimate_reading_time(text: str, words_per_minute: int = 200) -> int:
    """Minutes needed to read ``text``, rounded up; 0 for blank text."""
    words = len(_WORD_PATTERN.findall(text))
    if words == 0:
        return 0
    return max(1, math.ceil(words / max(1, words_per_minute)))


def strip_inline_markup(text: str) -> str:
    """Remove links (keeping their label) and bold/italic markers."""
    text = _LINK_PATTERN.sub(r"\1", text)
    previous = None
    while previous != text:
        previous = text
        text = _EMPHASIS_PATTERN.sub(r"\2", text)
    return text


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def split_table_cells(line: str) -> List[str]:
    """
    Split a markdown table row into trimmed cells.

    Leading and trailing pipes are optional; ``\\|`` is kept as a literal
    pipe inside a cell.
    """
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    cells = re.split(r"(?<!\\)\|", row)
    return [cell.strip().replace("\\|", "|") for cell in cells]


def extract_year(text: str) -> Optional[str]:
    """First plausible 4-digit year in ``text``."""
    match = _YEAR_PATTERN.search(text)
    return match.group(1) if match else None


def contains_words(text: str, words: Iterable[str]) -> bool:
    """
    True when every entry of ``words`` occurs in ``text`` as whole words.

    Matching is case-insensitive; an entry may itself be a phrase.
    """
    lowered = text.lower()
    for word in words:
        pattern = r"(?<![a-z0-9])" + re.escape(word.lower()) + r"(?![a-z0-9])"
        if not re.search(pattern, lowered):
            return False
    return True
