# clinical_markdown/B_parsing/B09_studies_parser.py
"""
Studies section parsing.

Entries are ``### `` headings in one of four shapes::

    ### 2019 • [DAPA-HF](https://pubmed.ncbi.nlm.nih.gov/31535829/)
    ### 2019 • DAPA-HF
    ### DAPA-HF (2019)
    ### Dapagliflozin in heart failure

followed by a description and either a ``**Citation**: Author. Journal.
Date.`` line or an italic ``*Author. Journal. Date.*`` line. Sections with no
``###`` entries fall back to ``**Title**`` blocks. Entries are returned
newest first; entries without a year sort last, in document order.

Example:
    >>> studies = parse_studies("### 2019 • DAPA-HF\\nFewer deaths.\\n### PARADIGM-HF (2014)\\nBetter.")
    >>> [(s.year, s.title) for s in studies]
    [('2019', 'DAPA-HF'), ('2014', 'PARADIGM-HF')]
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from A_core.A00_logging import get_logger
from A_core.A01_document_models import StudyEntry
from B_parsing.B01_markdown_tokenizer import TokenKind, tokenize
from B_parsing.B08_special_sections import extract_pubmed_url
from Z_utils.Z02_text_helpers import extract_year, normalize_whitespace

logger = get_logger(__name__)

_YEAR_FIRST = re.compile(r"^(?P<year>\d{4})\s*[•·\-–]\s*(?P<title>.+)$")
_YEAR_LAST = re.compile(r"^(?P<title>[^(]+?)\s*\((?P<year>\d{4})\)\s*$")
_LINK = re.compile(r"^\[(?P<label>[^\]]+)\](?:\((?P<href>[^)]+)\))?$")
_INLINE_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_CITATION_LINE = re.compile(r"^\*\*Citation\*\*\s*:\s*(?P<info>.+)$", re.IGNORECASE)
_ITALIC_SPAN = re.compile(r"(?<!\*)\*(?P<info>[^*]+)\*(?!\*)")
_BOLD_TITLE = re.compile(r"^\*\*(?P<title>[^*]+)\*\*\s*$")
_PAREN_YEAR = re.compile(r"\((\d{4})\)")


def parse_study_heading(heading: str) -> Tuple[str, Optional[str], Optional[str]]:
    """``(title, year, url)`` from a study heading."""
    match = _YEAR_FIRST.match(heading)
    if match:
        year, title = match.group("year"), match.group("title").strip()
        link = _LINK.match(title)
        if link:
            return link.group("label").strip(), year, link.group("href")
        return title, year, None
    match = _YEAR_LAST.match(heading)
    if match:
        return match.group("title").strip(), match.group("year"), None
    return heading.strip(), None, None


def split_citation(info: str) -> Tuple[str, str, str]:
    """``Author. Journal. Date.`` into its three parts; blanks when it has fewer."""
    parts = [part.strip() for part in info.split(".")]
    if len(parts) < 3:
        return "", "", ""
    return parts[0], parts[1], parts[2]


def _clean(text: str) -> str:
    return normalize_whitespace(_INLINE_LINK.sub(r"\1", text))


def build_study(title: str, body: str, year: Optional[str] = None, url: Optional[str] = None) -> StudyEntry:
    lines = [line.strip() for line in body.splitlines() if line.strip()]
    description_lines: List[str] = []
    citation_info: Optional[str] = None
    for line in lines:
        citation = _CITATION_LINE.match(line)
        if citation:
            citation_info = citation.group("info").strip()
            break
        italic = _ITALIC_SPAN.search(line)
        if italic and "." in italic.group("info"):
            before = line[:italic.start()].strip()
            if before:
                description_lines.append(before)
            citation_info = italic.group("info").strip()
            break
        description_lines.append(line)

    author, journal, date = split_citation(citation_info) if citation_info else ("", "", "")
    if year is None:
        paren_year = _PAREN_YEAR.search(body)
        year = paren_year.group(1) if paren_year else extract_year(date)
    return StudyEntry(
        title=title,
        year=year,
        description=_clean(" ".join(description_lines)),
        author=author,
        journal=journal,
        date=date,
        url=url,
        pubmed_url=extract_pubmed_url(body) or (url if url and "pubmed" in url else None),
    )


def _heading_entries(content: str) -> List[StudyEntry]:
    lines = content.splitlines()
    starts = [
        (token.line_no, token.text)
        for token in tokenize(content)
        if token.kind == TokenKind.HEADING and token.level == 3
    ]
    entries: List[StudyEntry] = []
    for index, (line_no, heading) in enumerate(starts):
        end = starts[index + 1][0] if index + 1 < len(starts) else len(lines)
        title, year, url = parse_study_heading(heading)
        if title:
            entries.append(build_study(title, "\n".join(lines[line_no + 1:end]), year, url))
    return entries


def _bold_entries(content: str) -> List[StudyEntry]:
    lines = content.splitlines()
    starts = [(i, m.group("title").strip()) for i, m in enumerate(map(_BOLD_TITLE.match, lines)) if m]
    entries: List[StudyEntry] = []
    for index, (line_no, title) in enumerate(starts):
        end = starts[index + 1][0] if index + 1 < len(starts) else len(lines)
        entries.append(build_study(title, "\n".join(lines[line_no + 1:end])))
    return entries


def parse_studies(content: str) -> List[StudyEntry]:
    """Study entries of a Studies section body, newest first."""
    entries = _heading_entries(content) or _bold_entries(content)
    entries.sort(key=lambda entry: -int(entry.year) if entry.year else 0)
    logger.debug(f"Parsed {len(entries)} studies")
    return entries


__all__ = ["build_study", "parse_studies", "parse_study_heading", "split_citation"]
