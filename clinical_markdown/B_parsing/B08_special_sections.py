# clinical_markdown/B_parsing/B08_special_sections.py
"""
Updated Evidence and Landmark Trial callouts.

A line of the form ``### Updated Evidence: <name>``, ``#### Landmark Trials:
<name>`` or ``**Updated Evidence: <name>**`` opens a callout. Its description
runs until the next heading (levels 1-4), the next line starting with
``**`` or an ``As per`` line, so guideline statements that follow a callout
stay with the guideline extractor. The italic citation (``*Author. Journal.
2021.*``) and PubMed link are lifted out of the description.

Lines that are not part of a callout are returned unchanged, in order.

Example:
    >>> callouts, rest = extract_special_sections("### Updated Evidence: DAPA-HF\\nReduced mortality.\\nProse.")
    >>> callouts[0].title, callouts[0].description
    ('DAPA-HF', 'Reduced mortality.\\nProse.')
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from A_core.A00_logging import get_logger
from A_core.A01_document_models import SpecialSection, SpecialSectionKind

logger = get_logger(__name__)

CALLOUT_HEADER = re.compile(
    r"^(#{3,4}|\*\*)\s*(updated\s+evidence|landmark\s+trials?):\s*(.+?)(\*\*)?\s*$",
    re.IGNORECASE,
)
_DESCRIPTION_STOP = re.compile(r"^(?:#{1,4}\s|\*\*|\s*as\s+per\s)", re.IGNORECASE)
_CITATION = re.compile(r"\*([^*]+\.)\*")
_PUBMED_LINK = re.compile(r"\[PubMed\]\((https?://[^)]+)\)", re.IGNORECASE)
_PUBMED_URL = re.compile(r"https?://pubmed\.ncbi\.nlm\.nih\.gov/[^)\s]+")


def extract_pubmed_url(text: str) -> Optional[str]:
    """``[PubMed](url)`` target, else the first bare PubMed URL."""
    match = _PUBMED_LINK.search(text)
    if match:
        return match.group(1)
    match = _PUBMED_URL.search(text)
    return match.group(0) if match else None


def _clean_description(text: str, citation_span: Optional[str]) -> str:
    if citation_span:
        text = text.replace(citation_span, "", 1)
    text = _PUBMED_LINK.sub("", text)
    text = _PUBMED_URL.sub("", text)
    lines = [line.rstrip() for line in text.splitlines()]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


def build_special_section(header: "re.Match[str]", body: str, raw: str) -> SpecialSection:
    kind = (
        SpecialSectionKind.UPDATED_EVIDENCE
        if header.group(2).lower().startswith("updated")
        else SpecialSectionKind.LANDMARK_TRIAL
    )
    citation = _CITATION.search(body)
    return SpecialSection(
        kind=kind,
        title=header.group(3).strip().rstrip("*").strip(),
        description=_clean_description(body, citation.group(0) if citation else None),
        citation=citation.group(1).strip() if citation else None,
        pubmed_url=extract_pubmed_url(body),
        raw=raw,
    )


def extract_special_sections(content: str) -> Tuple[List[SpecialSection], str]:
    """
    Callouts of a section body and the text left once they are removed.
    """
    lines = content.split("\n")
    callouts: List[SpecialSection] = []
    remaining: List[str] = []
    index = 0
    while index < len(lines):
        header = CALLOUT_HEADER.match(lines[index])
        if header is None:
            remaining.append(lines[index])
            index += 1
            continue

        end = index + 1
        while end < len(lines) and not _DESCRIPTION_STOP.match(lines[end]):
            end += 1
        body = "\n".join(lines[index + 1:end])
        callouts.append(build_special_section(header, body, "\n".join(lines[index:end])))
        index = end

    if callouts:
        logger.debug(f"Found {len(callouts)} evidence callouts")
    return callouts, "\n".join(remaining)


__all__ = ["CALLOUT_HEADER", "build_special_section", "extract_pubmed_url", "extract_special_sections"]
