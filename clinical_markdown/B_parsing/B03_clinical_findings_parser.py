# clinical_markdown/B_parsing/B03_clinical_findings_parser.py
"""
Clinical findings extraction.

Reads the body of a "Clinical Findings" / "Clinical Presentation" section and
returns categorized finding groups. Two item syntaxes are first-class and may
be mixed inside one group:

    ### Symptoms
    - Chest pain
    <ClinicalItem>Dyspnea</ClinicalItem>

A ``### `` heading opens a group; ``<ClinicalSection type="X">`` opens one
when no heading did (X is then both the title and the category seed) and
simply continues the group when it directly follows the heading. A ``## ``
heading of another chapter closes the current group and ends the block.
Groups without items are dropped.

Key Components:
    - ClinicalFindingsParser: Token-driven group builder
    - infer_category: Ordered keyword rules from config
    - normalize_clinical_markup: Rewrites bullet lists into pseudo-tag form

Example:
    >>> parser = ClinicalFindingsParser()
    >>> findings = parser.parse("### Symptoms\\n- Chest pain\\n- Dyspnea\\n")
    >>> findings[0].category.value, findings[0].items
    ('symptoms', ('Chest pain', 'Dyspnea'))

Dependencies:
    - B_parsing.B01_markdown_tokenizer: Token stream
    - G_config: Category keyword rules
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

from A_core.A00_logging import get_logger
from A_core.A01_document_models import ClinicalFinding, FindingCategory
from A_core.A02_parse_context import ParseContext
from B_parsing.B01_markdown_tokenizer import LineToken, TokenKind, has_clinical_tag, tokenize
from G_config.G02_parser_config import ParserConfig, default_config

logger = get_logger(__name__)

DEFAULT_BLOCK_TITLE = "Clinical Findings"
ITEM_TOKENS = (TokenKind.BULLET, TokenKind.ORDERED_ITEM, TokenKind.CLINICAL_ITEM)


def infer_category(title: str, config: Optional[ParserConfig] = None) -> FindingCategory:
    """
    Category for a group title.

    An exact category name (``vital_signs``, ``Vital Signs``) wins; otherwise
    the first matching keyword rule, otherwise the configured default.
    """
    config = config or default_config()
    normalized = re.sub(r"[\s\-]+", "_", title.strip().lower())
    for category in FindingCategory:
        if normalized == category.value:
            return category
    for rule in config.category_rules:
        if rule.matches(title):
            return FindingCategory(rule.target)
    return config.default_category


def is_findings_title(title: str, config: Optional[ParserConfig] = None) -> bool:
    config = config or default_config()
    lowered = title.lower()
    return any(keyword in lowered for keyword in config.findings_title_keywords)


@dataclass
class _GroupBuilder:
    title: str
    from_heading: bool = False
    tag_seen: bool = False
    items: List[str] = field(default_factory=list)


def _continues_heading_group(current: Optional[_GroupBuilder]) -> bool:
    """A section tag right under a ``###`` heading belongs to that heading's group."""
    return current is not None and current.from_heading and not current.tag_seen and not current.items


class ClinicalFindingsParser:
    """
    Builds ClinicalFinding groups from a findings block.

    Args:
        config: Parser configuration; the packaged default when omitted.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or default_config()

    def parse(self, content: str, context: Optional[ParseContext] = None) -> List[ClinicalFinding]:
        context = context or ParseContext()
        block_title = context.section_title or DEFAULT_BLOCK_TITLE
        findings: List[ClinicalFinding] = []
        current: Optional[_GroupBuilder] = None

        def flush() -> None:
            nonlocal current
            if current is not None and current.items:
                findings.append(
                    ClinicalFinding(
                        section_title=current.title,
                        category=infer_category(current.title, self.config),
                        items=tuple(current.items),
                    )
                )
            current = None

        for token in tokenize(content):
            if token.kind == TokenKind.HEADING:
                if token.level <= 2:
                    if is_findings_title(token.text, self.config):
                        block_title = token.text
                        continue
                    logger.debug(f"Findings block ended at heading '{token.text}'")
                    break
                if token.level == 3:
                    flush()
                    current = _GroupBuilder(title=token.text, from_heading=True)
                continue

            if token.kind == TokenKind.CLINICAL_SECTION_OPEN:
                if _continues_heading_group(current):
                    current.tag_seen = True
                else:
                    flush()
                    current = _GroupBuilder(title=token.text or block_title, tag_seen=True)
                continue

            if token.kind == TokenKind.CLINICAL_SECTION_CLOSE:
                if current is not None and not current.from_heading:
                    flush()
                continue

            if token.kind in ITEM_TOKENS and token.text:
                if current is None:
                    current = _GroupBuilder(title=block_title)
                current.items.append(token.text)

        flush()
        logger.debug(
            f"Parsed {len(findings)} finding groups "
            f"({sum(len(f.items) for f in findings)} items) under '{block_title}'"
        )
        return findings


def parse_clinical_findings(
    content: str,
    context: Optional[ParseContext] = None,
    config: Optional[ParserConfig] = None,
) -> List[ClinicalFinding]:
    """Convenience wrapper around ClinicalFindingsParser.parse."""
    return ClinicalFindingsParser(config).parse(content, context)


# -------------------------
# Markup normalization
# -------------------------


def _tag_block(title: str, items: List[str]) -> List[str]:
    quoted = f"'{title}'" if '"' in title and "'" not in title else f'"{title}"'
    lines = [f"<ClinicalSection type={quoted}>"]
    lines.extend(f"<ClinicalItem>{item}</ClinicalItem>" for item in items)
    lines.append("</ClinicalSection>")
    return lines


def normalize_clinical_markup(
    content: str,
    context: Optional[ParseContext] = None,
    config: Optional[ParserConfig] = None,
) -> str:
    """
    Rewrite a findings block so every group uses the pseudo-tag form.

    Bullet and numbered items (and existing ClinicalItem tags) are gathered
    per group and emitted as one ``<ClinicalSection>`` block after the group's
    heading. Other lines are kept, and everything from the first foreign
    ``## `` heading onward is copied unchanged. Parsing the result yields
    the same findings as parsing ``content``.
    """
    config = config or default_config()
    context = context or ParseContext()
    block_title = context.section_title or DEFAULT_BLOCK_TITLE
    source_lines = content.splitlines()
    output: List[str] = []
    emitted_lines = set()
    current: Optional[_GroupBuilder] = None

    def flush() -> None:
        nonlocal current
        if current is not None and current.items:
            output.extend(_tag_block(current.title, current.items))
        current = None

    def keep(token: LineToken) -> None:
        if has_clinical_tag(token.raw):
            # only the free text around the tags survives
            output.append(token.text)
        elif token.line_no not in emitted_lines:
            emitted_lines.add(token.line_no)
            output.append(token.raw)

    stop_line: Optional[int] = None
    for token in tokenize(content):
        if token.kind == TokenKind.HEADING:
            if token.level <= 2:
                if is_findings_title(token.text, config):
                    block_title = token.text
                    keep(token)
                    continue
                stop_line = token.line_no
                break
            if token.level == 3:
                flush()
                current = _GroupBuilder(title=token.text, from_heading=True)
            keep(token)
            continue

        if token.kind == TokenKind.CLINICAL_SECTION_OPEN:
            if not _continues_heading_group(current):
                flush()
                current = _GroupBuilder(title=token.text or block_title)
            current.tag_seen = True
            emitted_lines.add(token.line_no)
            continue

        if token.kind == TokenKind.CLINICAL_SECTION_CLOSE:
            if current is not None and not current.from_heading:
                flush()
            emitted_lines.add(token.line_no)
            continue

        if token.kind in ITEM_TOKENS:
            emitted_lines.add(token.line_no)
            if token.text:
                if current is None:
                    current = _GroupBuilder(title=block_title)
                current.items.append(token.text)
            continue

        keep(token)

    flush()
    if stop_line is not None:
        output.extend(source_lines[stop_line:])
    return "\n".join(output)


__all__ = [
    "ClinicalFindingsParser",
    "infer_category",
    "is_findings_title",
    "normalize_clinical_markup",
    "parse_clinical_findings",
]
