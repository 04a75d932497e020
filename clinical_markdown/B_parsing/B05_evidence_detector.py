# clinical_markdown/B_parsing/B05_evidence_detector.py
"""
Evidence-level marker detection.

Two modes over the same ordered template table:

- Standalone: a whole paragraph that is nothing but a marker
  (``Evidence Level: Class A``, ``(B)``, ``Level C.``) becomes a single
  standalone annotation and nothing else of the paragraph is kept.
- Inline: markers inside running prose (paragraphs, list items, blockquotes,
  table cells, bold spans) are matched as substrings; only the matched span is
  annotated and the surrounding text is kept verbatim.

Precedence is explicit. Inline candidates from every template are collected
and resolved greedily: the longest span wins, ties go to the template listed
first. ``(Level B)`` therefore beats both ``Level B`` and a bare ``(B)``.

Known false positives: the bare ``(A)`` / ``[A]`` templates also fire on
ordinary parenthetical single letters such as list enumerations written
``(A)``. They are kept for compatibility with existing documents and are the
lowest-precedence letter templates. Matching is case-insensitive, so the
lower-case ``(a)`` / ``[i]`` enumerations are part of the same false-positive
source.

Strength phrases ("strong", "moderate", "limited", "insufficient evidence")
map to A, B, C and I. They and the three keyword classes (expert
opinion/consensus, contraindication/warning, guideline language) are
detected separately and never overlap a letter-grade span.

Key Components:
    - EvidenceTemplate: Named, precompiled matcher
    - LETTER_TEMPLATES / DESCRIPTIVE_TEMPLATES / KEYWORD_TEMPLATES: Ordered tables
    - EvidenceLevelDetector: detect_standalone, detect_inline, annotate,
      annotate_blocks, classify
    - find_evidence_level: First letter grade in a text, if any

Example:
    >>> detector = EvidenceLevelDetector()
    >>> detector.detect_standalone("Evidence Level: Class A").level.value
    'A'
    >>> [a.source_span for a in detector.detect_inline("Effective (Level B) in most.")]
    ['(Level B)']

Dependencies:
    - B_parsing.B01_markdown_tokenizer: Block grouping for annotate_blocks
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Tuple

from A_core.A00_logging import get_logger
from A_core.A01_document_models import (
    AnnotatedText,
    EvidenceAnnotation,
    EvidenceBlock,
    EvidenceLevel,
    TextRun,
)
from B_parsing.B01_markdown_tokenizer import TokenKind, tokenize
from G_config.G02_parser_config import ParserConfig, default_config
from Z_utils.Z02_text_helpers import split_table_cells

logger = get_logger(__name__)

# Grade letter not followed by another letter or digit ("Class IIa" is not "Class I")
_GRADE = r"(?P<level>[A-EIa-ei])(?![A-Za-z0-9])"


@dataclass(frozen=True)
class EvidenceTemplate:
    """
    A named evidence matcher.

    Attributes:
        name: Stable identifier recorded on annotations.
        pattern: Compiled pattern with a ``level`` group (letter templates).
        level: Fixed level for keyword templates.
    """

    name: str
    pattern: Pattern[str]
    level: Optional[EvidenceLevel] = None

    def level_of(self, match: "re.Match[str]") -> EvidenceLevel:
        if self.level is not None:
            return self.level
        return EvidenceLevel(match.group("level").upper())


def _letter(name: str, body: str) -> EvidenceTemplate:
    return EvidenceTemplate(name, re.compile(body.replace("{X}", _GRADE)))


# Ordered from most to least specific
LETTER_TEMPLATES: Tuple[EvidenceTemplate, ...] = (
    _letter("bold_bracket_evidence_level", r"\*\*\[(?i:evidence\s+level):?\s*{X}\]\*\*"),
    _letter("bold_evidence_level", r"\*\*(?i:evidence\s+level):\s*(?:(?i:class)\s*)?{X}\.?\*\*"),
    _letter("bracket_evidence_level", r"\[(?i:evidence\s+level):\s*{X}\]"),
    _letter("evidence_level_class", r"(?i:evidence\s+level):\s*(?i:class)\s*{X}"),
    _letter("evidence_level", r"(?i:evidence\s+level):\s*{X}"),
    _letter("level_of_evidence", r"(?i:level\s+of\s+evidence):?\s*{X}"),
    _letter("parenthesized_grade", r"\(\s*(?i:level|class|grade)\s+{X}\s*\)"),
    _letter("class", r"(?i:class)\s+{X}:?"),
    _letter("grade", r"(?i:grade)\s+{X}"),
    _letter("level", r"(?i:level)\s+{X}"),
    _letter("parenthesized_letter", r"\({X}\)"),
    _letter("bracketed_letter", r"\[{X}\]"),
)

# Templates accepted for a whole standalone paragraph
STANDALONE_TEMPLATE_NAMES = frozenset(
    {
        "bold_bracket_evidence_level",
        "bold_evidence_level",
        "bracket_evidence_level",
        "evidence_level_class",
        "evidence_level",
        "level_of_evidence",
        "parenthesized_grade",
        "class",
        "grade",
        "level",
        "parenthesized_letter",
        "bracketed_letter",
    }
)

# Descriptive strength phrases, each standing for one grade
DESCRIPTIVE_TEMPLATES: Tuple[EvidenceTemplate, ...] = (
    EvidenceTemplate("strong_evidence", re.compile(r"\bstrong\s+evidence\b", re.IGNORECASE), EvidenceLevel.A),
    EvidenceTemplate("moderate_evidence", re.compile(r"\bmoderate\s+evidence\b", re.IGNORECASE), EvidenceLevel.B),
    EvidenceTemplate("limited_evidence", re.compile(r"\blimited\s+evidence\b", re.IGNORECASE), EvidenceLevel.C),
    EvidenceTemplate(
        "insufficient_evidence", re.compile(r"\binsufficient\s+evidence\b", re.IGNORECASE), EvidenceLevel.I
    ),
)

KEYWORD_TEMPLATES: Tuple[EvidenceTemplate, ...] = (
    EvidenceTemplate(
        "expert_opinion",
        re.compile(r"\b(?:expert\s+opinion|expert\s+consensus|consensus)\b", re.IGNORECASE),
        EvidenceLevel.EXPERT,
    ),
    EvidenceTemplate(
        "warning",
        re.compile(r"\b(?:contraindicat\w*|warnings?|caution|avoid)\b", re.IGNORECASE),
        EvidenceLevel.WARNING,
    ),
    EvidenceTemplate(
        "guideline",
        re.compile(r"\b(?:guidelines?|should|recommended)\b", re.IGNORECASE),
        EvidenceLevel.GUIDELINE,
    ),
)

_STANDALONE_WRAPPER = r"^\s*(?:{body})\s*\.?\s*$"


@dataclass(frozen=True)
class _Candidate:
    start: int
    end: int
    precedence: int
    template: EvidenceTemplate
    level: EvidenceLevel

    @property
    def length(self) -> int:
        return self.end - self.start


def _overlaps(candidate: _Candidate, accepted: Sequence[_Candidate]) -> bool:
    return any(candidate.start < other.end and other.start < candidate.end for other in accepted)


def _resolve(candidates: List[_Candidate], accepted: Optional[List[_Candidate]] = None) -> List[_Candidate]:
    """Greedy non-overlapping selection: longest first, then template order."""
    chosen = list(accepted or [])
    for candidate in sorted(candidates, key=lambda c: (-c.length, c.precedence, c.start)):
        if not _overlaps(candidate, chosen):
            chosen.append(candidate)
    return chosen


def _collect(text: str, templates: Sequence[EvidenceTemplate], offset: int = 0) -> List[_Candidate]:
    candidates: List[_Candidate] = []
    for precedence, template in enumerate(templates, start=offset):
        for match in template.pattern.finditer(text):
            if match.end() > match.start():
                candidates.append(
                    _Candidate(match.start(), match.end(), precedence, template, template.level_of(match))
                )
    return candidates


class EvidenceLevelDetector:
    """
    Detects evidence-level markers.

    Args:
        config: Parser configuration; ``include_keyword_classes`` decides
            whether inline annotation also reports keyword classes.
        letter_templates: Override the ordered letter-grade table.
        descriptive_templates: Override the strength-phrase table.
        keyword_templates: Override the keyword-class table.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        letter_templates: Sequence[EvidenceTemplate] = LETTER_TEMPLATES,
        descriptive_templates: Sequence[EvidenceTemplate] = DESCRIPTIVE_TEMPLATES,
        keyword_templates: Sequence[EvidenceTemplate] = KEYWORD_TEMPLATES,
    ):
        self.config = config or default_config()
        self.letter_templates = tuple(letter_templates)
        self.descriptive_templates = tuple(descriptive_templates)
        self.keyword_templates = tuple(keyword_templates)
        self._standalone_patterns = [
            (template, re.compile(_STANDALONE_WRAPPER.format(body=template.pattern.pattern)))
            for template in self.letter_templates
            if template.name in STANDALONE_TEMPLATE_NAMES
        ]

    def detect_standalone(self, paragraph: str) -> Optional[EvidenceAnnotation]:
        """Annotation for a paragraph that is only a marker, else None."""
        for template, pattern in self._standalone_patterns:
            match = pattern.match(paragraph)
            if match:
                return EvidenceAnnotation(
                    level=template.level_of(match),
                    source_span=paragraph.strip(),
                    is_standalone=True,
                    template=template.name,
                    start=0,
                    end=len(paragraph),
                )
        return None

    def detect_inline(
        self,
        text: str,
        include_keywords: Optional[bool] = None,
    ) -> List[EvidenceAnnotation]:
        """Non-overlapping inline annotations in text order."""
        if include_keywords is None:
            include_keywords = self.config.include_keyword_classes

        chosen = _resolve(_collect(text, self.letter_templates))
        if include_keywords:
            keyword_candidates = _collect(
                text, self.descriptive_templates + self.keyword_templates, offset=len(self.letter_templates)
            )
            chosen = _resolve(keyword_candidates, accepted=chosen)

        return [
            EvidenceAnnotation(
                level=c.level,
                source_span=text[c.start:c.end],
                is_standalone=False,
                template=c.template.name,
                start=c.start,
                end=c.end,
            )
            for c in sorted(chosen, key=lambda c: c.start)
        ]

    def annotate(self, text: str, include_keywords: Optional[bool] = None) -> AnnotatedText:
        """
        Annotate one block of text.

        Standalone markers replace the whole block; otherwise inline markers
        split the text into plain and evidence runs that join back to it.
        """
        standalone = self.detect_standalone(text)
        if standalone is not None:
            return AnnotatedText(
                text=text,
                annotations=(standalone,),
                runs=(TextRun(kind="evidence", content=text, annotation=standalone),),
            )

        annotations = self.detect_inline(text, include_keywords)
        runs: List[TextRun] = []
        position = 0
        for annotation in annotations:
            if annotation.start > position:
                runs.append(TextRun(kind="text", content=text[position:annotation.start]))
            runs.append(TextRun(kind="evidence", content=annotation.source_span, annotation=annotation))
            position = annotation.end
        if position < len(text):
            runs.append(TextRun(kind="text", content=text[position:]))
        return AnnotatedText(text=text, annotations=tuple(annotations), runs=tuple(runs))

    def annotate_blocks(self, content: str, include_keywords: Optional[bool] = None) -> List[EvidenceBlock]:
        """
        Annotate every prose block of a section body.

        Paragraphs are runs of text lines, blockquotes runs of ``>`` lines;
        list items and table cells are blocks of their own. Only blocks with
        at least one annotation are returned.
        """
        blocks: List[Tuple[str, str]] = []
        paragraph: List[str] = []
        quote: List[str] = []

        def close() -> None:
            if paragraph:
                blocks.append(("paragraph", "\n".join(paragraph)))
                paragraph.clear()
            if quote:
                blocks.append(("blockquote", "\n".join(quote)))
                quote.clear()

        for token in tokenize(content):
            if token.kind == TokenKind.TEXT:
                if quote:
                    close()
                paragraph.append(token.text)
            elif token.kind == TokenKind.BLOCKQUOTE:
                if paragraph:
                    close()
                quote.append(token.text)
            else:
                close()
                if token.kind in (TokenKind.BULLET, TokenKind.ORDERED_ITEM, TokenKind.CLINICAL_ITEM):
                    blocks.append(("list_item", token.text))
                elif token.kind == TokenKind.TABLE_ROW:
                    blocks.extend(("table_cell", cell) for cell in split_table_cells(token.text))
        close()

        annotated: List[EvidenceBlock] = []
        for kind, text in blocks:
            if not text:
                continue
            result = self.annotate(text, include_keywords)
            if result.annotations:
                annotated.append(EvidenceBlock(kind=kind, text=result))
        logger.debug(f"Evidence markers found in {len(annotated)} of {len(blocks)} blocks")
        return annotated

    def classify(self, text: str) -> Optional[EvidenceLevel]:
        """
        Single level for a text: its first letter grade, else the first
        strength phrase ("strong evidence" is A, "insufficient evidence" is I),
        else the first keyword class (expert, then warning, then guideline).
        """
        letters = self.detect_inline(text, include_keywords=False)
        if letters:
            return letters[0].level
        for template in self.descriptive_templates + self.keyword_templates:
            if template.pattern.search(text):
                return template.level
        return None


def find_evidence_level(text: str, detector: Optional[EvidenceLevelDetector] = None) -> Optional[str]:
    """First letter grade in ``text`` as a string, or None."""
    detector = detector or EvidenceLevelDetector()
    annotations = detector.detect_inline(text, include_keywords=False)
    return annotations[0].level.value if annotations else None


__all__ = [
    "DESCRIPTIVE_TEMPLATES",
    "EvidenceLevelDetector",
    "EvidenceTemplate",
    "KEYWORD_TEMPLATES",
    "LETTER_TEMPLATES",
    "STANDALONE_TEMPLATE_NAMES",
    "find_evidence_level",
]
