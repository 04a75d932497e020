# clinical_markdown/B_parsing/B04_guideline_extractor.py
"""
Guideline citation extraction.

Carves guideline statements out of a section body and returns the body as an
ordered list of segments: plain prose, ``###``/``####`` subtitles and
guideline statements. Concatenating the segments in order reproduces the
reading order of the source; headings between two statements are never
swallowed into the earlier statement's body.

Four header forms open a statement. Where two start at the same offset the
earlier-listed form wins, except that key sources replace the other forms
inside their subsection:

1. As-per form: ``**As per ESC 2023 guidelines:**`` (bold anywhere in a line)
   or ``As per the ACC/AHA 2022 guideline, ...`` (at the start of a line).
   Case-insensitive; the colon and the bold wrapper are optional.
2. Organization-code form: ``**ESC/EHRA 2020 detail:**`` where the span opens
   with a configured organization code. Further codes may follow, joined by
   ``/`` or whitespace; slash-joined acronyms outside the table are kept and
   give the statement the generic display label.
3. Key sources: inside a ``### Key Source(s)`` subsection of a Guidelines
   section, every ``**Org (YEAR)**`` span is one key-source statement. Other
   header forms are not looked for there.
4. Embedded mention: a line saying ``based on guidelines from the
   **European Society of Cardiology (ESC 2020)**`` is one statement whose
   organization and year come from the bold span.

An as-per or organization-code statement's body runs to the next header or
the next heading, whichever comes first. Key-source and embedded-mention
statements cover only their own line. Segments holding a ``*Calculator
Available*`` marker are flagged with the calculator tool chosen from the
document, section and subsection titles in the threaded ParseContext plus the
segment text.

Key Components:
    - HeaderMatch: One recognized boundary (a header form or a heading)
    - match_as_per_headers / match_organization_headers / match_headings /
      match_key_sources / match_embedded_mentions: The ordered matcher functions
    - split_organization_year: ``Org (YEAR)`` span parsing
    - GuidelineExtractor: Segment walk with ParseContext threading
    - resolve_calculator: Keyword rules from config

Example:
    >>> extractor = GuidelineExtractor()
    >>> segments = extractor.extract("**As per ESC 2023 guidelines:** Anticoagulation is recommended.")
    >>> statement = segments[0].statement
    >>> statement.organization, statement.year, statement.body
    ('ESC', '2023', 'Anticoagulation is recommended.')

Dependencies:
    - B_parsing.B01_markdown_tokenizer: Heading and fenced-code recognition
    - B_parsing.B05_evidence_detector: Evidence level of a statement
    - G_config: Organization table and calculator rules
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from A_core.A00_logging import get_logger
from A_core.A01_document_models import (
    CalculatorTool,
    GuidelineForm,
    GuidelineSegment,
    GuidelineStatement,
    RecommendationType,
    SegmentKind,
)
from A_core.A02_parse_context import ParseContext
from B_parsing.B01_markdown_tokenizer import TokenKind, tokenize
from B_parsing.B05_evidence_detector import EvidenceLevelDetector
from G_config.G02_parser_config import ParserConfig, default_config
from Z_utils.Z02_text_helpers import contains_words, extract_year, normalize_whitespace

logger = get_logger(__name__)

CALCULATOR_MARKER = re.compile(r"\*{0,2}\bCalculator\s+Available\b\*{0,2}", re.IGNORECASE)

_BOLD_AS_PER = re.compile(
    r"(?<![^\s(\[])\*\*[ \t]*as[ \t]+per[ \t]+(?P<phrase>[^*\n]+?)[ \t]*\*\*(?:[ \t]*:)?",
    re.IGNORECASE,
)
_LINE_AS_PER = re.compile(r"^[ \t]*as[ \t]+per[ \t]+(?P<rest>[^\n]*)", re.IGNORECASE | re.MULTILINE)
_GUIDELINE_WORD = re.compile(r"\bguidelines?\b", re.IGNORECASE)
_ACRONYM = re.compile(r"\b[A-Z][A-Z0-9&]{1,9}\b")
_CONTRAINDICATION = re.compile(r"\b(?:do\s+not|avoid\w*|contraindicat\w*)", re.IGNORECASE)
_CONSIDERATION = re.compile(r"\bconsider\w*", re.IGNORECASE)
_EMBEDDED_MENTION = re.compile(
    r"\bbased[ \t]+on[ \t]+guidelines[ \t]+from[ \t]+the[ \t]+\*\*(?P<phrase>[^*\n]+)\*\*",
    re.IGNORECASE,
)
_BOLD_SPAN = re.compile(r"\*\*(?P<phrase>[^*\n]+)\*\*")
_PARENTHESIZED_YEAR = re.compile(r"\(([^)]*\d{4}[^)]*)\)")
_KEY_SOURCES_TITLE = re.compile(r"^key[ \t]+sources?[ \t]*:?$", re.IGNORECASE)
_INLINE_KINDS = ("key_source", "embedded_mention")


@dataclass(frozen=True)
class HeaderMatch:
    """
    One segment boundary found in a section body.

    Attributes:
        start, end: Offsets of the header span in the body.
        kind: ``heading``, ``key_source``, ``as_per``, ``organization_code``
            or ``embedded_mention``.
        phrase: Organization phrase, code run (code form) or bold span text.
        detail: Trailing header detail of the code form, or the text after a
            key-source span.
        title, level: Heading title and depth.
    """

    start: int
    end: int
    kind: str
    phrase: str = ""
    detail: str = ""
    title: str = ""
    level: int = 0


# -------------------------
# Matchers, in precedence order
# -------------------------


def match_as_per_headers(text: str) -> List[HeaderMatch]:
    """Bold ``**As per ...**`` spans anywhere, plain ``As per ...`` at line start."""
    matches = [
        HeaderMatch(m.start(), m.end(), "as_per", phrase=m.group("phrase").strip().rstrip(":").strip())
        for m in _BOLD_AS_PER.finditer(text)
    ]
    for m in _LINE_AS_PER.finditer(text):
        header = _plain_as_per_header(m.group("rest"))
        if header is None:
            continue
        phrase, consumed = header
        matches.append(
            HeaderMatch(m.start(), m.start("rest") + consumed, "as_per", phrase=phrase)
        )
    return matches


def _plain_as_per_header(rest: str) -> Optional[Tuple[str, int]]:
    """
    Organization phrase and header length of an unbolded as-per line.

    The header ends at the first colon, else after the word "guideline(s)"
    (plus an optional comma), else after a year. Lines with none of these
    ("as per protocol") are not guideline headers.
    """
    colon = rest.find(":")
    if colon > 0:
        phrase = rest[:colon].strip()
        if _GUIDELINE_WORD.search(phrase) or extract_year(phrase) or _ACRONYM.search(phrase):
            return phrase, colon + 1
        return None
    word = _GUIDELINE_WORD.search(rest)
    anchor = word.end() if word else None
    if anchor is None:
        year = extract_year(rest)
        if year is None:
            return None
        anchor = rest.find(year) + len(year)
    consumed = anchor
    trailing = re.match(r"[ \t]*,", rest[anchor:])
    if trailing:
        consumed += trailing.end()
    return rest[:anchor].strip(), consumed


def organization_header_pattern(codes: Sequence[str]) -> Optional["re.Pattern[str]"]:
    """Bold organization-code header pattern for the configured codes."""
    if not codes:
        return None
    known = "|".join(re.escape(code) for code in codes)
    return re.compile(
        rf"(?<![^\s(\[])\*\*[ \t]*(?P<codes>(?:{known})\b"
        rf"(?:[ \t]*/[ \t]*[A-Z][A-Za-z0-9&]*\b|[ \t]+(?:{known})\b)*)"
        rf"(?P<detail>[^*\n]*)\*\*(?:[ \t]*:)?"
    )


def match_organization_headers(text: str, pattern: Optional["re.Pattern[str]"]) -> List[HeaderMatch]:
    if pattern is None:
        return []
    return [
        HeaderMatch(
            m.start(),
            m.end(),
            "organization_code",
            phrase=m.group("codes"),
            detail=m.group("detail").strip().strip(":").strip(),
        )
        for m in pattern.finditer(text)
    ]


def match_headings(text: str) -> Tuple[List[HeaderMatch], Set[int]]:
    """Heading boundaries plus the offsets of lines inside fenced code."""
    offsets = _line_offsets(text)
    headings: List[HeaderMatch] = []
    code_lines: Set[int] = set()
    for token in tokenize(text):
        start = offsets[token.line_no]
        if token.kind == TokenKind.HEADING:
            headings.append(
                HeaderMatch(
                    start,
                    start + len(token.raw),
                    "heading",
                    title=token.text,
                    level=token.level,
                )
            )
        elif token.kind in (TokenKind.CODE, TokenKind.FENCE):
            code_lines.add(start)
    return headings, code_lines


def match_embedded_mentions(text: str) -> List[HeaderMatch]:
    """Whole lines citing ``based on guidelines from the **...**``."""
    matches = []
    for m in _EMBEDDED_MENTION.finditer(text):
        matches.append(
            HeaderMatch(
                _line_start(text, m.start()),
                _line_end(text, m.end()),
                "embedded_mention",
                phrase=m.group("phrase").strip(),
            )
        )
    return matches


def match_key_sources(text: str, start: int, end: int) -> List[HeaderMatch]:
    """
    Bold spans between ``start`` and ``end``, one match per span.

    The first span on a line takes the line's leading bullet with it; each
    match runs to the next span on its line or the end of the line.
    """
    spans = list(_BOLD_SPAN.finditer(text, start, end))
    matches = []
    for index, m in enumerate(spans):
        line_start = max(_line_start(text, m.start()), start)
        line_end = min(_line_end(text, m.end()), end)
        previous = spans[index - 1] if index else None
        following = spans[index + 1] if index + 1 < len(spans) else None
        match_start = m.start() if previous is not None and previous.start() >= line_start else line_start
        match_end = following.start() if following is not None and following.start() < line_end else line_end
        matches.append(
            HeaderMatch(
                match_start,
                match_end,
                "key_source",
                phrase=m.group("phrase").strip(),
                detail=text[m.end():match_end].strip(),
            )
        )
    return matches


def key_source_regions(
    headings: Sequence[HeaderMatch],
    length: int,
    section_title: Optional[str] = None,
) -> List[Tuple[int, int]]:
    """
    Body spans of ``### Key Source(s)`` subsections inside Guidelines sections.

    ``section_title`` is the enclosing section; a level 1 or 2 heading in the
    text replaces it. An unknown section counts as a Guidelines section.
    """
    regions = []
    for index, heading in enumerate(headings):
        if heading.level <= 2:
            section_title = heading.title
            continue
        in_guidelines = section_title is None or "guideline" in section_title.lower()
        if heading.level == 3 and in_guidelines and _KEY_SOURCES_TITLE.match(heading.title.strip()):
            end = headings[index + 1].start if index + 1 < len(headings) else length
            regions.append((heading.end, end))
    return regions


def _line_offsets(text: str) -> List[int]:
    offsets = [0]
    for line in text.splitlines(keepends=True):
        offsets.append(offsets[-1] + len(line))
    return offsets


def _line_start(text: str, position: int) -> int:
    return text.rfind("\n", 0, position) + 1


def _line_end(text: str, position: int) -> int:
    end = text.find("\n", position)
    return len(text) if end < 0 else end


def _select(matches: List[HeaderMatch]) -> List[HeaderMatch]:
    """Non-overlapping boundaries in text order; the earlier-listed matcher wins ties."""
    precedence = {
        "heading": 0,
        "key_source": 1,
        "as_per": 2,
        "organization_code": 3,
        "embedded_mention": 4,
    }
    chosen: List[HeaderMatch] = []
    for match in sorted(matches, key=lambda m: (m.start, precedence[m.kind], -m.end)):
        if chosen and match.start < chosen[-1].end:
            continue
        chosen.append(match)
    return chosen


# -------------------------
# Statement construction
# -------------------------


def organization_from_phrase(phrase: str) -> str:
    """
    Organization part of an as-per phrase.

    >>> organization_from_phrase("the ACC/AHA 2022 guidelines on syncope")
    'ACC/AHA'
    """
    organization = phrase
    year = extract_year(organization)
    if year:
        organization = organization.replace(year, " ", 1)
    organization = _GUIDELINE_WORD.split(organization, maxsplit=1)[0]
    organization = re.sub(r"^\s*the\s+", "", organization, flags=re.IGNORECASE)
    return normalize_whitespace(organization).strip(" ,;:-")


def split_organization_year(text: str) -> Tuple[str, str]:
    """
    Organization and parenthesized year part of an ``Org (YEAR)`` span.

    >>> split_organization_year("European Society of Cardiology (ESC 2020)")
    ('European Society of Cardiology', 'ESC 2020')
    >>> split_organization_year("AHA")
    ('AHA', '')
    """
    match = _PARENTHESIZED_YEAR.search(text)
    organization = normalize_whitespace(_PARENTHESIZED_YEAR.sub(" ", text)).strip()
    return organization, match.group(1).strip() if match else ""


def recommendation_type(body: str) -> RecommendationType:
    if _CONTRAINDICATION.search(body):
        return RecommendationType.CONTRAINDICATION
    if _CONSIDERATION.search(body):
        return RecommendationType.CONSIDERATION
    return RecommendationType.RECOMMENDATION


def resolve_calculator(
    context: ParseContext,
    text: str,
    config: Optional[ParserConfig] = None,
) -> CalculatorTool:
    """First calculator rule with a keyword group present in the titles or text."""
    config = config or default_config()
    haystack = f"{context.keyword_text()} {text}"
    for rule in config.calculator_rules:
        if any(contains_words(haystack, group) for group in rule.groups):
            return rule.tool
    return config.default_calculator


class GuidelineExtractor:
    """
    Splits section bodies into prose, subtitle and guideline segments.

    Args:
        config: Parser configuration; the organization table decides which
            bold spans open an organization-code statement.
        detector: Evidence detector used for statement evidence levels.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        detector: Optional[EvidenceLevelDetector] = None,
    ):
        self.config = config or default_config()
        self.detector = detector or EvidenceLevelDetector(self.config)
        self._organization_pattern = organization_header_pattern(self.config.organization_codes)

    def find_boundaries(self, content: str, context: Optional[ParseContext] = None) -> List[HeaderMatch]:
        headings, code_lines = match_headings(content)
        section_title = context.section_title if context else None
        regions = key_source_regions(headings, len(content), section_title)

        headers = (
            match_as_per_headers(content)
            + match_organization_headers(content, self._organization_pattern)
            + match_embedded_mentions(content)
        )
        headers = [h for h in headers if not any(start <= h.start < end for start, end in regions)]
        for start, end in regions:
            headers.extend(match_key_sources(content, start, end))
        headers = [h for h in headers if _line_start(content, h.start) not in code_lines]
        return _select(headings + headers)


    def extract(self, content: str, context: Optional[ParseContext] = None) -> List[GuidelineSegment]:
        """
        Segment a section body.

        Content with no header and no heading comes back as one prose
        segment holding the text unchanged.
        """
        context = context or ParseContext()
        boundaries = self.find_boundaries(content, context)
        if not boundaries:
            return [self._prose(content, context)] if content.strip() else []

        segments: List[GuidelineSegment] = []
        position = 0
        for index, boundary in enumerate(boundaries):
            leading = content[position:boundary.start].strip("\n")
            if leading.strip():
                segments.append(self._prose(leading, context))

            end = boundaries[index + 1].start if index + 1 < len(boundaries) else len(content)
            if boundary.kind == "heading":
                segment = self._subtitle(boundary, content[boundary.start:boundary.end], context)
                context = context.with_subsection(segment.title)
                segments.append(segment)
                position = boundary.end
            elif boundary.kind in _INLINE_KINDS:
                segments.append(self._cited(boundary, content[boundary.start:boundary.end], context))
                position = boundary.end
            else:
                body = content[boundary.end:end].strip()
                segments.append(
                    self._guideline(boundary, content[boundary.start:boundary.end], body, context)
                )
                position = end

        trailing = content[position:].strip("\n")
        if trailing.strip():
            segments.append(self._prose(trailing, context))

        logger.debug(
            f"Extracted {sum(1 for s in segments if s.kind == SegmentKind.GUIDELINE)} guideline "
            f"statements from {len(segments)} segments"
        )
        return segments

    def statements(self, content: str, context: Optional[ParseContext] = None) -> List[GuidelineStatement]:
        return [s.statement for s in self.extract(content, context) if s.statement is not None]

    # -------------------------
    # Segment builders
    # -------------------------

    def _calculator(self, text: str, context: ParseContext) -> Optional[CalculatorTool]:
        if not CALCULATOR_MARKER.search(text):
            return None
        return resolve_calculator(context, text, self.config)

    def _prose(self, content: str, context: ParseContext) -> GuidelineSegment:
        return GuidelineSegment(
            kind=SegmentKind.PROSE,
            content=content,
            calculator=self._calculator(content, context),
        )

    def _subtitle(self, boundary: HeaderMatch, raw: str, context: ParseContext) -> GuidelineSegment:
        title = boundary.title
        marker = CALCULATOR_MARKER.search(title)
        if marker is None:
            return GuidelineSegment(
                kind=SegmentKind.SUBTITLE, content=raw, title=title, heading_level=boundary.level
            )

        clean_title = title[:marker.start()].strip(" \t-:–*")
        description = title[marker.end():].strip(" \t-:–*") or None
        return GuidelineSegment(
            kind=SegmentKind.SUBTITLE,
            content=raw,
            title=clean_title or title,
            heading_level=boundary.level,
            calculator=resolve_calculator(context.with_subsection(clean_title), title, self.config),
            calculator_description=description,
        )

    def _guideline(
        self,
        boundary: HeaderMatch,
        header: str,
        body: str,
        context: ParseContext,
    ) -> GuidelineSegment:
        if boundary.kind == "as_per":
            statement = self._as_per_statement(boundary, header, body)
        else:
            statement = self._organization_statement(boundary, header, body)
        return GuidelineSegment(
            kind=SegmentKind.GUIDELINE,
            content=header if not body else f"{header} {body}",
            statement=statement,
            calculator=self._calculator(body, context),
        )

    def _evidence_level(self, header: str, body: str) -> Optional[str]:
        for annotation in self.detector.detect_inline(f"{header}\n{body}", include_keywords=False):
            return annotation.level.value
        return None

    def _as_per_statement(self, boundary: HeaderMatch, header: str, body: str) -> GuidelineStatement:
        organization = organization_from_phrase(boundary.phrase)
        codes = tuple(_ACRONYM.findall(organization))
        if not organization:
            organization = self.config.generic_organization_label
            display = self.config.generic_organization_display
        elif codes:
            display = self.config.organization_display(codes)
        else:
            display = organization
        return GuidelineStatement(
            organization=organization,
            year=extract_year(boundary.phrase),
            evidence_level=self._evidence_level(header, body),
            body=body,
            is_enhanced_style=True,
            form=GuidelineForm.AS_PER,
            organization_codes=codes,
            organization_display=display,
            header=header,
            recommendation_type=recommendation_type(body),
        )

    def _organization_statement(self, boundary: HeaderMatch, header: str, body: str) -> GuidelineStatement:
        codes = tuple(code for code in re.split(r"[\s/]+", boundary.phrase) if code)
        return GuidelineStatement(
            organization="/".join(codes) or self.config.generic_organization_label,
            year=extract_year(boundary.detail),
            evidence_level=self._evidence_level(header, body),
            body=body,
            is_enhanced_style=False,
            form=GuidelineForm.ORGANIZATION_CODE,
            organization_codes=codes,
            organization_display=self.config.organization_display(codes),
            detail=boundary.detail,
            header=header,
            recommendation_type=recommendation_type(body),
        )

    def _cited(self, boundary: HeaderMatch, text: str, context: ParseContext) -> GuidelineSegment:
        """Key-source or embedded-mention segment covering ``text`` only."""
        organization, parenthetical = split_organization_year(boundary.phrase)
        codes = tuple(_ACRONYM.findall(organization) or _ACRONYM.findall(parenthetical))
        if not organization:
            organization = self.config.generic_organization_label
            display = self.config.generic_organization_display
        elif codes and re.sub(r"[\s/]+", "", organization) == "".join(codes):
            display = self.config.organization_display(codes)
        else:
            display = organization

        if boundary.kind == "key_source":
            form = GuidelineForm.KEY_SOURCE
            body = boundary.detail.strip(" \t-–:,;")
        else:
            form = GuidelineForm.EMBEDDED_MENTION
            body = text.strip()
        statement = GuidelineStatement(
            organization=organization,
            year=extract_year(parenthetical),
            evidence_level=self._evidence_level(text, ""),
            body=body,
            is_enhanced_style=False,
            form=form,
            organization_codes=codes,
            organization_display=display,
            detail=parenthetical,
            header=text.strip(),
            recommendation_type=recommendation_type(body),
        )
        return GuidelineSegment(
            kind=SegmentKind.GUIDELINE,
            content=text,
            statement=statement,
            calculator=self._calculator(text, context),
        )


def extract_guidelines(
    content: str,
    context: Optional[ParseContext] = None,
    config: Optional[ParserConfig] = None,
) -> List[GuidelineSegment]:
    """Convenience wrapper around GuidelineExtractor.extract."""
    return GuidelineExtractor(config).extract(content, context)


__all__ = [
    "CALCULATOR_MARKER",
    "GuidelineExtractor",
    "HeaderMatch",
    "extract_guidelines",
    "key_source_regions",
    "match_as_per_headers",
    "match_embedded_mentions",
    "match_headings",
    "match_key_sources",
    "match_organization_headers",
    "organization_from_phrase",
    "organization_header_pattern",
    "recommendation_type",
    "resolve_calculator",
    "split_organization_year",
]
