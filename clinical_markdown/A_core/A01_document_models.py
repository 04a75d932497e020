# clinical_markdown/A_core/A01_document_models.py
"""
Value objects produced by the clinical markdown parse stages.

Every stage returns fresh, frozen pydantic models. Ordered collections are
tuples, nothing holds a reference back to its parent section, and the parent
context is passed down as a parameter (see A02_parse_context) instead of
being stored.

Key Components:
    - Section: Top-level chapter of a document (level 1 title or level 2)
    - ClinicalFinding: Categorized group of finding items
    - GuidelineStatement / GuidelineSegment: Guideline citations interleaved
      with prose and subtitle segments
    - EvidenceAnnotation / AnnotatedText / EvidenceBlock: Evidence-grade markers
    - LRTableRow / AnnotatedTable: Likelihood-ratio enrichment of tables
    - ReferenceEntry / ReferencePart: Structured bibliography lines
    - SpecialSection / StudyEntry: Evidence callouts and study listings
    - ParsedSection / ParsedDocument: Routed per-section results

Example:
    >>> from A_core.A01_document_models import ClinicalFinding, FindingCategory
    >>> finding = ClinicalFinding(
    ...     section_title="Symptoms",
    ...     category=FindingCategory.SYMPTOMS,
    ...     items=("Chest pain", "Dyspnea"),
    ... )
    >>> finding.category.value
    'symptoms'

Dependencies:
    - pydantic: Frozen model validation and JSON serialization
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


# -------------------------
# Enums
# -------------------------


class FindingCategory(str, Enum):
    """Category of a clinical finding group."""

    SYMPTOMS = "symptoms"
    DEMOGRAPHICS = "demographics"
    MEDICAL_HISTORY = "medical_history"
    SURGICAL_HISTORY = "surgical_history"
    MEDICATION_HISTORY = "medication_history"
    VITAL_SIGNS = "vital_signs"
    PHYSICAL_EXAM = "physical_exam"


class EvidenceLevel(str, Enum):
    """Letter grades plus the three keyword classes."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    I = "I"  # noqa: E741  insufficient evidence
    EXPERT = "Expert"
    WARNING = "Warning"
    GUIDELINE = "Guideline"


class GuidelineForm(str, Enum):
    """Lexical form a guideline statement was recognized by."""

    AS_PER = "as_per"
    ORGANIZATION_CODE = "organization_code"
    EMBEDDED_MENTION = "embedded_mention"
    KEY_SOURCE = "key_source"


class RecommendationType(str, Enum):
    """Polarity of a guideline body."""

    RECOMMENDATION = "recommendation"
    CONTRAINDICATION = "contraindication"
    CONSIDERATION = "consideration"


class SegmentKind(str, Enum):
    """Kind of an order-preserving guideline extractor segment."""

    PROSE = "prose"
    SUBTITLE = "subtitle"
    GUIDELINE = "guideline"


class CalculatorTool(str, Enum):
    """Interactive tool requested by a ``*Calculator Available*`` marker."""

    CHA2DS2_VASC = "cha2ds2_vasc"
    HIT_4TS = "hit_4ts"
    LAKE_LOUISE = "lake_louise"
    SIADH = "siadh"


class StrengthBand(str, Enum):
    """Diagnostic strength of a likelihood ratio."""

    NEGLIGIBLE = "negligible"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"
    VERY_STRONG = "very_strong"


class LRPolarity(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class ReferencePartKind(str, Enum):
    TEXT = "text"
    BOLD = "bold"
    LINK = "link"


class SpecialSectionKind(str, Enum):
    UPDATED_EVIDENCE = "updated_evidence"
    LANDMARK_TRIAL = "landmark_trial"


class SectionKind(str, Enum):
    """Route a section was sent down by the pipeline."""

    DOCUMENT_TITLE = "document_title"
    CLINICAL_FINDINGS = "clinical_findings"
    REFERENCES = "references"
    STUDIES = "studies"
    GENERAL = "general"


# -------------------------
# Sections
# -------------------------


class Section(BaseModel):
    """
    A top-level chapter of a document.

    ``id`` is the slugified title. ``raw_content`` excludes the heading line
    except for Clinical Findings sections, which keep their own heading so
    the section can be segmented again.
    """

    id: str
    title: str
    level: Literal[1, 2]
    raw_content: str = ""
    is_collapsed_by_default: bool = False
    is_implicit: bool = Field(
        default=False, description="Synthesized for text with no heading above it"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


# -------------------------
# Clinical findings
# -------------------------


class ClinicalFinding(BaseModel):
    """One categorized group of finding items, in document order."""

    section_title: str
    category: FindingCategory = FindingCategory.SYMPTOMS
    items: Tuple[str, ...]

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _validate_items(self):
        if not self.items:
            raise ValueError("ClinicalFinding.items must contain at least one item.")
        return self


# -------------------------
# Guidelines
# -------------------------


class GuidelineStatement(BaseModel):
    """
    A recommendation attributed to an organization.

    ``organization`` is never empty; a statement whose organization could
    not be read carries the configured generic label instead.
    """

    organization: str
    year: Optional[str] = None
    evidence_level: Optional[str] = None
    body: str = ""
    is_enhanced_style: bool = False
    form: GuidelineForm = GuidelineForm.AS_PER
    organization_codes: Tuple[str, ...] = ()
    organization_display: str = ""
    detail: str = ""
    header: str = ""
    recommendation_type: RecommendationType = RecommendationType.RECOMMENDATION

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _validate_organization(self):
        if not self.organization.strip():
            raise ValueError("GuidelineStatement.organization must be non-empty.")
        if self.year is not None and not (len(self.year) == 4 and self.year.isdigit()):
            raise ValueError(f"GuidelineStatement.year must be a 4-digit year, got {self.year!r}")
        return self


class GuidelineSegment(BaseModel):
    """
    One segment of a guideline-bearing section body.

    Segments are emitted in document order: prose passes through verbatim,
    ``###``/``####`` headings become subtitle segments, and recognized
    citations carry a GuidelineStatement. ``calculator`` is set when the
    segment held a ``*Calculator Available*`` marker.
    """

    kind: SegmentKind
    content: str
    statement: Optional[GuidelineStatement] = None
    title: Optional[str] = None
    heading_level: Optional[int] = None
    calculator: Optional[CalculatorTool] = None
    calculator_description: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def has_calculator(self) -> bool:
        return self.calculator is not None

    @model_validator(mode="after")
    def _validate_kind(self):
        if self.kind == SegmentKind.GUIDELINE and self.statement is None:
            raise ValueError("Guideline segments must carry a statement.")
        if self.kind != SegmentKind.GUIDELINE and self.statement is not None:
            raise ValueError(f"{self.kind.value} segments cannot carry a statement.")
        return self


# -------------------------
# Evidence levels
# -------------------------


class EvidenceAnnotation(BaseModel):
    """An evidence-grade marker found in a block of text."""

    level: EvidenceLevel
    source_span: str
    is_standalone: bool
    template: str = Field(..., description="Name of the matcher that fired")
    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class TextRun(BaseModel):
    """Contiguous run of an annotated text, either plain or an evidence badge."""

    kind: Literal["text", "evidence"]
    content: str
    annotation: Optional[EvidenceAnnotation] = None

    model_config = ConfigDict(frozen=True, extra="forbid")


class AnnotatedText(BaseModel):
    """Text with its evidence annotations; ``runs`` join back to ``text``."""

    text: str
    annotations: Tuple[EvidenceAnnotation, ...] = ()
    runs: Tuple[TextRun, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_standalone(self) -> bool:
        return len(self.annotations) == 1 and self.annotations[0].is_standalone


class EvidenceBlock(BaseModel):
    """Annotated block of a section body."""

    kind: Literal["paragraph", "list_item", "blockquote", "table_cell"]
    text: AnnotatedText

    model_config = ConfigDict(frozen=True, extra="forbid")


# -------------------------
# Likelihood ratio tables
# -------------------------


class LRTableRow(BaseModel):
    """Strength indicator derived from one row of an LR table."""

    finding: str
    lr_value: float = Field(..., ge=0)
    confidence_interval: str = ""
    strength_band: StrengthBand
    polarity: LRPolarity = LRPolarity.POSITIVE
    bar_width_percent: float = Field(default=0.0, ge=0, le=100)
    row_index: int = Field(default=0, ge=0)
    cells: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")


class AnnotatedTable(BaseModel):
    """A markdown table, its untouched cells and any LR rows derived from it."""

    header: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...] = ()
    lr_rows: Tuple[LRTableRow, ...] = ()
    is_lr_table: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")


# -------------------------
# References
# -------------------------


class ReferencePart(BaseModel):
    """
    One typed run of a reference line.

    ``content`` is the exact source span, markup included, so the parts of a
    line join back to it. ``text`` is the span with markup removed.
    """

    kind: ReferencePartKind
    content: str
    text: str = ""
    href: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def link_type(self) -> Optional[str]:
        if self.href is None:
            return None
        href = self.href.lower()
        if "pubmed" in href or "ncbi.nlm.nih.gov" in href:
            return "pubmed"
        if "doi.org" in href or href.startswith("doi:"):
            return "doi"
        return "other"


class ReferenceEntry(BaseModel):
    number: Optional[str] = None
    parts: Tuple[ReferencePart, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def plain_text(self) -> str:
        return "".join(part.text for part in self.parts)


# -------------------------
# Special sections and studies
# -------------------------


class SpecialSection(BaseModel):
    """An ``Updated Evidence`` or ``Landmark Trial`` callout."""

    kind: SpecialSectionKind
    title: str
    description: str = ""
    citation: Optional[str] = None
    pubmed_url: Optional[str] = None
    raw: str = ""

    model_config = ConfigDict(frozen=True, extra="forbid")


class StudyEntry(BaseModel):
    title: str
    year: Optional[str] = None
    description: str = ""
    author: str = ""
    journal: str = ""
    date: str = ""
    url: Optional[str] = None
    pubmed_url: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")


# -------------------------
# Pipeline output
# -------------------------


class ValidationReport(BaseModel):
    """Authoring checks over a whole document."""

    is_valid: bool = True
    warnings: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")


class ParsedSection(BaseModel):
    """A section together with whatever its route produced."""

    section: Section
    kind: SectionKind = SectionKind.GENERAL
    findings: Tuple[ClinicalFinding, ...] = ()
    segments: Tuple[GuidelineSegment, ...] = ()
    special_sections: Tuple[SpecialSection, ...] = ()
    evidence_blocks: Tuple[EvidenceBlock, ...] = ()
    tables: Tuple[AnnotatedTable, ...] = ()
    references: Tuple[ReferenceEntry, ...] = ()
    studies: Tuple[StudyEntry, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def guidelines(self) -> Tuple[GuidelineStatement, ...]:
        return tuple(s.statement for s in self.segments if s.statement is not None)

    @property
    def lr_rows(self) -> Tuple[LRTableRow, ...]:
        return tuple(row for table in self.tables for row in table.lr_rows)


class ParsedDocument(BaseModel):
    sections: Tuple[ParsedSection, ...] = ()
    reading_time_minutes: int = Field(default=0, ge=0)
    validation: ValidationReport = Field(default_factory=ValidationReport)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def title(self) -> Optional[str]:
        for parsed in self.sections:
            if parsed.section.level == 1:
                return parsed.section.title
        return None

    def get_section(self, section_id: str) -> Optional[ParsedSection]:
        for parsed in self.sections:
            if parsed.section.id == section_id:
                return parsed
        return None


__all__ = [
    "AnnotatedTable",
    "AnnotatedText",
    "CalculatorTool",
    "ClinicalFinding",
    "EvidenceAnnotation",
    "EvidenceBlock",
    "EvidenceLevel",
    "FindingCategory",
    "GuidelineForm",
    "GuidelineSegment",
    "GuidelineStatement",
    "LRPolarity",
    "LRTableRow",
    "ParsedDocument",
    "ParsedSection",
    "RecommendationType",
    "ReferenceEntry",
    "ReferencePart",
    "ReferencePartKind",
    "Section",
    "SectionKind",
    "SegmentKind",
    "SpecialSection",
    "SpecialSectionKind",
    "StrengthBand",
    "StudyEntry",
    "TextRun",
    "ValidationReport",
]
