# clinical_markdown/H_pipeline/H01_document_pipeline.py
"""
Document pipeline: segmentation followed by per-section routing.

The document is segmented once; each section is then routed by its title
(and level) to the stage that understands it. Every stage is constructed
once per pipeline and is a pure function of its input, so parsing the same
text twice gives equal results and a pipeline can be reused freely.

Routing, first match wins:

    title contains "reference" / "bibliograph"        -> references
    title contains "clinical findings" / "... presentation" -> clinical findings
    title contains "studies"                          -> studies
    level 1                                           -> document title
    anything else                                     -> general prose

Every non-reference section also gets its evidence-annotated blocks and
annotated tables. Document-title and general sections get Updated Evidence /
Landmark Trial callouts and guideline segments.

Key Components:
    - DocumentPipeline: parse(text), parse_section(section, context), parse_file(path)
    - read_document: UTF-8 file loader raising DocumentLoadError
    - parse_document: One-call convenience wrapper

Example:
    >>> pipeline = DocumentPipeline()
    >>> doc = pipeline.parse("# Myocarditis\\n## Clinical Findings\\n### Symptoms\\n- Chest pain")
    >>> doc.get_section("clinical-findings").findings[0].items
    ('Chest pain',)

Dependencies:
    - B_parsing: All parse stages
    - D_validation: Authoring checks
    - G_config: ParserConfig
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from A_core.A00_logging import LogContext, get_logger, timed
from A_core.A01_document_models import ParsedDocument, ParsedSection, Section, SectionKind
from A_core.A02_parse_context import ParseContext
from A_core.A12_exceptions import DocumentLoadError
from B_parsing.B02_section_segmenter import SectionSegmenter
from B_parsing.B03_clinical_findings_parser import ClinicalFindingsParser
from B_parsing.B04_guideline_extractor import GuidelineExtractor
from B_parsing.B05_evidence_detector import EvidenceLevelDetector
from B_parsing.B06_likelihood_ratio_annotator import LikelihoodRatioAnnotator
from B_parsing.B07_reference_parser import parse_references
from B_parsing.B08_special_sections import extract_special_sections
from B_parsing.B09_studies_parser import parse_studies
from D_validation.D01_content_validator import ContentValidator
from G_config.G02_parser_config import ParserConfig, default_config
from Z_utils.Z02_text_helpers import estimate_reading_time

logger = get_logger(__name__)


def read_document(path: Union[str, Path], encoding: str = "utf-8") -> str:
    """Read a markdown document; unreadable files raise DocumentLoadError."""
    path = Path(path)
    try:
        return path.read_text(encoding=encoding)
    except FileNotFoundError as e:
        raise DocumentLoadError("Document not found", file_path=str(path)) from e
    except UnicodeDecodeError as e:
        raise DocumentLoadError(
            f"Document is not valid {encoding}", file_path=str(path), encoding=encoding
        ) from e
    except OSError as e:
        raise DocumentLoadError(f"Cannot read document: {e}", file_path=str(path)) from e


class DocumentPipeline:
    """
    Parses whole documents.

    Args:
        config: Parser configuration shared by every stage; the packaged
            config.yaml when omitted.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or default_config()
        self.segmenter = SectionSegmenter(self.config)
        self.findings_parser = ClinicalFindingsParser(self.config)
        self.detector = EvidenceLevelDetector(self.config)
        self.guideline_extractor = GuidelineExtractor(self.config, self.detector)
        self.lr_annotator = LikelihoodRatioAnnotator(self.config)
        self.validator = ContentValidator(self.config)

    def route(self, section: Section) -> SectionKind:
        title = section.title.lower()
        if any(keyword in title for keyword in self.config.reference_title_keywords):
            return SectionKind.REFERENCES
        if any(keyword in title for keyword in self.config.findings_title_keywords):
            return SectionKind.CLINICAL_FINDINGS
        if any(keyword in title for keyword in self.config.studies_title_keywords):
            return SectionKind.STUDIES
        if section.level == 1:
            return SectionKind.DOCUMENT_TITLE
        return SectionKind.GENERAL

    def parse_section(self, section: Section, context: Optional[ParseContext] = None) -> ParsedSection:
        context = (context or ParseContext()).with_section(section.title)
        kind = self.route(section)
        content = section.raw_content

        if kind == SectionKind.REFERENCES:
            return ParsedSection(section=section, kind=kind, references=tuple(parse_references(content)))

        results = {
            "evidence_blocks": tuple(self.detector.annotate_blocks(content)),
            "tables": tuple(self.lr_annotator.annotate(content)),
        }
        if kind == SectionKind.CLINICAL_FINDINGS:
            results["findings"] = tuple(self.findings_parser.parse(content, context))
        elif kind == SectionKind.STUDIES:
            results["studies"] = tuple(parse_studies(content))
        else:
            callouts, remaining = extract_special_sections(content)
            results["special_sections"] = tuple(callouts)
            results["segments"] = tuple(self.guideline_extractor.extract(remaining, context))

        return ParsedSection(section=section, kind=kind, **results)

    @timed()
    def parse(self, text: str) -> ParsedDocument:
        """Segment ``text`` and run every section through its route."""
        sections = self.segmenter.segment(text)
        document_title = next((s.title for s in sections if s.level == 1), None)
        context = ParseContext().with_document(document_title)

        parsed: List[ParsedSection] = [self.parse_section(section, context) for section in sections]
        document = ParsedDocument(
            sections=tuple(parsed),
            reading_time_minutes=estimate_reading_time(text, self.config.words_per_minute),
            validation=self.validator.validate(text),
        )

        logger.info(
            f"Parsed {len(parsed)} sections: "
            f"{sum(len(p.findings) for p in parsed)} finding groups, "
            f"{sum(len(p.guidelines) for p in parsed)} guideline statements, "
            f"{sum(len(p.evidence_blocks) for p in parsed)} evidence blocks, "
            f"{sum(len(p.lr_rows) for p in parsed)} LR rows, "
            f"{sum(len(p.references) for p in parsed)} references "
            f"(~{document.reading_time_minutes} min read)"
        )
        return document

    def parse_file(self, path: Union[str, Path], encoding: str = "utf-8") -> ParsedDocument:
        path = Path(path)
        with LogContext(logger, f"parse {path.name}"):
            return self.parse(read_document(path, encoding))


def parse_document(text: str, config: Optional[ParserConfig] = None) -> ParsedDocument:
    """Convenience wrapper around DocumentPipeline.parse."""
    return DocumentPipeline(config).parse(text)


__all__ = ["DocumentPipeline", "parse_document", "read_document"]
