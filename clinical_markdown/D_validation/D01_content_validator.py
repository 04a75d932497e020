# clinical_markdown/D_validation/D01_content_validator.py
"""
Authoring checks for clinical markdown documents.

Reports what a reviewer would ask an author to add before publishing. The
checks never block parsing; a document is only "invalid" when it carries a
warning, and the one warning is a missing reference list.

Checks:
    - suggestion: no "Clinical Findings" text
    - suggestion: no evidence-level marker (letter grade in any template)
    - suggestion: fewer than three ``## `` chapters
    - warning: no references (a References/Bibliography heading, "references",
      "PubMed" or a PubMed URL)

Example:
    >>> report = validate_clinical_content("# Title\\nNo structure here.")
    >>> report.is_valid, len(report.suggestions)
    (False, 3)
"""

from __future__ import annotations

import re
from typing import List, Optional

from A_core.A00_logging import get_logger
from A_core.A01_document_models import ValidationReport
from B_parsing.B01_markdown_tokenizer import TokenKind, tokenize
from B_parsing.B05_evidence_detector import EvidenceLevelDetector
from G_config.G02_parser_config import ParserConfig, default_config

logger = get_logger(__name__)

MIN_CHAPTERS = 3

SUGGEST_FINDINGS = 'Consider adding a "Clinical Findings" section for better medical documentation'
SUGGEST_EVIDENCE = "Consider adding evidence levels (Class A-E) to support medical recommendations"
SUGGEST_STRUCTURE = (
    "Consider organizing content into multiple sections "
    "(Background, Clinical Findings, Management, etc.)"
)
WARN_NO_REFERENCES = "No references found - medical content should include supporting literature"

_REFERENCE_SIGNS = re.compile(r"references|bibliograph|pubmed|ncbi\.nlm\.nih\.gov", re.IGNORECASE)


class ContentValidator:
    """Runs the authoring checks with the configured vocabularies."""

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or default_config()
        self.detector = EvidenceLevelDetector(self.config)

    def validate(self, text: str) -> ValidationReport:
        suggestions: List[str] = []
        warnings: List[str] = []
        lowered = text.lower()

        if not any(keyword in lowered for keyword in self.config.findings_title_keywords):
            suggestions.append(SUGGEST_FINDINGS)

        if not self.detector.detect_inline(text, include_keywords=False):
            suggestions.append(SUGGEST_EVIDENCE)

        chapters = sum(1 for t in tokenize(text) if t.kind == TokenKind.HEADING and t.level == 2)
        if chapters < MIN_CHAPTERS:
            suggestions.append(SUGGEST_STRUCTURE)

        if not _REFERENCE_SIGNS.search(text):
            warnings.append(WARN_NO_REFERENCES)

        report = ValidationReport(
            is_valid=not warnings,
            warnings=tuple(warnings),
            suggestions=tuple(suggestions),
        )
        logger.debug(
            f"Validation: {len(warnings)} warnings, {len(suggestions)} suggestions "
            f"({chapters} chapters)"
        )
        return report


def validate_clinical_content(text: str, config: Optional[ParserConfig] = None) -> ValidationReport:
    """Convenience wrapper around ContentValidator.validate."""
    return ContentValidator(config).validate(text)


__all__ = [
    "ContentValidator",
    "SUGGEST_EVIDENCE",
    "SUGGEST_FINDINGS",
    "SUGGEST_STRUCTURE",
    "WARN_NO_REFERENCES",
    "validate_clinical_content",
]
