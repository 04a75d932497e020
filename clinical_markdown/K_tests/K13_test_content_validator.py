# clinical_markdown/K_tests/K13_test_content_validator.py
"""
Tests for D_validation.D01_content_validator module.
"""

from __future__ import annotations

from D_validation.D01_content_validator import (
    SUGGEST_EVIDENCE,
    SUGGEST_FINDINGS,
    SUGGEST_STRUCTURE,
    WARN_NO_REFERENCES,
    ContentValidator,
    validate_clinical_content,
)


class TestContentValidator:
    """Tests for the authoring checks."""

    def test_complete_document_is_clean(self, sample_document):
        report = ContentValidator().validate(sample_document)
        assert report.is_valid
        assert report.warnings == ()
        assert report.suggestions == ()

    def test_bare_document(self):
        report = validate_clinical_content("# Title\nNo structure here.")
        assert not report.is_valid
        assert report.warnings == (WARN_NO_REFERENCES,)
        assert report.suggestions == (SUGGEST_FINDINGS, SUGGEST_EVIDENCE, SUGGEST_STRUCTURE)

    def test_pubmed_link_counts_as_reference(self):
        text = "# Title\nSee https://pubmed.ncbi.nlm.nih.gov/1/ for details."
        assert validate_clinical_content(text).is_valid

    def test_keyword_classes_do_not_count_as_evidence(self):
        report = validate_clinical_content("## A\n## B\n## Clinical Findings\nExperts recommend rest.\n## References")
        assert report.suggestions == (SUGGEST_EVIDENCE,)

    def test_chapter_threshold(self):
        text = "## Clinical Findings\nClass A\n## References\n1. x"
        assert validate_clinical_content(text).suggestions == (SUGGEST_STRUCTURE,)
