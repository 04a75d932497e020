# clinical_markdown/K_tests/K14_test_document_pipeline.py
"""
Tests for H_pipeline.H01_document_pipeline module.

Tests section routing, the parsed sample document end to end, determinism
and document loading errors.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from A_core.A01_document_models import (
    CalculatorTool,
    FindingCategory,
    GuidelineForm,
    RecommendationType,
    Section,
    SectionKind,
    SegmentKind,
    StrengthBand,
)
from A_core.A12_exceptions import DocumentLoadError
from H_pipeline.H01_document_pipeline import DocumentPipeline, parse_document, read_document


def make_section(title, level=2, content=""):
    return Section(id="x", title=title, level=level, raw_content=content)


class TestRouting:
    """Tests for DocumentPipeline.route."""

    @pytest.mark.parametrize(
        "title,level,expected",
        [
            ("References", 2, SectionKind.REFERENCES),
            ("Bibliography", 2, SectionKind.REFERENCES),
            ("Clinical Findings", 2, SectionKind.CLINICAL_FINDINGS),
            ("Clinical Presentation", 2, SectionKind.CLINICAL_FINDINGS),
            ("Major Clinical Studies", 2, SectionKind.STUDIES),
            ("Myocarditis", 1, SectionKind.DOCUMENT_TITLE),
            ("Management", 2, SectionKind.GENERAL),
            ("Studies Referenced", 2, SectionKind.REFERENCES),
        ],
    )
    def test_route(self, pipeline, title, level, expected):
        assert pipeline.route(make_section(title, level)) == expected

    def test_references_only_get_entries(self, pipeline):
        parsed = pipeline.parse_section(make_section("References", content="1. Ref (A)"))
        assert len(parsed.references) == 1
        assert parsed.evidence_blocks == ()
        assert parsed.segments == ()

    def test_general_section_gets_callouts_and_segments(self, pipeline):
        content = "### Updated Evidence: EMPA\nNew data.\n\n**ESC 2021:** Use SGLT2 inhibitors."
        parsed = pipeline.parse_section(make_section("Therapy", content=content))
        assert [s.title for s in parsed.special_sections] == ["EMPA"]
        assert [s.kind for s in parsed.segments] == [SegmentKind.GUIDELINE]

    def test_findings_section_has_no_guideline_segments(self, pipeline):
        content = "## Clinical Findings\n### Symptoms\n- Fever\n**ESC 2020:** not a guideline here"
        parsed = pipeline.parse_section(make_section("Clinical Findings", content=content))
        assert parsed.findings[0].items == ("Fever",)
        assert parsed.segments == ()


class TestSampleDocument:
    """End-to-end parse of the shared sample document."""

    @pytest.fixture
    def doc(self, pipeline, sample_document):
        return pipeline.parse(sample_document)

    def test_sections(self, doc):
        assert doc.title == "Atrial Fibrillation"
        assert [p.section.id for p in doc.sections] == [
            "atrial-fibrillation",
            "clinical-findings",
            "diagnosis",
            "management",
            "major-clinical-studies",
            "references",
        ]
        assert [p.kind for p in doc.sections] == [
            SectionKind.DOCUMENT_TITLE,
            SectionKind.CLINICAL_FINDINGS,
            SectionKind.GENERAL,
            SectionKind.GENERAL,
            SectionKind.STUDIES,
            SectionKind.REFERENCES,
        ]
        assert doc.get_section("major-clinical-studies").section.is_collapsed_by_default
        assert doc.get_section("missing") is None

    def test_findings(self, doc):
        findings = doc.get_section("clinical-findings").findings
        assert [(f.section_title, f.category, len(f.items)) for f in findings] == [
            ("Symptoms", FindingCategory.SYMPTOMS, 3),
            ("Vital Signs", FindingCategory.VITAL_SIGNS, 1),
            ("Medical History", FindingCategory.MEDICAL_HISTORY, 1),
        ]

    def test_lr_rows(self, doc):
        rows = doc.get_section("diagnosis").lr_rows
        assert [(r.finding, r.lr_value, r.strength_band) for r in rows] == [
            ("Irregular pulse", 8.5, StrengthBand.MODERATE),
            ("Palpitations", 1.2, StrengthBand.NEGLIGIBLE),
        ]
        assert rows[0].confidence_interval == "2.1-15"

    def test_management_segments(self, doc):
        management = doc.get_section("management")
        assert [s.kind for s in management.segments] == [
            SegmentKind.GUIDELINE,
            SegmentKind.SUBTITLE,
            SegmentKind.PROSE,
            SegmentKind.GUIDELINE,
        ]
        esc, acc = management.guidelines
        assert (esc.organization, esc.year, esc.evidence_level) == ("ESC", "2023", "A")
        assert esc.form == GuidelineForm.AS_PER
        assert acc.organization == "ACC/AHA"
        assert acc.organization_codes == ("ACC", "AHA")
        assert acc.year == "2019"
        assert acc.recommendation_type == RecommendationType.CONTRAINDICATION
        assert acc.organization_display == "American College of Cardiology / American Heart Association"
        assert management.segments[1].title == "Stroke Risk"
        assert management.segments[2].calculator == CalculatorTool.CHA2DS2_VASC

    def test_evidence_blocks(self, doc):
        blocks = doc.get_section("management").evidence_blocks
        assert len(blocks) == 1
        assert blocks[0].kind == "paragraph"
        assert [a.level.value for a in blocks[0].text.annotations] == ["A"]

    def test_studies(self, doc):
        study = doc.get_section("major-clinical-studies").studies[0]
        assert (study.title, study.year, study.author) == ("AFFIRM", "2019", "Wyse DG et al")

    def test_references(self, doc):
        references = doc.get_section("references").references
        assert [r.number for r in references] == ["1", "2"]
        assert references[0].parts[-1].link_type == "pubmed"

    def test_reading_time_and_validation(self, doc):
        assert doc.reading_time_minutes == 1
        assert doc.validation.is_valid
        assert doc.validation.suggestions == ()


class TestGuidelinesSection:
    """Key sources, embedded mentions and title-driven calculators through the pipeline."""

    TEXT = (
        "# Heparin-Induced Thrombocytopenia\n\n"
        "## Guidelines\n\n"
        "Dosing is based on guidelines from the **American Society of Hematology (ASH 2018)**.\n\n"
        "### Key Sources\n"
        "- **ASH (2018)**\n\n"
        "## Management\n\n"
        "*Calculator Available*\n"
    )

    def test_guidelines_section(self, pipeline):
        guidelines = pipeline.parse(self.TEXT).get_section("guidelines").guidelines
        assert [(g.form, g.organization, g.year) for g in guidelines] == [
            (GuidelineForm.EMBEDDED_MENTION, "American Society of Hematology", "2018"),
            (GuidelineForm.KEY_SOURCE, "ASH", "2018"),
        ]

    def test_calculator_from_document_title(self, pipeline):
        segments = pipeline.parse(self.TEXT).get_section("management").segments
        assert segments[0].calculator == CalculatorTool.HIT_4TS


class TestDeterminism:
    """The pipeline is a pure function of its input."""

    def test_same_input_same_output(self, pipeline, sample_document):
        assert pipeline.parse(sample_document) == pipeline.parse(sample_document)

    def test_fresh_pipeline_agrees(self, pipeline, sample_document):
        assert parse_document(sample_document) == pipeline.parse(sample_document)

    def test_empty_document(self, pipeline):
        doc = pipeline.parse("")
        assert doc.sections == ()
        assert doc.reading_time_minutes == 0
        assert doc.title is None

    def test_malformed_input_never_raises(self, pipeline):
        text = "#Broken\n<ClinicalSection type=>\n| a |\n|--|\n**As per**\n</ClinicalItem>"
        doc = pipeline.parse(text)
        assert len(doc.sections) == 1
        assert doc.sections[0].section.is_implicit


class TestLogging:
    """The pipeline emits one INFO summary per document."""

    def test_info_summary(self, pipeline, sample_document, capture_logs):
        pipeline.parse(sample_document)
        info = [
            r for r in capture_logs.records
            if r.levelno == logging.INFO and r.name.startswith("clinical_markdown.")
        ]
        assert len(info) == 1
        assert info[0].getMessage().startswith("Parsed 6 sections: 3 finding groups, 2 guideline statements")


class TestLoading:
    """Tests for read_document and parse_file."""

    def test_parse_file(self, pipeline, sample_file: Path):
        assert pipeline.parse_file(sample_file).title == "Atrial Fibrillation"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(DocumentLoadError) as exc_info:
            read_document(tmp_path / "nope.md")
        assert exc_info.value.file_path.endswith("nope.md")

    def test_undecodable_file(self, tmp_path: Path):
        path = tmp_path / "latin1.md"
        path.write_bytes("# Caf\xe9".encode("latin-1"))
        with pytest.raises(DocumentLoadError) as exc_info:
            read_document(path)
        assert exc_info.value.encoding == "utf-8"

    def test_other_encoding(self, tmp_path: Path):
        path = tmp_path / "latin1.md"
        path.write_bytes("# Caf\xe9".encode("latin-1"))
        assert read_document(path, encoding="latin-1") == "# Caf\xe9"
