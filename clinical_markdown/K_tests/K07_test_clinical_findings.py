# clinical_markdown/K_tests/K07_test_clinical_findings.py
"""
Tests for B_parsing.B03_clinical_findings_parser module.

Tests group building from headings, pseudo-tags and mixed item syntax,
category inference and markup normalization.
"""

from __future__ import annotations

import pytest

from A_core.A01_document_models import FindingCategory
from A_core.A02_parse_context import ParseContext
from B_parsing.B03_clinical_findings_parser import (
    ClinicalFindingsParser,
    infer_category,
    is_findings_title,
    normalize_clinical_markup,
    parse_clinical_findings,
)
from G_config.G02_parser_config import ParserConfig


@pytest.fixture
def parser():
    return ClinicalFindingsParser()


def groups(findings):
    return [(f.section_title, f.category, f.items) for f in findings]


class TestInferCategory:
    """Tests for heading keyword rules."""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Symptoms", FindingCategory.SYMPTOMS),
            ("Patient Demographics", FindingCategory.DEMOGRAPHICS),
            ("Surgical History", FindingCategory.SURGICAL_HISTORY),
            ("Drug History", FindingCategory.MEDICATION_HISTORY),
            ("Vital Signs", FindingCategory.VITAL_SIGNS),
            ("Physical Examination", FindingCategory.PHYSICAL_EXAM),
            ("Past Medical History", FindingCategory.MEDICAL_HISTORY),
            ("Laboratory", FindingCategory.SYMPTOMS),
            ("physical-exam", FindingCategory.PHYSICAL_EXAM),
        ],
    )
    def test_rules(self, title, expected):
        assert infer_category(title) == expected

    def test_rule_order_first_match_wins(self):
        # "signs" (vital_signs) is listed before "physical"
        assert infer_category("Physical Signs") == FindingCategory.VITAL_SIGNS

    def test_configured_default(self):
        config = ParserConfig.from_dict({"findings": {"default_category": "physical_exam"}})
        assert infer_category("Other", config) == FindingCategory.PHYSICAL_EXAM

    def test_findings_titles(self):
        assert is_findings_title("Clinical Presentation")
        assert not is_findings_title("Clinical Course")


class TestParse:
    """Tests for ClinicalFindingsParser.parse."""

    def test_heading_group(self, parser):
        findings = parser.parse("### Symptoms\n- Chest pain\n- Dyspnea\n")
        assert groups(findings) == [("Symptoms", FindingCategory.SYMPTOMS, ("Chest pain", "Dyspnea"))]

    def test_mixed_item_syntax(self, parser):
        text = "### Symptoms\n- Chest pain\n<ClinicalItem>Dyspnea</ClinicalItem>\n1. Syncope"
        assert parser.parse(text)[0].items == ("Chest pain", "Dyspnea", "Syncope")

    def test_tag_opens_group_without_heading(self, parser):
        text = (
            '<ClinicalSection type="Vital Signs">\n'
            "<ClinicalItem>Tachycardia</ClinicalItem>\n"
            "</ClinicalSection>\n"
            '<ClinicalSection type="Medications">\n'
            "- Amiodarone\n"
            "</ClinicalSection>"
        )
        assert groups(parser.parse(text)) == [
            ("Vital Signs", FindingCategory.VITAL_SIGNS, ("Tachycardia",)),
            ("Medications", FindingCategory.MEDICATION_HISTORY, ("Amiodarone",)),
        ]

    def test_tag_directly_under_heading_continues_group(self, parser):
        text = (
            "### Symptoms\n"
            '<ClinicalSection type="Symptoms">\n'
            "<ClinicalItem>Fever</ClinicalItem>\n"
            "</ClinicalSection>\n"
            "- Cough"
        )
        assert groups(parser.parse(text)) == [("Symptoms", FindingCategory.SYMPTOMS, ("Fever", "Cough"))]

    def test_tag_after_populated_heading_group_opens_new_group(self, parser):
        text = (
            "### Vital Signs\n"
            "- Irregular pulse\n"
            '<ClinicalSection type="Medical History">\n'
            "<ClinicalItem>Hypertension</ClinicalItem>\n"
            "</ClinicalSection>"
        )
        assert groups(parser.parse(text)) == [
            ("Vital Signs", FindingCategory.VITAL_SIGNS, ("Irregular pulse",)),
            ("Medical History", FindingCategory.MEDICAL_HISTORY, ("Hypertension",)),
        ]

    def test_empty_groups_dropped(self, parser):
        findings = parser.parse("### Symptoms\n\n### Vital Signs\n- BP 90/60")
        assert [f.section_title for f in findings] == ["Vital Signs"]

    def test_empty_items_ignored(self, parser):
        findings = parser.parse("### Symptoms\n<ClinicalItem></ClinicalItem>\n- Fever")
        assert findings[0].items == ("Fever",)

    def test_foreign_level_two_heading_ends_block(self, parser):
        text = "## Clinical Findings\n### Symptoms\n- Fever\n## Management\n### Drugs\n- Aspirin"
        assert groups(parser.parse(text)) == [("Symptoms", FindingCategory.SYMPTOMS, ("Fever",))]

    def test_items_before_any_group_use_block_title(self, parser):
        findings = parser.parse("## Clinical Presentation\n- Fever\n- Rash")
        assert groups(findings) == [("Clinical Presentation", FindingCategory.SYMPTOMS, ("Fever", "Rash"))]

    def test_context_title_used_for_loose_items(self, parser):
        findings = parser.parse("- Fever", ParseContext().with_section("Clinical Findings (Adults)"))
        assert findings[0].section_title == "Clinical Findings (Adults)"

    def test_no_items_no_findings(self, parser):
        assert parser.parse("Plain prose only.") == []

    def test_convenience_wrapper(self):
        assert parse_clinical_findings("### Exam\n- Rales")[0].category == FindingCategory.PHYSICAL_EXAM

    def test_sample_document_block(self, parser, sample_document):
        block = sample_document.split("## Clinical Findings", 1)[1]
        findings = parser.parse("## Clinical Findings" + block)
        assert groups(findings) == [
            ("Symptoms", FindingCategory.SYMPTOMS, ("Palpitations", "Dyspnea", "Fatigue")),
            ("Vital Signs", FindingCategory.VITAL_SIGNS, ("Irregularly irregular pulse",)),
            ("Medical History", FindingCategory.MEDICAL_HISTORY, ("Hypertension",)),
        ]


class TestNormalize:
    """Tests for normalize_clinical_markup."""

    def test_bullets_become_tags(self):
        normalized = normalize_clinical_markup("### Symptoms\n- Chest pain\n- Dyspnea")
        assert normalized == (
            "### Symptoms\n"
            '<ClinicalSection type="Symptoms">\n'
            "<ClinicalItem>Chest pain</ClinicalItem>\n"
            "<ClinicalItem>Dyspnea</ClinicalItem>\n"
            "</ClinicalSection>"
        )

    @pytest.mark.parametrize(
        "text",
        [
            "### Symptoms\n- Chest pain\n<ClinicalItem>Dyspnea</ClinicalItem>\n\n### Exam\n1. Rales",
            '<ClinicalSection type="Vital Signs">\n<ClinicalItem>Fever</ClinicalItem>\n</ClinicalSection>',
            "## Clinical Findings\n- Loose item\n### Vital Signs\n- BP low\n## Plan\n- Not a finding",
        ],
    )
    def test_parse_equivalence(self, parser, text):
        assert parser.parse(normalize_clinical_markup(text)) == parser.parse(text)

    def test_text_after_block_copied_unchanged(self):
        normalized = normalize_clinical_markup("### Symptoms\n- Fever\n## Plan\n- Rest")
        assert normalized.endswith("## Plan\n- Rest")

    def test_prose_lines_kept(self):
        normalized = normalize_clinical_markup("### Symptoms\nOften subtle.\n- Fever")
        assert "Often subtle." in normalized.splitlines()
