# clinical_markdown/K_tests/K09_test_evidence_detector.py
"""
Tests for B_parsing.B05_evidence_detector module.

Tests standalone and inline detection, template precedence, the keyword
classes and block annotation.
"""

from __future__ import annotations

import pytest

from A_core.A01_document_models import EvidenceLevel
from B_parsing.B05_evidence_detector import (
    LETTER_TEMPLATES,
    EvidenceLevelDetector,
    find_evidence_level,
)

GRADES = ["A", "B", "C", "D", "E", "I"]
STANDALONE_FORMS = [
    "Evidence Level: Class {}",
    "Evidence Level: {}",
    "[Evidence Level: {}]",
    "Class {}:",
    "({})",
    "[{}]",
    "Level {}",
]


@pytest.fixture
def detector():
    return EvidenceLevelDetector()


class TestStandalone:
    """A paragraph that is only a marker becomes one standalone annotation."""

    @pytest.mark.parametrize("form", STANDALONE_FORMS)
    @pytest.mark.parametrize("grade", GRADES)
    def test_every_template_and_grade(self, detector, form, grade):
        text = form.format(grade)
        result = detector.annotate(text)
        assert len(result.annotations) == 1
        annotation = result.annotations[0]
        assert annotation.is_standalone is True
        assert annotation.level == EvidenceLevel(grade)
        assert result.is_standalone

    def test_class_template_example(self, detector):
        annotation = detector.detect_standalone("Evidence Level: Class A")
        assert annotation.level == EvidenceLevel.A
        assert annotation.template == "evidence_level_class"
        assert annotation.source_span == "Evidence Level: Class A"

    @pytest.mark.parametrize("text", ["**Evidence Level: B**", "**[Evidence Level: C]**", "  Level D.  ", "GRADE E"])
    def test_bold_and_padded_forms(self, detector, text):
        assert detector.detect_standalone(text) is not None

    def test_whole_paragraph_becomes_single_run(self, detector):
        result = detector.annotate("(B)")
        assert [(r.kind, r.content) for r in result.runs] == [("evidence", "(B)")]

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Evidence level: class a", EvidenceLevel.A),
            ("Level b", EvidenceLevel.B),
            ("Level of evidence A", EvidenceLevel.A),
            ("Level of Evidence: C", EvidenceLevel.C),
            ("(i)", EvidenceLevel.I),
        ],
    )
    def test_case_insensitive_forms(self, detector, text, expected):
        annotation = detector.detect_standalone(text)
        assert annotation is not None
        assert annotation.level == expected

    def test_marker_inside_prose_is_not_standalone(self, detector):
        assert detector.detect_standalone("Effective (Level B) therapy.") is None


class TestInline:
    """Markers inside running prose annotate only their span."""

    def test_example_inline(self, detector):
        text = "Treatment is effective (Level B) in most patients."
        result = detector.annotate(text)
        assert len(result.annotations) == 1
        annotation = result.annotations[0]
        assert annotation.level == EvidenceLevel.B
        assert annotation.is_standalone is False
        assert annotation.source_span == "(Level B)"
        assert text[annotation.start:annotation.end] == "(Level B)"
        assert [r.content for r in result.runs] == ["Treatment is effective ", "(Level B)", " in most patients."]

    def test_runs_join_back_to_text(self, detector):
        text = "Statins [A] and aspirin Class C: both studied; Grade B for the rest"
        result = detector.annotate(text)
        assert "".join(r.content for r in result.runs) == text
        assert [a.level.value for a in result.annotations] == ["A", "C", "B"]

    def test_longest_span_wins(self, detector):
        annotations = detector.detect_inline("Use it. Evidence Level: Class A")
        assert len(annotations) == 1
        assert annotations[0].template == "evidence_level_class"

    def test_parenthesized_grade_beats_bare_level(self, detector):
        annotations = detector.detect_inline("Effective (Grade C) overall")
        assert [a.template for a in annotations] == ["parenthesized_grade"]

    def test_bare_parenthesized_letters_are_known_false_positives(self, detector):
        annotations = detector.detect_inline("Options (A) and (B) exist")
        assert [a.template for a in annotations] == ["parenthesized_letter", "parenthesized_letter"]

    def test_lower_case_letters_match(self, detector):
        annotations = detector.detect_inline("Effective (level b) and grade c elsewhere")
        assert [(a.template, a.level) for a in annotations] == [
            ("parenthesized_grade", EvidenceLevel.B),
            ("grade", EvidenceLevel.C),
        ]

    def test_lower_case_enumerations_are_known_false_positives(self, detector):
        annotations = detector.detect_inline("Options (a) and [i] exist")
        assert [a.level for a in annotations] == [EvidenceLevel.A, EvidenceLevel.I]
        assert [a.source_span for a in annotations] == ["(a)", "[i]"]

    def test_level_of_evidence(self, detector):
        annotations = detector.detect_inline("Supported (see trials), level of evidence B.")
        assert [(a.template, a.source_span) for a in annotations] == [("level_of_evidence", "level of evidence B")]

    @pytest.mark.parametrize(
        "text", ["Class IIa recommendation", "Level 2 care", "The level of evidence is low", "No markers"]
    )
    def test_non_markers(self, detector, text):
        assert detector.detect_inline(text) == []

    def test_keyword_classes_off_by_default(self, detector):
        assert detector.detect_inline("Expert consensus: avoid this.") == []

    def test_keyword_classes(self, detector):
        text = "Expert consensus: avoid this. Guidelines suggest (Level C)."
        annotations = detector.detect_inline(text, include_keywords=True)
        assert [a.level for a in annotations] == [
            EvidenceLevel.EXPERT,
            EvidenceLevel.WARNING,
            EvidenceLevel.GUIDELINE,
            EvidenceLevel.C,
        ]
        assert annotations[0].source_span == "Expert consensus"

    def test_strength_phrases_are_opt_in(self, detector):
        text = "Strong evidence supports this."
        assert detector.detect_inline(text) == []
        annotations = detector.detect_inline(text, include_keywords=True)
        assert [(a.template, a.level) for a in annotations] == [("strong_evidence", EvidenceLevel.A)]

    def test_keyword_classes_from_config(self):
        from G_config.G02_parser_config import ParserConfig

        detector = EvidenceLevelDetector(ParserConfig.from_dict({"evidence": {"include_keyword_classes": True}}))
        assert [a.level for a in detector.detect_inline("Use caution.")] == [EvidenceLevel.WARNING]

    def test_custom_template_table(self):
        detector = EvidenceLevelDetector(letter_templates=LETTER_TEMPLATES[:-2])
        assert detector.detect_inline("Options (A) and [B]") == []


class TestClassify:
    """Tests for single-level classification."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Class B, should be used", EvidenceLevel.B),
            ("Experts reached consensus", EvidenceLevel.EXPERT),
            ("Consensus: avoid in pregnancy", EvidenceLevel.EXPERT),
            ("Use caution in renal failure", EvidenceLevel.WARNING),
            ("Guidelines recommend it", EvidenceLevel.GUIDELINE),
            ("Insufficient evidence", EvidenceLevel.I),
            ("Strong evidence supports this.", EvidenceLevel.A),
            ("Moderate evidence from cohort studies", EvidenceLevel.B),
            ("Only limited evidence; avoid in children", EvidenceLevel.C),
            ("Strong evidence, level of evidence B", EvidenceLevel.B),
            ("Plain text", None),
        ],
    )
    def test_classify(self, detector, text, expected):
        assert detector.classify(text) == expected

    def test_find_evidence_level(self):
        assert find_evidence_level("Recommended (Class I)") == "I"
        assert find_evidence_level("No grade here") is None


class TestAnnotateBlocks:
    """Tests for block-level annotation of a section body."""

    def test_block_kinds(self, detector):
        content = (
            "Intro paragraph without markers.\n"
            "\n"
            "Second paragraph (Level A)\n"
            "continues here.\n"
            "\n"
            "- Item one Class B\n"
            "- Item two\n"
            "\n"
            "> Quote Grade C\n"
            "\n"
            "| Therapy | Evidence |\n"
            "|---|---|\n"
            "| Statin | [A] |\n"
        )
        blocks = detector.annotate_blocks(content)
        assert [b.kind for b in blocks] == ["paragraph", "list_item", "blockquote", "table_cell"]
        assert blocks[0].text.text == "Second paragraph (Level A)\ncontinues here."
        assert blocks[3].text.is_standalone

    def test_no_markers_no_blocks(self, detector):
        assert detector.annotate_blocks("Just prose.\n- and a list") == []
