# clinical_markdown/K_tests/K08_test_guideline_extractor.py
"""
Tests for B_parsing.B04_guideline_extractor module.

Tests the four header forms, boundary rules, generic fallbacks, calculator
markers and prose passthrough.
"""

from __future__ import annotations

import pytest

from A_core.A01_document_models import (
    CalculatorTool,
    GuidelineForm,
    RecommendationType,
    SegmentKind,
)
from A_core.A02_parse_context import ParseContext
from B_parsing.B04_guideline_extractor import (
    GuidelineExtractor,
    HeaderMatch,
    _select,
    extract_guidelines,
    key_source_regions,
    match_headings,
    organization_from_phrase,
    recommendation_type,
    resolve_calculator,
    split_organization_year,
)


@pytest.fixture
def extractor():
    return GuidelineExtractor()


def kinds(segments):
    return [s.kind for s in segments]


class TestAsPerForm:
    """Tests for 'as per ORG YEAR guidelines' headers."""

    def test_bold_header(self, extractor):
        text = "**As per ESC 2023 guidelines:** Anticoagulation is recommended."
        segments = extractor.extract(text)
        assert kinds(segments) == [SegmentKind.GUIDELINE]
        statement = segments[0].statement
        assert statement.organization == "ESC"
        assert statement.year == "2023"
        assert statement.body == "Anticoagulation is recommended."
        assert statement.is_enhanced_style is True
        assert statement.form == GuidelineForm.AS_PER
        assert statement.organization_display == "European Society of Cardiology"
        assert segments[0].content == text

    def test_plain_header_at_line_start(self, extractor):
        statements = extractor.statements("As per the ACC/AHA 2022 guidelines, beta blockers should be used.")
        assert len(statements) == 1
        statement = statements[0]
        assert statement.organization == "ACC/AHA"
        assert statement.organization_codes == ("ACC", "AHA")
        assert statement.year == "2022"
        assert statement.body == "beta blockers should be used."
        assert statement.header == "As per the ACC/AHA 2022 guidelines,"

    def test_bold_header_inside_sentence(self, extractor):
        segments = extractor.extract("Therapy continues **as per ESC 2021 guidelines** with monitoring.")
        assert kinds(segments) == [SegmentKind.PROSE, SegmentKind.GUIDELINE]
        assert segments[0].content.strip() == "Therapy continues"
        assert segments[1].statement.body == "with monitoring."

    @pytest.mark.parametrize("text", ["As per protocol, rest the patient.", "As per hospital policy: no visitors."])
    def test_non_guideline_as_per_is_prose(self, extractor, text):
        segments = extractor.extract(text)
        assert kinds(segments) == [SegmentKind.PROSE]
        assert segments[0].content == text

    def test_missing_organization_uses_generic_label(self, extractor):
        statement = extractor.statements("**As per 2020 guidelines:** Screen annually.")[0]
        assert statement.organization == "Medical Guidelines"
        assert statement.organization_display == "Clinical Practice Guideline"
        assert statement.year == "2020"

    def test_unknown_acronym_uses_generic_display(self, extractor):
        statement = extractor.statements("**As per XYZ 2021 guidelines:** Use it.")[0]
        assert statement.organization == "XYZ"
        assert statement.organization_display == "Clinical Practice Guideline"

    def test_named_organization_without_acronym(self, extractor):
        statement = extractor.statements("**As per national guidelines:** Vaccinate.")[0]
        assert statement.organization == "national"
        assert statement.organization_display == "national"
        assert statement.year is None


class TestOrganizationCodeForm:
    """Tests for '**ORG YEAR detail:**' headers."""

    def test_codes_year_and_detail(self, extractor):
        text = (
            "**ESC/EHRA 2020 Atrial Fibrillation:** Rhythm control is reasonable. "
            "**AHA 2019:** Consider ablation."
        )
        statements = extractor.statements(text)
        assert [(s.organization, s.year) for s in statements] == [("ESC/EHRA", "2020"), ("AHA", "2019")]
        first, second = statements
        assert first.form == GuidelineForm.ORGANIZATION_CODE
        assert first.is_enhanced_style is False
        assert first.detail == "2020 Atrial Fibrillation"
        assert first.body == "Rhythm control is reasonable."
        assert first.organization_display == "European Society of Cardiology / European Heart Rhythm Association"
        assert second.recommendation_type == RecommendationType.CONSIDERATION

    def test_whitespace_joined_codes(self, extractor):
        statement = extractor.statements("**ACC AHA 2017:** Treat hypertension.")[0]
        assert statement.organization_codes == ("ACC", "AHA")

    def test_unknown_code_after_slash_uses_generic_display(self, extractor):
        statement = extractor.statements("**ESC/XYZ 2021:** Body text.")[0]
        assert statement.organization == "ESC/XYZ"
        assert statement.organization_display == "Clinical Practice Guideline"

    def test_unlisted_code_is_not_a_header(self, extractor):
        segments = extractor.extract("**NICE 2019:** Offer statins.")
        assert kinds(segments) == [SegmentKind.PROSE]

    def test_configured_code_becomes_header(self, custom_config):
        statement = GuidelineExtractor(custom_config).statements("**NICE 2019:** Offer statins.")[0]
        assert statement.organization == "NICE"
        assert statement.organization_display == "National Institute for Health and Care Excellence"

    def test_evidence_level_from_body(self, extractor):
        statement = extractor.statements("**ESC 2020:** Anticoagulate (Level B).")[0]
        assert statement.evidence_level == "B"

    def test_no_year(self, extractor):
        statement = extractor.statements("**HRS consensus:** Implant if indicated.")[0]
        assert statement.year is None
        assert statement.detail == "consensus"


class TestBoundaries:
    """Tests for segment boundaries and ordering."""

    def test_headings_between_statements_preserved(self, extractor):
        text = "**ESC 2020:** First.\n### Subsection\nMiddle prose.\n**ACC 2021:** Second."
        segments = extractor.extract(text)
        assert kinds(segments) == [
            SegmentKind.GUIDELINE,
            SegmentKind.SUBTITLE,
            SegmentKind.PROSE,
            SegmentKind.GUIDELINE,
        ]
        assert segments[0].statement.body == "First."
        assert segments[1].title == "Subsection"
        assert segments[1].heading_level == 3
        assert segments[2].content == "Middle prose."
        assert segments[3].statement.body == "Second."

    def test_prose_passthrough(self, extractor):
        text = "Rate control is first line.\nNo citations here."
        segments = extractor.extract(text)
        assert len(segments) == 1
        assert segments[0].kind == SegmentKind.PROSE
        assert segments[0].content == text

    def test_blank_content(self, extractor):
        assert extractor.extract("  \n") == []

    def test_headers_in_code_fence_ignored(self, extractor):
        segments = extractor.extract("```\n**ESC 2020:** example\n```")
        assert kinds(segments) == [SegmentKind.PROSE]

    def test_select_prefers_earlier_matcher_on_tie(self):
        chosen = _select(
            [
                HeaderMatch(0, 10, "organization_code"),
                HeaderMatch(0, 12, "as_per"),
                HeaderMatch(5, 20, "organization_code"),
                HeaderMatch(30, 40, "heading"),
            ]
        )
        assert [(m.kind, m.start) for m in chosen] == [("as_per", 0), ("heading", 30)]


class TestKeySources:
    """Tests for Key Sources subsections of a Guidelines section."""

    GUIDELINES = ParseContext().with_section("Guidelines")

    def test_mention_and_key_sources(self, extractor):
        text = (
            "Rate control is based on guidelines from the "
            "**European Society of Cardiology (ESC 2020)**.\n\n"
            "### Key Sources\n"
            "- **ESC (2020)**\n"
            "- **AHA (2019)**"
        )
        segments = extractor.extract(text)
        assert kinds(segments) == [
            SegmentKind.GUIDELINE,
            SegmentKind.SUBTITLE,
            SegmentKind.GUIDELINE,
            SegmentKind.GUIDELINE,
        ]
        mention = segments[0].statement
        assert mention.form == GuidelineForm.EMBEDDED_MENTION
        assert mention.organization == "European Society of Cardiology"
        assert mention.year == "2020"
        assert mention.detail == "ESC 2020"
        assert mention.organization_codes == ("ESC",)

        sources = [s.statement for s in segments[2:]]
        assert [s.form for s in sources] == [GuidelineForm.KEY_SOURCE] * 2
        assert [(s.organization, s.year) for s in sources] == [("ESC", "2020"), ("AHA", "2019")]
        assert sources[1].organization_display == "American Heart Association"
        assert segments[2].content == "- **ESC (2020)**"

    def test_text_after_span_is_body(self, extractor):
        text = "### Key Sources\n- **ACC/AHA (2023)** Atrial fibrillation guideline"
        statement = extractor.extract(text, self.GUIDELINES)[1].statement
        assert statement.organization == "ACC/AHA"
        assert statement.organization_codes == ("ACC", "AHA")
        assert statement.organization_display == "American College of Cardiology / American Heart Association"
        assert statement.body == "Atrial fibrillation guideline"

    def test_two_spans_on_one_line(self, extractor):
        segments = extractor.extract("### Key Source\n**ESC (2020)** and **WHO (2015)**", self.GUIDELINES)
        assert [s.statement.organization for s in segments[1:]] == ["ESC", "WHO"]
        assert "".join(s.content for s in segments[1:]) == "**ESC (2020)** and **WHO (2015)**"

    def test_span_without_year(self, extractor):
        statement = extractor.extract("### Key sources\n- **National Heart Foundation**", self.GUIDELINES)[1].statement
        assert statement.organization == "National Heart Foundation"
        assert statement.year is None
        assert statement.organization_display == "National Heart Foundation"

    def test_next_subsection_ends_key_sources(self, extractor):
        text = "### Key Sources\n- **ESC (2020)**\n### Rate Control\n**ESC 2020:** Beta blockers first."
        segments = extractor.extract(text, self.GUIDELINES)
        forms = [s.statement.form for s in segments if s.statement is not None]
        assert forms == [GuidelineForm.KEY_SOURCE, GuidelineForm.ORGANIZATION_CODE]
        assert segments[-1].statement.body == "Beta blockers first."

    def test_outside_guidelines_section(self, extractor):
        context = ParseContext().with_section("Management")
        segments = extractor.extract("### Key Sources\n- **ESC (2020)**", context)
        assert segments[1].statement.form == GuidelineForm.ORGANIZATION_CODE

    def test_guidelines_heading_inside_content(self, extractor):
        context = ParseContext().with_section("Management")
        text = "## Guidelines\n### Key Sources\n- **WHO (2015)**"
        assert extractor.extract(text, context)[-1].statement.form == GuidelineForm.KEY_SOURCE

    def test_key_source_regions(self):
        text = "### Key Sources\n- **ESC (2020)**\n### Other"
        headings, _ = match_headings(text)
        assert key_source_regions(headings, len(text), "Guidelines") == [
            (headings[0].end, headings[1].start)
        ]
        assert key_source_regions(headings, len(text), "Diagnosis") == []


class TestEmbeddedMention:
    """Tests for 'based on guidelines from the **...**' lines."""

    def test_case_insensitive(self, extractor):
        statement = extractor.extract("Based On Guidelines From The **ESC (2019)** update.")[0].statement
        assert statement.form == GuidelineForm.EMBEDDED_MENTION
        assert (statement.organization, statement.year) == ("ESC", "2019")
        assert statement.organization_display == "European Society of Cardiology"

    def test_surrounding_prose_kept_in_order(self, extractor):
        text = "Intro paragraph.\nDosing is based on guidelines from the **WHO (2015)**.\nClosing line."
        segments = extractor.extract(text)
        assert kinds(segments) == [SegmentKind.PROSE, SegmentKind.GUIDELINE, SegmentKind.PROSE]
        assert segments[1].content == "Dosing is based on guidelines from the **WHO (2015)**."
        assert segments[1].statement.body == segments[1].content
        assert segments[2].content == "Closing line."

    def test_plain_mention_is_prose(self, extractor):
        segments = extractor.extract("Based on guidelines from the society.")
        assert kinds(segments) == [SegmentKind.PROSE]


class TestCalculator:
    """Tests for *Calculator Available* markers."""

    def test_default_tool(self, extractor):
        segments = extractor.extract("*Calculator Available*")
        assert segments[0].calculator == CalculatorTool.CHA2DS2_VASC
        assert segments[0].has_calculator

    def test_tool_from_subsection_heading(self, extractor):
        context = ParseContext().with_section("Management")
        segments = extractor.extract("### HIT Assessment\n*Calculator Available*", context)
        assert kinds(segments) == [SegmentKind.SUBTITLE, SegmentKind.PROSE]
        assert segments[0].calculator is None
        assert segments[1].calculator == CalculatorTool.HIT_4TS

    def test_marker_in_heading_title(self, extractor):
        segment = extractor.extract("### Lake Louise Criteria *Calculator Available*")[0]
        assert segment.title == "Lake Louise Criteria"
        assert segment.calculator == CalculatorTool.LAKE_LOUISE
        assert segment.calculator_description is None

    def test_unwrapped_marker_and_body_keyword(self, extractor):
        segment = extractor.extract("Calculator Available for SIADH workup.")[0]
        assert segment.calculator == CalculatorTool.SIADH

    def test_no_marker_no_calculator(self, extractor):
        assert extractor.extract("Heparin dosing is weight based.")[0].calculator is None

    def test_resolve_from_section_title(self):
        context = ParseContext().with_section("Myocarditis Imaging").with_subsection("Lake Louise")
        assert resolve_calculator(context, "") == CalculatorTool.LAKE_LOUISE

    def test_resolve_from_document_title(self, extractor):
        context = ParseContext(document_title="Heparin-Induced Thrombocytopenia").with_section("Management")
        assert context.keyword_text() == "heparin-induced thrombocytopenia management"
        assert extractor.extract("*Calculator Available*", context)[0].calculator == CalculatorTool.HIT_4TS


class TestHelpers:
    """Tests for phrase and body helpers."""

    def test_organization_from_phrase(self):
        assert organization_from_phrase("the ACC/AHA 2022 guidelines on syncope") == "ACC/AHA"
        assert organization_from_phrase("ESC guideline") == "ESC"

    def test_split_organization_year(self):
        assert split_organization_year("European Society of Cardiology (ESC 2020)") == (
            "European Society of Cardiology",
            "ESC 2020",
        )
        assert split_organization_year("AHA (2019)") == ("AHA", "2019")
        assert split_organization_year("AHA (adult)") == ("AHA (adult)", "")

    @pytest.mark.parametrize(
        "body,expected",
        [
            ("Do not use aspirin alone.", RecommendationType.CONTRAINDICATION),
            ("Avoid NSAIDs.", RecommendationType.CONTRAINDICATION),
            ("Beta blockers are contraindicated.", RecommendationType.CONTRAINDICATION),
            ("Consider ablation.", RecommendationType.CONSIDERATION),
            ("Anticoagulation is recommended.", RecommendationType.RECOMMENDATION),
        ],
    )
    def test_recommendation_type(self, body, expected):
        assert recommendation_type(body) == expected

    def test_convenience_wrapper(self):
        segments = extract_guidelines("**WHO 2015:** Treat everyone.")
        assert segments[0].statement.organization == "WHO"
