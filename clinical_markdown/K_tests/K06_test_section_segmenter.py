# clinical_markdown/K_tests/K06_test_section_segmenter.py
"""
Tests for B_parsing.B02_section_segmenter module.

Tests level 1/2 splitting, collapse defaults, implicit sections and
re-segmentation of rendered output.
"""

from __future__ import annotations

from B_parsing.B02_section_segmenter import (
    SectionSegmenter,
    implicit_title,
    render_sections,
    retains_heading,
    section_outline,
    segment_sections,
)


class TestSegmentation:
    """Tests for heading boundaries."""

    def test_split_on_level_one_and_two(self):
        sections = segment_sections("# Myocarditis\nIntro\n## Background\nText\n### Detail\nMore")
        assert [(s.id, s.level) for s in sections] == [("myocarditis", 1), ("background", 2)]
        assert sections[0].raw_content == "Intro"
        assert sections[1].raw_content == "Text\n### Detail\nMore"

    def test_heading_line_excluded_from_content(self):
        sections = segment_sections("## Management\nRate control first.")
        assert sections[0].raw_content == "Rate control first."

    def test_clinical_findings_keeps_heading(self):
        sections = segment_sections("## Clinical Findings\n### Symptoms\n- Fever\n## Next\nx")
        assert sections[0].raw_content == "## Clinical Findings\n### Symptoms\n- Fever"
        assert sections[1].raw_content == "x"

    def test_empty_section(self):
        sections = segment_sections("## A\n## B\nText")
        assert sections[0].raw_content == ""

    def test_duplicate_titles_get_unique_ids(self):
        sections = segment_sections("## Notes\na\n## Notes\nb\n## Notes\nc")
        assert [s.id for s in sections] == ["notes", "notes-2", "notes-3"]

    def test_malformed_headings_are_body_text(self):
        sections = segment_sections("## Real\n#NotHeading\n####### Too deep")
        assert len(sections) == 1
        assert sections[0].raw_content == "#NotHeading\n####### Too deep"

    def test_headings_in_code_fences_ignored(self):
        sections = segment_sections("## Example\n```\n## inside fence\n```")
        assert [s.title for s in sections] == ["Example"]


class TestCollapse:
    """Tests for default collapse state."""

    def test_studies_sections_collapsed(self):
        sections = segment_sections("## Background\nx\n## Major Clinical Studies\ny\n## Key Studies\nz")
        assert [s.is_collapsed_by_default for s in sections] == [False, True, True]


class TestImplicitSections:
    """Tests for text with no heading above it."""

    def test_no_headings_gives_single_implicit_section(self):
        sections = segment_sections("Heart failure overview.\nSecond line.")
        assert len(sections) == 1
        section = sections[0]
        assert section.level == 2
        assert section.is_implicit
        assert section.title == "Heart failure overview."
        assert section.raw_content == "Heart failure overview.\nSecond line."

    def test_preamble_before_first_heading(self):
        sections = segment_sections("Draft note\n# Title\nBody")
        assert [s.title for s in sections] == ["Draft note", "Title"]
        assert sections[0].is_implicit and not sections[1].is_implicit

    def test_blank_document(self):
        assert segment_sections("  \n\n") == []

    def test_implicit_title_strips_markers_and_shortens(self):
        assert implicit_title("\n- **Bold** start") == "Bold start"
        long_line = "word " * 30
        title = implicit_title(long_line)
        assert title.endswith("...")
        assert len(title) <= 63


class TestResegmentation:
    """Rendering sections and segmenting again reproduces the boundaries."""

    def test_round_trip_outline(self, sample_document):
        segmenter = SectionSegmenter()
        first = segmenter.segment(sample_document)
        second = segmenter.segment(render_sections(first))
        assert section_outline(second) == section_outline(first)
        assert [s.raw_content for s in second] == [s.raw_content for s in first]

    def test_round_trip_with_implicit_section(self):
        text = "Loose preamble\n## Clinical Findings\n- Fever\n## Plan\nRest"
        first = segment_sections(text)
        second = segment_sections(render_sections(first))
        assert section_outline(second) == section_outline(first)

    def test_retains_heading(self):
        assert retains_heading("Clinical Findings")
        assert retains_heading("CLINICAL FINDINGS and Exam")
        assert not retains_heading("Clinical Presentation")
