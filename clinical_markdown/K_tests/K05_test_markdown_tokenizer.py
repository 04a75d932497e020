# clinical_markdown/K_tests/K05_test_markdown_tokenizer.py
"""
Tests for B_parsing.B01_markdown_tokenizer module.

Tests the tagged line tokens for markdown constructs and pseudo-tags.
"""

from __future__ import annotations

import pytest

from B_parsing.B01_markdown_tokenizer import TokenKind, has_clinical_tag, parse_heading, tokenize


def kinds(text):
    return [t.kind for t in tokenize(text)]


class TestParseHeading:
    """Tests for ATX heading recognition."""

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("# Title", (1, "Title")),
            ("## Clinical Findings ##", (2, "Clinical Findings")),
            ("   ### Symptoms", (3, "Symptoms")),
            ("#### Detail", (4, "Detail")),
        ],
    )
    def test_headings(self, line, expected):
        assert parse_heading(line) == expected

    @pytest.mark.parametrize("line", ["#Title", "####### Too deep", "##", "    # indented code", "text # not"])
    def test_malformed_markers_are_not_headings(self, line):
        assert parse_heading(line) is None


class TestTokenize:
    """Tests for the token stream."""

    def test_list_items(self):
        tokens = tokenize("- Chest pain\n  * Radiating\n1. First\n2) Second")
        assert [(t.kind, t.text) for t in tokens] == [
            (TokenKind.BULLET, "Chest pain"),
            (TokenKind.BULLET, "Radiating"),
            (TokenKind.ORDERED_ITEM, "First"),
            (TokenKind.ORDERED_ITEM, "Second"),
        ]
        assert tokens[1].level == 2

    def test_table(self):
        assert kinds("| A | B |\n|---|:---:|\n| 1 | 2 |") == [
            TokenKind.TABLE_ROW,
            TokenKind.TABLE_SEPARATOR,
            TokenKind.TABLE_ROW,
        ]

    def test_table_without_outer_pipes(self):
        assert kinds("A | B\n--- | ---\n1 | 2") == [
            TokenKind.TABLE_ROW,
            TokenKind.TABLE_SEPARATOR,
            TokenKind.TABLE_ROW,
        ]

    def test_pipe_text_without_separator_stays_text(self):
        assert kinds("either | or") == [TokenKind.TEXT]

    def test_blockquote_and_blank(self):
        tokens = tokenize("> Quoted (Level B)\n\nPlain")
        assert [t.kind for t in tokens] == [TokenKind.BLOCKQUOTE, TokenKind.BLANK, TokenKind.TEXT]
        assert tokens[0].text == "Quoted (Level B)"

    def test_fenced_code_hides_headings_and_tags(self):
        text = "```\n## Not a heading\n<ClinicalItem>x</ClinicalItem>\n```\n## Real"
        tokens = tokenize(text)
        assert [t.kind for t in tokens] == [
            TokenKind.FENCE,
            TokenKind.CODE,
            TokenKind.CODE,
            TokenKind.FENCE,
            TokenKind.HEADING,
        ]

    def test_line_numbers(self):
        tokens = tokenize("# A\n\n## B")
        assert [t.line_no for t in tokens] == [0, 1, 2]


class TestPseudoTags:
    """Tests for ClinicalSection / ClinicalItem recognition."""

    def test_section_open_and_close(self):
        tokens = tokenize('<ClinicalSection type="Vital Signs">\n</ClinicalSection>')
        assert [(t.kind, t.text) for t in tokens] == [
            (TokenKind.CLINICAL_SECTION_OPEN, "Vital Signs"),
            (TokenKind.CLINICAL_SECTION_CLOSE, ""),
        ]

    def test_single_quoted_type(self):
        token = tokenize("<ClinicalSection type='Medical History'>")[0]
        assert token.text == "Medical History"

    def test_several_tags_on_one_line(self):
        tokens = tokenize("<ClinicalItem>Fever</ClinicalItem> <ClinicalItem> Chills </ClinicalItem>")
        assert [(t.kind, t.text) for t in tokens] == [
            (TokenKind.CLINICAL_ITEM, "Fever"),
            (TokenKind.CLINICAL_ITEM, "Chills"),
        ]

    def test_bullet_marker_before_tag_is_dropped(self):
        tokens = tokenize("- <ClinicalItem>Fever</ClinicalItem>")
        assert [(t.kind, t.text) for t in tokens] == [(TokenKind.CLINICAL_ITEM, "Fever")]

    def test_free_text_around_tags_kept(self):
        tokens = tokenize("Note: <ClinicalItem>Fever</ClinicalItem> reported")
        assert [(t.kind, t.text) for t in tokens] == [
            (TokenKind.TEXT, "Note:"),
            (TokenKind.CLINICAL_ITEM, "Fever"),
            (TokenKind.TEXT, "reported"),
        ]

    def test_has_clinical_tag(self):
        assert has_clinical_tag("x <clinicalitem>y</clinicalitem>")
        assert not has_clinical_tag("a < b")
