# clinical_markdown/K_tests/K11_test_reference_parser.py
"""
Tests for B_parsing.B07_reference_parser module.
"""

from __future__ import annotations

import pytest

from A_core.A01_document_models import ReferencePartKind
from B_parsing.B07_reference_parser import (
    parse_reference_line,
    parse_references,
    split_reference_parts,
)

PUBMED = "https://pubmed.ncbi.nlm.nih.gov/32860505/"


class TestParseReferenceLine:
    """Tests for one bibliography line."""

    def test_numbered_line_with_bold_and_link(self):
        entry = parse_reference_line(f"1. Hindricks G, et al. **Eur Heart J**. 2021. [PubMed]({PUBMED})")
        assert entry.number == "1"
        assert [p.kind for p in entry.parts] == [
            ReferencePartKind.TEXT,
            ReferencePartKind.BOLD,
            ReferencePartKind.TEXT,
            ReferencePartKind.LINK,
        ]
        bold, link = entry.parts[1], entry.parts[3]
        assert bold.content == "**Eur Heart J**"
        assert bold.text == "Eur Heart J"
        assert link.text == "PubMed"
        assert link.href == PUBMED
        assert link.link_type == "pubmed"

    def test_plain_line_is_single_text_part(self):
        entry = parse_reference_line("January CT, et al. Circulation. 2019.")
        assert entry.number is None
        assert len(entry.parts) == 1
        assert entry.parts[0].kind == ReferencePartKind.TEXT
        assert entry.parts[0].content == "January CT, et al. Circulation. 2019."

    def test_blank_line(self):
        assert parse_reference_line("   ") is None

    def test_numbering_needs_dot_and_space(self):
        entry = parse_reference_line("2019.Guidelines update")
        assert entry.number is None

    def test_plain_text_property(self):
        entry = parse_reference_line("3. Smith J. **Lancet**. [doi](https://doi.org/10.1/x)")
        assert entry.plain_text == "Smith J. Lancet. doi"
        assert entry.parts[-1].link_type == "doi"


class TestCoverage:
    """Parts cover the line, numbering removed, with no gaps or overlaps."""

    @pytest.mark.parametrize(
        "line,remainder",
        [
            ("1. Author A. **Journal**. 2020.", "Author A. **Journal**. 2020."),
            (f"12. [Link]({PUBMED})**Bold**tail", f"[Link]({PUBMED})**Bold**tail"),
            ("No number **unclosed bold", "No number **unclosed bold"),
            ("5. [label](no closing paren", "[label](no closing paren"),
            ("7.  ", ""),
        ],
    )
    def test_parts_join_to_remainder(self, line, remainder):
        entry = parse_reference_line(line)
        assert "".join(p.content for p in entry.parts) == remainder

    def test_empty_text_gives_one_empty_part(self):
        parts = split_reference_parts("")
        assert len(parts) == 1
        assert parts[0].content == ""


class TestParseReferences:
    """Tests for a whole References section body."""

    def test_skips_blank_lines(self):
        entries = parse_references("1. First.\n\n2. Second **B**.\n")
        assert [e.number for e in entries] == ["1", "2"]
