# clinical_markdown/K_tests/K01_test_text_helpers.py
"""
Tests for Z_utils.Z02_text_helpers module.
"""

from __future__ import annotations

import pytest

from Z_utils.Z02_text_helpers import (
    contains_words,
    estimate_reading_time,
    extract_year,
    normalize_whitespace,
    slugify,
    split_table_cells,
    strip_inline_markup,
)


class TestSlugify:
    """Tests for section id slugs."""

    def test_punctuation_collapses_to_single_hyphen(self):
        assert slugify("Clinical Findings & Diagnosis") == "clinical-findings-diagnosis"

    def test_leading_and_trailing_separators_dropped(self):
        assert slugify("  (Background)  ") == "background"

    def test_symbols_only_gives_empty_slug(self):
        assert slugify("***") == ""


class TestReadingTime:
    """Tests for estimate_reading_time."""

    def test_blank_text_is_zero_minutes(self):
        assert estimate_reading_time("   \n ") == 0

    def test_short_text_rounds_up_to_one_minute(self):
        assert estimate_reading_time("one two three") == 1

    def test_rounds_up_partial_minutes(self):
        assert estimate_reading_time("word " * 401, words_per_minute=200) == 3


class TestMarkup:
    """Tests for markup stripping and whitespace normalization."""

    def test_strip_inline_markup(self):
        assert strip_inline_markup("**Bold** and *it* [link](https://x.org)") == "Bold and it link"

    def test_nested_emphasis(self):
        assert strip_inline_markup("***both***") == "both"

    def test_normalize_whitespace(self):
        assert normalize_whitespace("  a \n\t b  ") == "a b"


class TestTableCells:
    """Tests for split_table_cells."""

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("| a | b |", ["a", "b"]),
            ("a | b", ["a", "b"]),
            ("| x \\| y | z |", ["x | y", "z"]),
        ],
    )
    def test_split(self, line, expected):
        assert split_table_cells(line) == expected


class TestKeywordHelpers:
    """Tests for extract_year and contains_words."""

    def test_first_year_wins(self):
        assert extract_year("Published 2021, revised 2023") == "2021"

    def test_no_year(self):
        assert extract_year("Class A, n=12345") is None

    def test_whole_word_match(self):
        assert contains_words("HIT score of 6", ["hit"])
        assert not contains_words("the hitch", ["hit"])

    def test_all_words_required(self):
        assert contains_words("Lake Louise criteria", ["lake", "louise"])
        assert not contains_words("Lake criteria", ["lake", "louise"])

    def test_phrase_with_hyphen(self):
        assert contains_words(
            "Suspected heparin-induced thrombocytopenia", ["heparin-induced thrombocytopenia"]
        )
