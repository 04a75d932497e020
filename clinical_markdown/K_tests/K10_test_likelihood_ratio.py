# clinical_markdown/K_tests/K10_test_likelihood_ratio.py
"""
Tests for B_parsing.B06_likelihood_ratio_annotator module.

Tests table discovery, LR value parsing, strength bands, bar widths and
non-interference with ordinary tables.
"""

from __future__ import annotations

import pytest

from A_core.A01_document_models import LRPolarity, StrengthBand
from B_parsing.B06_likelihood_ratio_annotator import (
    LikelihoodRatioAnnotator,
    bar_width,
    find_tables,
    parse_lr_value,
    strength_band,
)
from G_config.G02_parser_config import LikelihoodRatioSettings


@pytest.fixture
def annotator():
    return LikelihoodRatioAnnotator()


@pytest.fixture
def settings():
    return LikelihoodRatioSettings()


class TestParseValue:
    """Tests for the leading decimal of an LR cell."""

    @pytest.mark.parametrize(
        "cell,expected",
        [("8.5 (2.1-15)", 8.5), ("12", 12.0), (" 0.08", 0.08), (".5", 0.5), ("n/a", None), ("", None)],
    )
    def test_values(self, cell, expected):
        assert parse_lr_value(cell) == expected


class TestStrengthBand:
    """Tests for the band thresholds."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (25.0, StrengthBand.STRONG),
            (10.0, StrengthBand.STRONG),
            (9.99, StrengthBand.MODERATE),
            (5.0, StrengthBand.MODERATE),
            (2.0, StrengthBand.WEAK),
            (1.9, StrengthBand.NEGLIGIBLE),
        ],
    )
    def test_positive(self, settings, value, expected):
        assert strength_band(value, LRPolarity.POSITIVE, settings) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0.05, StrengthBand.STRONG),
            (0.1, StrengthBand.STRONG),
            (0.2, StrengthBand.MODERATE),
            (0.5, StrengthBand.WEAK),
            (0.51, StrengthBand.NEGLIGIBLE),
        ],
    )
    def test_negative(self, settings, value, expected):
        assert strength_band(value, LRPolarity.NEGATIVE, settings) == expected

    def test_very_strong_band_when_configured(self, custom_config):
        lr = custom_config.likelihood_ratio
        assert strength_band(25.0, LRPolarity.POSITIVE, lr) == StrengthBand.VERY_STRONG
        assert strength_band(0.03, LRPolarity.NEGATIVE, lr) == StrengthBand.VERY_STRONG
        assert strength_band(12.0, LRPolarity.POSITIVE, lr) == StrengthBand.STRONG


class TestBarWidth:
    """Tests for the proportional indicator width."""

    def test_positive_scaled_against_ceiling(self, settings):
        assert bar_width(10.0, LRPolarity.POSITIVE, settings) == 45.0
        assert bar_width(8.5, LRPolarity.POSITIVE, settings) == 38.25

    def test_positive_capped_at_ceiling(self, settings):
        assert bar_width(50.0, LRPolarity.POSITIVE, settings) == 90.0

    def test_negative_inverted(self, settings):
        assert bar_width(0.1, LRPolarity.NEGATIVE, settings) == 81.0
        assert bar_width(0.0, LRPolarity.NEGATIVE, settings) == 90.0

    def test_minimum_width(self, settings):
        assert bar_width(1.0, LRPolarity.POSITIVE, settings) == 10.0
        assert bar_width(2.0, LRPolarity.NEGATIVE, settings) == 10.0


class TestAnnotateTable:
    """Tests for LikelihoodRatioAnnotator.annotate_table."""

    def test_example_row(self, annotator):
        table = annotator.annotate_table(["Finding", "LR+", "Value"], [["Murmur", "8.5 (2.1-15)", "..."]])
        assert table.is_lr_table
        row = table.lr_rows[0]
        assert row.finding == "Murmur"
        assert row.lr_value == 8.5
        assert row.strength_band == StrengthBand.MODERATE
        assert row.confidence_interval == "2.1-15"
        assert row.polarity == LRPolarity.POSITIVE
        assert row.cells == ("Murmur", "8.5 (2.1-15)", "...")

    def test_negative_column(self, annotator):
        table = annotator.annotate_table(["Finding", "LR-", "95% CI"], [["Normal ECG", "0.08", "(0.02-0.3)"]])
        row = table.lr_rows[0]
        assert row.polarity == LRPolarity.NEGATIVE
        assert row.strength_band == StrengthBand.STRONG
        assert row.confidence_interval == "0.02-0.3"

    def test_both_columns(self, annotator):
        table = annotator.annotate_table(
            ["Sign", "LR+", "LR-"], [["Fever", "3.0", "0.6"], ["Rash", "n/a", "0.15"]]
        )
        assert [(r.finding, r.polarity, r.strength_band) for r in table.lr_rows] == [
            ("Fever", LRPolarity.POSITIVE, StrengthBand.WEAK),
            ("Fever", LRPolarity.NEGATIVE, StrengthBand.NEGLIGIBLE),
            ("Rash", LRPolarity.NEGATIVE, StrengthBand.MODERATE),
        ]
        assert [r.row_index for r in table.lr_rows] == [0, 0, 1]

    def test_short_rows_skipped(self, annotator):
        table = annotator.annotate_table(["Finding", "LR+"], [["Only finding"]])
        assert table.is_lr_table
        assert table.lr_rows == ()

    def test_non_lr_table_untouched(self, annotator):
        header = ["Drug", "Dose", "Route"]
        rows = [["Aspirin", "81 mg", "PO"], ["Heparin", "5000 U", "SC"]]
        table = annotator.annotate_table(header, rows)
        assert not table.is_lr_table
        assert table.lr_rows == ()
        assert table.header == tuple(header)
        assert table.rows == tuple(tuple(r) for r in rows)


class TestAnnotateContent:
    """Tests for table discovery in a section body."""

    def test_find_tables(self):
        content = (
            "Intro\n"
            "| A | B |\n|---|---|\n| 1 | 2 |\n| 3 | 4 |\n"
            "\n"
            "Text | with pipe\n"
            "\n"
            "C | D\n--- | ---\n5 | 6\n"
        )
        tables = find_tables(content)
        assert tables == [
            (("A", "B"), (("1", "2"), ("3", "4"))),
            (("C", "D"), (("5", "6"),)),
        ]

    def test_annotate_mixed_tables(self, annotator):
        content = (
            "| Finding | LR+ | Value |\n|---|---|---|\n| Irregular pulse | 8.5 (2.1-15) | ... |\n"
            "\n"
            "| Drug | Dose |\n|---|---|\n| Aspirin | 81 mg |\n"
        )
        tables = annotator.annotate(content)
        assert [t.is_lr_table for t in tables] == [True, False]
        assert tables[0].lr_rows[0].finding == "Irregular pulse"
        assert tables[1].lr_rows == ()

    def test_no_tables(self, annotator):
        assert annotator.annotate("No tables here.") == []
