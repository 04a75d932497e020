# clinical_markdown/K_tests/K12_test_special_sections_and_studies.py
"""
Tests for B_parsing.B08_special_sections and B_parsing.B09_studies_parser.

Tests Updated Evidence / Landmark Trial callouts and study listings.
"""

from __future__ import annotations

import pytest

from A_core.A01_document_models import SpecialSectionKind
from B_parsing.B08_special_sections import extract_pubmed_url, extract_special_sections
from B_parsing.B09_studies_parser import parse_studies, parse_study_heading, split_citation

PUBMED = "https://pubmed.ncbi.nlm.nih.gov/19717844/"


class TestSpecialSections:
    """Tests for callout extraction."""

    def test_updated_evidence_heading(self):
        callouts, remaining = extract_special_sections("### Updated Evidence: DAPA-HF\nReduced mortality.\nProse.")
        assert len(callouts) == 1
        callout = callouts[0]
        assert callout.kind == SpecialSectionKind.UPDATED_EVIDENCE
        assert callout.title == "DAPA-HF"
        assert callout.description == "Reduced mortality.\nProse."
        assert remaining == ""

    def test_landmark_trial_with_citation_and_link(self):
        content = (
            "Intro line.\n"
            "#### Landmark Trial: RE-LY\n"
            "Dabigatran was non-inferior.\n"
            "*Connolly SJ. N Engl J Med. 2009.*\n"
            f"[PubMed]({PUBMED})\n"
            "**ESC 2020:** Use DOACs."
        )
        callouts, remaining = extract_special_sections(content)
        callout = callouts[0]
        assert callout.kind == SpecialSectionKind.LANDMARK_TRIAL
        assert callout.title == "RE-LY"
        assert callout.citation == "Connolly SJ. N Engl J Med. 2009."
        assert callout.pubmed_url == PUBMED
        assert callout.description == "Dabigatran was non-inferior."
        assert remaining == "Intro line.\n**ESC 2020:** Use DOACs."

    def test_bold_header(self):
        callouts, _ = extract_special_sections("**Updated Evidence: EMPEROR-Preserved**\nFewer admissions.")
        assert callouts[0].title == "EMPEROR-Preserved"

    @pytest.mark.parametrize("stop", ["### Next heading", "As per ESC 2021 guidelines, treat.", "**Bold line**"])
    def test_description_stops(self, stop):
        callouts, remaining = extract_special_sections(f"### Updated Evidence: X\nFinding.\n{stop}")
        assert callouts[0].description == "Finding."
        assert remaining == stop

    def test_no_callouts(self):
        content = "### Background\nNothing special."
        assert extract_special_sections(content) == ([], content)

    def test_bare_pubmed_url(self):
        assert extract_pubmed_url("See https://pubmed.ncbi.nlm.nih.gov/123/ now") == "https://pubmed.ncbi.nlm.nih.gov/123/"
        assert extract_pubmed_url("No link") is None


class TestStudyHeading:
    """Tests for the four heading shapes."""

    @pytest.mark.parametrize(
        "heading,expected",
        [
            ("2019 • [AFFIRM](https://pubmed.ncbi.nlm.nih.gov/12466506/)",
             ("AFFIRM", "2019", "https://pubmed.ncbi.nlm.nih.gov/12466506/")),
            ("2009 - RE-LY", ("RE-LY", "2009", None)),
            ("DAPA-HF (2019)", ("DAPA-HF", "2019", None)),
            ("Dapagliflozin in heart failure", ("Dapagliflozin in heart failure", None, None)),
        ],
    )
    def test_shapes(self, heading, expected):
        assert parse_study_heading(heading) == expected

    def test_split_citation(self):
        assert split_citation("Smith J. Lancet. 2020.") == ("Smith J", "Lancet", "2020")
        assert split_citation("Only one part") == ("", "", "")


class TestParseStudies:
    """Tests for parse_studies."""

    def test_newest_first(self):
        studies = parse_studies("### 2019 • DAPA-HF\nFewer deaths.\n### PARADIGM-HF (2014)\nBetter.")
        assert [(s.year, s.title) for s in studies] == [("2019", "DAPA-HF"), ("2014", "PARADIGM-HF")]

    def test_yearless_entries_last_in_document_order(self):
        studies = parse_studies("### Alpha\na\n### 2014 • Beta\nb\n### Gamma\nc\n### 2020 • Delta\nd")
        assert [s.title for s in studies] == ["Delta", "Beta", "Alpha", "Gamma"]

    def test_italic_citation(self):
        body = (
            "### 2019 • [AFFIRM](https://pubmed.ncbi.nlm.nih.gov/12466506/)\n"
            "Rate control was non-inferior to rhythm control.\n"
            "*Wyse DG et al. N Engl J Med. 2002.*"
        )
        study = parse_studies(body)[0]
        assert study.description == "Rate control was non-inferior to rhythm control."
        assert (study.author, study.journal, study.date) == ("Wyse DG et al", "N Engl J Med", "2002")
        assert study.pubmed_url == "https://pubmed.ncbi.nlm.nih.gov/12466506/"

    def test_citation_line_supplies_year(self):
        study = parse_studies("### TRIAL X\nSee [results](https://x.org).\n**Citation**: Smith J. Lancet. 2020.")[0]
        assert study.description == "See results."
        assert study.journal == "Lancet"
        assert study.year == "2020"

    def test_bold_title_fallback(self):
        studies = parse_studies("**SOLIDARITY**\nNo benefit.\n**RECOVERY**\nDexamethasone reduced deaths (2020).")
        assert [(s.title, s.year) for s in studies] == [("RECOVERY", "2020"), ("SOLIDARITY", None)]

    def test_no_entries(self):
        assert parse_studies("Just a paragraph.") == []
