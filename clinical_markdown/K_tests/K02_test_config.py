# clinical_markdown/K_tests/K02_test_config.py
"""
Tests for G_config module.

Tests key defaults, dict/YAML loading and configuration validation errors.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from A_core.A01_document_models import CalculatorTool, FindingCategory
from A_core.A12_exceptions import ConfigurationError
from G_config.G01_config_keys import (
    ConfigKey,
    LikelihoodRatioKeys,
    ReadingKeys,
    SectionKeys,
    get_config,
    get_nested_config,
)
from G_config.G02_parser_config import KeywordRule, ParserConfig, default_config


class TestConfigKeys:
    """Tests for key enums and lookup helpers."""

    def test_keys_are_strings(self):
        assert ConfigKey.ORGANIZATIONS == "organizations"
        assert SectionKeys.FINDINGS_TITLE_KEYWORDS.value == "findings_title_keywords"

    def test_get_config_falls_back_to_key_default(self):
        assert get_config({}, ConfigKey.GENERIC_ORGANIZATION_LABEL) == "Medical Guidelines"

    def test_get_nested_config_default(self):
        assert get_nested_config({}, ConfigKey.READING, ReadingKeys.WORDS_PER_MINUTE) == 200

    def test_get_nested_config_non_mapping_section(self):
        raw = {"likelihood_ratio": "oops"}
        value = get_nested_config(raw, ConfigKey.LIKELIHOOD_RATIO, LikelihoodRatioKeys.POSITIVE_CEILING)
        assert value == 20.0


class TestDefaultConfig:
    """Tests for the packaged config.yaml."""

    def test_cached(self):
        assert default_config() is default_config()

    def test_organizations(self, config):
        assert config.organizations["ESC"] == "European Society of Cardiology"
        assert "SVS" in config.organizations

    def test_codes_longest_first(self, config):
        codes = config.organization_codes
        assert codes.index("ESVS") < codes.index("SVS")

    def test_organization_display_joins_names(self, config):
        display = config.organization_display(("ACC", "AHA"))
        assert display == "American College of Cardiology / American Heart Association"

    def test_unknown_code_uses_generic_display(self, config):
        assert config.organization_display(("ESC", "XYZ")) == "Clinical Practice Guideline"

    def test_calculator_rules_in_order(self, config):
        tools = [rule.tool for rule in config.calculator_rules]
        assert tools == [CalculatorTool.LAKE_LOUISE, CalculatorTool.SIADH, CalculatorTool.HIT_4TS]
        assert config.default_calculator == CalculatorTool.CHA2DS2_VASC

    def test_very_strong_band_disabled(self, config):
        assert config.likelihood_ratio.positive_very_strong is None
        assert config.likelihood_ratio.negative_very_strong is None

    def test_keyword_classes_opt_in(self, config):
        assert config.include_keyword_classes is False


class TestFromDict:
    """Tests for ParserConfig.from_dict."""

    def test_empty_gives_defaults(self):
        config = ParserConfig.from_dict(None)
        assert config.words_per_minute == 200
        assert config.default_category == FindingCategory.SYMPTOMS
        assert len(config.category_rules) == 7

    def test_organizations_replace_table(self):
        config = ParserConfig.from_dict({"organizations": {" NICE ": "National Institute for Health and Care Excellence"}})
        assert config.organization_codes == ("NICE",)

    def test_custom_calculator_rules(self):
        config = ParserConfig.from_dict(
            {"calculators": {"rules": [{"tool": "siadh", "groups": [["sodium"]]}], "default": "hit_4ts"}}
        )
        assert len(config.calculator_rules) == 1
        assert config.calculator_rules[0].groups == (("sodium",),)
        assert config.default_calculator == CalculatorTool.HIT_4TS

    def test_partial_thresholds_merge_with_defaults(self):
        config = ParserConfig.from_dict({"likelihood_ratio": {"positive_thresholds": {"strong": 12}}})
        assert config.likelihood_ratio.positive_thresholds == (12.0, 5.0, 2.0)

    def test_very_strong_enabled(self, custom_config):
        assert custom_config.likelihood_ratio.positive_very_strong == 20.0
        assert custom_config.likelihood_ratio.negative_very_strong == 0.05

    @pytest.mark.parametrize(
        "raw",
        [
            ["not", "a", "mapping"],
            {"organizations": ["ESC"]},
            {"organizations": {"ESC": 3}},
            {"generic_organization_label": "  "},
            {"sections": {"findings_title_keywords": "clinical findings"}},
            {"findings": {"default_category": "labs"}},
            {"findings": {"category_rules": [{"category": "unknown", "any": ["x"]}]}},
            {"calculators": {"rules": [{"tool": "hit_4ts"}]}},
            {"likelihood_ratio": {"positive_thresholds": {"strong": 1.0}}},
            {"likelihood_ratio": {"negative_thresholds": {"strong": 0.9}}},
            {"likelihood_ratio": {"bar_min_percent": 95}},
            {"likelihood_ratio": {"positive_headers": []}},
            {"reading": {"words_per_minute": 0}},
        ],
    )
    def test_invalid_values_raise(self, raw):
        with pytest.raises(ConfigurationError):
            ParserConfig.from_dict(raw)

    def test_error_names_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ParserConfig.from_dict({"reading": {"words_per_minute": "fast"}})
        assert exc_info.value.config_key == "words_per_minute"
        assert "key=words_per_minute" in str(exc_info.value)


class TestFromYaml:
    """Tests for ParserConfig.from_yaml."""

    def test_loads_file(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "organizations:\n"
            "  NICE: National Institute for Health and Care Excellence\n"
            "evidence:\n"
            "  include_keyword_classes: true\n"
            "reading:\n"
            "  words_per_minute: 100\n",
            encoding="utf-8",
        )
        config = ParserConfig.from_yaml(path)
        assert "NICE" in config.organizations
        assert "ESC" not in config.organizations
        assert config.include_keyword_classes is True
        assert config.words_per_minute == 100

    def test_missing_file_uses_defaults(self, tmp_path: Path, capture_logs):
        config = ParserConfig.from_yaml(tmp_path / "missing.yaml")
        assert config.organizations["ESC"] == "European Society of Cardiology"
        assert "Config file not found" in capture_logs.text

    def test_malformed_yaml_raises(self, tmp_path: Path):
        path = tmp_path / "broken.yaml"
        path.write_text("organizations: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Failed to parse broken.yaml"):
            ParserConfig.from_yaml(path)


class TestKeywordRule:
    """Tests for KeywordRule matching."""

    def test_any_of(self):
        assert KeywordRule("vital_signs", any_of=("vital", "signs")).matches("Key Signs")

    def test_all_of(self):
        rule = KeywordRule("medical_history", all_of=("medical", "history"))
        assert rule.matches("Past Medical History")
        assert not rule.matches("Medical Background")

    def test_empty_rule_never_matches(self):
        assert not KeywordRule("symptoms").matches("Symptoms")
