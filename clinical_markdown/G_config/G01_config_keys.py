# clinical_markdown/G_config/G01_config_keys.py
"""
Configuration key constants for the clinical markdown parser.

Provides type-safe key enums for config.yaml that:
- Prevent typos in configuration keys
- Document default values next to the key
- Centralize the configuration schema

Usage:
    from G_config.G01_config_keys import ConfigKey, SectionKeys, get_nested_config

    # Instead of: config.get("sections", {}).get("collapsed_title_keywords", [...])
    keywords = get_nested_config(raw, ConfigKey.SECTIONS, SectionKeys.COLLAPSED_TITLE_KEYWORDS)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ConfigKeyBase(str, Enum):
    """
    A YAML key together with its default and a one-line description.

    Members compare equal to the plain key string.
    """

    _default: Any
    _description: str

    def __new__(cls, key: str, default: Any = None, description: str = "") -> "ConfigKeyBase":
        member = str.__new__(cls, key)
        member._value_ = key
        member._default = default
        member._description = description
        return member

    @property
    def default(self) -> Any:
        return self._default

    @property
    def description(self) -> str:
        return self._description


DEFAULT_ORGANIZATIONS: Dict[str, str] = {
    "ESC": "European Society of Cardiology",
    "ACC": "American College of Cardiology",
    "AHA": "American Heart Association",
    "AMSSM": "American Medical Society for Sports Medicine",
    "SCMR": "Society for Cardiovascular Magnetic Resonance",
    "HRS": "Heart Rhythm Society",
    "EHRA": "European Heart Rhythm Association",
    "ACOG": "American College of Obstetricians and Gynecologists",
    "WHO": "World Health Organization",
    "ACEP": "American College of Emergency Physicians",
    "ACP": "American College of Physicians",
    "ESVS": "European Society for Vascular Surgery",
    "SVS": "Society for Vascular Surgery",
}


class ConfigKey(ConfigKeyBase):
    """Top-level keys of config.yaml."""

    ORGANIZATIONS = (
        "organizations",
        DEFAULT_ORGANIZATIONS,
        "Recognized organization codes mapped to their full names",
    )
    GENERIC_ORGANIZATION_LABEL = (
        "generic_organization_label",
        "Medical Guidelines",
        "Organization used when a guideline header names none",
    )
    GENERIC_ORGANIZATION_DISPLAY = (
        "generic_organization_display",
        "Clinical Practice Guideline",
        "Display name for organizations missing from the code table",
    )

    # Nested sections
    SECTIONS = ("sections", {}, "Section segmentation settings")
    FINDINGS = ("findings", {}, "Clinical findings settings")
    CALCULATORS = ("calculators", {}, "Calculator placeholder resolution")
    LIKELIHOOD_RATIO = ("likelihood_ratio", {}, "Likelihood-ratio table settings")
    EVIDENCE = ("evidence", {}, "Evidence-level detection settings")
    READING = ("reading", {}, "Reading-time estimate settings")


class SectionKeys(ConfigKeyBase):
    """Keys under ``sections``."""

    COLLAPSED_TITLE_KEYWORDS = (
        "collapsed_title_keywords",
        ["studies", "major clinical studies"],
        "Sections whose title contains one of these start collapsed",
    )
    FINDINGS_TITLE_KEYWORDS = (
        "findings_title_keywords",
        ["clinical findings", "clinical presentation"],
        "Titles routed to the clinical findings parser",
    )
    REFERENCE_TITLE_KEYWORDS = (
        "reference_title_keywords",
        ["reference", "bibliograph"],
        "Titles routed to the reference line parser",
    )
    STUDIES_TITLE_KEYWORDS = (
        "studies_title_keywords",
        ["studies"],
        "Titles routed to the studies parser",
    )


class FindingKeys(ConfigKeyBase):
    """Keys under ``findings``."""

    CATEGORY_RULES = (
        "category_rules",
        [
            {"category": "symptoms", "any": ["symptom"]},
            {"category": "demographics", "any": ["demographics", "patient"]},
            {"category": "surgical_history", "any": ["surgical"]},
            {"category": "medication_history", "any": ["medication", "drug"]},
            {"category": "vital_signs", "any": ["vital", "signs"]},
            {"category": "physical_exam", "any": ["exam", "physical"]},
            {"category": "medical_history", "all": ["medical", "history"]},
        ],
        "Ordered heading keyword rules; first match wins",
    )
    DEFAULT_CATEGORY = ("default_category", "symptoms", "Category when no rule matches")


class CalculatorKeys(ConfigKeyBase):
    """Keys under ``calculators``."""

    RULES = (
        "rules",
        [
            {
                "tool": "lake_louise",
                "groups": [
                    ["lake louise"],
                    ["lake", "louise"],
                    ["magnetic resonance imaging diagnosis of myocarditis"],
                ],
            },
            {
                "tool": "siadh",
                "groups": [
                    ["siadh"],
                    ["syndrome of inappropriate antidiuretic hormone"],
                    ["antidiuretic"],
                    ["hyponatremia"],
                    ["essential criteria"],
                    ["supplemental criteria"],
                ],
            },
            {
                "tool": "hit_4ts",
                "groups": [
                    ["4ts"],
                    ["heparin-induced thrombocytopenia"],
                    ["heparin"],
                    ["hit"],
                ],
            },
        ],
        "Ordered tool rules; a rule matches when all words of any group occur",
    )
    DEFAULT_TOOL = ("default", "cha2ds2_vasc", "Tool used when no rule matches")


class LikelihoodRatioKeys(ConfigKeyBase):
    """Keys under ``likelihood_ratio``."""

    POSITIVE_HEADERS = ("positive_headers", ["LR+"], "Header text marking a positive LR column")
    NEGATIVE_HEADERS = (
        "negative_headers",
        ["LR-", "LR−"],
        "Header text marking a negative LR column",
    )
    POSITIVE_THRESHOLDS = (
        "positive_thresholds",
        {"strong": 10.0, "moderate": 5.0, "weak": 2.0},
        "LR+ lower bounds per band",
    )
    NEGATIVE_THRESHOLDS = (
        "negative_thresholds",
        {"strong": 0.1, "moderate": 0.2, "weak": 0.5},
        "LR- upper bounds per band",
    )
    POSITIVE_VERY_STRONG = (
        "positive_very_strong",
        None,
        "Optional LR+ lower bound for the very_strong band",
    )
    NEGATIVE_VERY_STRONG = (
        "negative_very_strong",
        None,
        "Optional LR- upper bound for the very_strong band",
    )
    POSITIVE_CEILING = ("positive_ceiling", 20.0, "LR+ value drawn as a full bar")
    BAR_MIN_PERCENT = ("bar_min_percent", 10.0, "Smallest bar width drawn")
    BAR_MAX_PERCENT = ("bar_max_percent", 90.0, "Bar width at the ceiling")


class EvidenceKeys(ConfigKeyBase):
    """Keys under ``evidence``."""

    INCLUDE_KEYWORD_CLASSES = (
        "include_keyword_classes",
        False,
        "Also annotate expert/warning/guideline keywords inline",
    )


class ReadingKeys(ConfigKeyBase):
    """Keys under ``reading``."""

    WORDS_PER_MINUTE = ("words_per_minute", 200, "Reading speed for the time estimate")


def get_config(
    config: Dict[str, Any],
    key: ConfigKeyBase,
    default: Optional[Any] = None,
) -> Any:
    """Value of ``key`` in ``config``; ``default`` or the key's declared default when absent."""
    return config.get(key.value, key.default if default is None else default)


def get_nested_config(
    config: Dict[str, Any],
    *keys: ConfigKeyBase,
    default: Optional[Any] = None,
) -> Any:
    """
    Value at a path of keys. A missing or non-mapping section on the way
    yields the last key's default.

    Example:
        >>> get_nested_config({}, ConfigKey.READING, ReadingKeys.WORDS_PER_MINUTE)
        200
    """
    *path, leaf = keys
    section: Any = config
    for key in path:
        section = section.get(key.value) if isinstance(section, dict) else None
    return get_config(section if isinstance(section, dict) else {}, leaf, default)


__all__ = [
    "DEFAULT_ORGANIZATIONS",
    "ConfigKey",
    "SectionKeys",
    "FindingKeys",
    "CalculatorKeys",
    "LikelihoodRatioKeys",
    "EvidenceKeys",
    "ReadingKeys",
    "get_config",
    "get_nested_config",
]
