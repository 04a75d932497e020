# clinical_markdown/G_config/G02_parser_config.py
"""
Parser configuration loaded from config.yaml.

Every vocabulary the parse stages match against lives here rather than in the
stage modules: the recognized guideline organizations, the section routing
keywords, the finding category rules, the calculator keyword rules and the
likelihood-ratio bands. New organizations or tools are added by editing
config.yaml (or passing a dict), not code.

Key Components:
    - KeywordRule: Ordered keyword rule (any-of / all-of) naming a target
    - CalculatorRule: Keyword groups that select a CalculatorTool
    - LikelihoodRatioSettings: Band thresholds and bar scale
    - ParserConfig: Complete configuration with from_dict / from_yaml
    - default_config: Cached configuration from the packaged config.yaml

Example:
    >>> from G_config.G02_parser_config import ParserConfig
    >>> config = ParserConfig.from_dict({"organizations": {"NICE": "National Institute for Health and Care Excellence"}})
    >>> "NICE" in config.organizations
    True

Dependencies:
    - PyYAML: Reading config.yaml
    - G_config.G01_config_keys: Key names and defaults
"""

from __future__ import annotations

import copy
import functools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from A_core.A00_logging import get_logger
from A_core.A01_document_models import CalculatorTool, FindingCategory
from A_core.A12_exceptions import ConfigurationError
from G_config.G01_config_keys import (
    CalculatorKeys,
    ConfigKey,
    ConfigKeyBase,
    EvidenceKeys,
    FindingKeys,
    LikelihoodRatioKeys,
    ReadingKeys,
    SectionKeys,
    get_config,
    get_nested_config,
)

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


@dataclass(frozen=True)
class KeywordRule:
    """
    Keyword rule matched against lower-cased text.

    Matches when any ``any_of`` keyword occurs, or when every ``all_of``
    keyword occurs.
    """

    target: str
    any_of: Tuple[str, ...] = ()
    all_of: Tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        if any(k in lowered for k in self.any_of):
            return True
        return bool(self.all_of) and all(k in lowered for k in self.all_of)


@dataclass(frozen=True)
class CalculatorRule:
    """A tool and its keyword groups; one fully present group selects the tool."""

    tool: CalculatorTool
    groups: Tuple[Tuple[str, ...], ...]


@dataclass(frozen=True)
class LikelihoodRatioSettings:
    positive_headers: Tuple[str, ...] = ("LR+",)
    negative_headers: Tuple[str, ...] = ("LR-", "LR−")
    positive_thresholds: Tuple[float, float, float] = (10.0, 5.0, 2.0)  # strong, moderate, weak
    negative_thresholds: Tuple[float, float, float] = (0.1, 0.2, 0.5)
    positive_very_strong: Optional[float] = None
    negative_very_strong: Optional[float] = None
    positive_ceiling: float = 20.0
    bar_min_percent: float = 10.0
    bar_max_percent: float = 90.0


@dataclass(frozen=True)
class ParserConfig:
    """Configuration shared by all parse stages."""

    organizations: Dict[str, str] = field(
        default_factory=lambda: dict(ConfigKey.ORGANIZATIONS.default)
    )
    generic_organization_label: str = ConfigKey.GENERIC_ORGANIZATION_LABEL.default
    generic_organization_display: str = ConfigKey.GENERIC_ORGANIZATION_DISPLAY.default

    collapsed_title_keywords: Tuple[str, ...] = tuple(SectionKeys.COLLAPSED_TITLE_KEYWORDS.default)
    findings_title_keywords: Tuple[str, ...] = tuple(SectionKeys.FINDINGS_TITLE_KEYWORDS.default)
    reference_title_keywords: Tuple[str, ...] = tuple(SectionKeys.REFERENCE_TITLE_KEYWORDS.default)
    studies_title_keywords: Tuple[str, ...] = tuple(SectionKeys.STUDIES_TITLE_KEYWORDS.default)

    category_rules: Tuple[KeywordRule, ...] = ()
    default_category: FindingCategory = FindingCategory.SYMPTOMS

    calculator_rules: Tuple[CalculatorRule, ...] = ()
    default_calculator: CalculatorTool = CalculatorTool.CHA2DS2_VASC

    likelihood_ratio: LikelihoodRatioSettings = field(default_factory=LikelihoodRatioSettings)
    include_keyword_classes: bool = EvidenceKeys.INCLUDE_KEYWORD_CLASSES.default
    words_per_minute: int = ReadingKeys.WORDS_PER_MINUTE.default

    def __post_init__(self):
        # Empty rule tables mean "use the packaged defaults"
        if not self.category_rules:
            object.__setattr__(
                self, "category_rules", _parse_category_rules(FindingKeys.CATEGORY_RULES.default)
            )
        if not self.calculator_rules:
            object.__setattr__(
                self, "calculator_rules", _parse_calculator_rules(CalculatorKeys.RULES.default)
            )

    @property
    def organization_codes(self) -> Tuple[str, ...]:
        """Codes longest first, so ESVS is tried before SVS."""
        return tuple(sorted(self.organizations, key=lambda c: (-len(c), c)))

    def organization_display(self, codes: Tuple[str, ...]) -> str:
        names = [self.organizations[c] for c in codes if c in self.organizations]
        if not names or len(names) != len(codes):
            return self.generic_organization_display
        return " / ".join(names)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "ParserConfig":
        """
        Build a configuration from a parsed config.yaml mapping.

        Missing keys take their G01 defaults. Values of the wrong shape raise
        ConfigurationError.
        """
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping", expected_type="dict", actual_value=raw
            )

        organizations = get_config(raw, ConfigKey.ORGANIZATIONS)
        if not isinstance(organizations, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in organizations.items()
        ):
            raise ConfigurationError(
                "Organizations must map codes to names",
                config_key=ConfigKey.ORGANIZATIONS.value,
                expected_type="Dict[str, str]",
                actual_value=organizations,
            )
        organizations = {k.strip(): v.strip() for k, v in organizations.items() if k.strip()}

        lr_raw = get_config(raw, ConfigKey.LIKELIHOOD_RATIO)
        if not isinstance(lr_raw, dict):
            raise ConfigurationError(
                "likelihood_ratio must be a mapping",
                config_key=ConfigKey.LIKELIHOOD_RATIO.value,
                expected_type="dict",
                actual_value=lr_raw,
            )

        return cls(
            organizations=organizations,
            generic_organization_label=_string(raw, ConfigKey.GENERIC_ORGANIZATION_LABEL),
            generic_organization_display=_string(raw, ConfigKey.GENERIC_ORGANIZATION_DISPLAY),
            collapsed_title_keywords=_keywords(raw, ConfigKey.SECTIONS, SectionKeys.COLLAPSED_TITLE_KEYWORDS),
            findings_title_keywords=_keywords(raw, ConfigKey.SECTIONS, SectionKeys.FINDINGS_TITLE_KEYWORDS),
            reference_title_keywords=_keywords(raw, ConfigKey.SECTIONS, SectionKeys.REFERENCE_TITLE_KEYWORDS),
            studies_title_keywords=_keywords(raw, ConfigKey.SECTIONS, SectionKeys.STUDIES_TITLE_KEYWORDS),
            category_rules=_parse_category_rules(
                get_nested_config(raw, ConfigKey.FINDINGS, FindingKeys.CATEGORY_RULES)
            ),
            default_category=_enum(
                FindingCategory,
                get_nested_config(raw, ConfigKey.FINDINGS, FindingKeys.DEFAULT_CATEGORY),
                FindingKeys.DEFAULT_CATEGORY,
            ),
            calculator_rules=_parse_calculator_rules(
                get_nested_config(raw, ConfigKey.CALCULATORS, CalculatorKeys.RULES)
            ),
            default_calculator=_enum(
                CalculatorTool,
                get_nested_config(raw, ConfigKey.CALCULATORS, CalculatorKeys.DEFAULT_TOOL),
                CalculatorKeys.DEFAULT_TOOL,
            ),
            likelihood_ratio=_parse_likelihood_ratio(lr_raw),
            include_keyword_classes=bool(
                get_nested_config(raw, ConfigKey.EVIDENCE, EvidenceKeys.INCLUDE_KEYWORD_CLASSES)
            ),
            words_per_minute=int(
                _number(
                    get_nested_config(raw, ConfigKey.READING, ReadingKeys.WORDS_PER_MINUTE),
                    ReadingKeys.WORDS_PER_MINUTE,
                    minimum=1,
                )
            ),
        )

    @classmethod
    def from_yaml(cls, config_path: Optional[Union[str, Path]] = None) -> "ParserConfig":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML file. Defaults to G_config/config.yaml.

        Returns:
            ParserConfig built from the file, or the defaults when it is missing.
        """
        path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

        if not path.exists():
            logger.warning(f"Config file not found: {path}, using defaults")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse {path.name}: {e}") from e

        logger.debug(f"Loaded parser configuration from {path}")
        return cls.from_dict(raw)


@functools.lru_cache(maxsize=1)
def default_config() -> ParserConfig:
    """Configuration from the packaged config.yaml, loaded once."""
    return ParserConfig.from_yaml()


# -------------------------
# Value parsing helpers
# -------------------------


def _string(raw: Dict[str, Any], key: ConfigKeyBase) -> str:
    value = get_config(raw, key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(
            "Expected a non-empty string", config_key=key.value, expected_type="str", actual_value=value
        )
    return value.strip()


def _keywords(raw: Dict[str, Any], section: ConfigKeyBase, key: ConfigKeyBase) -> Tuple[str, ...]:
    value = get_nested_config(raw, section, key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(
            "Expected a list of keywords",
            config_key=f"{section.value}.{key.value}",
            expected_type="List[str]",
            actual_value=value,
        )
    return tuple(v.lower() for v in value if v.strip())


def _number(value: Any, key: ConfigKeyBase, minimum: Optional[float] = None) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(
            "Expected a number", config_key=key.value, expected_type="float", actual_value=value
        )
    if minimum is not None and value < minimum:
        raise ConfigurationError(
            f"Expected a number >= {minimum}", config_key=key.value, actual_value=value
        )
    return float(value)


def _enum(enum_cls, value: Any, key: ConfigKeyBase):
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown {enum_cls.__name__} value",
            config_key=key.value,
            expected_type=" | ".join(m.value for m in enum_cls),
            actual_value=value,
        ) from e


def _words(value: Any, key: ConfigKeyBase) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(
            "Expected a list of keywords", config_key=key.value, expected_type="List[str]", actual_value=value
        )
    return tuple(v.lower() for v in value)


def _parse_category_rules(rules: Any) -> Tuple[KeywordRule, ...]:
    if not isinstance(rules, list):
        raise ConfigurationError(
            "Category rules must be a list",
            config_key=FindingKeys.CATEGORY_RULES.value,
            expected_type="list",
            actual_value=rules,
        )
    parsed: List[KeywordRule] = []
    for rule in rules:
        if not isinstance(rule, dict):
            raise ConfigurationError(
                "Each category rule must be a mapping",
                config_key=FindingKeys.CATEGORY_RULES.value,
                actual_value=rule,
            )
        category = _enum(FindingCategory, rule.get("category"), FindingKeys.CATEGORY_RULES)
        parsed.append(
            KeywordRule(
                target=category.value,
                any_of=_words(rule.get("any"), FindingKeys.CATEGORY_RULES),
                all_of=_words(rule.get("all"), FindingKeys.CATEGORY_RULES),
            )
        )
    return tuple(parsed)


def _parse_calculator_rules(rules: Any) -> Tuple[CalculatorRule, ...]:
    if not isinstance(rules, list):
        raise ConfigurationError(
            "Calculator rules must be a list",
            config_key=CalculatorKeys.RULES.value,
            expected_type="list",
            actual_value=rules,
        )
    parsed: List[CalculatorRule] = []
    for rule in copy.deepcopy(rules):
        if not isinstance(rule, dict) or not isinstance(rule.get("groups"), list):
            raise ConfigurationError(
                "Each calculator rule needs a tool and a list of keyword groups",
                config_key=CalculatorKeys.RULES.value,
                actual_value=rule,
            )
        tool = _enum(CalculatorTool, rule.get("tool"), CalculatorKeys.RULES)
        groups = tuple(_words(group, CalculatorKeys.RULES) for group in rule["groups"])
        parsed.append(CalculatorRule(tool=tool, groups=tuple(g for g in groups if g)))
    return tuple(parsed)


def _parse_likelihood_ratio(raw: Dict[str, Any]) -> LikelihoodRatioSettings:
    def band_triplet(key: LikelihoodRatioKeys) -> Tuple[float, float, float]:
        bands = get_config(raw, key)
        if not isinstance(bands, dict):
            raise ConfigurationError(
                "Thresholds must map band names to numbers",
                config_key=key.value,
                expected_type="Dict[str, float]",
                actual_value=bands,
            )
        merged = {**key.default, **bands}
        return (
            _number(merged["strong"], key),
            _number(merged["moderate"], key),
            _number(merged["weak"], key),
        )

    def optional_number(key: LikelihoodRatioKeys) -> Optional[float]:
        value = get_config(raw, key)
        return None if value is None else _number(value, key, minimum=0)

    positive = band_triplet(LikelihoodRatioKeys.POSITIVE_THRESHOLDS)
    negative = band_triplet(LikelihoodRatioKeys.NEGATIVE_THRESHOLDS)
    if not positive[0] >= positive[1] >= positive[2]:
        raise ConfigurationError(
            "Positive thresholds must satisfy strong >= moderate >= weak",
            config_key=LikelihoodRatioKeys.POSITIVE_THRESHOLDS.value,
            actual_value=positive,
        )
    if not negative[0] <= negative[1] <= negative[2]:
        raise ConfigurationError(
            "Negative thresholds must satisfy strong <= moderate <= weak",
            config_key=LikelihoodRatioKeys.NEGATIVE_THRESHOLDS.value,
            actual_value=negative,
        )

    bar_min = _number(get_config(raw, LikelihoodRatioKeys.BAR_MIN_PERCENT), LikelihoodRatioKeys.BAR_MIN_PERCENT, minimum=0)
    bar_max = _number(get_config(raw, LikelihoodRatioKeys.BAR_MAX_PERCENT), LikelihoodRatioKeys.BAR_MAX_PERCENT, minimum=0)
    if bar_min > bar_max or bar_max > 100:
        raise ConfigurationError(
            "Bar widths must satisfy 0 <= bar_min_percent <= bar_max_percent <= 100",
            config_key=LikelihoodRatioKeys.BAR_MAX_PERCENT.value,
            actual_value=(bar_min, bar_max),
        )

    return LikelihoodRatioSettings(
        positive_headers=tuple(
            _words_keep_case(get_config(raw, LikelihoodRatioKeys.POSITIVE_HEADERS), LikelihoodRatioKeys.POSITIVE_HEADERS)
        ),
        negative_headers=tuple(
            _words_keep_case(get_config(raw, LikelihoodRatioKeys.NEGATIVE_HEADERS), LikelihoodRatioKeys.NEGATIVE_HEADERS)
        ),
        positive_thresholds=positive,
        negative_thresholds=negative,
        positive_very_strong=optional_number(LikelihoodRatioKeys.POSITIVE_VERY_STRONG),
        negative_very_strong=optional_number(LikelihoodRatioKeys.NEGATIVE_VERY_STRONG),
        positive_ceiling=_number(
            get_config(raw, LikelihoodRatioKeys.POSITIVE_CEILING),
            LikelihoodRatioKeys.POSITIVE_CEILING,
            minimum=1,
        ),
        bar_min_percent=bar_min,
        bar_max_percent=bar_max,
    )


def _words_keep_case(value: Any, key: ConfigKeyBase) -> List[str]:
    if not isinstance(value, list) or not value or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(
            "Expected a non-empty list of strings", config_key=key.value, expected_type="List[str]", actual_value=value
        )
    return [v.strip() for v in value if v.strip()]


__all__ = [
    "CalculatorRule",
    "KeywordRule",
    "LikelihoodRatioSettings",
    "ParserConfig",
    "default_config",
]
