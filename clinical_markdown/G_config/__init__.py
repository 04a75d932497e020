# clinical_markdown/G_config/__init__.py
"""
Configuration for the clinical markdown parser.

Load the packaged config.yaml (cached):

    from G_config import default_config

    config = default_config()
    print(config.organization_codes)

Or supply your own vocabulary:

    from G_config import ParserConfig

    config = ParserConfig.from_yaml("my_config.yaml")
    config = ParserConfig.from_dict({"organizations": {"NICE": "..."}})
"""

from G_config.G02_parser_config import (
    CalculatorRule,
    KeywordRule,
    LikelihoodRatioSettings,
    ParserConfig,
    default_config,
)

__all__ = [
    "CalculatorRule",
    "KeywordRule",
    "LikelihoodRatioSettings",
    "ParserConfig",
    "default_config",
]
