# clinical_markdown/A_core/A12_exceptions.py
"""
Exception hierarchy for the clinical markdown parser.

The parse stages themselves never raise for document content: a pattern that
does not match passes the text through as prose, and a partial match falls
back to a generic label. These exceptions belong to the layers around the
stages (configuration loading, reading documents from disk, writing exports)
and let the CLI tell those failures apart.

Hierarchy:
    ClinicalMarkdownError (base)
    ├── ConfigurationError     # Malformed or mistyped config.yaml values
    ├── DocumentLoadError      # Markdown file missing or undecodable
    └── ExportError            # JSON output could not be written

Usage:
    from A_core.A12_exceptions import ClinicalMarkdownError, DocumentLoadError

    try:
        text = read_document(path)
    except DocumentLoadError as e:
        logger.error(f"Skipping {e.file_path}: {e.message}")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


def _context(**fields: Any) -> Dict[str, Any]:
    """Context dict without the fields that were not supplied."""
    return {key: value for key, value in fields.items() if value not in (None, "")}


class ClinicalMarkdownError(Exception):
    """
    Base exception for all parser errors.

    ``str()`` renders the message followed by the context as
    ``message [key=value, ...]``.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} [{details}]"


class ConfigurationError(ClinicalMarkdownError):
    """
    Raised when parser configuration is invalid.

    Examples:
        - ``organizations`` is not a mapping of code to name
        - a likelihood-ratio threshold is not a number
        - a calculator rule names an unknown tool
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        actual_value: Optional[Any] = None,
    ):
        super().__init__(
            message,
            _context(
                key=config_key,
                expected=expected_type,
                actual=None if actual_value is None else repr(actual_value),
            ),
        )
        self.config_key = config_key
        self.expected_type = expected_type
        self.actual_value = actual_value


class DocumentLoadError(ClinicalMarkdownError):
    """Raised when a markdown document cannot be read."""

    def __init__(self, message: str, file_path: Optional[str] = None, encoding: Optional[str] = None):
        super().__init__(message, _context(file=file_path, encoding=encoding))
        self.file_path = file_path
        self.encoding = encoding


class ExportError(ClinicalMarkdownError):
    """Raised when a parsed document cannot be exported."""

    def __init__(self, message: str, output_path: Optional[str] = None, export_format: Optional[str] = None):
        super().__init__(message, _context(output=output_path, format=export_format))
        self.output_path = output_path
        self.export_format = export_format


__all__ = [
    "ClinicalMarkdownError",
    "ConfigurationError",
    "DocumentLoadError",
    "ExportError",
]
