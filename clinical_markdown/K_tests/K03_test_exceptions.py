# clinical_markdown/K_tests/K03_test_exceptions.py
"""
Tests for A_core.A12_exceptions module.
"""

from __future__ import annotations

import pytest

from A_core.A12_exceptions import (
    ClinicalMarkdownError,
    ConfigurationError,
    DocumentLoadError,
    ExportError,
)


class TestHierarchy:
    """All errors share one base so the CLI can catch them together."""

    @pytest.mark.parametrize("error_cls", [ConfigurationError, DocumentLoadError, ExportError])
    def test_subclasses_base(self, error_cls):
        assert issubclass(error_cls, ClinicalMarkdownError)

    def test_base_without_context(self):
        error = ClinicalMarkdownError("boom")
        assert str(error) == "boom"
        assert error.context == {}


class TestContext:
    """Tests for the context each error records."""

    def test_configuration_error(self):
        error = ConfigurationError(
            "Expected a number", config_key="positive_ceiling", expected_type="float", actual_value="x"
        )
        assert error.config_key == "positive_ceiling"
        assert str(error) == "Expected a number [key=positive_ceiling, expected=float, actual='x']"

    def test_document_load_error(self):
        error = DocumentLoadError("Document is not valid utf-8", file_path="a.md", encoding="utf-8")
        assert error.file_path == "a.md"
        assert error.context == {"file": "a.md", "encoding": "utf-8"}

    def test_export_error(self):
        error = ExportError("JSON export failed", output_path="out/a.json", export_format="json")
        assert "output=out/a.json" in str(error)
        assert error.export_format == "json"

    def test_empty_optional_fields_are_omitted(self):
        assert str(DocumentLoadError("Document not found")) == "Document not found"
