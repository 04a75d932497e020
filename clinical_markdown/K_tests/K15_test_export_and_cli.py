# clinical_markdown/K_tests/K15_test_export_and_cli.py
"""
Tests for J_export.J01_json_export and the run_parser command line.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from A_core.A12_exceptions import ExportError
from J_export.J01_json_export import EXPORT_FORMAT, document_to_dict, export_document_json
from run_parser import collect_markdown_files, create_parser, main, output_path_for


class TestJsonExport:
    """Tests for the JSON exporter."""

    def test_document_to_dict(self, pipeline, sample_document):
        data = document_to_dict(pipeline.parse(sample_document), source="af.md")
        assert data["format"] == EXPORT_FORMAT
        assert data["source"] == "af.md"
        assert data["title"] == "Atrial Fibrillation"
        sections = {s["section"]["id"]: s for s in data["sections"]}
        assert [g["organization"] for g in sections["management"]["guidelines"]] == ["ESC", "ACC/AHA"]
        assert sections["diagnosis"]["lr_rows"][0]["strength_band"] == "moderate"
        assert sections["clinical-findings"]["findings"][0]["category"] == "symptoms"

    def test_export_writes_file(self, pipeline, sample_document, tmp_path: Path):
        out_file = export_document_json(pipeline.parse(sample_document), tmp_path / "nested" / "af.json")
        assert out_file.exists()
        data = json.loads(out_file.read_text(encoding="utf-8"))
        assert data["title"] == "Atrial Fibrillation"
        assert len(data["sections"]) == 6

    def test_unwritable_target_raises(self, pipeline, tmp_path: Path):
        with pytest.raises(ExportError) as exc_info:
            export_document_json(pipeline.parse("# T"), tmp_path)
        assert exc_info.value.export_format == "json"


class TestCliHelpers:
    """Tests for argument parsing and path helpers."""

    def test_defaults(self):
        args = create_parser().parse_args(["doc.md"])
        assert args.input == ["doc.md"]
        assert args.log_level == "WARNING"
        assert args.validate_only is False
        assert args.output_dir is None

    def test_output_path_next_to_input(self):
        assert output_path_for(Path("docs/af.md"), None) == Path("docs/af.json")

    def test_output_path_in_directory(self):
        assert output_path_for(Path("docs/af.md"), Path("out")) == Path("out/af.json")

    def test_collect_from_directory(self, tmp_path: Path):
        (tmp_path / "a.md").write_text("# A", encoding="utf-8")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "b.markdown").write_text("# B", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("skip", encoding="utf-8")
        files = collect_markdown_files([str(tmp_path)])
        assert [f.name for f in files] == ["a.md", "b.markdown"]


@pytest.mark.integration
class TestMain:
    """End-to-end runs of the CLI entry point."""

    def test_parse_file(self, sample_file: Path, capsys):
        assert main([str(sample_file)]) == 0
        assert sample_file.with_suffix(".json").exists()
        out = capsys.readouterr().out
        assert "atrial_fibrillation.md: 6 sections, 2 guidelines, 3 finding groups, 2 LR rows" in out

    def test_output_dir(self, sample_file: Path, tmp_path: Path):
        results = tmp_path / "results"
        assert main([str(sample_file), "--output-dir", str(results)]) == 0
        assert (results / "atrial_fibrillation.json").exists()

    def test_directory_input(self, tmp_path: Path, sample_document: str, capsys):
        (tmp_path / "one.md").write_text(sample_document, encoding="utf-8")
        (tmp_path / "two.md").write_text("# Two\nShort.", encoding="utf-8")
        assert main([str(tmp_path)]) == 0
        assert "Processed: 2 files, failed: 0" in capsys.readouterr().out

    def test_validate_only_valid(self, sample_file: Path, capsys):
        assert main([str(sample_file), "--validate-only"]) == 0
        assert "atrial_fibrillation.md: OK" in capsys.readouterr().out
        assert not sample_file.with_suffix(".json").exists()

    def test_validate_only_invalid(self, tmp_path: Path, capsys):
        path = tmp_path / "draft.md"
        path.write_text("# Draft\nNo structure.", encoding="utf-8")
        assert main([str(path), "--validate-only"]) == 1
        out = capsys.readouterr().out
        assert "draft.md: INVALID (1 warnings, 3 suggestions)" in out
        assert "warning: No references found" in out

    def test_no_files(self, tmp_path: Path):
        assert main([str(tmp_path / "missing.md")]) == 1

    def test_invalid_config(self, sample_file: Path, tmp_path: Path):
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("reading:\n  words_per_minute: 0\n", encoding="utf-8")
        assert main([str(sample_file), "--config", str(config_path)]) == 1

    def test_custom_config(self, sample_file: Path, tmp_path: Path, capsys):
        config_path = tmp_path / "orgs.yaml"
        config_path.write_text("organizations:\n  AHA: American Heart Association\n", encoding="utf-8")
        assert main([str(sample_file), "--config", str(config_path)]) == 0
        # ACC is unknown so only the as-per header opens a statement
        assert "1 guidelines" in capsys.readouterr().out

    def test_unreadable_file_counts_as_failure(self, tmp_path: Path, sample_file: Path):
        bad = tmp_path / "bad.md"
        bad.write_bytes(b"\xff\xfe\xfa")
        assert main([str(sample_file), str(bad)]) == 1
        assert sample_file.with_suffix(".json").exists()
