#!/usr/bin/env python3
# clinical_markdown/run_parser.py
"""
Command line runner for the clinical markdown parser.

Parses one or more markdown documents (or every ``*.md`` file in a
directory), prints a one-line summary per file and writes the structured
result as JSON.

Usage:
    # Parse a document, JSON written next to it
    python run_parser.py myocarditis.md

    # Parse a folder into ./results
    python run_parser.py docs/ --output-dir ./results

    # Only run the authoring checks
    python run_parser.py myocarditis.md --validate-only

    # Custom organizations / thresholds
    python run_parser.py myocarditis.md --config my_config.yaml --log-level DEBUG

Exit code is 0 when every file parsed (and, with --validate-only, passed
validation), 1 otherwise.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from A_core.A00_logging import configure_logging, get_logger  # noqa: E402
from A_core.A12_exceptions import ClinicalMarkdownError  # noqa: E402
from G_config.G02_parser_config import ParserConfig  # noqa: E402
from H_pipeline.H01_document_pipeline import DocumentPipeline, read_document  # noqa: E402
from J_export.J01_json_export import export_document_json  # noqa: E402

logger = get_logger(__name__)

MARKDOWN_SUFFIXES = (".md", ".markdown")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="clinical-markdown",
        description="Parse clinical markdown documents into structured JSON.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "input",
        nargs="+",
        help="Markdown file(s) or directory to process",
    )

    options_group = parser.add_argument_group("Processing Options")
    options_group.add_argument(
        "--config", "-c",
        type=Path,
        help="Parser configuration YAML (defaults to the packaged config.yaml)",
    )
    options_group.add_argument(
        "--validate-only",
        action="store_true",
        help="Run the authoring checks only; nothing is exported",
    )
    options_group.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level",
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--output-dir", "-o",
        type=Path,
        help="Output directory for JSON results (default: next to each input)",
    )

    return parser


def collect_markdown_files(inputs: Sequence[str]) -> List[Path]:
    """Collect markdown files from input paths."""
    files: List[Path] = []
    for input_path in inputs:
        path = Path(input_path)
        if path.is_file():
            files.append(path)
        elif path.is_dir():
            files.extend(p for p in path.glob("**/*") if p.suffix.lower() in MARKDOWN_SUFFIXES)
        else:
            logger.warning(f"Skipping invalid path: {input_path}")
    return sorted(set(files))


def output_path_for(source: Path, output_dir: Optional[Path]) -> Path:
    directory = output_dir if output_dir is not None else source.parent
    return directory / f"{source.stem}.json"


def process_file(
    path: Path,
    pipeline: DocumentPipeline,
    output_dir: Optional[Path] = None,
    validate_only: bool = False,
) -> bool:
    """Parse (or validate) one file and print its summary line."""
    text = read_document(path)

    if validate_only:
        report = pipeline.validator.validate(text)
        status = "OK" if report.is_valid else "INVALID"
        print(f"{path.name}: {status} ({len(report.warnings)} warnings, {len(report.suggestions)} suggestions)")
        for warning in report.warnings:
            print(f"  warning: {warning}")
        for suggestion in report.suggestions:
            print(f"  suggestion: {suggestion}")
        return report.is_valid

    doc = pipeline.parse(text)
    out_file = export_document_json(doc, output_path_for(path, output_dir), source=str(path))
    print(
        f"{path.name}: {len(doc.sections)} sections, "
        f"{sum(len(s.guidelines) for s in doc.sections)} guidelines, "
        f"{sum(len(s.findings) for s in doc.sections)} finding groups, "
        f"{sum(len(s.lr_rows) for s in doc.sections)} LR rows, "
        f"{doc.reading_time_minutes} min read -> {out_file}"
    )
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(log_level=getattr(logging, args.log_level))

    try:
        config = ParserConfig.from_yaml(args.config) if args.config else None
    except ClinicalMarkdownError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    files = collect_markdown_files(args.input)
    if not files:
        logger.error("No markdown files found")
        return 1

    pipeline = DocumentPipeline(config)
    failures = 0
    for path in files:
        try:
            if not process_file(path, pipeline, args.output_dir, args.validate_only):
                failures += 1
        except ClinicalMarkdownError as e:
            logger.error(f"{path.name}: {e}")
            failures += 1

    if len(files) > 1:
        print(f"Processed: {len(files)} files, failed: {failures}")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
