# clinical_markdown/J_export/J01_json_export.py
"""
JSON export of parsed documents.

The export is the pydantic JSON dump of the ParsedDocument plus a small
header (source file, export time, document title) and the derived per-section
lists that are properties rather than fields (guideline statements, LR rows).
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from A_core.A00_logging import get_logger
from A_core.A01_document_models import ParsedDocument
from A_core.A12_exceptions import ExportError

logger = get_logger(__name__)

EXPORT_FORMAT = "clinical_markdown.v1"


def document_to_dict(doc: ParsedDocument, source: Optional[str] = None) -> Dict[str, Any]:
    """JSON-ready dict of a parsed document."""
    data = doc.model_dump(mode="json")
    for section_data, parsed in zip(data["sections"], doc.sections):
        section_data["guidelines"] = [s.model_dump(mode="json") for s in parsed.guidelines]
        section_data["lr_rows"] = [r.model_dump(mode="json") for r in parsed.lr_rows]
    return {
        "format": EXPORT_FORMAT,
        "source": source,
        "exported_at": datetime.now().isoformat(timespec="seconds"),
        "title": doc.title,
        **data,
    }


def export_document_json(
    doc: ParsedDocument,
    output_path: Union[str, Path],
    indent: int = 2,
    source: Optional[str] = None,
) -> Path:
    """
    Write ``doc`` as JSON to ``output_path``.

    Parent directories are created. Any failure to serialize or write raises
    ExportError.
    """
    out_file = Path(output_path)
    try:
        export_data = document_to_dict(doc, source)
        out_file.parent.mkdir(parents=True, exist_ok=True)
        with open(out_file, "w", encoding="utf-8") as f:
            json.dump(export_data, f, indent=indent, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        raise ExportError(f"JSON export failed: {e}", output_path=str(out_file), export_format="json") from e

    logger.info(f"Exported {len(doc.sections)} sections to {out_file}")
    return out_file


__all__ = ["EXPORT_FORMAT", "document_to_dict", "export_document_json"]
