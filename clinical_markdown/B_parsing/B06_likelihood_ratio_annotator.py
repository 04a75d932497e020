# clinical_markdown/B_parsing/B06_likelihood_ratio_annotator.py
"""
Likelihood-ratio table enrichment.

Finds markdown tables in a section body and, for those whose header row
contains an ``LR+`` or ``LR-`` column, derives one LRTableRow per body row
and LR column: the leading decimal of the LR cell, its confidence interval,
a strength band and a bar width for the adjacent value cell. Tables without
the header signature come back with their cells untouched and no LR rows.

Bands (defaults from config.yaml):
    positive  >= 10 strong, >= 5 moderate, >= 2 weak, else negligible
    negative  <= 0.1 strong, <= 0.2 moderate, <= 0.5 weak, else negligible

Bar width is the LR scaled linearly against the positive ceiling (20), or
``1 - LR`` on a 0-1 scale for negative LRs, clamped to the configured
minimum and maximum percent.

Example:
    >>> annotator = LikelihoodRatioAnnotator()
    >>> table = annotator.annotate_table(["Finding", "LR+", "Value"], [["Murmur", "8.5 (2.1-15)", "..."]])
    >>> row = table.lr_rows[0]
    >>> row.lr_value, row.strength_band.value, row.confidence_interval
    (8.5, 'moderate', '2.1-15')
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from A_core.A00_logging import get_logger
from A_core.A01_document_models import AnnotatedTable, LRPolarity, LRTableRow, StrengthBand
from B_parsing.B01_markdown_tokenizer import TokenKind, tokenize
from G_config.G02_parser_config import LikelihoodRatioSettings, ParserConfig, default_config
from Z_utils.Z02_text_helpers import split_table_cells

logger = get_logger(__name__)

_LEADING_DECIMAL = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)")
_PARENTHETICAL = re.compile(r"\(([^)]*)\)")

TableCells = Tuple[Tuple[str, ...], Tuple[Tuple[str, ...], ...]]


def find_tables(content: str) -> List[TableCells]:
    """
    ``(header, rows)`` for every table in ``content``.

    A table is a row directly followed by a separator row; the body is the
    run of rows after the separator.
    """
    tokens = tokenize(content)
    tables: List[TableCells] = []
    i = 0
    while i < len(tokens) - 1:
        if tokens[i].kind == TokenKind.TABLE_ROW and tokens[i + 1].kind == TokenKind.TABLE_SEPARATOR:
            header = tuple(split_table_cells(tokens[i].text))
            rows: List[Tuple[str, ...]] = []
            j = i + 2
            while j < len(tokens) and tokens[j].kind == TokenKind.TABLE_ROW:
                rows.append(tuple(split_table_cells(tokens[j].text)))
                j += 1
            tables.append((header, tuple(rows)))
            i = j
            continue
        i += 1
    return tables


def parse_lr_value(cell: str) -> Optional[float]:
    """Leading decimal number of a cell, or None."""
    match = _LEADING_DECIMAL.match(cell)
    return float(match.group(1)) if match else None


def strength_band(value: float, polarity: LRPolarity, settings: LikelihoodRatioSettings) -> StrengthBand:
    if polarity == LRPolarity.POSITIVE:
        strong, moderate, weak = settings.positive_thresholds
        if settings.positive_very_strong is not None and value >= settings.positive_very_strong:
            return StrengthBand.VERY_STRONG
        if value >= strong:
            return StrengthBand.STRONG
        if value >= moderate:
            return StrengthBand.MODERATE
        if value >= weak:
            return StrengthBand.WEAK
        return StrengthBand.NEGLIGIBLE

    strong, moderate, weak = settings.negative_thresholds
    if settings.negative_very_strong is not None and value <= settings.negative_very_strong:
        return StrengthBand.VERY_STRONG
    if value <= strong:
        return StrengthBand.STRONG
    if value <= moderate:
        return StrengthBand.MODERATE
    if value <= weak:
        return StrengthBand.WEAK
    return StrengthBand.NEGLIGIBLE


def bar_width(value: float, polarity: LRPolarity, settings: LikelihoodRatioSettings) -> float:
    """Indicator width in percent of the value cell."""
    if polarity == LRPolarity.POSITIVE:
        scaled = min(value, settings.positive_ceiling) / settings.positive_ceiling
    else:
        scaled = 1.0 - min(value, 1.0)
    width = max(settings.bar_min_percent, scaled * settings.bar_max_percent)
    return round(min(width, settings.bar_max_percent), 2)


class LikelihoodRatioAnnotator:
    """
    Annotates LR tables.

    Args:
        config: Parser configuration; header texts, thresholds and the bar
            scale come from its ``likelihood_ratio`` settings.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or default_config()
        self.settings = self.config.likelihood_ratio

    def column_polarity(self, header_cell: str) -> Optional[LRPolarity]:
        if any(h in header_cell for h in self.settings.positive_headers):
            return LRPolarity.POSITIVE
        if any(h in header_cell for h in self.settings.negative_headers):
            return LRPolarity.NEGATIVE
        return None

    def annotate_table(
        self,
        header: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> AnnotatedTable:
        header = tuple(header)
        rows = tuple(tuple(row) for row in rows)
        columns = [
            (index, polarity)
            for index, polarity in ((i, self.column_polarity(cell)) for i, cell in enumerate(header))
            if polarity is not None
        ]
        if not columns:
            return AnnotatedTable(header=header, rows=rows)

        lr_rows: List[LRTableRow] = []
        for row_index, row in enumerate(rows):
            for column, polarity in columns:
                if column >= len(row):
                    continue
                value = parse_lr_value(row[column])
                if value is None:
                    continue
                lr_rows.append(
                    LRTableRow(
                        finding=row[0] if column != 0 else "",
                        lr_value=value,
                        confidence_interval=self._confidence_interval(row, column),
                        strength_band=strength_band(value, polarity, self.settings),
                        polarity=polarity,
                        bar_width_percent=bar_width(value, polarity, self.settings),
                        row_index=row_index,
                        cells=row,
                    )
                )

        logger.debug(f"LR table with {len(columns)} LR columns: {len(lr_rows)} of {len(rows)} rows annotated")
        return AnnotatedTable(header=header, rows=rows, lr_rows=tuple(lr_rows), is_lr_table=True)

    @staticmethod
    def _confidence_interval(row: Sequence[str], column: int) -> str:
        """Parenthetical of the LR cell, else of the value cell next to it."""
        for index in (column, column + 1):
            if index < len(row):
                match = _PARENTHETICAL.search(row[index])
                if match:
                    return match.group(1).strip()
        return ""

    def annotate(self, content: str) -> List[AnnotatedTable]:
        """Annotate every table of a section body."""
        return [self.annotate_table(header, rows) for header, rows in find_tables(content)]


__all__ = [
    "LikelihoodRatioAnnotator",
    "bar_width",
    "find_tables",
    "parse_lr_value",
    "strength_band",
]
