"""
XLSX source adapter for MOF e-invoice platform exports.

Supports:
  - sheet by index (0-based) or name
  - header row by index or auto-detect (scans the first rows for known
    e-invoice column names, since some exports put a title row above)
  - native cell values: dates stay dates, whole floats become ints

Blank rows are kept so that the importer can number rows as the user
sees them in the spreadsheet.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import openpyxl

from ledger_kernel.logging_config import get_logger
from tax_filing.adapters.base import SheetData, SourceProbe
from tax_filing.domain.columns import PURCHASE_COLUMNS, SALES_COLUMNS, strip_marker

logger = get_logger("tax_filing.adapters.xlsx")

MAX_ROWS = 100_000
MAX_COLUMNS = 50

_KNOWN_HEADERS = frozenset(
    synonym
    for vocabulary in (PURCHASE_COLUMNS, SALES_COLUMNS)
    for synonyms in vocabulary.values()
    for synonym in synonyms
)


def _normalize_header_cell(value: Any) -> str:
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def _cell_value(row: Any, col_idx: int) -> Any:
    """Cell value from an openpyxl row (0-based column index); blank -> None."""
    if col_idx >= len(row):
        return None
    value = row[col_idx].value
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _header_score(row: Any) -> int:
    return sum(
        1
        for c in range(min(len(row), MAX_COLUMNS))
        if strip_marker(_normalize_header_cell(_cell_value(row, c))) in _KNOWN_HEADERS
    )


def _detect_header_row(rows: list, max_search: int = 10, min_matches: int = 2) -> int:
    """0-based index of the first row with at least ``min_matches`` known headers."""
    for i, row in enumerate(rows[:max_search]):
        if _header_score(row) >= min_matches:
            return i
    return 0


def _column_count(row: Any) -> int:
    n = 0
    for c in range(min(len(row), MAX_COLUMNS)):
        if _cell_value(row, c) is not None:
            n = c + 1
    return max(n, 1)


def _headers(row: Any) -> list[str]:
    headers: list[str] = []
    for c in range(_column_count(row)):
        key = _normalize_header_cell(_cell_value(row, c)) or f"Column_{c + 1}"
        base = key
        count = 0
        while key in headers:
            count += 1
            key = f"{base}_{count}"
        headers.append(key)
    return headers


class XlsxSourceAdapter:
    """
    Read one worksheet of an .xlsx file.

    options:
      sheet: 0-based sheet index (int) or sheet name (str). Default: active sheet.
      header_row: 0-based row index of the header.  If omitted and
        auto_detect_header is true, the first of the top 10 rows holding
        at least 2 known e-invoice column names is used.
      auto_detect_header: default true.
    """

    def read_sheet(self, source_path: Path, options: dict[str, Any] | None = None) -> SheetData:
        options = options or {}
        wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
        try:
            sheet = self._get_sheet(wb, options)
            rows = list(sheet.iter_rows(min_row=1, max_row=MAX_ROWS))
            if not rows:
                return SheetData(headers=(), rows=())

            hi = self._header_index(rows, options)
            headers = _headers(rows[hi])
            data = tuple(
                {header: _cell_value(row, c) for c, header in enumerate(headers)}
                for row in rows[hi + 1 :]
            )
        finally:
            wb.close()

        logger.info(
            "tax_filing_sheet_read",
            extra={
                "source": str(source_path),
                "header_row": hi + 1,
                "column_count": len(headers),
                "row_count": len(data),
            },
        )
        return SheetData(headers=tuple(headers), rows=data, header_row=hi + 1)

    def probe(self, source_path: Path, options: dict[str, Any] | None = None) -> SourceProbe:
        options = options or {}
        wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
        try:
            sheet = self._get_sheet(wb, options)
            rows = list(sheet.iter_rows(min_row=1, max_row=500))
            if not rows:
                return SourceProbe(row_count=0, columns=(), sample_rows=(), sheet_name=sheet.title)

            hi = self._header_index(rows, options)
            headers = _headers(rows[hi])
            sample = []
            for row in rows[hi + 1 :]:
                values = [_cell_value(row, c) for c in range(len(headers))]
                if all(v is None for v in values):
                    continue
                sample.append(dict(zip(headers, values)))
                if len(sample) == 5:
                    break
            return SourceProbe(
                row_count=len(rows) - hi - 1,
                columns=tuple(headers),
                sample_rows=tuple(sample),
                sheet_name=sheet.title,
            )
        finally:
            wb.close()

    def _header_index(self, rows: list, options: dict[str, Any]) -> int:
        header_row = options.get("header_row")
        if header_row is not None:
            return int(header_row)
        if options.get("auto_detect_header", True):
            return _detect_header_row(rows)
        return 0

    def _get_sheet(self, wb: Any, options: dict[str, Any]) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return wb.active
        if isinstance(sheet_ref, int):
            return wb.worksheets[sheet_ref]
        return wb[sheet_ref]
