"""
Sheet source protocol and DTOs.

Contract:
    SheetSource.read_sheet() returns the header cells and every row after
    the header as a dict, blank rows included so sheet row numbers hold.
    SheetSource.probe() returns a quick snapshot: row count, columns, sample rows.

File I/O only, no DB imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class SheetData:
    """Header cells plus row dicts; ``header_row`` is the 1-based sheet row of the header."""

    headers: tuple[str, ...]
    rows: tuple[dict[str, Any], ...]
    header_row: int = 1

    @property
    def first_data_row(self) -> int:
        return self.header_row + 1


@dataclass(frozen=True)
class SourceProbe:
    """Result of probing a workbook (row count, columns, first N rows)."""

    row_count: int
    columns: tuple[str, ...]
    sample_rows: tuple[dict[str, Any], ...]  # first 5 non-blank rows
    sheet_name: str | None = None


@runtime_checkable
class SheetSource(Protocol):
    """Protocol for reading one worksheet of an invoice export."""

    def read_sheet(self, source_path: Path, options: dict[str, Any]) -> SheetData:
        ...

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        ...
