"""
MOF e-invoice sheet importer.

Pure.  ``parse_rows`` turns header + row dicts into ``TaxFilingRow`` values
plus a list of ``ParseError`` warnings.  A bad row never aborts the batch;
the caller decides whether to import the valid subset.

Duplicate invoice numbers are removed from ``data`` entirely and each
colliding row gets an error naming every row that shares the number.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ledger_kernel.logging_config import get_logger
from tax_filing.domain.columns import (
    BUYER_NAME,
    BUYER_TAX_ID,
    COLUMN_LABELS,
    PURCHASE_COLUMNS,
    SALES_COLUMNS,
    SELLER_NAME,
    SELLER_TAX_ID,
    HeaderMap,
    normalized_headers,
)
from tax_filing.domain.normalizers import (
    ZERO,
    clean_identifier,
    clean_text,
    parse_amount,
    parse_date,
    parse_deductible,
)
from tax_filing.domain.types import ImportMode, ImportResult, ParseError, TaxFilingRow

logger = get_logger("tax_filing.importer")

FIRST_DATA_ROW = 2  # row 1 is the header


def detect_import_mode(headers: Iterable[Any]) -> ImportMode:
    """Seller columns only -> purchases; buyer columns only -> sales; else standard."""
    present = normalized_headers(headers)
    has_seller = any(h in present for h in SELLER_TAX_ID + SELLER_NAME)
    has_buyer = any(h in present for h in BUYER_TAX_ID + BUYER_NAME)
    if has_seller and not has_buyer:
        return ImportMode.MOF_PURCHASE
    if has_buyer and not has_seller:
        return ImportMode.MOF_SALES
    return ImportMode.STANDARD


def _is_blank(row: Mapping[str, Any]) -> bool:
    for value in row.values():
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return False
    return True


def parse_row(
    row: Mapping[str, Any],
    row_number: int,
    mode: ImportMode,
    header_map: HeaderMap,
) -> tuple[TaxFilingRow | None, list[ParseError]]:
    errors: list[ParseError] = []

    number = clean_identifier(header_map.value(row, "number"))
    if not number:
        errors.append(ParseError(row_number, COLUMN_LABELS["number"], "Invoice number is required"))

    raw_date = header_map.value(row, "date")
    invoice_date = parse_date(raw_date)
    if invoice_date is None:
        errors.append(
            ParseError(row_number, COLUMN_LABELS["date"], f"Cannot parse date: {raw_date!r}")
        )

    untaxed = parse_amount(header_map.value(row, "untaxed_amount"))
    tax = parse_amount(header_map.value(row, "tax_amount"))
    raw_total = header_map.value(row, "total_amount")
    total = parse_amount(raw_total) if raw_total is not None else untaxed + tax

    signs = {amount > ZERO for amount in (untaxed, tax, total) if amount != ZERO}
    if len(signs) > 1:
        errors.append(
            ParseError(
                row_number,
                COLUMN_LABELS["total_amount"],
                "Amounts mix positive and negative values",
            )
        )

    if errors:
        return None, errors

    is_deductible = None
    if mode == ImportMode.MOF_PURCHASE:
        is_deductible = parse_deductible(header_map.value(row, "deductible"))

    return (
        TaxFilingRow(
            number=number,
            type=mode.invoice_type,
            date=invoice_date,
            untaxed_amount=untaxed,
            tax_amount=tax,
            total_amount=total,
            counterparty_name=clean_text(header_map.value(row, "counterparty_name")) or None,
            counterparty_tax_id=clean_identifier(header_map.value(row, "counterparty_tax_id")) or None,
            is_deductible=is_deductible,
            tax_type=clean_text(header_map.value(row, "tax_type")) or "1",
            source_row=row_number,
        ),
        [],
    )


def find_duplicates(rows: Sequence[TaxFilingRow]) -> dict[str, list[int]]:
    """Invoice number -> source rows, for numbers seen more than once."""
    by_number: dict[str, list[int]] = defaultdict(list)
    for row in rows:
        by_number[row.number].append(row.source_row)
    return {number: rows for number, rows in by_number.items() if len(rows) > 1}


def parse_rows(
    rows: Sequence[Mapping[str, Any]],
    headers: Sequence[Any],
    mode: ImportMode | None = None,
    first_row: int = FIRST_DATA_ROW,
) -> ImportResult:
    """
    ``first_row`` is the sheet row number of ``rows[0]``; error rows count
    from it and blank rows still consume a number.
    """
    mode = ImportMode(mode) if mode is not None else detect_import_mode(headers)
    if mode == ImportMode.STANDARD:
        logger.warning("tax_filing_import_unrecognized_layout", extra={"header_count": len(headers)})
        return ImportResult(
            data=(),
            errors=(ParseError(0, "", "Unrecognized MOF sheet layout; check the column headers"),),
            mode=mode,
        )

    vocabulary = PURCHASE_COLUMNS if mode == ImportMode.MOF_PURCHASE else SALES_COLUMNS
    header_map = HeaderMap.resolve(headers, vocabulary)

    parsed: list[TaxFilingRow] = []
    errors: list[ParseError] = []
    for index, row in enumerate(rows):
        if _is_blank(row):
            continue
        row_number = index + first_row
        data, row_errors = parse_row(row, row_number, mode, header_map)
        if data is not None:
            parsed.append(data)
        errors.extend(row_errors)

    duplicates = find_duplicates(parsed)
    for number, row_numbers in duplicates.items():
        listed = ", ".join(str(n) for n in row_numbers)
        for row_number in row_numbers:
            errors.append(
                ParseError(
                    row_number,
                    COLUMN_LABELS["number"],
                    f"Invoice number {number} is duplicated in rows {listed}",
                )
            )
    data = tuple(row for row in parsed if row.number not in duplicates)
    errors.sort(key=lambda e: e.row)

    logger.info(
        "tax_filing_rows_parsed",
        extra={
            "mode": mode.value,
            "row_count": len(rows),
            "parsed_count": len(data),
            "error_count": len(errors),
            "duplicate_numbers": len(duplicates),
        },
    )
    return ImportResult(data=data, errors=tuple(errors), mode=mode)


def validate_import_result(result: ImportResult) -> tuple[bool, str]:
    """Whether the whole result can be imported as-is, with a user-facing message."""
    if result.mode == ImportMode.STANDARD:
        return False, "Unrecognized MOF sheet layout"
    if result.errors:
        return False, f"{len(result.errors)} row(s) have errors"
    if not result.data:
        return False, "No rows to import"
    return True, f"{len(result.data)} row(s) ready to import"
