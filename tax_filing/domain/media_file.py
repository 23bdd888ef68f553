"""
Business-tax media file encoder (營業稅申報媒體檔).

Every record is exactly 81 bytes, records are concatenated with no
delimiter, and the whole file is UTF-8.  Layout, 1-indexed inclusive:

    ====  =========================================  =======  =====
    #     Field                                      Bytes    Width
    ====  =========================================  =======  =====
    1     Format code                                1-2      2
    2     Tax registration number (tax id + branch)  3-11     9
    3     Sequence number                            12-18    7
    4     Period, ROC year + end month               19-23    5
    5     Buyer tax id / invoice range end           24-31    8
    6     Seller tax id / summarized count           32-39    8
    7     Invoice track + number                     40-49    10
    8     Untaxed amount                             50-61    12
    9     Tax type                                   62       1
    10    Tax amount                                 63-72    10
    11    Deduction code (purchases)                 73       1
    12    Aggregation flag                           74       1
    13    Customs clearance flag (zero-rated)        75       1
    14    Reserved                                   76-81    6
    ====  =========================================  =======  =====

Numeric fields are right-justified and zero-padded; text fields are
left-justified and space-padded.  Widths are measured in encoded bytes.
Nothing is truncated: a value that does not fit raises FieldOverflowError.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ledger_kernel.domain.values import InvoiceType
from ledger_kernel.exceptions import FieldOverflowError, MalformedRowError
from ledger_kernel.logging_config import get_logger
from tax_filing.domain.form401 import category_for_tax_type
from tax_filing.domain.normalizers import clean_invoice_number, western_to_roc_year
from tax_filing.domain.types import (
    MediaFileOptions,
    MediaFileResult,
    MediaFileValidation,
    MediaInvoice,
    TaxCategory,
    TaxFilingRow,
)

logger = get_logger("tax_filing.media_file")

RECORD_LENGTH = 81
ENCODING = "utf-8"

ZERO = Decimal("0")

# Purchases (進項)
INPUT_FORMAT_CODES = {
    "THREE_COPY": "21",
    "TWO_COPY": "22",
    "THREE_COPY_RETURN": "23",
    "TWO_COPY_RETURN": "24",
    "E_INVOICE": "25",
    "SUMMARY_THREE": "26",
    "SUMMARY_TWO": "27",
    "CUSTOMS": "28",
    "CUSTOMS_REFUND": "29",
}

# Sales (銷項)
OUTPUT_FORMAT_CODES = {
    "THREE_COPY": "31",
    "TWO_COPY": "32",
    "THREE_COPY_RETURN": "33",
    "TWO_COPY_RETURN": "34",
    "E_INVOICE": "35",
    "NO_INVOICE": "36",
    "SPECIAL": "37",
    "SPECIAL_RETURN": "38",
}

VALID_FORMAT_CODES = frozenset(INPUT_FORMAT_CODES.values()) | frozenset(OUTPUT_FORMAT_CODES.values())

TAX_TYPE_CODES = {
    TaxCategory.TAXABLE: "1",
    TaxCategory.ZERO_RATED: "2",
    TaxCategory.EXEMPT: "3",
    TaxCategory.SPECIAL: "9",
    TaxCategory.NON_TAXABLE: "1",
}

DEDUCTIBLE = "1"
NON_DEDUCTIBLE = "2"
DEDUCTIBLE_ASSET = "3"
NON_DEDUCTIBLE_ASSET = "4"

SUMMARY_FLAG = "A"
CUSTOMS_FLAG = "1"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    start: int  # 1-indexed, inclusive
    width: int
    numeric: bool = False

    @property
    def end(self) -> int:
        return self.start + self.width - 1

    @property
    def slice(self) -> slice:
        return slice(self.start - 1, self.end)


LAYOUT: tuple[FieldSpec, ...] = (
    FieldSpec("format_code", 1, 2, numeric=True),
    FieldSpec("tax_registration_number", 3, 9),
    FieldSpec("sequence_number", 12, 7, numeric=True),
    FieldSpec("period", 19, 5, numeric=True),
    FieldSpec("buyer_tax_id", 24, 8),
    FieldSpec("seller_tax_id", 32, 8),
    FieldSpec("invoice_number", 40, 10),
    FieldSpec("untaxed_amount", 50, 12, numeric=True),
    FieldSpec("tax_type", 62, 1),
    FieldSpec("tax_amount", 63, 10, numeric=True),
    FieldSpec("deduction_code", 73, 1),
    FieldSpec("aggregation_flag", 74, 1),
    FieldSpec("customs_flag", 75, 1),
    FieldSpec("reserved", 76, 6),
)

FIELDS = {spec.name: spec for spec in LAYOUT}


# =============================================================================
# Field encoders
# =============================================================================


def encode_number(value: Decimal | int, spec: FieldSpec, row: int | None = None) -> str:
    """
    Absolute value, rounded to a whole unit, zero-padded on the left.
    Credit notes carry their sign through the return format code.
    """
    whole = abs(Decimal(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    text = str(int(whole))
    if len(text) > spec.width:
        raise FieldOverflowError(spec.name, text, spec.width, row)
    return text.rjust(spec.width, "0")


def encode_text(value: str | None, spec: FieldSpec, row: int | None = None) -> str:
    """Left-justified, space-padded to the field width in bytes."""
    text = (value or "").strip()
    size = len(text.encode(ENCODING))
    if size > spec.width:
        raise FieldOverflowError(spec.name, text, spec.width, row)
    return text + " " * (spec.width - size)


def format_period(year: int, bi_month: int) -> str:
    """2024, bi-month 6 -> ``"11312"`` (ROC year 113, month 12)."""
    if not (1 <= bi_month <= 6):
        raise ValueError(f"bi_month must be 1..6, got {bi_month}")
    return f"{western_to_roc_year(year):03d}{bi_month * 2:02d}"


def tax_type_code(category: TaxCategory) -> str:
    return TAX_TYPE_CODES.get(category, TAX_TYPE_CODES[TaxCategory.TAXABLE])


def deduction_code(is_deductible: bool, is_fixed_asset: bool) -> str:
    if is_fixed_asset:
        return DEDUCTIBLE_ASSET if is_deductible else NON_DEDUCTIBLE_ASSET
    return DEDUCTIBLE if is_deductible else NON_DEDUCTIBLE


def _range_end_digits(invoice: MediaInvoice, sequence: int) -> str:
    end_number = clean_invoice_number(invoice.invoice_end_number or "")
    digits = re.sub(r"^[A-Za-z]+", "", end_number)
    if not digits.isdigit():
        raise MalformedRowError(sequence, "invoice_end_number", "Summary record needs an end number")
    return digits


# =============================================================================
# Records
# =============================================================================


def row_to_media_invoice(row: TaxFilingRow) -> MediaInvoice:
    """
    A parsed sheet row as the encoder sees it.  A negative amount becomes a
    credit note with the magnitude kept; the return format code carries the
    sign.
    """
    untaxed = abs(row.untaxed_amount)
    tax = abs(row.tax_amount)
    return MediaInvoice(
        type=row.type,
        invoice_number=row.number,
        invoice_date=row.date,
        counterparty_tax_id=row.counterparty_tax_id,
        untaxed_amount=untaxed,
        tax_amount=tax,
        tax_category=category_for_tax_type(row.tax_type, untaxed, tax),
        is_deductible=row.is_deductible if row.type == InvoiceType.INPUT else None,
        is_credit_note=row.is_credit_note,
    )



def generate_media_record(
    invoice: MediaInvoice,
    options: MediaFileOptions,
    sequence: int,
) -> bytes:
    """Encode one invoice as an 81-byte record."""
    number = clean_invoice_number(invoice.invoice_number or "")
    if not number:
        raise MalformedRowError(sequence, "invoice_number", "Invoice number is required")
    if invoice.invoice_date is None:
        raise MalformedRowError(sequence, "invoice_date", "Invoice date is required")

    company_tax_id = options.company_tax_id
    counterparty = invoice.counterparty_tax_id or ""

    if invoice.is_summary:
        buyer = encode_number(int(_range_end_digits(invoice, sequence)), FIELDS["buyer_tax_id"], sequence)
        seller = encode_number(invoice.summary_count or 0, FIELDS["seller_tax_id"], sequence)
    elif invoice.type == InvoiceType.INPUT:
        buyer = encode_text(company_tax_id, FIELDS["buyer_tax_id"], sequence)
        seller = encode_text(counterparty, FIELDS["seller_tax_id"], sequence)
    else:
        buyer = encode_text(counterparty, FIELDS["buyer_tax_id"], sequence)
        seller = encode_text(company_tax_id, FIELDS["seller_tax_id"], sequence)

    deduction = " "
    if invoice.type == InvoiceType.INPUT:
        is_deductible = invoice.is_deductible
        if is_deductible is None:
            is_deductible = invoice.tax_amount > ZERO
        deduction = deduction_code(is_deductible, invoice.is_fixed_asset)

    format_code = options.format_codes.for_invoice(invoice)
    if format_code not in VALID_FORMAT_CODES:
        raise MalformedRowError(sequence, "format_code", f"Unknown format code {format_code!r}")

    parts = [
        encode_number(int(format_code), FIELDS["format_code"], sequence),
        encode_text(options.tax_registration_number, FIELDS["tax_registration_number"], sequence),
        encode_number(sequence, FIELDS["sequence_number"], sequence),
        format_period(options.year, options.bi_month),
        buyer,
        seller,
        encode_text(number, FIELDS["invoice_number"], sequence),
        encode_number(invoice.untaxed_amount, FIELDS["untaxed_amount"], sequence),
        tax_type_code(invoice.tax_category),
        encode_number(invoice.tax_amount, FIELDS["tax_amount"], sequence),
        deduction,
        SUMMARY_FLAG if invoice.is_summary else " ",
        CUSTOMS_FLAG if invoice.tax_category == TaxCategory.ZERO_RATED else " ",
        " " * FIELDS["reserved"].width,
    ]
    record = "".join(parts).encode(ENCODING)
    if len(record) != RECORD_LENGTH:
        raise MalformedRowError(
            sequence, "record", f"Encoded record is {len(record)} bytes, expected {RECORD_LENGTH}"
        )
    return record


def generate_media_file(
    invoices: Iterable[MediaInvoice],
    options: MediaFileOptions,
) -> MediaFileResult:
    """Encode invoices in order; sequence numbers start at 0000001."""
    records: list[bytes] = []
    counts = {InvoiceType.INPUT: 0, InvoiceType.OUTPUT: 0}
    amounts = {InvoiceType.INPUT: ZERO, InvoiceType.OUTPUT: ZERO}
    taxes = {InvoiceType.INPUT: ZERO, InvoiceType.OUTPUT: ZERO}

    for sequence, invoice in enumerate(invoices, start=1):
        records.append(generate_media_record(invoice, options, sequence))
        counts[invoice.type] += 1
        amounts[invoice.type] += invoice.untaxed_amount
        taxes[invoice.type] += invoice.tax_amount

    result = MediaFileResult(
        content=b"".join(records),
        record_count=len(records),
        input_count=counts[InvoiceType.INPUT],
        output_count=counts[InvoiceType.OUTPUT],
        input_amount=amounts[InvoiceType.INPUT],
        output_amount=amounts[InvoiceType.OUTPUT],
        input_tax=taxes[InvoiceType.INPUT],
        output_tax=taxes[InvoiceType.OUTPUT],
    )
    logger.info(
        "tax_filing_media_file_generated",
        extra={
            "record_count": result.record_count,
            "input_count": result.input_count,
            "output_count": result.output_count,
            "period": format_period(options.year, options.bi_month),
        },
    )
    return result


def split_records(content: bytes) -> list[bytes]:
    return [content[i : i + RECORD_LENGTH] for i in range(0, len(content), RECORD_LENGTH)]


def read_field(record: bytes, name: str) -> str:
    """Decoded value of one field; a record with multibyte text slices by byte."""
    return record[FIELDS[name].slice].decode(ENCODING, errors="replace")


def validate_media_file(content: bytes | str) -> MediaFileValidation:
    if isinstance(content, str):
        content = content.encode(ENCODING)
    if not content:
        return MediaFileValidation(valid=True, record_count=0)

    errors: list[str] = []
    if len(content) % RECORD_LENGTH:
        errors.append(f"File length {len(content)} is not a multiple of {RECORD_LENGTH}")

    record_count = len(content) // RECORD_LENGTH
    for index, record in enumerate(split_records(content)[:record_count], start=1):
        format_code = read_field(record, "format_code")
        if format_code not in VALID_FORMAT_CODES:
            errors.append(f"Record {index}: invalid format code {format_code!r}")
        expected = f"{index:07d}"
        actual = read_field(record, "sequence_number")
        if actual != expected:
            errors.append(f"Record {index}: sequence number {actual!r}, expected {expected!r}")

    return MediaFileValidation(valid=not errors, record_count=record_count, errors=tuple(errors))
