"""
Pure tax-filing domain: sheet import, media file export, Form 401.

No database, no file I/O.
"""

from tax_filing.domain.form401 import build_form_401, calculate_tax_period, determine_tax_category
from tax_filing.domain.importer import detect_import_mode, parse_rows, validate_import_result
from tax_filing.domain.media_file import (
    RECORD_LENGTH,
    format_period,
    generate_media_file,
    generate_media_record,
    row_to_media_invoice,
    validate_media_file,
)
from tax_filing.domain.normalizers import parse_amount, parse_date, parse_roc_date
from tax_filing.domain.types import (
    Form401,
    FormatCodes,
    ImportMode,
    ImportResult,
    InvoiceDetail,
    MediaFileOptions,
    MediaFileResult,
    MediaInvoice,
    ParseError,
    TaxCategory,
    TaxFilingRow,
    TaxPeriod,
)

__all__ = [
    "RECORD_LENGTH",
    "Form401",
    "FormatCodes",
    "ImportMode",
    "ImportResult",
    "InvoiceDetail",
    "MediaFileOptions",
    "MediaFileResult",
    "MediaInvoice",
    "ParseError",
    "TaxCategory",
    "TaxFilingRow",
    "TaxPeriod",
    "build_form_401",
    "calculate_tax_period",
    "detect_import_mode",
    "determine_tax_category",
    "format_period",
    "generate_media_file",
    "generate_media_record",
    "parse_amount",
    "parse_date",
    "parse_roc_date",
    "parse_rows",
    "row_to_media_invoice",
    "validate_import_result",
    "validate_media_file",
]
