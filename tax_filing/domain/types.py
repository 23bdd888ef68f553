"""
tax_filing.domain.types -- Pure frozen dataclasses for tax-filing import and export.

ZERO I/O.  Imports only from ``ledger_kernel.domain``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.values import InvoiceType

ZERO = Decimal("0")


# =============================================================================
# Import
# =============================================================================


class ImportMode(str, Enum):
    """Layout of an uploaded sheet, detected from its headers."""

    STANDARD = "standard"  # unrecognized; caller must reject
    MOF_PURCHASE = "mof_purchase"  # seller columns -> INPUT rows
    MOF_SALES = "mof_sales"  # buyer columns -> OUTPUT rows

    @property
    def invoice_type(self) -> InvoiceType | None:
        if self == ImportMode.MOF_PURCHASE:
            return InvoiceType.INPUT
        if self == ImportMode.MOF_SALES:
            return InvoiceType.OUTPUT
        return None


@dataclass(frozen=True)
class TaxFilingRow:
    """
    One normalized invoice row.

    Amounts keep the sign found in the sheet; a negative amount marks a
    credit note (sales return or allowance).
    """

    number: str
    type: InvoiceType
    date: date
    untaxed_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    counterparty_name: str | None = None
    counterparty_tax_id: str | None = None
    is_deductible: bool | None = None  # purchases only
    tax_type: str = "1"
    source_row: int | None = None

    @property
    def is_credit_note(self) -> bool:
        return self.untaxed_amount < ZERO or self.tax_amount < ZERO or self.total_amount < ZERO


@dataclass(frozen=True)
class ParseError:
    """A non-fatal import warning tied to a sheet row (row 1 is the header)."""

    row: int
    column: str
    message: str


@dataclass(frozen=True)
class ImportResult:
    data: tuple[TaxFilingRow, ...]
    errors: tuple[ParseError, ...]
    mode: ImportMode

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


# =============================================================================
# Export
# =============================================================================


class TaxCategory(str, Enum):
    TAXABLE = "TAXABLE"  # 5% business tax
    ZERO_RATED = "ZERO_RATED"
    EXEMPT = "EXEMPT"
    SPECIAL = "SPECIAL"  # special tax rate
    NON_TAXABLE = "NON_TAXABLE"


@dataclass(frozen=True)
class MediaInvoice:
    """One invoice as the media file encoder sees it."""

    type: InvoiceType
    invoice_number: str
    invoice_date: date
    counterparty_tax_id: str | None
    untaxed_amount: Decimal
    tax_amount: Decimal
    tax_category: TaxCategory = TaxCategory.TAXABLE
    is_deductible: bool | None = None  # None: deductible when tax_amount > 0
    is_fixed_asset: bool = False
    is_credit_note: bool = False
    is_summary: bool = False
    summary_count: int | None = None
    invoice_end_number: str | None = None
    format_code: str | None = None  # overrides the default per type


@dataclass(frozen=True)
class FormatCodes:
    input_code: str = "25"
    output_code: str = "35"
    input_return_code: str = "23"
    output_return_code: str = "33"

    def for_invoice(self, invoice: MediaInvoice) -> str:
        if invoice.format_code:
            return invoice.format_code
        if invoice.type == InvoiceType.INPUT:
            return self.input_return_code if invoice.is_credit_note else self.input_code
        return self.output_return_code if invoice.is_credit_note else self.output_code


@dataclass(frozen=True)
class MediaFileOptions:
    """
    tax_registration_number is the 8-digit company tax id followed by the
    1-digit branch code ("0" for the head office).
    """

    tax_registration_number: str
    year: int
    bi_month: int
    format_codes: FormatCodes = field(default_factory=FormatCodes)

    def __post_init__(self):
        if not (1 <= self.bi_month <= 6):
            raise ValueError(f"bi_month must be 1..6, got {self.bi_month}")
        if len(self.tax_registration_number) != 9 or not self.tax_registration_number.isdigit():
            raise ValueError(
                "tax_registration_number must be 8-digit tax id + 1-digit branch code"
            )

    @property
    def company_tax_id(self) -> str:
        return self.tax_registration_number[:8]


@dataclass(frozen=True)
class MediaFileResult:
    content: bytes
    record_count: int
    input_count: int
    output_count: int
    input_amount: Decimal
    output_amount: Decimal
    input_tax: Decimal
    output_tax: Decimal


@dataclass(frozen=True)
class MediaFileValidation:
    valid: bool
    record_count: int
    errors: tuple[str, ...] = ()


# =============================================================================
# Form 401
# =============================================================================


@dataclass(frozen=True)
class TaxPeriod:
    """A bi-monthly business tax period."""

    year: int
    bi_month: int
    start_date: date
    end_date: date
    filing_due_date: date  # 15th of the month after the period

    @property
    def month(self) -> int:
        """The reported month is the period's last month."""
        return self.end_date.month


@dataclass(frozen=True)
class InvoiceDetail:
    number: str
    invoice_date: date
    counterparty_name: str | None
    counterparty_tax_id: str | None
    untaxed_amount: Decimal
    tax_amount: Decimal
    tax_category: TaxCategory
    is_deductible: bool = True
    is_credit_note: bool = False

    @property
    def signed_untaxed(self) -> Decimal:
        return -abs(self.untaxed_amount) if self.is_credit_note else self.untaxed_amount

    @property
    def signed_tax(self) -> Decimal:
        return -abs(self.tax_amount) if self.is_credit_note else self.tax_amount


@dataclass(frozen=True)
class Form401Bucket:
    count: int
    untaxed_amount: Decimal
    tax_amount: Decimal
    invoices: tuple[InvoiceDetail, ...] = ()


@dataclass(frozen=True)
class Form401:
    """Business tax return summary for one bi-monthly period."""

    period: TaxPeriod
    company_tax_id: str
    company_name: str
    sales_taxable: Form401Bucket
    sales_zero_rated: Form401Bucket
    sales_exempt: Form401Bucket
    purchases_deductible: Form401Bucket
    purchases_non_deductible: Form401Bucket
    output_tax: Decimal
    input_tax: Decimal
    net_tax: Decimal  # absolute amount payable or refundable
    is_refund: bool

    @property
    def total_sales_amount(self) -> Decimal:
        return (
            self.sales_taxable.untaxed_amount
            + self.sales_zero_rated.untaxed_amount
            + self.sales_exempt.untaxed_amount
        )

    @property
    def total_purchases_amount(self) -> Decimal:
        return (
            self.purchases_deductible.untaxed_amount
            + self.purchases_non_deductible.untaxed_amount
        )
