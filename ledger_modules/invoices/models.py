"""
Invoice Domain Models (``ledger_modules.invoices.models``).

Responsibility
--------------
Frozen dataclasses returned by ``InvoiceService``: the invoice read model,
payments, batch outcomes and the per-type summary.

Architecture position
---------------------
**Modules layer** -- pure data, zero I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* Monetary fields are ``Decimal`` rounded to 2 places.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from ledger_kernel.domain.values import (
    InvoiceStatus,
    InvoiceType,
    PaymentMethod,
    PaymentStatus,
)


@dataclass(frozen=True)
class Invoice:
    """A sales (OUTPUT) or purchase (INPUT) invoice."""

    id: UUID
    company_id: UUID
    type: InvoiceType
    number: str | None
    invoice_date: date
    untaxed_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    counterparty_name: str | None
    counterparty_tax_id: str | None
    description: str | None
    account_id: UUID | None
    status: InvoiceStatus
    journal_entry_id: UUID | None
    paid_amount: Decimal
    payment_status: PaymentStatus
    due_date: date | None = None
    tax_type: str = "1"
    is_deductible: bool = True
    is_credit_note: bool = False
    verified_at: datetime | None = None
    posted_at: datetime | None = None
    voided_at: datetime | None = None
    void_reason: str | None = None

    @property
    def remaining_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount


@dataclass(frozen=True)
class InvoicePayment:
    id: UUID
    invoice_id: UUID
    amount: Decimal
    payment_date: date
    method: PaymentMethod
    reference: str | None = None


@dataclass(frozen=True)
class PaymentResult:
    invoice_id: UUID
    payment_id: UUID
    total_paid: Decimal
    payment_status: PaymentStatus


@dataclass(frozen=True)
class PostingResult:
    """Outcome of posting an invoice: the invoice and its journal entry."""

    invoice_id: UUID
    journal_entry_id: UUID
    journal_number: str
    account_id: UUID
    classified: bool = False


@dataclass(frozen=True)
class BatchFailure:
    invoice_id: UUID
    code: str
    message: str


@dataclass(frozen=True)
class BatchResult:
    succeeded: tuple[UUID, ...] = ()
    failed: tuple[BatchFailure, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class InvoiceSummary:
    """Totals per direction over non-voided invoices."""

    output_count: int
    input_count: int
    total_output: Decimal
    total_input: Decimal
    unpaid_output: Decimal
    unpaid_input: Decimal
