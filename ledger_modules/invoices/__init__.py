"""Invoice lifecycle: DRAFT -> VERIFIED -> POSTED -> VOIDED, plus payments."""

from ledger_modules.invoices.config import InvoiceConfig
from ledger_modules.invoices.models import (
    BatchFailure,
    BatchResult,
    Invoice,
    InvoicePayment,
    InvoiceSummary,
    PaymentResult,
    PostingResult,
)
from ledger_modules.invoices.service import InvoiceService, derive_payment_status
from ledger_modules.invoices.workflows import INVOICE_WORKFLOW

__all__ = [
    "BatchFailure",
    "BatchResult",
    "INVOICE_WORKFLOW",
    "Invoice",
    "InvoiceConfig",
    "InvoicePayment",
    "InvoiceService",
    "InvoiceSummary",
    "PaymentResult",
    "PostingResult",
    "derive_payment_status",
]
