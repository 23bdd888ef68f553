"""
Values -- shared domain vocabulary.

Responsibility:
    Small enums used on both sides of the ledger boundary: the invoice
    direction (sales vs purchase) and the invoice lifecycle status.  The
    classifier, invoice module and tax-filing package all speak these.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

from enum import Enum


class InvoiceType(str, Enum):
    """Direction of an invoice: OUTPUT is a sale, INPUT a purchase."""

    OUTPUT = "OUTPUT"
    INPUT = "INPUT"


class InvoiceStatus(str, Enum):
    """Forward-only lifecycle DRAFT -> VERIFIED -> POSTED -> VOIDED."""

    DRAFT = "DRAFT"
    VERIFIED = "VERIFIED"
    POSTED = "POSTED"
    VOIDED = "VOIDED"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    TRANSFER = "TRANSFER"
    CHECK = "CHECK"
    CREDIT_CARD = "CREDIT_CARD"
    UNCLASSIFIED = "UNCLASSIFIED"
