"""
Invoice ORM Models (``ledger_modules.invoices.orm``).

Responsibility
--------------
SQLAlchemy persistence for invoices and the payments recorded against
them.  Maps to the frozen dataclasses in ``models.py`` via ``to_dto``.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``ledger_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``ledger_kernel``.

Invariants enforced
-------------------
* ``number`` is unique per company when present (uq_invoice_company_number).
* ``journal_entry_id`` is set exactly when the invoice has been POSTED.
* Amounts are Numeric(38, 9); ``total_amount == untaxed + tax`` is checked
  by ``InvoiceService`` before any write.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import CompanyScoped, TrackedBase, UUIDString
from ledger_kernel.domain.values import (
    InvoiceStatus,
    PaymentMethod,
    PaymentStatus,
)


class InvoiceModel(TrackedBase, CompanyScoped):
    """
    ORM model for invoices.

    Guarantees:
        - type / status / payment_status stored as enum values.
        - account_id is the revenue or expense account, chosen by the user
          or filled in by the classifier at posting time.
        - payments are ordered by payment_date.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint("company_id", "number", name="uq_invoice_company_number"),
        Index("idx_invoice_company_status", "company_id", "status"),
        Index("idx_invoice_company_type_date", "company_id", "type", "invoice_date"),
    )

    type: Mapped[str] = mapped_column(String(10), nullable=False)
    number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    untaxed_amount: Mapped[Decimal] = mapped_column(nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    counterparty_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    counterparty_tax_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    account_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("accounts.id"), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(10), default=InvoiceStatus.DRAFT.value, nullable=False
    )
    journal_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("journal_entries.id"), nullable=True
    )

    paid_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    payment_status: Mapped[str] = mapped_column(
        String(10), default=PaymentStatus.UNPAID.value, nullable=False
    )

    # Tax filing attributes
    tax_type: Mapped[str] = mapped_column(String(1), default="1", nullable=False)
    is_deductible: Mapped[bool] = mapped_column(Boolean, default=True)
    is_credit_note: Mapped[bool] = mapped_column(Boolean, default=False)

    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verified_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    posted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    voided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    void_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    payments: Mapped[list["InvoicePaymentModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InvoicePaymentModel.payment_date",
    )

    def __repr__(self) -> str:
        return f"<Invoice {self.type} {self.number} status={self.status}>"

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from ledger_modules.invoices.models import Invoice
        from ledger_kernel.domain.values import InvoiceType

        return Invoice(
            id=self.id,
            company_id=self.company_id,
            type=InvoiceType(self.type),
            number=self.number,
            invoice_date=self.invoice_date,
            untaxed_amount=self.untaxed_amount,
            tax_amount=self.tax_amount,
            total_amount=self.total_amount,
            counterparty_name=self.counterparty_name,
            counterparty_tax_id=self.counterparty_tax_id,
            description=self.description,
            account_id=self.account_id,
            status=InvoiceStatus(self.status),
            journal_entry_id=self.journal_entry_id,
            paid_amount=self.paid_amount,
            payment_status=PaymentStatus(self.payment_status),
            due_date=self.due_date,
            tax_type=self.tax_type,
            is_deductible=self.is_deductible,
            is_credit_note=self.is_credit_note,
            verified_at=self.verified_at,
            posted_at=self.posted_at,
            voided_at=self.voided_at,
            void_reason=self.void_reason,
        )


class InvoicePaymentModel(TrackedBase, CompanyScoped):
    """A single payment applied to an invoice."""

    __tablename__ = "invoice_payments"

    __table_args__ = (
        Index("idx_invoice_payment_invoice", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("invoices.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    method: Mapped[str] = mapped_column(
        String(20), default=PaymentMethod.UNCLASSIFIED.value, nullable=False
    )
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    invoice: Mapped["InvoiceModel"] = relationship(back_populates="payments")

    def to_dto(self):
        from ledger_modules.invoices.models import InvoicePayment

        return InvoicePayment(
            id=self.id,
            invoice_id=self.invoice_id,
            amount=self.amount,
            payment_date=self.payment_date,
            method=PaymentMethod(self.method),
            reference=self.reference,
        )
