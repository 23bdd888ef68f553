"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries and their transaction
    lines -- the single source of financial truth.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced:
    - journal_number is unique per company (uq_journal_company_number).
    - A line never carries both a debit and a credit, and neither side is
      negative (CHECK constraints ck_line_*).
    - At most one reversal per original entry (unique reversal_of_id).
    - Balance (sum debit == sum credit) is enforced by JournalService
      before every flush that creates or posts an entry; is_balanced is
      the read-side check.

Failure modes:
    - IntegrityError on a duplicate journal number, a second reversal of
      the same entry, or a line violating the CHECK constraints.

Audit relevance:
    Posted entries and their lines are never updated in place apart from
    the status/voided_at stamp set when a mirrored reversal is written.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import CompanyScoped, TrackedBase, UUIDString
from ledger_kernel.domain.dtos import EntryStatus, SourceType

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class JournalEntry(TrackedBase, CompanyScoped):
    """
    Journal entry header -- a balanced transaction.

    Contract:
        Status moves DRAFT -> POSTED -> VOIDED only.  A DRAFT may be
        deleted; a POSTED entry is voided by writing a mirrored reversal
        whose reversal_of_id points back here.

    Guarantees:
        - journal_number is assigned at creation from the per-company
          sequence (YYYYMM + 4 digits).
        - lines are ordered by line_no.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("company_id", "journal_number", name="uq_journal_company_number"),
        UniqueConstraint("reversal_of_id", name="uq_journal_reversal_of"),
        Index("idx_journal_company_status_date", "company_id", "status", "entry_date"),
        Index("idx_journal_source", "source_type", "source_id"),
    )

    journal_number: Mapped[str] = mapped_column(String(20), nullable=False)

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    source_type: Mapped[str] = mapped_column(
        String(10),
        default=SourceType.MANUAL.value,
        nullable=False,
    )

    source_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    status: Mapped[str] = mapped_column(
        String(10),
        default=EntryStatus.DRAFT.value,
        nullable=False,
    )

    # If this is a reversal, points to the original entry
    reversal_of_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    voided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    void_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    lines: Mapped[list["TransactionLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TransactionLine.line_no",
    )

    reversal_of: Mapped["JournalEntry | None"] = relationship(
        remote_side="JournalEntry.id",
        foreign_keys=[reversal_of_id],
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.journal_number} status={self.status}>"

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class TransactionLine(TrackedBase, CompanyScoped):
    """
    One leg of a journal entry.

    Guarantees:
        - debit >= 0, credit >= 0, never both positive.
        - company_id equals the parent entry's company_id.
    """

    __tablename__ = "transaction_lines"

    __table_args__ = (
        CheckConstraint("debit >= 0", name="ck_line_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_line_credit_non_negative"),
        CheckConstraint("NOT (debit > 0 AND credit > 0)", name="ck_line_single_side"),
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_company_account", "company_id", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    line_no: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    debit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    credit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    account: Mapped["Account"] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        side = "Dr" if self.debit else "Cr"
        return f"<TransactionLine {side} {self.debit or self.credit}>"
