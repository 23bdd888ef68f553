"""
DTOs -- Pure domain data transfer objects for the journal.

Responsibility:
    Immutable structures that cross the service boundary: LineSpec (input
    to JournalService.create_draft) and JournalEntryView / JournalLineView
    (read models returned by services and selectors).

Architecture position:
    Kernel > Domain -- pure, zero I/O.  ``from_model()`` converters are
    called from services and selectors only.

Invariants enforced:
    - Views are frozen: callers never hold a live ORM row.
    - All amounts are Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from ledger_kernel.models.journal import JournalEntry, TransactionLine


class EntryStatus(str, Enum):
    """Lifecycle status of a journal entry: DRAFT -> POSTED -> VOIDED."""

    DRAFT = "DRAFT"
    POSTED = "POSTED"
    VOIDED = "VOIDED"


class SourceType(str, Enum):
    """What produced a journal entry."""

    MANUAL = "MANUAL"
    INVOICE = "INVOICE"


@dataclass(frozen=True)
class LineSpec:
    """
    Requested journal line, exactly one of debit/credit non-zero.

    Validation happens in JournalService so that failures carry the line
    index in a typed InvalidLineError.
    """

    account_id: UUID
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    description: str | None = None

    @classmethod
    def dr(cls, account_id: UUID, amount: Decimal | int | str, description: str | None = None) -> LineSpec:
        return cls(account_id=account_id, debit=Decimal(str(amount)), description=description)

    @classmethod
    def cr(cls, account_id: UUID, amount: Decimal | int | str, description: str | None = None) -> LineSpec:
        return cls(account_id=account_id, credit=Decimal(str(amount)), description=description)


@dataclass(frozen=True)
class JournalLineView:
    id: UUID
    line_no: int
    account_id: UUID
    description: str | None
    debit: Decimal
    credit: Decimal

    @classmethod
    def from_model(cls, line: TransactionLine) -> JournalLineView:
        return cls(
            id=line.id,
            line_no=line.line_no,
            account_id=line.account_id,
            description=line.description,
            debit=line.debit,
            credit=line.credit,
        )


@dataclass(frozen=True)
class JournalEntryView:
    """Read model of a journal entry and its ordered lines."""

    id: UUID
    company_id: UUID
    journal_number: str
    entry_date: date
    description: str | None
    source_type: SourceType
    source_id: UUID | None
    status: EntryStatus
    reversal_of_id: UUID | None
    lines: tuple[JournalLineView, ...]
    posted_at: datetime | None = None
    voided_at: datetime | None = None
    void_reason: str | None = None

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    @classmethod
    def from_model(cls, entry: JournalEntry) -> JournalEntryView:
        return cls(
            id=entry.id,
            company_id=entry.company_id,
            journal_number=entry.journal_number,
            entry_date=entry.entry_date,
            description=entry.description,
            source_type=SourceType(entry.source_type),
            source_id=entry.source_id,
            status=EntryStatus(entry.status),
            reversal_of_id=entry.reversal_of_id,
            lines=tuple(
                JournalLineView.from_model(line)
                for line in sorted(entry.lines, key=lambda l: l.line_no)
            ),
            posted_at=entry.posted_at,
            voided_at=entry.voided_at,
            void_reason=entry.void_reason,
        )


@dataclass(frozen=True)
class VoidResult:
    """Outcome of voiding a posted entry: the VOIDED original and its mirror."""

    original: JournalEntryView
    reversal: JournalEntryView
