"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only queries over journal entries, returning frozen
    JournalEntryView DTOs.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Company scope on every query.
    - Entries are ordered by (entry_date, journal_number).
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.dtos import EntryStatus, JournalEntryView
from ledger_kernel.exceptions import EntryNotFoundError
from ledger_kernel.models.journal import JournalEntry
from ledger_kernel.selectors.base import BaseSelector


class JournalSelector(BaseSelector[JournalEntry]):
    """
    Selector for journal entry reads.

    Non-goals:
        - No aggregation; balances live in LedgerSelector.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def get_entry(self, company_id: UUID, entry_id: UUID) -> JournalEntryView:
        """Raises EntryNotFoundError when the id is unknown in the company."""
        entry = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.id == entry_id,
                JournalEntry.company_id == company_id,
            )
        ).scalar_one_or_none()
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return JournalEntryView.from_model(entry)

    def get_by_number(self, company_id: UUID, journal_number: str) -> JournalEntryView | None:
        entry = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.company_id == company_id,
                JournalEntry.journal_number == journal_number,
            )
        ).scalar_one_or_none()
        return JournalEntryView.from_model(entry) if entry else None

    def list_entries(
        self,
        company_id: UUID,
        status: EntryStatus | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[JournalEntryView]:
        query = select(JournalEntry).where(JournalEntry.company_id == company_id)
        if status is not None:
            query = query.where(JournalEntry.status == EntryStatus(status).value)
        if start is not None:
            query = query.where(JournalEntry.entry_date >= start)
        if end is not None:
            query = query.where(JournalEntry.entry_date <= end)
        query = query.order_by(JournalEntry.entry_date, JournalEntry.journal_number)

        return [
            JournalEntryView.from_model(entry)
            for entry in self.session.execute(query).scalars()
        ]

    def reversal_of(self, company_id: UUID, entry_id: UUID) -> JournalEntryView | None:
        """The mirror entry written when ``entry_id`` was voided, if any."""
        entry = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.company_id == company_id,
                JournalEntry.reversal_of_id == entry_id,
            )
        ).scalar_one_or_none()
        return JournalEntryView.from_model(entry) if entry else None
