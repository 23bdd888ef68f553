"""
JournalService -- the Journal Engine.

Responsibility:
    Owns every write to journal entries: draft creation, posting, voiding
    by mirrored reversal, and draft deletion.  All other packages (invoice
    lifecycle, API facade) reach the journal through this class.

Architecture position:
    Kernel > Services -- imperative shell.  Uses SequenceService for
    journal numbers and the Clock for posting/void timestamps.

Invariants enforced:
    - Balance: sum(debit) == sum(credit) at draft time
      (ImbalancedEntryError) and again at posting (UnbalancedPostingError).
    - Line shape: exactly one side non-zero, neither negative.
    - Accounts: every line references an active account of the same
      company.
    - State machine DRAFT -> POSTED -> VOIDED; DRAFT may be deleted.
    - Posted lines are never rewritten: void writes a POSTED mirror entry
      with reversal_of_id set and only stamps the original VOIDED.
    - Row locks (SELECT ... FOR UPDATE) serialize concurrent post/void on
      one entry; the loser sees the new status and fails with a typed
      StateTransitionError.

Failure modes:
    - ValidationError family for bad input (nothing written).
    - EntryNotFoundError when the id is unknown in the company.
    - StateTransitionError family for illegal transitions.
    - UnbalancedPostingError (DataIntegrityError) if stored lines are
      found unbalanced; logged CRITICAL.

Audit relevance:
    journal_entry_created / journal_entry_posted / journal_entry_voided /
    journal_entry_deleted are logged at INFO with entry id and number.
"""

from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO, InvalidAmountError, to_money
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import (
    EntryStatus,
    JournalEntryView,
    LineSpec,
    SourceType,
    VoidResult,
)
from ledger_kernel.exceptions import (
    AlreadyPostedError,
    AlreadyVoidedError,
    EmptyEntryError,
    EntryNotFoundError,
    ImbalancedEntryError,
    InvalidAccountError,
    InvalidLineError,
    InvoiceOwnedEntryError,
    MissingReasonError,
    NotDraftError,
    NotPostedError,
    UnbalancedPostingError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, TransactionLine
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("services.journal")


class JournalService(BaseService[JournalEntry]):
    """
    Journal Engine.

    Contract:
        Every public method takes ``company_id`` first and the acting user
        last.  Methods return frozen JournalEntryView DTOs, never live ORM
        rows.

    Guarantees:
        - A DRAFT returned by create_draft is balanced and numbered.
        - post/void never leave a partially updated entry: all changes
          are flushed together in the caller's transaction.

    Non-goals:
        - Does NOT commit.
        - Does NOT load invoices; source_type only gates who may void.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = SequenceService(session)

    # -------------------------------------------------------------------------
    # Draft creation
    # -------------------------------------------------------------------------

    def create_draft(
        self,
        company_id: UUID,
        entry_date: date,
        description: str | None,
        lines: Sequence[LineSpec],
        actor_id: UUID,
        source_type: SourceType = SourceType.MANUAL,
        source_id: UUID | None = None,
    ) -> JournalEntryView:
        """
        Validate and persist a DRAFT entry with its lines.

        Raises:
            EmptyEntryError: No lines.
            InvalidLineError: Negative amount, both sides or neither side set.
            InvalidAccountError: Unknown, foreign or inactive account.
            ImbalancedEntryError: Debits differ from credits.
        """
        self._require_company(company_id, "create_draft")
        normalized = self._normalize_lines(lines)
        self._check_accounts(company_id, [spec.account_id for spec in normalized])
        self._check_balance(normalized)

        entry = self._insert_entry(
            company_id=company_id,
            entry_date=entry_date,
            description=description,
            lines=normalized,
            actor_id=actor_id,
            status=EntryStatus.DRAFT,
            source_type=source_type,
            source_id=source_id,
        )

        logger.info(
            "journal_entry_created",
            extra={
                "company_id": str(company_id),
                "entry_id": str(entry.id),
                "journal_number": entry.journal_number,
                "line_count": len(normalized),
                "source_type": source_type.value,
            },
        )
        return JournalEntryView.from_model(entry)

    def _normalize_lines(self, lines: Sequence[LineSpec]) -> list[LineSpec]:
        if not lines:
            raise EmptyEntryError()

        normalized: list[LineSpec] = []
        for index, spec in enumerate(lines):
            try:
                debit = to_money(spec.debit)
                credit = to_money(spec.credit)
            except InvalidAmountError as exc:
                raise InvalidLineError(index, str(exc)) from exc

            if debit < ZERO or credit < ZERO:
                raise InvalidLineError(index, "amounts must not be negative")
            if debit > ZERO and credit > ZERO:
                raise InvalidLineError(index, "line has both a debit and a credit")
            if debit == ZERO and credit == ZERO:
                raise InvalidLineError(index, "line has neither a debit nor a credit")

            normalized.append(
                LineSpec(
                    account_id=spec.account_id,
                    debit=debit,
                    credit=credit,
                    description=spec.description,
                )
            )
        return normalized

    def _check_accounts(self, company_id: UUID, account_ids: list[UUID]) -> None:
        wanted = set(account_ids)
        found = {
            account.id: account
            for account in self.session.execute(
                select(Account).where(
                    Account.company_id == company_id,
                    Account.id.in_(wanted),
                )
            ).scalars()
        }
        for account_id in account_ids:
            account = found.get(account_id)
            if account is None:
                raise InvalidAccountError(str(account_id), "not found in company")
            if not account.is_active:
                raise InvalidAccountError(str(account_id), "account is inactive")

    @staticmethod
    def _check_balance(lines: Sequence[LineSpec]) -> None:
        debits = sum((spec.debit for spec in lines), ZERO)
        credits = sum((spec.credit for spec in lines), ZERO)
        if debits != credits:
            raise ImbalancedEntryError(str(debits), str(credits))

    def _insert_entry(
        self,
        company_id: UUID,
        entry_date: date,
        description: str | None,
        lines: Sequence[LineSpec],
        actor_id: UUID,
        status: EntryStatus,
        source_type: SourceType,
        source_id: UUID | None,
        reversal_of_id: UUID | None = None,
    ) -> JournalEntry:
        entry = JournalEntry(
            company_id=company_id,
            journal_number=self._sequences.next_journal_number(company_id, entry_date),
            entry_date=entry_date,
            description=description,
            source_type=source_type.value,
            source_id=source_id,
            status=status.value,
            reversal_of_id=reversal_of_id,
            created_by_id=actor_id,
        )
        if status == EntryStatus.POSTED:
            entry.posted_at = self._clock.now()

        for line_no, spec in enumerate(lines, start=1):
            entry.lines.append(
                TransactionLine(
                    company_id=company_id,
                    account_id=spec.account_id,
                    line_no=line_no,
                    description=spec.description,
                    debit=spec.debit,
                    credit=spec.credit,
                    created_by_id=actor_id,
                )
            )

        self.session.add(entry)
        self.session.flush()
        return entry

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _load_locked(self, company_id: UUID, entry_id: UUID) -> JournalEntry:
        entry = self.session.execute(
            select(JournalEntry)
            .where(
                JournalEntry.id == entry_id,
                JournalEntry.company_id == company_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry

    def post(self, company_id: UUID, entry_id: UUID, actor_id: UUID) -> JournalEntryView:
        """
        DRAFT -> POSTED.

        Raises:
            AlreadyPostedError / AlreadyVoidedError: Entry is not DRAFT.
            EmptyEntryError: Entry has no lines.
            UnbalancedPostingError: Stored lines do not balance.
        """
        self._require_company(company_id, "post")
        with LogContext.bind(entry_id=entry_id):
            entry = self._load_locked(company_id, entry_id)
            status = EntryStatus(entry.status)
            if status == EntryStatus.POSTED:
                raise AlreadyPostedError(str(entry_id), status.value, "post")
            if status == EntryStatus.VOIDED:
                raise AlreadyVoidedError(str(entry_id), status.value, "post")
            if not entry.lines:
                raise EmptyEntryError(str(entry_id))
            if not entry.is_balanced:
                logger.critical(
                    "journal_entry_unbalanced_at_posting",
                    extra={
                        "entry_id": str(entry_id),
                        "debits": str(entry.total_debits),
                        "credits": str(entry.total_credits),
                    },
                )
                raise UnbalancedPostingError(
                    str(entry_id), str(entry.total_debits), str(entry.total_credits)
                )

            entry.status = EntryStatus.POSTED.value
            entry.posted_at = self._clock.now()
            entry.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "journal_entry_posted",
                extra={
                    "entry_id": str(entry.id),
                    "journal_number": entry.journal_number,
                    "total": str(entry.total_debits),
                },
            )
            return JournalEntryView.from_model(entry)

    def void(
        self,
        company_id: UUID,
        entry_id: UUID,
        reason: str,
        actor_id: UUID,
        *,
        from_invoice: bool = False,
    ) -> VoidResult:
        """
        POSTED -> VOIDED, writing a POSTED mirror entry.

        The reversal carries the original date, swaps every debit and
        credit, and points back through ``reversal_of_id``.  Entries posted
        from an invoice are voided only through the invoice
        (``from_invoice=True``), so both sides change together.

        Raises:
            MissingReasonError: Blank reason.
            NotPostedError: Entry is DRAFT.
            AlreadyVoidedError: Entry is already VOIDED.
            InvoiceOwnedEntryError: Entry belongs to an invoice.
        """
        self._require_company(company_id, "void")
        if reason is None or not reason.strip():
            raise MissingReasonError(str(entry_id))
        reason = reason.strip()

        with LogContext.bind(entry_id=entry_id):
            original = self._load_locked(company_id, entry_id)
            status = EntryStatus(original.status)
            if status == EntryStatus.DRAFT:
                raise NotPostedError(str(entry_id), status.value, "void")
            if status == EntryStatus.VOIDED:
                raise AlreadyVoidedError(str(entry_id), status.value, "void")
            if original.source_type == SourceType.INVOICE.value and not from_invoice:
                source_id = str(original.source_id) if original.source_id else None
                raise InvoiceOwnedEntryError(str(entry_id), source_id)

            mirrored = [
                LineSpec(
                    account_id=line.account_id,
                    debit=line.credit,
                    credit=line.debit,
                    description=line.description,
                )
                for line in original.lines
            ]
            label = original.description or original.journal_number
            reversal = self._insert_entry(
                company_id=company_id,
                entry_date=original.entry_date,
                description=f"Void: {label} ({reason})",
                lines=mirrored,
                actor_id=actor_id,
                status=EntryStatus.POSTED,
                source_type=SourceType.MANUAL,
                source_id=original.source_id,
                reversal_of_id=original.id,
            )

            original.status = EntryStatus.VOIDED.value
            original.voided_at = self._clock.now()
            original.void_reason = reason
            original.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "journal_entry_voided",
                extra={
                    "entry_id": str(original.id),
                    "journal_number": original.journal_number,
                    "reversal_entry_id": str(reversal.id),
                    "reversal_journal_number": reversal.journal_number,
                    "reason": reason,
                },
            )
            return VoidResult(
                original=JournalEntryView.from_model(original),
                reversal=JournalEntryView.from_model(reversal),
            )

    def delete_draft(self, company_id: UUID, entry_id: UUID, actor_id: UUID) -> None:
        """Remove a DRAFT entry and its lines. Anything else raises NotDraftError."""
        self._require_company(company_id, "delete_draft")
        entry = self._load_locked(company_id, entry_id)
        if EntryStatus(entry.status) != EntryStatus.DRAFT:
            raise NotDraftError(str(entry_id), entry.status, "delete")

        journal_number = entry.journal_number
        self.session.delete(entry)
        self.session.flush()
        logger.info(
            "journal_entry_deleted",
            extra={
                "entry_id": str(entry_id),
                "journal_number": journal_number,
                "actor_id": str(actor_id),
            },
        )
