"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Balance aggregation over posted transaction lines: trial
    balance, per-account activity for a date range, and the account ledger
    with a running balance.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.

Invariants enforced:
    - No stored balances: every figure is summed from TransactionLine rows
      at query time.
    - Only entries that were posted count.  Balance summaries leave out a
      VOIDED original together with the reversal pointing at it, so a
      post-then-void pair leaves the trial balance unchanged.  The account
      ledger keeps both for the audit trail.
    - Grand debit total == grand credit total.  A difference is a data
      integrity failure (TrialBalanceOutOfBalanceError, logged CRITICAL),
      never a partial report.

Failure modes:
    - TrialBalanceOutOfBalanceError when stored lines do not balance.
    - Empty results when the company has no posted entries.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO, round_money
from ledger_kernel.domain.dtos import EntryStatus
from ledger_kernel.exceptions import AccountNotFoundError, TrialBalanceOutOfBalanceError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account, AccountCategory, NormalBalance, normal_balance_for
from ledger_kernel.models.journal import JournalEntry, TransactionLine
from ledger_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.ledger")

BOOKED_STATUSES = (EntryStatus.POSTED.value, EntryStatus.VOIDED.value)

# Only a void writes reversal_of_id, so a POSTED entry carrying one is a mirror
STANDING_ENTRY = (JournalEntry.status == EntryStatus.POSTED.value) & JournalEntry.reversal_of_id.is_(None)


@dataclass(frozen=True)
class TrialBalanceRow:
    """Summed activity for one account."""

    account_id: UUID
    account_code: str
    account_name: str
    category: AccountCategory
    debit_total: Decimal
    credit_total: Decimal

    @property
    def balance(self) -> Decimal:
        """Net balance (debits - credits)."""
        return self.debit_total - self.credit_total


@dataclass(frozen=True)
class TrialBalance:
    company_id: UUID
    as_of: date | None
    rows: tuple[TrialBalanceRow, ...]
    total_debits: Decimal
    total_credits: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    def row_for(self, account_code: str) -> TrialBalanceRow | None:
        for row in self.rows:
            if row.account_code == account_code:
                return row
        return None


@dataclass(frozen=True)
class AccountLedgerLine:
    entry_id: UUID
    journal_number: str
    entry_date: date
    description: str | None
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class AccountLedger:
    account_id: UUID
    account_code: str
    normal_balance: NormalBalance
    opening_balance: Decimal
    lines: tuple[AccountLedgerLine, ...]

    @property
    def closing_balance(self) -> Decimal:
        return self.lines[-1].running_balance if self.lines else self.opening_balance


class LedgerSelector(BaseSelector[TransactionLine]):
    """
    Authoritative balance computation.

    Guarantees:
        - Rows are ordered by account code.
        - All amounts are Decimal rounded to 2 places.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def _sum_by_account(
        self,
        company_id: UUID,
        start: date | None,
        end: date | None,
    ) -> list[TrialBalanceRow]:
        query = (
            select(
                Account.id,
                Account.code,
                Account.name,
                Account.category,
                func.coalesce(func.sum(TransactionLine.debit), 0).label("debit_total"),
                func.coalesce(func.sum(TransactionLine.credit), 0).label("credit_total"),
            )
            .join(TransactionLine, TransactionLine.account_id == Account.id)
            .join(JournalEntry, TransactionLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.company_id == company_id,
                TransactionLine.company_id == company_id,
                STANDING_ENTRY,
            )
        )
        if start is not None:
            query = query.where(JournalEntry.entry_date >= start)
        if end is not None:
            query = query.where(JournalEntry.entry_date <= end)
        query = query.group_by(Account.id, Account.code, Account.name, Account.category)
        query = query.order_by(Account.code)

        return [
            TrialBalanceRow(
                account_id=account_id,
                account_code=code,
                account_name=name,
                category=AccountCategory(category),
                debit_total=round_money(Decimal(str(debit_total))),
                credit_total=round_money(Decimal(str(credit_total))),
            )
            for account_id, code, name, category, debit_total, credit_total in self.session.execute(query)
        ]

    def _checked(
        self,
        company_id: UUID,
        as_of: date | None,
        rows: list[TrialBalanceRow],
    ) -> TrialBalance:
        total_debits = sum((row.debit_total for row in rows), ZERO)
        total_credits = sum((row.credit_total for row in rows), ZERO)
        if total_debits != total_credits:
            logger.critical(
                "trial_balance_out_of_balance",
                extra={
                    "company_id": str(company_id),
                    "total_debits": str(total_debits),
                    "total_credits": str(total_credits),
                },
            )
            raise TrialBalanceOutOfBalanceError(
                str(company_id), str(total_debits), str(total_credits)
            )
        return TrialBalance(
            company_id=company_id,
            as_of=as_of,
            rows=tuple(rows),
            total_debits=total_debits,
            total_credits=total_credits,
        )

    def trial_balance(self, company_id: UUID, as_of: date | None = None) -> TrialBalance:
        """
        Sum debits and credits per account over posted entries dated on or
        before ``as_of``.  Voided entries and their reversals are left out.

        Raises:
            TrialBalanceOutOfBalanceError: Grand totals differ.
        """
        rows = self._sum_by_account(company_id, None, as_of)
        balance = self._checked(company_id, as_of, rows)
        logger.info(
            "trial_balance_computed",
            extra={
                "company_id": str(company_id),
                "as_of": as_of,
                "account_count": len(rows),
                "total_debits": str(balance.total_debits),
            },
        )
        return balance

    def activity(self, company_id: UUID, start: date, end: date) -> TrialBalance:
        """Per-account movement between ``start`` and ``end`` inclusive."""
        rows = self._sum_by_account(company_id, start, end)
        return self._checked(company_id, end, rows)

    def account_ledger(
        self,
        company_id: UUID,
        account_id: UUID,
        start: date | None = None,
        end: date | None = None,
    ) -> AccountLedger:
        """
        Posted lines of one account with a running balance in the account's
        natural direction.  Activity before ``start`` forms the opening
        balance.
        """
        account = self.session.execute(
            select(Account).where(Account.company_id == company_id, Account.id == account_id)
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))
        normal = normal_balance_for(account.category)
        sign = Decimal("1") if normal == NormalBalance.DEBIT else Decimal("-1")

        base = (
            select(
                JournalEntry.id,
                JournalEntry.journal_number,
                JournalEntry.entry_date,
                JournalEntry.description,
                TransactionLine.debit,
                TransactionLine.credit,
            )
            .join(JournalEntry, TransactionLine.journal_entry_id == JournalEntry.id)
            .where(
                TransactionLine.company_id == company_id,
                TransactionLine.account_id == account_id,
                JournalEntry.status.in_(BOOKED_STATUSES),
            )
        )

        opening = ZERO
        if start is not None:
            opening_query = (
                select(
                    func.coalesce(func.sum(TransactionLine.debit - TransactionLine.credit), 0)
                )
                .join(JournalEntry, TransactionLine.journal_entry_id == JournalEntry.id)
                .where(
                    TransactionLine.company_id == company_id,
                    TransactionLine.account_id == account_id,
                    JournalEntry.status.in_(BOOKED_STATUSES),
                    JournalEntry.entry_date <= start - timedelta(days=1),
                )
            )
            net = self.session.execute(opening_query).scalar_one()
            opening = round_money(Decimal(str(net)) * sign)
            base = base.where(JournalEntry.entry_date >= start)
        if end is not None:
            base = base.where(JournalEntry.entry_date <= end)
        base = base.order_by(
            JournalEntry.entry_date, JournalEntry.journal_number, TransactionLine.line_no
        )

        running = opening
        lines: list[AccountLedgerLine] = []
        for entry_id, number, entry_date, description, debit, credit in self.session.execute(base):
            debit = round_money(Decimal(str(debit)))
            credit = round_money(Decimal(str(credit)))
            running += (debit - credit) * sign
            lines.append(
                AccountLedgerLine(
                    entry_id=entry_id,
                    journal_number=number,
                    entry_date=entry_date,
                    description=description,
                    debit=debit,
                    credit=credit,
                    running_balance=running,
                )
            )

        return AccountLedger(
            account_id=account.id,
            account_code=account.code,
            normal_balance=normal,
            opening_balance=opening,
            lines=tuple(lines),
        )
