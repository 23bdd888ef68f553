"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts -- the target of
    every transaction line.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Account.code is unique per company (uq_account_company_code).
    - category is one of asset, liability, equity, revenue, expense and
      determines the natural balance side.

Failure modes:
    - IntegrityError on a duplicate code inside one company.

Audit relevance:
    Accounts are created at company setup and are read-only to the
    journal; deactivation (is_active=False) blocks new lines without
    touching history.
"""

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import CompanyScoped, TrackedBase

if TYPE_CHECKING:
    from ledger_kernel.models.journal import TransactionLine


class AccountCategory(str, Enum):
    """Financial statement category of an account."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


_DEBIT_NORMAL = frozenset({AccountCategory.ASSET, AccountCategory.EXPENSE})


def normal_balance_for(category: AccountCategory | str) -> NormalBalance:
    """Asset and expense accounts are debit-normal, the rest credit-normal."""
    if AccountCategory(category) in _DEBIT_NORMAL:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


class Account(TrackedBase, CompanyScoped):
    """
    Chart of accounts entry for one company.

    Contract:
        (company_id, code) is unique.  Lines may only reference active
        accounts of the same company (enforced by JournalService).
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_account_company_code"),
        Index("idx_account_company_active", "company_id", "is_active"),
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    category: Mapped[str] = mapped_column(String(20), nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    lines: Mapped[list["TransactionLine"]] = relationship(
        back_populates="account",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.category)
