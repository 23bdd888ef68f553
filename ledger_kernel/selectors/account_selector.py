"""Read access to a company's chart of accounts (the account directory)."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.models.account import Account, AccountCategory, NormalBalance, normal_balance_for
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class AccountView:
    id: UUID
    code: str
    name: str
    category: AccountCategory
    is_active: bool

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.category)

    @classmethod
    def from_model(cls, account: Account) -> "AccountView":
        return cls(
            id=account.id,
            code=account.code,
            name=account.name,
            category=AccountCategory(account.category),
            is_active=account.is_active,
        )


class AccountSelector(BaseSelector[Account]):
    def __init__(self, session: Session):
        super().__init__(session)

    def active_accounts(self, company_id: UUID) -> list[AccountView]:
        """Active accounts ordered by code."""
        rows = self.session.execute(
            select(Account)
            .where(Account.company_id == company_id, Account.is_active.is_(True))
            .order_by(Account.code)
        ).scalars()
        return [AccountView.from_model(account) for account in rows]

    def all_accounts(self, company_id: UUID) -> list[AccountView]:
        rows = self.session.execute(
            select(Account)
            .where(Account.company_id == company_id)
            .order_by(Account.code)
        ).scalars()
        return [AccountView.from_model(account) for account in rows]

    def by_code(self, company_id: UUID, code: str) -> AccountView | None:
        account = self.session.execute(
            select(Account).where(Account.company_id == company_id, Account.code == code)
        ).scalar_one_or_none()
        return AccountView.from_model(account) if account else None
