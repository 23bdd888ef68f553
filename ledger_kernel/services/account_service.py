"""
AccountService -- company chart-of-accounts setup.

Responsibility:
    Creates accounts for a company during setup.  After setup the journal
    only reads accounts; this service is the one place that writes them.

Architecture position:
    Kernel > Services.  The default chart comes from ``ledger_config`` and
    is passed in by the caller; the kernel does not import configuration.

Invariants enforced:
    - (company_id, code) unique: seeding is idempotent per code.
    - category must be a known AccountCategory.
"""

from typing import Iterable, Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import AccountNotFoundError, ConfigurationError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account, AccountCategory
from ledger_kernel.services.base import BaseService

logger = get_logger("services.account")


class AccountDefinition(Protocol):
    code: str
    name: str
    category: str


class AccountService(BaseService[Account]):
    """Write side of the chart of accounts."""

    def __init__(self, session: Session):
        super().__init__(session)

    def add_account(
        self,
        company_id: UUID,
        code: str,
        name: str,
        category: AccountCategory | str,
        actor_id: UUID,
        is_active: bool = True,
    ) -> Account:
        self._require_company(company_id, "add_account")
        try:
            category_value = AccountCategory(category).value
        except ValueError as exc:
            raise ConfigurationError(
                f"Unknown account category {category!r} for account {code}",
                detail={"code": code, "category": str(category)},
            ) from exc

        account = Account(
            company_id=company_id,
            code=code,
            name=name,
            category=category_value,
            is_active=is_active,
            created_by_id=actor_id,
        )
        self.session.add(account)
        self.session.flush()
        logger.info(
            "account_created",
            extra={"company_id": str(company_id), "code": code, "category": category_value},
        )
        return account

    def seed_chart(
        self,
        company_id: UUID,
        accounts: Iterable[AccountDefinition],
        actor_id: UUID,
    ) -> int:
        """
        Create every account in ``accounts`` that the company lacks.

        Returns:
            Number of accounts created.
        """
        self._require_company(company_id, "seed_chart")
        existing = set(
            self.session.execute(
                select(Account.code).where(Account.company_id == company_id)
            ).scalars()
        )
        created = 0
        for definition in accounts:
            if definition.code in existing:
                continue
            self.add_account(
                company_id,
                definition.code,
                definition.name,
                definition.category,
                actor_id,
            )
            existing.add(definition.code)
            created += 1

        logger.info(
            "chart_seeded",
            extra={"company_id": str(company_id), "created_count": created},
        )
        return created

    def set_active(
        self,
        company_id: UUID,
        code: str,
        is_active: bool,
        actor_id: UUID,
    ) -> Account:
        """Activate or deactivate an account; history is untouched."""
        self._require_company(company_id, "set_active")
        account = self.session.execute(
            select(Account).where(
                Account.company_id == company_id,
                Account.code == code,
            )
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(code)
        account.is_active = is_active
        account.updated_by_id = actor_id
        self.session.flush()
        logger.info(
            "account_activation_changed",
            extra={"company_id": str(company_id), "code": code, "is_active": is_active},
        )
        return account
