"""
BaseService -- abstract base for all ledger services.

Responsibility:
    Common constructor and session contract for every write-side service.
    Services persist with ``session.flush()`` inside the caller's
    transaction and never commit.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.  Every service in
    ``ledger_kernel/services/`` and ``ledger_modules/*/service.py`` that
    writes data extends this class.

Invariants enforced:
    - Transaction boundaries belong to the caller (``session_scope`` or
      ``LedgerAPI``).  A service calling ``commit()`` would break the
      atomicity of invoice posting (entry + lines + invoice link).
    - Tenant scope: ``_require_company`` rejects a write without a
      company_id before any row is touched.
"""

from abc import ABC
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base
from ledger_kernel.exceptions import MissingCompanyScopeError

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all ledger services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and flushes
        within the active transaction.

    Non-goals:
        - Does NOT commit or roll back.
        - Does NOT provide read models; those live in selectors.
    """

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _require_company(company_id: UUID | None, operation: str) -> UUID:
        if company_id is None:
            raise MissingCompanyScopeError(operation)
        return company_id
