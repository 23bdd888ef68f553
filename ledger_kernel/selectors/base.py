"""
Module: ledger_kernel.selectors.base
Responsibility: Abstract base for read-only selectors, the query side of the
    ledger.
Architecture position: Kernel > Selectors.  May import from db/ and models/.
    MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only: selectors never add, delete, flush or commit.
    - Company scope: every query filters on company_id.
    - Selectors return frozen DTOs, not ORM rows.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Accepts a Session owned by the caller and performs read-only
        queries against it.
    """

    def __init__(self, session: Session):
        self.session = session
