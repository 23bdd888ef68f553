"""
SequenceService -- gap-free counter allocation via locked rows.

Responsibility:
    Hands out strictly increasing integers per named sequence.  Journal
    numbers (``YYYYMM`` + 4 digits per company per month) are built on
    top of it.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.  Called by
    JournalService inside the same transaction as the entry insert.

Invariants enforced:
    - The SQL ``max() + 1`` pattern is never used: the locked counter row
      is the only source of the next value.
    - The increment is only visible after the caller commits; a rollback
      hands the value back, so numbers stay gap-free.

Failure modes:
    - IntegrityError while two transactions create the same counter row
      concurrently; handled by rolling back a savepoint and re-reading.

Audit relevance:
    Allocation is logged at DEBUG with the sequence name and value.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from ledger_kernel.db.base import Base
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.sequence")

JOURNAL_SEQUENCE_DIGITS = 4


class SequenceCounter(Base):
    """
    Named counter row.

    Not company scoped as a table; the company is part of the name
    (``journal:<company_id>:<YYYYMM>``).
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


def journal_sequence_name(company_id: UUID, entry_date: date) -> str:
    return f"journal:{company_id}:{entry_date:%Y%m}"


def format_journal_number(entry_date: date, value: int) -> str:
    """``2024-12-05`` and value 1 give ``2024120001``."""
    return f"{entry_date:%Y%m}{value:0{JOURNAL_SEQUENCE_DIGITS}d}"


class SequenceService:
    """
    Transactional sequence numbers.

    Contract:
        ``next_value(name)`` returns the previous value + 1 for that name,
        starting at 1.

    Non-goals:
        - Does NOT commit; the caller's transaction owns the increment.
    """

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Lock the counter row (creating it on first use), increment it and
        return the new value.
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use: insert inside a savepoint so a concurrent creator
            # only costs us a retry, not the caller's transaction.
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def next_journal_number(self, company_id: UUID, entry_date: date) -> str:
        value = self.next_value(journal_sequence_name(company_id, entry_date))
        return format_journal_number(entry_date, value)
