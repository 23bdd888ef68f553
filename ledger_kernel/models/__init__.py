"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account, AccountCategory, NormalBalance
from ledger_kernel.models.journal import JournalEntry, TransactionLine

__all__ = [
    "Account",
    "AccountCategory",
    "NormalBalance",
    "JournalEntry",
    "TransactionLine",
]
