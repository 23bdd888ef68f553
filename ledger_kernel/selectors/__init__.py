"""Read-only selectors returning frozen DTOs."""

from ledger_kernel.selectors.account_selector import AccountSelector, AccountView
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import (
    AccountLedger,
    AccountLedgerLine,
    LedgerSelector,
    TrialBalance,
    TrialBalanceRow,
)

__all__ = [
    "AccountSelector",
    "AccountView",
    "JournalSelector",
    "LedgerSelector",
    "TrialBalance",
    "TrialBalanceRow",
    "AccountLedger",
    "AccountLedgerLine",
]
