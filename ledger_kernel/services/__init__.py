"""Write-side services. Services flush; callers own commit and rollback."""

from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.sequence_service import SequenceCounter, SequenceService

__all__ = [
    "AccountService",
    "JournalService",
    "SequenceCounter",
    "SequenceService",
]
