"""Pure domain objects: clock and journal DTOs."""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import (
    EntryStatus,
    JournalEntryView,
    JournalLineView,
    LineSpec,
    SourceType,
    VoidResult,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "EntryStatus",
    "JournalEntryView",
    "JournalLineView",
    "LineSpec",
    "SourceType",
    "VoidResult",
]
