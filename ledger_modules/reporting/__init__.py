"""Financial reporting: trial balance, income statement, balance sheet."""

from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    IncomeStatementReport,
    ReportLine,
    ReportMetadata,
    ReportSection,
    ReportType,
    TrialBalanceReport,
)
from ledger_modules.reporting.service import ReportingService

__all__ = [
    "BalanceSheetReport",
    "IncomeStatementReport",
    "ReportLine",
    "ReportMetadata",
    "ReportSection",
    "ReportType",
    "ReportingConfig",
    "ReportingService",
    "TrialBalanceReport",
]
