"""
Reporting Domain Models (``ledger_modules.reporting.models``).

Responsibility
--------------
Frozen report DTOs: trial balance, income statement and balance sheet.
Every amount is a ``Decimal``; natural balances are positive when the
account sits on its expected side.

Architecture position
---------------------
**Modules layer** -- pure data, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ReportType(str, Enum):
    TRIAL_BALANCE = "trial_balance"
    INCOME_STATEMENT = "income_statement"
    BALANCE_SHEET = "balance_sheet"


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    company_id: UUID
    entity_name: str
    as_of_date: date
    generated_at: str  # ISO timestamp from the injected clock
    period_start: date | None = None
    period_end: date | None = None


@dataclass(frozen=True)
class ReportLine:
    account_id: UUID
    account_code: str
    account_name: str
    category: str
    debit_total: Decimal
    credit_total: Decimal
    net_balance: Decimal  # natural-balance adjusted


@dataclass(frozen=True)
class ReportSection:
    label: str
    lines: tuple[ReportLine, ...]
    total: Decimal


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    lines: tuple[ReportLine, ...]
    total_debits: Decimal
    total_credits: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


@dataclass(frozen=True)
class IncomeStatementReport:
    """
    Revenue - cost of sales = gross profit; gross profit - operating
    expenses = net income.
    """

    metadata: ReportMetadata
    revenue: ReportSection
    cost_of_sales: ReportSection
    operating_expenses: ReportSection
    gross_profit: Decimal
    net_income: Decimal

    @property
    def total_revenue(self) -> Decimal:
        return self.revenue.total

    @property
    def total_expenses(self) -> Decimal:
        return self.cost_of_sales.total + self.operating_expenses.total


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Assets = Liabilities + Equity, with the period's net income counted
    inside equity.
    """

    metadata: ReportMetadata
    assets: ReportSection
    liabilities: ReportSection
    equity: ReportSection
    net_income: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal

    @property
    def total_liabilities_and_equity(self) -> Decimal:
        return self.total_liabilities + self.total_equity

    @property
    def is_balanced(self) -> bool:
        return self.total_assets == self.total_liabilities_and_equity
