"""
Pure financial statement transformation functions.

These functions turn trial balance rows into structured statements.
ZERO I/O. ZERO side effects.  Same inputs always produce the same report.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from ledger_kernel.exceptions import BalanceSheetMismatchError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import AccountCategory, NormalBalance, normal_balance_for
from ledger_kernel.selectors.ledger_selector import TrialBalanceRow
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    IncomeStatementReport,
    ReportLine,
    ReportMetadata,
    ReportSection,
    TrialBalanceReport,
)

logger = get_logger("modules.reporting.statements")

ZERO = Decimal("0")


def compute_natural_balance(
    debit_total: Decimal,
    credit_total: Decimal,
    normal_balance: NormalBalance,
) -> Decimal:
    """
    DEBIT-normal (asset, expense): debit_total - credit_total.
    CREDIT-normal (liability, equity, revenue): credit_total - debit_total.
    """
    if normal_balance == NormalBalance.DEBIT:
        return debit_total - credit_total
    return credit_total - debit_total


def to_report_lines(
    rows: Iterable[TrialBalanceRow],
    config: ReportingConfig,
) -> tuple[ReportLine, ...]:
    """Natural-balance adjust rows, drop zero balances unless configured, sort by code."""
    lines: list[ReportLine] = []
    for row in rows:
        natural = compute_natural_balance(
            row.debit_total, row.credit_total, normal_balance_for(row.category)
        )
        if natural == ZERO and not config.include_zero_balances:
            continue
        lines.append(
            ReportLine(
                account_id=row.account_id,
                account_code=row.account_code,
                account_name=row.account_name,
                category=AccountCategory(row.category).value,
                debit_total=row.debit_total,
                credit_total=row.credit_total,
                net_balance=natural,
            )
        )
    return tuple(sorted(lines, key=lambda line: line.account_code))


def _section(label: str, lines: Iterable[ReportLine]) -> ReportSection:
    ordered = tuple(sorted(lines, key=lambda line: line.account_code))
    return ReportSection(
        label=label,
        lines=ordered,
        total=sum((line.net_balance for line in ordered), ZERO),
    )


def _of(lines: Sequence[ReportLine], category: AccountCategory) -> list[ReportLine]:
    return [line for line in lines if line.category == category.value]


def compute_net_income(rows: Iterable[TrialBalanceRow]) -> Decimal:
    """Revenue natural balances minus expense natural balances."""
    revenue = ZERO
    expense = ZERO
    for row in rows:
        category = AccountCategory(row.category)
        if category == AccountCategory.REVENUE:
            revenue += row.credit_total - row.debit_total
        elif category == AccountCategory.EXPENSE:
            expense += row.debit_total - row.credit_total
    return revenue - expense


# =========================================================================
# 1. TRIAL BALANCE
# =========================================================================


def build_trial_balance(
    rows: Sequence[TrialBalanceRow],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> TrialBalanceReport:
    lines = to_report_lines(rows, config)
    return TrialBalanceReport(
        metadata=metadata,
        lines=lines,
        total_debits=sum((row.debit_total for row in rows), ZERO),
        total_credits=sum((row.credit_total for row in rows), ZERO),
    )


# =========================================================================
# 2. INCOME STATEMENT
# =========================================================================


def build_income_statement(
    rows: Sequence[TrialBalanceRow],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> IncomeStatementReport:
    """
    Rows are the activity of the reporting period, not cumulative balances.

        Revenue
        - Cost of sales
        = Gross profit
        - Operating expenses
        = Net income
    """
    lines = to_report_lines(rows, config)
    expenses = _of(lines, AccountCategory.EXPENSE)

    revenue = _section("Revenue", _of(lines, AccountCategory.REVENUE))
    cost_of_sales = _section(
        "Cost of Sales",
        (line for line in expenses if config.is_cost_of_sales(line.account_code)),
    )
    operating = _section(
        "Operating Expenses",
        (line for line in expenses if not config.is_cost_of_sales(line.account_code)),
    )

    gross_profit = revenue.total - cost_of_sales.total
    return IncomeStatementReport(
        metadata=metadata,
        revenue=revenue,
        cost_of_sales=cost_of_sales,
        operating_expenses=operating,
        gross_profit=gross_profit,
        net_income=gross_profit - operating.total,
    )


# =========================================================================
# 3. BALANCE SHEET
# =========================================================================


def build_balance_sheet(
    rows: Sequence[TrialBalanceRow],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> BalanceSheetReport:
    """
    Rows are cumulative balances as of the report date.  Revenue and
    expense accounts are not closed into retained earnings, so their net
    is added to equity as the period result.

    Raises:
        BalanceSheetMismatchError: assets != liabilities + equity.
    """
    lines = to_report_lines(rows, config)
    net_income = compute_net_income(rows)

    assets = _section("Assets", _of(lines, AccountCategory.ASSET))
    liabilities = _section("Liabilities", _of(lines, AccountCategory.LIABILITY))
    equity = _section("Equity", _of(lines, AccountCategory.EQUITY))
    total_equity = equity.total + net_income

    report = BalanceSheetReport(
        metadata=metadata,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        net_income=net_income,
        total_assets=assets.total,
        total_liabilities=liabilities.total,
        total_equity=total_equity,
    )
    if not report.is_balanced:
        logger.critical(
            "balance_sheet_mismatch",
            extra={
                "company_id": str(metadata.company_id),
                "total_assets": str(report.total_assets),
                "total_liabilities_and_equity": str(report.total_liabilities_and_equity),
            },
        )
        raise BalanceSheetMismatchError(
            str(report.total_assets), str(report.total_liabilities_and_equity)
        )
    return report
