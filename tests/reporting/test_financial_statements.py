"""
Tests for ReportingService and the pure statement builders.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.exceptions import BalanceSheetMismatchError
from ledger_kernel.models.account import AccountCategory, NormalBalance
from ledger_kernel.selectors.ledger_selector import TrialBalanceRow
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import ReportMetadata, ReportType
from ledger_modules.reporting.service import ReportingService
from ledger_modules.reporting.statements import (
    build_balance_sheet,
    compute_natural_balance,
    compute_net_income,
)


def _row(code, category, debit="0", credit="0"):
    return TrialBalanceRow(
        account_id=uuid4(),
        account_code=code,
        account_name=f"Account {code}",
        category=category,
        debit_total=Decimal(debit),
        credit_total=Decimal(credit),
    )


def _metadata():
    return ReportMetadata(
        report_type=ReportType.BALANCE_SHEET,
        company_id=uuid4(),
        entity_name="Test Co",
        as_of_date=date(2024, 12, 31),
        generated_at="2024-12-31T00:00:00+00:00",
    )


@pytest.fixture
def booked(post_entry):
    """Capital 10000, sales 5000, cost of goods 2000, rent 1000."""
    post_entry("1102", "3101", "10000.00", entry_date=date(2024, 11, 1))
    post_entry("1131", "4101", "5000.00", entry_date=date(2024, 11, 10))
    post_entry("5101", "2101", "2000.00", entry_date=date(2024, 11, 12))
    post_entry("6131", "1102", "1000.00", entry_date=date(2024, 12, 1))


class TestNaturalBalance:
    """Pure helpers."""

    def test_debit_normal(self):
        assert compute_natural_balance(Decimal("100"), Decimal("30"), NormalBalance.DEBIT) == Decimal("70")

    def test_credit_normal(self):
        assert compute_natural_balance(Decimal("100"), Decimal("30"), NormalBalance.CREDIT) == Decimal("-70")

    def test_net_income_ignores_balance_sheet_accounts(self):
        rows = [
            _row("4101", AccountCategory.REVENUE, credit="500"),
            _row("6131", AccountCategory.EXPENSE, debit="200"),
            _row("1102", AccountCategory.ASSET, debit="999"),
        ]

        assert compute_net_income(rows) == Decimal("300")


class TestTrialBalanceReport:
    """Trial balance report lines use natural balances."""

    def test_totals_and_lines(self, reporting, company_id, booked):
        report = reporting.trial_balance(company_id, as_of=date(2024, 12, 31))

        assert report.is_balanced
        assert report.total_debits == Decimal("18000.00")
        by_code = {line.account_code: line for line in report.lines}
        assert by_code["1102"].net_balance == Decimal("9000.00")
        assert by_code["4101"].net_balance == Decimal("5000.00")
        assert by_code["2101"].net_balance == Decimal("2000.00")

    def test_metadata_from_clock(self, reporting, company_id, booked, deterministic_clock):
        report = reporting.trial_balance(company_id)

        assert report.metadata.report_type == ReportType.TRIAL_BALANCE
        assert report.metadata.as_of_date == deterministic_clock.today()
        assert report.metadata.generated_at == deterministic_clock.now().isoformat()

    def test_zero_balances_dropped_by_default(self, session, deterministic_clock, company_id, post_entry):
        post_entry("1102", "3101", "100.00")
        post_entry("1101", "1102", "100.00")

        default = ReportingService(session, clock=deterministic_clock).trial_balance(company_id)
        with_zero = ReportingService(
            session, clock=deterministic_clock, config=ReportingConfig(include_zero_balances=True)
        ).trial_balance(company_id)

        assert "1102" not in {line.account_code for line in default.lines}
        assert "1102" in {line.account_code for line in with_zero.lines}


class TestIncomeStatement:
    """Revenue - cost of sales - operating expenses."""

    def test_sections(self, reporting, company_id, booked):
        report = reporting.income_statement(company_id, date(2024, 11, 1), date(2024, 12, 31))

        assert report.total_revenue == Decimal("5000.00")
        assert report.cost_of_sales.total == Decimal("2000.00")
        assert [l.account_code for l in report.cost_of_sales.lines] == ["5101"]
        assert report.operating_expenses.total == Decimal("1000.00")
        assert report.gross_profit == Decimal("3000.00")
        assert report.net_income == Decimal("2000.00")
        assert report.total_expenses == Decimal("3000.00")

    def test_period_filters_activity(self, reporting, company_id, booked):
        report = reporting.income_statement(company_id, date(2024, 12, 1), date(2024, 12, 31))

        assert report.total_revenue == Decimal("0")
        assert report.net_income == Decimal("-1000.00")
        assert report.metadata.period_start == date(2024, 12, 1)

    def test_start_after_end_rejected(self, reporting, company_id, chart):
        with pytest.raises(ValueError):
            reporting.income_statement(company_id, date(2024, 12, 31), date(2024, 12, 1))

    def test_custom_cost_of_sales_prefix(self, session, deterministic_clock, company_id, booked):
        config = ReportingConfig(cost_of_sales_prefixes=("51", "61"))
        report = ReportingService(session, clock=deterministic_clock, config=config).income_statement(
            company_id, date(2024, 11, 1), date(2024, 12, 31)
        )

        assert report.cost_of_sales.total == Decimal("3000.00")
        assert report.operating_expenses.total == Decimal("0")

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValueError):
            ReportingConfig(cost_of_sales_prefixes=("",))


class TestBalanceSheet:
    """Assets = liabilities + equity + current result."""

    def test_balances_with_net_income_in_equity(self, reporting, company_id, booked):
        report = reporting.balance_sheet(company_id, as_of=date(2024, 12, 31))

        assert report.total_assets == Decimal("14000.00")
        assert report.total_liabilities == Decimal("2000.00")
        assert report.net_income == Decimal("2000.00")
        assert report.equity.total == Decimal("10000.00")
        assert report.total_equity == Decimal("12000.00")
        assert report.is_balanced

    def test_still_balances_after_void(self, reporting, journal, company_id, actor_id, post_entry, booked):
        wrong = post_entry("6131", "1102", "700.00", entry_date=date(2024, 12, 2))
        journal.void(company_id, wrong.id, "Duplicate", actor_id)

        report = reporting.balance_sheet(company_id, as_of=date(2024, 12, 31))

        assert report.is_balanced
        assert report.total_assets == Decimal("14000.00")

    def test_mismatch_raises(self):
        rows = [
            _row("1102", AccountCategory.ASSET, debit="100"),
            _row("3101", AccountCategory.EQUITY, credit="90"),
        ]

        with pytest.raises(BalanceSheetMismatchError) as exc_info:
            build_balance_sheet(rows, ReportingConfig(), _metadata())

        assert exc_info.value.total_assets == "100"
        assert exc_info.value.total_liabilities_and_equity == "90"


class TestAccountLedgerReport:
    """ReportingService delegates account ledgers to the selector."""

    def test_account_ledger(self, reporting, company_id, chart, booked):
        ledger = reporting.account_ledger(company_id, chart["1102"].id)

        assert ledger.closing_balance == Decimal("9000.00")
