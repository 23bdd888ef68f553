"""
Reporting Service (``ledger_modules.reporting.service``).

Responsibility
--------------
Loads balances through ``LedgerSelector`` and hands them to the pure
builders in ``statements.py``.

Architecture position
---------------------
**Modules layer** -- read-only.  Never writes, never commits.

Failure modes
-------------
* ``TrialBalanceOutOfBalanceError`` from the selector halts every report;
  no partial figures are returned.
* ``BalanceSheetMismatchError`` from the balance sheet builder.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.ledger_selector import AccountLedger, LedgerSelector
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    IncomeStatementReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from ledger_modules.reporting.statements import (
    build_balance_sheet,
    build_income_statement,
    build_trial_balance,
)

logger = get_logger("modules.reporting.service")


class ReportingService:
    """
    Financial statement generation.

    Contract:
        Every public method returns a frozen report DTO.  All methods are
        read-only.

    Non-goals:
        - Does NOT close periods or post closing entries.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig()
        self._ledger = LedgerSelector(session)

    def _metadata(
        self,
        report_type: ReportType,
        company_id: UUID,
        as_of: date,
        start: date | None = None,
        end: date | None = None,
    ) -> ReportMetadata:
        return ReportMetadata(
            report_type=report_type,
            company_id=company_id,
            entity_name=self._config.entity_name,
            as_of_date=as_of,
            generated_at=self._clock.now().isoformat(),
            period_start=start,
            period_end=end,
        )

    def trial_balance(self, company_id: UUID, as_of: date | None = None) -> TrialBalanceReport:
        as_of = as_of or self._clock.today()
        balance = self._ledger.trial_balance(company_id, as_of)
        return build_trial_balance(
            balance.rows,
            self._config,
            self._metadata(ReportType.TRIAL_BALANCE, company_id, as_of),
        )

    def income_statement(self, company_id: UUID, start: date, end: date) -> IncomeStatementReport:
        if start > end:
            raise ValueError(f"start {start} is after end {end}")
        activity = self._ledger.activity(company_id, start, end)
        report = build_income_statement(
            activity.rows,
            self._config,
            self._metadata(ReportType.INCOME_STATEMENT, company_id, end, start, end),
        )
        logger.info(
            "income_statement_generated",
            extra={
                "company_id": str(company_id),
                "period_start": start,
                "period_end": end,
                "net_income": str(report.net_income),
            },
        )
        return report

    def balance_sheet(self, company_id: UUID, as_of: date | None = None) -> BalanceSheetReport:
        as_of = as_of or self._clock.today()
        balance = self._ledger.trial_balance(company_id, as_of)
        report = build_balance_sheet(
            balance.rows,
            self._config,
            self._metadata(ReportType.BALANCE_SHEET, company_id, as_of),
        )
        logger.info(
            "balance_sheet_generated",
            extra={
                "company_id": str(company_id),
                "as_of": as_of,
                "total_assets": str(report.total_assets),
            },
        )
        return report

    def account_ledger(
        self,
        company_id: UUID,
        account_id: UUID,
        start: date | None = None,
        end: date | None = None,
    ) -> AccountLedger:
        return self._ledger.account_ledger(company_id, account_id, start, end)
