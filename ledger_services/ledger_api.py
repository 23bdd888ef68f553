"""
ledger_services.ledger_api -- Upward API surface of the ledger core.

Responsibility:
    One method per operation the excluded UI/API layer may call.  Every
    method takes a ``company_id``, runs inside its own ``session_scope``
    (commit on success, rollback and re-raise on failure) and returns a
    frozen DTO or raises a typed ``LedgerError``.

Architecture position:
    Services -- the only layer that owns transaction boundaries.  It wires
    kernel services, the classifier, module services and tax-filing
    services together; none of those create each other.

Invariants enforced:
    - All-or-nothing: a failure anywhere inside a call leaves no partial
      write (entry without lines, invoice POSTED without an entry).
    - Configuration is read once per ``LedgerAPI`` instance; posting
      account codes, classifier rules and tax-filing defaults come from
      the same ``LedgerConfig``.

Usage:
    from ledger_kernel.db.engine import init_engine_from_url, create_tables
    from ledger_services import LedgerAPI

    init_engine_from_url("postgresql://localhost/ledger")
    create_tables()
    api = LedgerAPI()
    api.setup_company(company_id, actor_id)
    result = api.post_invoice(company_id, invoice_id, actor_id)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterator, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from ledger_config import LedgerConfig, get_active_config
from ledger_config.bridges import build_rule_set
from ledger_engines.classifier import AccountClassifier, CandidateAccount, ClassificationResult
from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import JournalEntryView, LineSpec, SourceType, VoidResult
from ledger_kernel.domain.values import InvoiceStatus, InvoiceType, PaymentMethod
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.selectors.account_selector import AccountSelector, AccountView
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import AccountLedger
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.journal_service import JournalService
from ledger_modules.invoices.config import InvoiceConfig
from ledger_modules.invoices.models import (
    BatchResult,
    Invoice,
    InvoiceSummary,
    PaymentResult,
    PostingResult,
)
from ledger_modules.invoices.service import InvoiceService
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    IncomeStatementReport,
    TrialBalanceReport,
)
from ledger_modules.reporting.service import ReportingService
from tax_filing.domain.importer import parse_rows
from tax_filing.domain.types import (
    Form401,
    ImportMode,
    ImportResult,
    MediaFileResult,
    TaxFilingRow,
)
from tax_filing.services.export_service import TaxFilingExportService
from tax_filing.services.import_service import ImportSummary, TaxFilingImportService

logger = get_logger("services.ledger_api")

T = TypeVar("T")


class LedgerAPI:
    """
    Facade over the ledger core.

    Args:
        session_factory: Sessions for each call.  Defaults to the factory
            set up by ``init_engine_from_url``.
        clock: Time source for posting timestamps and overdue checks.
        config: Ledger configuration; defaults to ``get_active_config()``.
        reporting_config: Statement grouping and entity name.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
        reporting_config: ReportingConfig | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._classifier = AccountClassifier(build_rule_set(self._config))
        self._invoice_config = InvoiceConfig.from_posting(self._config.posting)
        self._reporting_config = reporting_config or ReportingConfig()

    @property
    def config(self) -> LedgerConfig:
        return self._config

    # -------------------------------------------------------------------------
    # Wiring
    # -------------------------------------------------------------------------

    @contextmanager
    def _scope(self, company_id: UUID, actor_id: UUID | None = None) -> Iterator[Session]:
        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            with session_scope(self._session_factory) as session:
                yield session

    def _invoices(self, session: Session) -> InvoiceService:
        return InvoiceService(
            session, self._classifier, clock=self._clock, config=self._invoice_config
        )

    def _run(
        self,
        company_id: UUID,
        actor_id: UUID | None,
        work: Callable[[Session], T],
    ) -> T:
        with self._scope(company_id, actor_id) as session:
            return work(session)

    # -------------------------------------------------------------------------
    # Chart of accounts
    # -------------------------------------------------------------------------

    def setup_company(self, company_id: UUID, actor_id: UUID) -> int:
        """Seed the configured default chart for a company.  Idempotent per code."""
        return self._run(
            company_id,
            actor_id,
            lambda s: AccountService(s).seed_chart(company_id, self._config.accounts, actor_id),
        )

    def add_account(
        self, company_id: UUID, code: str, name: str, category: str, actor_id: UUID
    ) -> AccountView:
        def work(session: Session) -> AccountView:
            account = AccountService(session).add_account(company_id, code, name, category, actor_id)
            return AccountView.from_model(account)

        return self._run(company_id, actor_id, work)

    def list_accounts(self, company_id: UUID) -> list[AccountView]:
        return self._run(company_id, None, lambda s: AccountSelector(s).active_accounts(company_id))

    # -------------------------------------------------------------------------
    # Classifier
    # -------------------------------------------------------------------------

    def classify(
        self,
        company_id: UUID,
        invoice_type: InvoiceType | str,
        description: str | None,
        counterparty_name: str | None = None,
    ) -> ClassificationResult | None:
        """Suggest a revenue/expense account among the company's active accounts."""

        def work(session: Session) -> ClassificationResult | None:
            candidates = [
                CandidateAccount(id=a.id, code=a.code, name=a.name)
                for a in AccountSelector(session).active_accounts(company_id)
            ]
            return self._classifier.classify(
                invoice_type=invoice_type,
                description=description,
                counterparty_name=counterparty_name,
                accounts=candidates,
            )

        return self._run(company_id, None, work)

    # -------------------------------------------------------------------------
    # Journal
    # -------------------------------------------------------------------------

    def create_draft_entry(
        self,
        company_id: UUID,
        entry_date: date,
        description: str,
        lines: Sequence[LineSpec],
        actor_id: UUID,
    ) -> JournalEntryView:
        return self._run(
            company_id,
            actor_id,
            lambda s: JournalService(s, clock=self._clock).create_draft(
                company_id=company_id,
                entry_date=entry_date,
                description=description,
                lines=lines,
                actor_id=actor_id,
                source_type=SourceType.MANUAL,
            ),
        )

    def post_entry(self, company_id: UUID, entry_id: UUID, actor_id: UUID) -> JournalEntryView:
        return self._run(
            company_id,
            actor_id,
            lambda s: JournalService(s, clock=self._clock).post(company_id, entry_id, actor_id),
        )

    def void_entry(
        self, company_id: UUID, entry_id: UUID, reason: str, actor_id: UUID
    ) -> VoidResult:
        return self._run(
            company_id,
            actor_id,
            lambda s: JournalService(s, clock=self._clock).void(company_id, entry_id, reason, actor_id),
        )

    def delete_draft_entry(self, company_id: UUID, entry_id: UUID, actor_id: UUID) -> None:
        self._run(
            company_id,
            actor_id,
            lambda s: JournalService(s, clock=self._clock).delete_draft(company_id, entry_id, actor_id),
        )

    def get_entry(self, company_id: UUID, entry_id: UUID) -> JournalEntryView:
        return self._run(company_id, None, lambda s: JournalSelector(s).get_entry(company_id, entry_id))

    def list_entries(
        self,
        company_id: UUID,
        status: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[JournalEntryView]:
        return self._run(
            company_id,
            None,
            lambda s: JournalSelector(s).list_entries(company_id, status=status, start=start, end=end),
        )

    # -------------------------------------------------------------------------
    # Invoices
    # -------------------------------------------------------------------------

    def create_invoice(self, company_id: UUID, actor_id: UUID, **fields: Any) -> Invoice:
        """Create a DRAFT invoice; ``fields`` are ``InvoiceService.create_invoice`` keywords."""
        return self._run(
            company_id,
            actor_id,
            lambda s: self._invoices(s).create_invoice(company_id, actor_id=actor_id, **fields),
        )

    def update_invoice(
        self, company_id: UUID, invoice_id: UUID, actor_id: UUID, **changes: Any
    ) -> Invoice:
        return self._run(
            company_id,
            actor_id,
            lambda s: self._invoices(s).update_draft_invoice(company_id, invoice_id, actor_id, **changes),
        )

    def delete_invoice(self, company_id: UUID, invoice_id: UUID, actor_id: UUID) -> None:
        self._run(
            company_id,
            actor_id,
            lambda s: self._invoices(s).delete_draft_invoice(company_id, invoice_id, actor_id),
        )

    def get_invoice(self, company_id: UUID, invoice_id: UUID) -> Invoice:
        return self._run(company_id, None, lambda s: self._invoices(s).get_invoice(company_id, invoice_id))

    def list_invoices(
        self,
        company_id: UUID,
        invoice_type: InvoiceType | None = None,
        status: InvoiceStatus | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Invoice]:
        return self._run(
            company_id,
            None,
            lambda s: self._invoices(s).list_invoices(company_id, invoice_type, status, start, end),
        )

    def verify_invoice(self, company_id: UUID, invoice_id: UUID, actor_id: UUID) -> Invoice:
        return self._run(
            company_id, actor_id, lambda s: self._invoices(s).verify(company_id, invoice_id, actor_id)
        )

    def post_invoice(self, company_id: UUID, invoice_id: UUID, actor_id: UUID) -> PostingResult:
        return self._run(
            company_id, actor_id, lambda s: self._invoices(s).post(company_id, invoice_id, actor_id)
        )

    def void_invoice(
        self, company_id: UUID, invoice_id: UUID, reason: str, actor_id: UUID
    ) -> Invoice:
        return self._run(
            company_id,
            actor_id,
            lambda s: self._invoices(s).void(company_id, invoice_id, reason, actor_id),
        )

    def record_payment(
        self,
        company_id: UUID,
        invoice_id: UUID,
        amount: Decimal | int | str,
        payment_date: date,
        actor_id: UUID,
        method: PaymentMethod | str = PaymentMethod.TRANSFER,
        reference: str | None = None,
    ) -> PaymentResult:
        return self._run(
            company_id,
            actor_id,
            lambda s: self._invoices(s).record_payment(
                company_id, invoice_id, amount, payment_date, actor_id, method=method, reference=reference
            ),
        )

    def mark_overdue(self, company_id: UUID) -> int:
        return self._run(company_id, None, lambda s: self._invoices(s).mark_overdue(company_id))

    def batch_verify_invoices(
        self, company_id: UUID, invoice_ids: Sequence[UUID], actor_id: UUID
    ) -> BatchResult:
        return self._run(
            company_id,
            actor_id,
            lambda s: self._invoices(s).batch_verify(company_id, invoice_ids, actor_id),
        )

    def batch_post_invoices(
        self, company_id: UUID, invoice_ids: Sequence[UUID], actor_id: UUID
    ) -> BatchResult:
        return self._run(
            company_id,
            actor_id,
            lambda s: self._invoices(s).batch_post(company_id, invoice_ids, actor_id),
        )

    def invoice_summary(self, company_id: UUID) -> InvoiceSummary:
        return self._run(company_id, None, lambda s: self._invoices(s).invoice_summary(company_id))

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def _reporting(self, session: Session) -> ReportingService:
        return ReportingService(session, clock=self._clock, config=self._reporting_config)

    def trial_balance(self, company_id: UUID, as_of: date | None = None) -> TrialBalanceReport:
        return self._run(company_id, None, lambda s: self._reporting(s).trial_balance(company_id, as_of))

    def income_statement(self, company_id: UUID, start: date, end: date) -> IncomeStatementReport:
        return self._run(
            company_id, None, lambda s: self._reporting(s).income_statement(company_id, start, end)
        )

    def balance_sheet(self, company_id: UUID, as_of: date | None = None) -> BalanceSheetReport:
        return self._run(company_id, None, lambda s: self._reporting(s).balance_sheet(company_id, as_of))

    def account_ledger(
        self,
        company_id: UUID,
        account_id: UUID,
        start: date | None = None,
        end: date | None = None,
    ) -> AccountLedger:
        return self._run(
            company_id,
            None,
            lambda s: self._reporting(s).account_ledger(company_id, account_id, start, end),
        )

    # -------------------------------------------------------------------------
    # Tax filing
    # -------------------------------------------------------------------------

    def import_tax_filing_rows(
        self,
        company_id: UUID,
        rows: Sequence[dict[str, Any]],
        headers: Sequence[str],
        mode: ImportMode | None = None,
    ) -> ImportResult:
        """Parse sheet rows.  Pure: nothing is written."""
        with LogContext.bind(company_id=company_id):
            return parse_rows(rows, headers, mode=mode)

    def create_invoices_from_rows(
        self, company_id: UUID, rows: Iterable[TaxFilingRow], actor_id: UUID
    ) -> ImportSummary:
        """Create DRAFT invoices for parsed rows whose numbers are not yet on file."""
        return self._run(
            company_id,
            actor_id,
            lambda s: TaxFilingImportService(s, self._invoices(s)).import_rows(company_id, rows, actor_id),
        )

    def import_tax_filing_workbook(
        self,
        company_id: UUID,
        source_path: Path | str,
        actor_id: UUID,
        mode: ImportMode | None = None,
        partial: bool = False,
    ) -> tuple[ImportResult, ImportSummary | None]:
        """
        Read, parse and import a workbook.  Rows are imported only when the
        sheet parsed cleanly, or when ``partial`` accepts the valid subset.
        """

        def work(session: Session) -> tuple[ImportResult, ImportSummary | None]:
            service = TaxFilingImportService(session, self._invoices(session))
            result = service.parse_workbook(source_path, mode=mode)
            if result.mode == ImportMode.STANDARD or (result.has_errors and not partial):
                logger.info(
                    "tax_filing_workbook_not_imported",
                    extra={"mode": result.mode.value, "error_count": len(result.errors)},
                )
                return result, None
            return result, service.import_rows(company_id, result.data, actor_id)

        return self._run(company_id, actor_id, work)

    def export_tax_filing_file(
        self,
        company_id: UUID,
        company_tax_id: str,
        year: int,
        bi_month: int,
        branch_code: str | None = None,
    ) -> MediaFileResult:
        return self._run(
            company_id,
            None,
            lambda s: TaxFilingExportService(s, self._config.tax_filing).export_period(
                company_id, company_tax_id, year, bi_month, branch_code
            ),
        )

    def form_401(
        self,
        company_id: UUID,
        company_tax_id: str,
        company_name: str,
        year: int,
        bi_month: int,
    ) -> Form401:
        return self._run(
            company_id,
            None,
            lambda s: TaxFilingExportService(s, self._config.tax_filing).form_401(
                company_id, company_tax_id, company_name, year, bi_month
            ),
        )
