"""
Tax-filing import service: workbook -> parsed rows -> DRAFT invoices.

Orchestrates the sheet adapter, the pure importer and ``InvoiceService``.
Never commits; each row is created inside its own savepoint so one bad row
does not roll back the others.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import LedgerError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_modules.invoices.orm import InvoiceModel
from ledger_modules.invoices.service import InvoiceService
from tax_filing.adapters.base import SheetSource
from tax_filing.adapters.xlsx_adapter import XlsxSourceAdapter
from tax_filing.domain.importer import parse_rows
from tax_filing.domain.types import ImportMode, ImportResult, TaxFilingRow

logger = get_logger("tax_filing.import_service")


@dataclass(frozen=True)
class RowFailure:
    row: int | None
    number: str
    code: str
    message: str


@dataclass(frozen=True)
class ImportSummary:
    """Outcome of turning parsed rows into DRAFT invoices."""

    created: tuple[UUID, ...] = ()
    skipped: tuple[str, ...] = ()  # numbers already on file
    failed: tuple[RowFailure, ...] = ()

    @property
    def created_count(self) -> int:
        return len(self.created)


class TaxFilingImportService:
    """
    Contract:
        ``parse_workbook`` reads and parses without touching the database.
        ``import_rows`` creates one DRAFT invoice per row whose number is
        not yet on file for the company.

    Non-goals:
        - Does NOT verify or post; the imported invoices enter the normal
          lifecycle as drafts.
    """

    def __init__(
        self,
        session: Session,
        invoices: InvoiceService,
        adapter: SheetSource | None = None,
    ):
        self._session = session
        self._invoices = invoices
        self._adapter = adapter if adapter is not None else XlsxSourceAdapter()

    def parse_workbook(
        self,
        source_path: Path | str,
        mode: ImportMode | None = None,
        options: dict[str, Any] | None = None,
    ) -> ImportResult:
        sheet = self._adapter.read_sheet(Path(source_path), options or {})
        return parse_rows(sheet.rows, sheet.headers, mode=mode, first_row=sheet.first_data_row)

    def _existing_numbers(self, company_id: UUID, numbers: set[str]) -> set[str]:
        if not numbers:
            return set()
        stmt = select(InvoiceModel.number).where(
            InvoiceModel.company_id == company_id,
            InvoiceModel.number.in_(numbers),
        )
        return set(self._session.execute(stmt).scalars())

    def import_rows(
        self,
        company_id: UUID,
        rows: Iterable[TaxFilingRow],
        actor_id: UUID,
    ) -> ImportSummary:
        rows = list(rows)
        existing = self._existing_numbers(company_id, {row.number for row in rows})

        created: list[UUID] = []
        skipped: list[str] = []
        failed: list[RowFailure] = []

        with LogContext.bind(company_id=str(company_id), actor_id=str(actor_id)):
            for row in rows:
                if row.number in existing:
                    skipped.append(row.number)
                    continue
                try:
                    with self._session.begin_nested():
                        invoice = self._invoices.create_invoice(
                            company_id,
                            row.type,
                            row.date,
                            row.untaxed_amount,
                            row.tax_amount,
                            actor_id,
                            total_amount=row.total_amount,
                            number=row.number,
                            counterparty_name=row.counterparty_name,
                            counterparty_tax_id=row.counterparty_tax_id,
                            tax_type=row.tax_type,
                            is_deductible=True if row.is_deductible is None else row.is_deductible,
                            is_credit_note=row.is_credit_note,
                        )
                except LedgerError as exc:
                    logger.warning(
                        "tax_filing_row_import_failed",
                        extra={"row": row.source_row, "number": row.number, "error_code": exc.code},
                    )
                    failed.append(RowFailure(row.source_row, row.number, exc.code, str(exc)))
                    continue
                existing.add(row.number)
                created.append(invoice.id)

            summary = ImportSummary(
                created=tuple(created), skipped=tuple(skipped), failed=tuple(failed)
            )
            logger.info(
                "tax_filing_rows_imported",
                extra={
                    "created_count": len(created),
                    "skipped_count": len(skipped),
                    "failed_count": len(failed),
                },
            )
        return summary
