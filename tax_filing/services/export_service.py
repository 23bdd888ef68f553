"""
Tax-filing export service: POSTED invoices of a bi-monthly period -> media
file bytes and the Form 401 summary.

Read-only against the store.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_config.schema import TaxFilingDefaults
from ledger_kernel.domain.values import InvoiceStatus, InvoiceType
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_modules.invoices.orm import InvoiceModel
from tax_filing.domain.form401 import build_form_401, calculate_tax_period, category_for_tax_type
from tax_filing.domain.media_file import generate_media_file
from tax_filing.domain.types import (
    Form401,
    FormatCodes,
    InvoiceDetail,
    MediaFileOptions,
    MediaFileResult,
    MediaInvoice,
    TaxCategory,
    TaxPeriod,
)

logger = get_logger("tax_filing.export_service")


def tax_category_for(invoice: InvoiceModel) -> TaxCategory:
    return category_for_tax_type(invoice.tax_type, invoice.untaxed_amount, invoice.tax_amount)


def to_media_invoice(invoice: InvoiceModel) -> MediaInvoice:
    invoice_type = InvoiceType(invoice.type)
    is_deductible = None
    if invoice_type == InvoiceType.INPUT and not invoice.is_deductible:
        is_deductible = False
    return MediaInvoice(
        type=invoice_type,
        invoice_number=invoice.number or "",
        invoice_date=invoice.invoice_date,
        counterparty_tax_id=invoice.counterparty_tax_id,
        untaxed_amount=invoice.untaxed_amount,
        tax_amount=invoice.tax_amount,
        tax_category=tax_category_for(invoice),
        is_deductible=is_deductible,
        is_credit_note=invoice.is_credit_note,
    )


def to_invoice_detail(invoice: InvoiceModel) -> InvoiceDetail:
    return InvoiceDetail(
        number=invoice.number or "",
        invoice_date=invoice.invoice_date,
        counterparty_name=invoice.counterparty_name,
        counterparty_tax_id=invoice.counterparty_tax_id,
        untaxed_amount=invoice.untaxed_amount,
        tax_amount=invoice.tax_amount,
        tax_category=tax_category_for(invoice),
        is_deductible=invoice.is_deductible,
        is_credit_note=invoice.is_credit_note,
    )


class TaxFilingExportService:
    """Builds filing artifacts from POSTED invoices dated inside the period."""

    def __init__(self, session: Session, defaults: TaxFilingDefaults | None = None):
        self._session = session
        self._defaults = defaults or TaxFilingDefaults()

    def posted_invoices(
        self, company_id: UUID, period: TaxPeriod, invoice_type: InvoiceType | None = None
    ) -> list[InvoiceModel]:
        stmt = select(InvoiceModel).where(
            InvoiceModel.company_id == company_id,
            InvoiceModel.status == InvoiceStatus.POSTED.value,
            InvoiceModel.invoice_date >= period.start_date,
            InvoiceModel.invoice_date <= period.end_date,
        )
        if invoice_type is not None:
            stmt = stmt.where(InvoiceModel.type == InvoiceType(invoice_type).value)
        # INPUT sorts before OUTPUT
        stmt = stmt.order_by(InvoiceModel.type, InvoiceModel.invoice_date, InvoiceModel.number)
        return list(self._session.execute(stmt).scalars())

    def _format_codes(self) -> FormatCodes:
        return FormatCodes(
            input_code=self._defaults.input_format_code,
            output_code=self._defaults.output_format_code,
            input_return_code=self._defaults.input_return_format_code,
            output_return_code=self._defaults.output_return_format_code,
        )

    def export_period(
        self,
        company_id: UUID,
        company_tax_id: str,
        year: int,
        bi_month: int,
        branch_code: str | None = None,
    ) -> MediaFileResult:
        branch = branch_code if branch_code is not None else self._defaults.branch_code
        options = MediaFileOptions(
            tax_registration_number=f"{company_tax_id}{branch}",
            year=year,
            bi_month=bi_month,
            format_codes=self._format_codes(),
        )
        period = calculate_tax_period(year, bi_month)

        with LogContext.bind(company_id=str(company_id)):
            invoices = [to_media_invoice(inv) for inv in self.posted_invoices(company_id, period)]
            result = generate_media_file(invoices, options)
            logger.info(
                "tax_filing_period_exported",
                extra={
                    "year": year,
                    "bi_month": bi_month,
                    "record_count": result.record_count,
                    "output_tax": str(result.output_tax),
                    "input_tax": str(result.input_tax),
                },
            )
        return result

    def form_401(
        self,
        company_id: UUID,
        company_tax_id: str,
        company_name: str,
        year: int,
        bi_month: int,
    ) -> Form401:
        period = calculate_tax_period(year, bi_month)
        sales = [
            to_invoice_detail(inv)
            for inv in self.posted_invoices(company_id, period, InvoiceType.OUTPUT)
        ]
        purchases = [
            to_invoice_detail(inv)
            for inv in self.posted_invoices(company_id, period, InvoiceType.INPUT)
        ]
        form = build_form_401(period, company_tax_id, company_name, sales, purchases)
        logger.info(
            "tax_filing_form_401_built",
            extra={
                "company_id": str(company_id),
                "year": year,
                "bi_month": bi_month,
                "net_tax": str(form.net_tax),
                "is_refund": form.is_refund,
            },
        )
        return form
