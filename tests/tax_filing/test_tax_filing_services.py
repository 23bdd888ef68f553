"""
Tests for the tax-filing import and export services against the database.
"""

from datetime import date
from decimal import Decimal

import openpyxl
import pytest

from ledger_kernel.domain.values import InvoiceStatus, InvoiceType
from tax_filing.domain.importer import parse_rows
from tax_filing.domain.media_file import read_field, split_records, validate_media_file
from tax_filing.services.export_service import TaxFilingExportService
from tax_filing.services.import_service import TaxFilingImportService

HEADERS = ["發票號碼", "發票日期", "賣方統一編號", "賣方名稱", "銷售額", "稅額", "總計", "可扣抵"]


def _row(number, untaxed, tax, total, deductible="Y"):
    return dict(zip(HEADERS, [number, "113/11/20", "11223344", "供應商", untaxed, tax, total, deductible]))


@pytest.fixture
def importer(session, invoices):
    return TaxFilingImportService(session, invoices)


@pytest.fixture
def exporter(session, ledger_config):
    return TaxFilingExportService(session, ledger_config.tax_filing)


class TestImportRows:
    """Parsed rows become DRAFT invoices."""

    def test_creates_drafts(self, importer, invoices, company_id, actor_id, chart):
        parsed = parse_rows(
            [_row("AB00000001", "1,000", "50", "1,050"), _row("AB00000002", "-200", "-10", "-210", "N")],
            HEADERS,
        )

        summary = importer.import_rows(company_id, parsed.data, actor_id)

        assert summary.created_count == 2
        first, second = (invoices.get_invoice(company_id, i) for i in summary.created)
        assert first.status == InvoiceStatus.DRAFT
        assert first.type == InvoiceType.INPUT
        assert first.total_amount == Decimal("1050")
        assert first.counterparty_tax_id == "11223344"
        assert second.is_credit_note
        assert second.total_amount == Decimal("210")
        assert not second.is_deductible

    def test_existing_numbers_skipped(self, importer, company_id, actor_id, chart):
        rows = parse_rows([_row("AB00000001", "1000", "50", "1050")], HEADERS).data
        importer.import_rows(company_id, rows, actor_id)

        again = importer.import_rows(company_id, rows, actor_id)

        assert again.created_count == 0
        assert again.skipped == ("AB00000001",)

    def test_bad_row_does_not_block_others(self, importer, invoices, company_id, actor_id, chart):
        rows = parse_rows(
            [_row("AB00000001", "1000", "50", "1040"), _row("AB00000002", "500", "25", "525")],
            HEADERS,
        ).data

        summary = importer.import_rows(company_id, rows, actor_id)

        assert summary.created_count == 1
        (failure,) = summary.failed
        assert (failure.row, failure.number, failure.code) == (2, "AB00000001", "INVALID_INVOICE_AMOUNT")
        assert [i.number for i in invoices.list_invoices(company_id)] == ["AB00000002"]

    def test_parse_workbook(self, importer, tmp_path):
        path = tmp_path / "purchases.xlsx"
        wb = openpyxl.Workbook()
        wb.active.append(HEADERS)
        wb.active.append(["AB00000009", date(2024, 11, 3), "11223344", "供應商", 300, 15, 315, "Y"])
        wb.save(path)

        result = importer.parse_workbook(path)

        assert not result.has_errors
        assert result.data[0].number == "AB00000009"
        assert result.data[0].source_row == 2


class TestExportPeriod:
    """POSTED invoices inside the period only, purchases first."""

    @pytest.fixture
    def booked(self, invoices, company_id, actor_id, chart):
        def create(invoice_type, number, when, untaxed, tax, post=True, **fields):
            invoice = invoices.create_invoice(
                company_id, invoice_type, when, untaxed, tax, actor_id,
                number=number, counterparty_name="Counterparty", **fields,
            )
            if post:
                invoices.verify(company_id, invoice.id, actor_id)
                invoices.post(company_id, invoice.id, actor_id)
            return invoice

        create(InvoiceType.OUTPUT, "AB00000001", date(2024, 12, 5), "10000", "500", counterparty_tax_id="87654321")
        create(InvoiceType.INPUT, "CD00000001", date(2024, 11, 20), "30000", "1500",
               counterparty_tax_id="11223344", description="rent")
        create(InvoiceType.OUTPUT, "AB00000002", date(2024, 12, 6), "4000", "0", tax_type="2")
        create(InvoiceType.OUTPUT, "AB00000003", date(2024, 12, 7), "999", "50", post=False)
        create(InvoiceType.OUTPUT, "AB00000004", date(2024, 10, 31), "999", "50")
        voided = create(InvoiceType.OUTPUT, "AB00000005", date(2024, 12, 8), "999", "50")
        invoices.void(company_id, voided.id, "Cancelled", actor_id)

    def test_records(self, exporter, company_id, booked):
        result = exporter.export_period(company_id, "12345678", 2024, 6)

        assert result.record_count == 3
        assert validate_media_file(result.content).valid
        records = split_records(result.content)
        assert [read_field(r, "invoice_number") for r in records] == ["CD00000001", "AB00000001", "AB00000002"]
        assert [read_field(r, "format_code") for r in records] == ["25", "35", "35"]
        assert read_field(records[0], "tax_registration_number") == "123456780"
        assert read_field(records[0], "seller_tax_id") == "11223344"
        assert read_field(records[2], "tax_type") == "2"
        assert result.output_tax == Decimal("500")
        assert result.input_tax == Decimal("1500")

    def test_branch_code(self, exporter, company_id, booked):
        result = exporter.export_period(company_id, "12345678", 2024, 6, branch_code="3")

        assert read_field(split_records(result.content)[0], "tax_registration_number") == "123456783"

    def test_empty_period(self, exporter, company_id, booked):
        result = exporter.export_period(company_id, "12345678", 2024, 1)

        assert result.content == b""

    def test_invalid_tax_id(self, exporter, company_id):
        with pytest.raises(ValueError):
            exporter.export_period(company_id, "1234", 2024, 6)


class TestForm401Service:
    def test_form_from_posted_invoices(self, exporter, company_id, booked_for_form):
        form = exporter.form_401(company_id, "12345678", "Test Co", 2024, 6)

        assert form.sales_taxable.untaxed_amount == Decimal("10000")
        assert form.sales_zero_rated.untaxed_amount == Decimal("4000")
        assert form.purchases_deductible.tax_amount == Decimal("1500")
        assert form.net_tax == Decimal("1000")
        assert form.is_refund


@pytest.fixture
def booked_for_form(invoices, company_id, actor_id, chart):
    for invoice_type, number, untaxed, tax, tax_type in (
        (InvoiceType.OUTPUT, "AB00000001", "10000", "500", "1"),
        (InvoiceType.OUTPUT, "AB00000002", "4000", "0", "2"),
        (InvoiceType.INPUT, "CD00000001", "30000", "1500", "1"),
    ):
        invoice = invoices.create_invoice(
            company_id, invoice_type, date(2024, 12, 1), untaxed, tax, actor_id,
            number=number, counterparty_name="Counterparty", tax_type=tax_type,
        )
        invoices.verify(company_id, invoice.id, actor_id)
        invoices.post(company_id, invoice.id, actor_id)
