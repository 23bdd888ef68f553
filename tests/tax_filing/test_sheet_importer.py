"""
Tests for the pure MOF sheet importer: layout detection, row parsing,
row numbering, duplicates and import validation.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.values import InvoiceType
from tax_filing.domain.importer import (
    detect_import_mode,
    find_duplicates,
    parse_rows,
    validate_import_result,
)
from tax_filing.domain.types import ImportMode

PURCHASE_HEADERS = ["發票號碼", "發票日期", "賣方統一編號", "賣方名稱", "銷售額", "稅額", "總計", "可扣抵"]
SALES_HEADERS = ["發票號碼 *", "發票日期 *", "買方統一編號", "買方名稱", "銷售額", "稅額", "總計"]


def _purchase(number="AB12345678", when="113/12/05", untaxed="10,000", tax="500", total="10,500", **extra):
    row = {
        "發票號碼": number,
        "發票日期": when,
        "賣方統一編號": "12345678",
        "賣方名稱": "雲端科技股份有限公司",
        "銷售額": untaxed,
        "稅額": tax,
        "總計": total,
        "可扣抵": "Y",
    }
    row.update(extra)
    return row


def _sale(number="CD87654321", untaxed=2000, tax=100, total=None):
    return {
        "發票號碼 *": number,
        "發票日期 *": date(2024, 12, 10),
        "買方統一編號": 87654321,
        "買方名稱": "客戶有限公司",
        "銷售額": untaxed,
        "稅額": tax,
        "總計": total,
    }


class TestDetectImportMode:
    """Seller-only columns mean purchases; buyer-only mean sales."""

    def test_purchase(self):
        assert detect_import_mode(PURCHASE_HEADERS) == ImportMode.MOF_PURCHASE

    def test_sales_with_markers(self):
        assert detect_import_mode(SALES_HEADERS) == ImportMode.MOF_SALES

    def test_english_headers(self):
        headers = ["Invoice Number", "Invoice Date", "Seller Tax ID", "Sales Amount", "Tax Amount"]

        assert detect_import_mode(headers) == ImportMode.MOF_PURCHASE

    def test_both_sides_is_standard(self):
        assert detect_import_mode(PURCHASE_HEADERS + ["買方名稱"]) == ImportMode.STANDARD

    def test_neither_side_is_standard(self):
        assert detect_import_mode(["發票號碼", "發票日期", None]) == ImportMode.STANDARD


class TestParsePurchaseRows:
    """MOF purchase layout -> INPUT rows."""

    def test_row_fields(self):
        result = parse_rows([_purchase()], PURCHASE_HEADERS)

        assert result.mode == ImportMode.MOF_PURCHASE
        assert not result.has_errors
        (row,) = result.data
        assert row.type == InvoiceType.INPUT
        assert row.number == "AB12345678"
        assert row.date == date(2024, 12, 5)
        assert (row.untaxed_amount, row.tax_amount, row.total_amount) == (
            Decimal("10000.00"),
            Decimal("500.00"),
            Decimal("10500.00"),
        )
        assert row.counterparty_tax_id == "12345678"
        assert row.counterparty_name == "雲端科技股份有限公司"
        assert row.is_deductible is True
        assert row.source_row == 2

    def test_non_deductible_flag(self):
        result = parse_rows([_purchase(**{"可扣抵": "N"})], PURCHASE_HEADERS)

        assert result.data[0].is_deductible is False

    def test_negative_amounts_are_credit_note(self):
        result = parse_rows([_purchase(untaxed="-1,000", tax="-50", total="-1,050")], PURCHASE_HEADERS)

        assert result.data[0].is_credit_note

    def test_mixed_signs_rejected(self):
        result = parse_rows([_purchase(untaxed="1000", tax="-50", total="950")], PURCHASE_HEADERS)

        assert result.data == ()
        assert result.errors[0].column == "總計"


class TestParseSalesRows:
    """MOF sales layout -> OUTPUT rows."""

    def test_total_defaults_to_sum(self):
        result = parse_rows([_sale()], SALES_HEADERS)

        (row,) = result.data
        assert row.type == InvoiceType.OUTPUT
        assert row.total_amount == Decimal("2100.00")
        assert row.counterparty_tax_id == "87654321"
        assert row.is_deductible is None

    def test_explicit_mode_overrides_detection(self):
        result = parse_rows([_sale()], SALES_HEADERS, mode="mof_sales")

        assert result.mode == ImportMode.MOF_SALES


class TestRowErrors:
    """Bad rows are reported and skipped, never fatal."""

    def test_missing_number_and_bad_date(self):
        result = parse_rows([_purchase(number=None, when="not a date"), _purchase("AB00000002")], PURCHASE_HEADERS)

        assert [row.number for row in result.data] == ["AB00000002"]
        assert {(e.row, e.column) for e in result.errors} == {(2, "發票號碼"), (2, "發票日期")}

    def test_blank_rows_keep_row_numbers(self):
        blank = {header: None for header in PURCHASE_HEADERS}
        rows = [_purchase("AB00000001"), blank, _purchase("AB00000003", when="garbage")]

        result = parse_rows(rows, PURCHASE_HEADERS)

        assert len(result.data) == 1
        assert result.errors[0].row == 4

    def test_first_row_offset(self):
        result = parse_rows([_purchase(when="")], PURCHASE_HEADERS, first_row=5)

        assert result.errors[0].row == 5

    def test_unrecognized_layout(self):
        result = parse_rows([{"A": 1}], ["A", "B"])

        assert result.mode == ImportMode.STANDARD
        assert result.data == ()
        assert result.errors[0].row == 0


class TestDuplicates:
    """Every row sharing a number is dropped and cross-referenced."""

    def test_duplicates_removed_from_data(self):
        rows = [_purchase("AB00000001"), _purchase("AB00000002"), _purchase("AB 0000 0001")]

        result = parse_rows(rows, PURCHASE_HEADERS)

        assert [row.number for row in result.data] == ["AB00000002"]
        assert [e.row for e in result.errors] == [2, 4]
        assert all("rows 2, 4" in e.message for e in result.errors)

    def test_find_duplicates(self):
        rows = parse_rows([_purchase("X1"), _purchase("X2")], PURCHASE_HEADERS).data

        assert find_duplicates(rows + rows[:1]) == {"X1": [2, 2]}


class TestValidateImportResult:
    @pytest.mark.parametrize(
        "rows,headers,ok",
        [
            ([_purchase()], PURCHASE_HEADERS, True),
            ([_purchase(when="")], PURCHASE_HEADERS, False),
            ([], PURCHASE_HEADERS, False),
            ([{"A": 1}], ["A"], False),
        ],
    )
    def test_validation(self, rows, headers, ok):
        valid, message = validate_import_result(parse_rows(rows, headers))

        assert valid is ok
        assert message
