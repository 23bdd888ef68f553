"""
Tests for the 81-byte business-tax media file encoder and validator.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.values import InvoiceType
from ledger_kernel.exceptions import FieldOverflowError, MalformedRowError
from tax_filing.domain.media_file import (
    LAYOUT,
    RECORD_LENGTH,
    deduction_code,
    format_period,
    generate_media_file,
    generate_media_record,
    read_field,
    row_to_media_invoice,
    split_records,
    validate_media_file,
)
from tax_filing.domain.importer import parse_rows
from tax_filing.domain.types import FormatCodes, MediaFileOptions, MediaInvoice, TaxCategory


@pytest.fixture
def options():
    return MediaFileOptions(tax_registration_number="123456780", year=2024, bi_month=6)


def _invoice(invoice_type=InvoiceType.OUTPUT, **fields):
    values = dict(
        type=invoice_type,
        invoice_number="AB12345678",
        invoice_date=date(2024, 12, 5),
        counterparty_tax_id="87654321",
        untaxed_amount=Decimal("10000"),
        tax_amount=Decimal("500"),
    )
    values.update(fields)
    return MediaInvoice(**values)


class TestLayout:
    """Field table covers bytes 1-81 without gaps."""

    def test_fields_are_contiguous(self):
        position = 1
        for spec in LAYOUT:
            assert spec.start == position
            position = spec.end + 1
        assert position == RECORD_LENGTH + 1

    def test_format_period(self):
        assert format_period(2024, 6) == "11312"
        assert format_period(2025, 1) == "11402"

    def test_format_period_rejects_bad_bi_month(self):
        with pytest.raises(ValueError):
            format_period(2024, 0)

    @pytest.mark.parametrize(
        "deductible,asset,code",
        [(True, False, "1"), (False, False, "2"), (True, True, "3"), (False, True, "4")],
    )
    def test_deduction_codes(self, deductible, asset, code):
        assert deduction_code(deductible, asset) == code


class TestSalesRecord:
    """OUTPUT invoice: buyer is the counterparty, seller is the company."""

    def test_exact_record(self, options):
        record = generate_media_record(_invoice(), options, 1)

        assert len(record) == RECORD_LENGTH
        assert record == (
            b"35" b"123456780" b"0000001" b"11312" b"87654321" b"12345678"
            b"AB12345678" b"000000010000" b"1" b"0000000500" b" " b" " b" " b"      "
        )

    def test_amount_and_tax_type_positions(self, options):
        record = generate_media_record(_invoice(), options, 1)

        assert record[49:61] == b"000000010000"
        assert record[61:62] == b"1"
        assert read_field(record, "tax_amount") == "0000000500"

    def test_hyphenated_number_cleaned(self, options):
        record = generate_media_record(_invoice(invoice_number="AB-12345678"), options, 1)

        assert read_field(record, "invoice_number") == "AB12345678"

    def test_amounts_rounded_half_up(self, options):
        record = generate_media_record(
            _invoice(untaxed_amount=Decimal("100.50"), tax_amount=Decimal("5.49")), options, 1
        )

        assert read_field(record, "untaxed_amount") == "000000000101"
        assert read_field(record, "tax_amount") == "0000000005"

    def test_credit_note_uses_return_code(self, options):
        record = generate_media_record(_invoice(is_credit_note=True), options, 1)

        assert read_field(record, "format_code") == "33"
        assert read_field(record, "untaxed_amount") == "000000010000"

    def test_zero_rated_sets_customs_flag(self, options):
        record = generate_media_record(
            _invoice(tax_amount=Decimal("0"), tax_category=TaxCategory.ZERO_RATED), options, 1
        )

        assert read_field(record, "tax_type") == "2"
        assert read_field(record, "customs_flag") == "1"

    def test_summary_record(self, options):
        invoice = _invoice(
            is_summary=True, summary_count=22, invoice_end_number="AB12345699", counterparty_tax_id=None
        )

        record = generate_media_record(invoice, options, 3)

        assert read_field(record, "buyer_tax_id") == "12345699"
        assert read_field(record, "seller_tax_id") == "00000022"
        assert read_field(record, "aggregation_flag") == "A"
        assert read_field(record, "sequence_number") == "0000003"

    def test_summary_without_end_number(self, options):
        with pytest.raises(MalformedRowError):
            generate_media_record(_invoice(is_summary=True, summary_count=2), options, 1)


class TestPurchaseRecord:
    """INPUT invoice: buyer is the company, seller is the counterparty."""

    def test_parties_and_deduction(self, options):
        record = generate_media_record(_invoice(InvoiceType.INPUT), options, 1)

        assert read_field(record, "format_code") == "25"
        assert read_field(record, "buyer_tax_id") == "12345678"
        assert read_field(record, "seller_tax_id") == "87654321"
        assert read_field(record, "deduction_code") == "1"

    def test_no_tax_defaults_to_non_deductible(self, options):
        record = generate_media_record(
            _invoice(InvoiceType.INPUT, tax_amount=Decimal("0")), options, 1
        )

        assert read_field(record, "deduction_code") == "2"

    def test_explicit_non_deductible_asset(self, options):
        record = generate_media_record(
            _invoice(InvoiceType.INPUT, is_deductible=False, is_fixed_asset=True), options, 1
        )

        assert read_field(record, "deduction_code") == "4"

    def test_custom_format_codes(self):
        options = MediaFileOptions(
            tax_registration_number="123456780",
            year=2024,
            bi_month=6,
            format_codes=FormatCodes(input_code="21"),
        )

        record = generate_media_record(_invoice(InvoiceType.INPUT), options, 1)

        assert read_field(record, "format_code") == "21"


class TestFieldErrors:
    """Nothing is truncated."""

    def test_amount_overflow(self, options):
        with pytest.raises(FieldOverflowError) as exc_info:
            generate_media_record(_invoice(untaxed_amount=Decimal("1000000000000")), options, 7)

        assert exc_info.value.field == "untaxed_amount"
        assert exc_info.value.width == 12
        assert exc_info.value.row == 7

    def test_text_overflow(self, options):
        with pytest.raises(FieldOverflowError) as exc_info:
            generate_media_record(_invoice(counterparty_tax_id="123456789"), options, 1)

        assert exc_info.value.field == "buyer_tax_id"

    def test_multibyte_text_measured_in_bytes(self, options):
        record = generate_media_record(_invoice(invoice_number="發票12"), options, 1)

        assert len(record) == RECORD_LENGTH
        assert read_field(record, "invoice_number") == "發票12  "

    def test_multibyte_overflow(self, options):
        with pytest.raises(FieldOverflowError):
            generate_media_record(_invoice(invoice_number="發票號碼12"), options, 1)

    def test_missing_number(self, options):
        with pytest.raises(MalformedRowError):
            generate_media_record(_invoice(invoice_number=""), options, 1)

    def test_unknown_format_code(self, options):
        with pytest.raises(MalformedRowError):
            generate_media_record(_invoice(format_code="99"), options, 1)


class TestMediaFileOptions:
    @pytest.mark.parametrize("registration", ["12345678", "1234567890", "12345678A"])
    def test_registration_number(self, registration):
        with pytest.raises(ValueError):
            MediaFileOptions(tax_registration_number=registration, year=2024, bi_month=1)

    @pytest.mark.parametrize("bi_month", [0, 7])
    def test_bi_month(self, bi_month):
        with pytest.raises(ValueError):
            MediaFileOptions(tax_registration_number="123456780", year=2024, bi_month=bi_month)


class TestMediaFile:
    """Concatenated records and totals."""

    def test_sequence_and_totals(self, options):
        invoices = [
            _invoice(InvoiceType.INPUT, invoice_number="AB00000001"),
            _invoice(InvoiceType.OUTPUT, invoice_number="CD00000001"),
            _invoice(InvoiceType.OUTPUT, invoice_number="CD00000002", untaxed_amount=Decimal("200"), tax_amount=Decimal("10")),
        ]

        result = generate_media_file(invoices, options)

        assert len(result.content) == 3 * RECORD_LENGTH
        records = split_records(result.content)
        assert [read_field(r, "sequence_number") for r in records] == ["0000001", "0000002", "0000003"]
        assert (result.input_count, result.output_count) == (1, 2)
        assert result.output_amount == Decimal("10200")
        assert result.output_tax == Decimal("510")
        assert b"\n" not in result.content

    def test_empty(self, options):
        result = generate_media_file([], options)

        assert result.content == b""
        assert result.record_count == 0


class TestValidateMediaFile:
    def test_generated_file_is_valid(self, options):
        content = generate_media_file([_invoice(), _invoice(invoice_number="AB00000002")], options).content

        validation = validate_media_file(content)

        assert validation.valid
        assert validation.record_count == 2

    def test_string_input(self, options):
        content = generate_media_file([_invoice()], options).content.decode("utf-8")

        assert validate_media_file(content).valid

    def test_empty_is_valid(self):
        assert validate_media_file(b"") == validate_media_file("")

    def test_truncated(self, options):
        content = generate_media_file([_invoice()], options).content[:-1]

        validation = validate_media_file(content)

        assert not validation.valid
        assert "not a multiple of 81" in validation.errors[0]

    def test_bad_sequence_and_format_code(self, options):
        first, second = split_records(
            generate_media_file([_invoice(), _invoice(invoice_number="AB00000002")], options).content
        )

        validation = validate_media_file(second + b"99" + first[2:])

        assert not validation.valid
        assert len(validation.errors) == 3


class TestParsedRowRecords:
    """Rows straight from a parsed sheet encode without a round trip through the store."""

    PURCHASE_HEADERS = ["發票號碼", "發票日期", "賣方統一編號", "賣方名稱", "銷售額", "稅額", "可扣抵"]
    SALES_HEADERS = ["發票號碼", "發票日期", "買方統一編號", "買方名稱", "銷售額", "稅額", "課稅別"]

    def _parse(self, headers, values):
        result = parse_rows([dict(zip(headers, values))], headers)
        assert result.errors == ()
        return result.data

    def test_input_row_record(self, options):
        rows = self._parse(
            self.PURCHASE_HEADERS, ["CD-00000001", "2024-12-05", "87654321", "供應商", "3000", "150", None]
        )

        result = generate_media_file([row_to_media_invoice(row) for row in rows], options)

        (record,) = split_records(result.content)
        assert len(result.content) == RECORD_LENGTH
        assert record[49:61] == b"000000003000"
        assert record[61:62] == b"1"
        assert read_field(record, "format_code") == "25"
        assert read_field(record, "buyer_tax_id") == "12345678"
        assert read_field(record, "seller_tax_id") == "87654321"
        assert read_field(record, "invoice_number") == "CD00000001"
        assert read_field(record, "deduction_code") == "1"

    def test_non_deductible_flag_passes_through(self, options):
        (row,) = self._parse(
            self.PURCHASE_HEADERS, ["CD00000002", "2024-12-06", "87654321", "供應商", "1000", "50", False]
        )

        invoice = row_to_media_invoice(row)
        record = generate_media_record(invoice, options, 1)

        assert invoice.is_deductible is False
        assert read_field(record, "deduction_code") == "2"

    def test_credit_note_row(self, options):
        (row,) = self._parse(
            self.PURCHASE_HEADERS, ["CD00000003", "2024-12-07", "87654321", "供應商", "-1000", "-50", None]
        )

        invoice = row_to_media_invoice(row)
        record = generate_media_record(invoice, options, 1)

        assert invoice.is_credit_note
        assert invoice.untaxed_amount == Decimal("1000")
        assert read_field(record, "format_code") == "23"
        assert read_field(record, "untaxed_amount") == "000000001000"

    def test_zero_rated_sales_row(self, options):
        (row,) = self._parse(
            self.SALES_HEADERS, ["EF00000001", "2024-12-08", "87654321", "客戶", "5000", "0", "2"]
        )

        invoice = row_to_media_invoice(row)
        record = generate_media_record(invoice, options, 1)

        assert invoice.tax_category == TaxCategory.ZERO_RATED
        assert invoice.is_deductible is None
        assert read_field(record, "tax_type") == "2"
        assert read_field(record, "customs_flag") == "1"
