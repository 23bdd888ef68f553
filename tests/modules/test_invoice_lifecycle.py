"""
Tests for the invoice lifecycle: drafts, verification, posting through the
fixed template, voiding and credit notes.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.dtos import EntryStatus, SourceType
from ledger_kernel.domain.values import InvoiceStatus, InvoiceType
from ledger_kernel.exceptions import (
    AlreadyVoidedError,
    DuplicateInvoiceNumberError,
    InvalidAccountError,
    InvalidInvoiceAmountError,
    InvalidTransitionError,
    InvoiceIncompleteError,
    InvoiceNotFoundError,
    MissingReasonError,
    NotDraftError,
    NotPostedError,
)
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.services.account_service import AccountService
from ledger_modules.invoices.workflows import INVOICE_WORKFLOW


@pytest.fixture
def make_invoice(invoices, company_id, actor_id, chart):
    def _make(invoice_type=InvoiceType.OUTPUT, untaxed="10000", tax="500", **fields):
        fields.setdefault("number", f"AB{uuid4().int % 10**8:08d}")
        fields.setdefault("counterparty_name", "Acme Trading")
        fields.setdefault("counterparty_tax_id", "12345678")
        return invoices.create_invoice(
            company_id,
            invoice_type,
            fields.pop("invoice_date", date(2024, 12, 5)),
            untaxed,
            tax,
            actor_id,
            **fields,
        )

    return _make


@pytest.fixture
def post_invoice(invoices, company_id, actor_id):
    def _post(invoice):
        invoices.verify(company_id, invoice.id, actor_id)
        return invoices.post(company_id, invoice.id, actor_id)

    return _post


def _line_map(entry, chart):
    """account code -> (debit, credit)"""
    codes = {account.id: code for code, account in chart.items()}
    return {codes[line.account_id]: (line.debit, line.credit) for line in entry.lines}


class TestCreateInvoice:
    """DRAFT creation and amount checks."""

    def test_total_defaults_to_untaxed_plus_tax(self, make_invoice):
        invoice = make_invoice()

        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.total_amount == Decimal("10500")
        assert invoice.paid_amount == Decimal("0")
        assert invoice.journal_entry_id is None
        assert not invoice.is_credit_note

    def test_total_mismatch_rejected(self, make_invoice):
        with pytest.raises(InvalidInvoiceAmountError):
            make_invoice(total_amount="10400")

    def test_zero_total_rejected(self, make_invoice):
        with pytest.raises(InvalidInvoiceAmountError):
            make_invoice(untaxed="0", tax="0")

    def test_non_numeric_amount_rejected(self, make_invoice):
        with pytest.raises(InvalidInvoiceAmountError):
            make_invoice(untaxed="ten thousand")

    def test_negative_amounts_make_credit_note(self, make_invoice):
        invoice = make_invoice(untaxed="-2000", tax="-100")

        assert invoice.is_credit_note
        assert invoice.untaxed_amount == Decimal("2000")
        assert invoice.tax_amount == Decimal("100")
        assert invoice.total_amount == Decimal("2100")

    def test_duplicate_number_rejected(self, make_invoice):
        make_invoice(number="AB12345678")

        with pytest.raises(DuplicateInvoiceNumberError) as exc_info:
            make_invoice(number="AB12345678")
        assert exc_info.value.number == "AB12345678"

    def test_same_number_allowed_for_other_company(self, invoices, make_invoice, actor_id):
        make_invoice(number="AB12345678")

        other = invoices.create_invoice(
            uuid4(), InvoiceType.OUTPUT, date(2024, 12, 5), "100", "5", actor_id, number="AB12345678"
        )

        assert other.number == "AB12345678"

    def test_get_unknown_invoice(self, invoices, company_id):
        with pytest.raises(InvoiceNotFoundError):
            invoices.get_invoice(company_id, uuid4())


class TestEditDraft:
    """Only drafts are editable or deletable."""

    def test_update_recomputes_total(self, invoices, make_invoice, company_id, actor_id):
        invoice = make_invoice()

        updated = invoices.update_draft_invoice(
            company_id, invoice.id, actor_id, untaxed_amount="20000", tax_amount="1000"
        )

        assert updated.total_amount == Decimal("21000")

    def test_update_unknown_field_rejected(self, invoices, make_invoice, company_id, actor_id):
        invoice = make_invoice()

        with pytest.raises(ValueError):
            invoices.update_draft_invoice(company_id, invoice.id, actor_id, status="POSTED")

    def test_update_posted_rejected(self, invoices, make_invoice, post_invoice, company_id, actor_id):
        invoice = make_invoice()
        post_invoice(invoice)

        with pytest.raises(NotDraftError):
            invoices.update_draft_invoice(company_id, invoice.id, actor_id, description="late edit")

    def test_delete_draft(self, invoices, make_invoice, company_id, actor_id):
        invoice = make_invoice()

        invoices.delete_draft_invoice(company_id, invoice.id, actor_id)

        with pytest.raises(InvoiceNotFoundError):
            invoices.get_invoice(company_id, invoice.id)

    def test_delete_verified_rejected(self, invoices, make_invoice, company_id, actor_id):
        invoice = make_invoice()
        invoices.verify(company_id, invoice.id, actor_id)

        with pytest.raises(NotDraftError):
            invoices.delete_draft_invoice(company_id, invoice.id, actor_id)


class TestVerify:
    """DRAFT -> VERIFIED."""

    def test_verify(self, invoices, make_invoice, company_id, actor_id):
        invoice = make_invoice()

        verified = invoices.verify(company_id, invoice.id, actor_id)

        assert verified.status == InvoiceStatus.VERIFIED
        assert verified.verified_at is not None

    def test_number_required(self, invoices, make_invoice, company_id, actor_id):
        invoice = make_invoice(number=None)

        with pytest.raises(InvoiceIncompleteError) as exc_info:
            invoices.verify(company_id, invoice.id, actor_id)
        assert exc_info.value.field == "number"

    def test_counterparty_required(self, invoices, make_invoice, company_id, actor_id):
        invoice = make_invoice(counterparty_name=None)

        with pytest.raises(InvoiceIncompleteError) as exc_info:
            invoices.verify(company_id, invoice.id, actor_id)
        assert exc_info.value.field == "counterparty_name"

    def test_verify_twice_rejected(self, invoices, make_invoice, company_id, actor_id):
        invoice = make_invoice()
        invoices.verify(company_id, invoice.id, actor_id)

        with pytest.raises(InvalidTransitionError):
            invoices.verify(company_id, invoice.id, actor_id)


class TestPostOutputInvoice:
    """Dr receivable / Cr revenue / Cr output tax."""

    def test_template(self, session, make_invoice, post_invoice, company_id, chart):
        invoice = make_invoice(description="軟體開發服務")

        result = post_invoice(invoice)

        entry = JournalSelector(session).get_entry(company_id, result.journal_entry_id)
        assert entry.status == EntryStatus.POSTED
        assert entry.source_type == SourceType.INVOICE
        assert entry.source_id == invoice.id
        assert entry.entry_date == invoice.invoice_date
        assert _line_map(entry, chart) == {
            "1131": (Decimal("10500"), Decimal("0")),
            "4111": (Decimal("0"), Decimal("10000")),
            "2261": (Decimal("0"), Decimal("500")),
        }
        assert result.classified
        assert result.account_id == chart["4111"].id

    def test_invoice_linked_to_entry(self, invoices, make_invoice, post_invoice, company_id):
        invoice = make_invoice()

        result = post_invoice(invoice)
        posted = invoices.get_invoice(company_id, invoice.id)

        assert posted.status == InvoiceStatus.POSTED
        assert posted.journal_entry_id == result.journal_entry_id
        assert posted.account_id == result.account_id
        assert posted.posted_at is not None
        assert result.journal_number == "2024120001"

    def test_unclassified_output_uses_default_revenue(self, session, make_invoice, post_invoice, company_id, chart):
        result = post_invoice(make_invoice(description="misc"))

        assert result.account_id == chart["4181"].id

    def test_explicit_account_skips_classifier(self, make_invoice, post_invoice, chart):
        invoice = make_invoice(description="軟體開發", account_id=chart["4101"].id)

        result = post_invoice(invoice)

        assert result.account_id == chart["4101"].id
        assert not result.classified

    def test_zero_tax_line_omitted(self, session, make_invoice, post_invoice, company_id, chart):
        result = post_invoice(make_invoice(untaxed="8000", tax="0", tax_type="2"))

        entry = JournalSelector(session).get_entry(company_id, result.journal_entry_id)
        assert set(_line_map(entry, chart)) == {"1131", "4181"}

    def test_post_draft_rejected(self, invoices, make_invoice, company_id, actor_id):
        invoice = make_invoice()

        with pytest.raises(InvalidTransitionError):
            invoices.post(company_id, invoice.id, actor_id)

    def test_post_twice_rejected(self, invoices, make_invoice, post_invoice, company_id, actor_id):
        invoice = make_invoice()
        post_invoice(invoice)

        with pytest.raises(InvalidTransitionError):
            invoices.post(company_id, invoice.id, actor_id)

    def test_trial_balance_after_posting(self, session, make_invoice, post_invoice, company_id):
        post_invoice(make_invoice(description="軟體開發"))

        balance = LedgerSelector(session).trial_balance(company_id)

        assert balance.is_balanced
        assert balance.total_debits == Decimal("10500.00")
        assert balance.row_for("2261").credit_total == Decimal("500.00")

    def test_post_logs_event(self, make_invoice, post_invoice, captured_logs):
        invoice = make_invoice(description="軟體開發")
        post_invoice(invoice)

        records = [r for r in captured_logs() if r["message"] == "invoice_posted"]
        assert len(records) == 1
        assert records[0]["invoice_id"] == str(invoice.id)
        assert records[0]["classified"] is True


class TestPostInputInvoice:
    """Dr expense / Dr input tax / Cr payable."""

    def test_template(self, session, make_invoice, post_invoice, company_id, chart):
        invoice = make_invoice(InvoiceType.INPUT, "30000", "1500", description="十二月租金")

        result = post_invoice(invoice)

        entry = JournalSelector(session).get_entry(company_id, result.journal_entry_id)
        assert _line_map(entry, chart) == {
            "6131": (Decimal("30000"), Decimal("0")),
            "2262": (Decimal("1500"), Decimal("0")),
            "2101": (Decimal("0"), Decimal("31500")),
        }

    def test_missing_posting_account(self, session, make_invoice, post_invoice, company_id, actor_id):
        AccountService(session).set_active(company_id, "2262", False, actor_id)

        with pytest.raises(InvalidAccountError):
            post_invoice(make_invoice(InvoiceType.INPUT, "100", "5"))


class TestCreditNotes:
    """Credit notes post with every side swapped."""

    def test_output_credit_note(self, session, make_invoice, post_invoice, company_id, chart):
        invoice = make_invoice(untaxed="-2000", tax="-100", description="銷售折讓")

        result = post_invoice(invoice)

        entry = JournalSelector(session).get_entry(company_id, result.journal_entry_id)
        assert _line_map(entry, chart) == {
            "1131": (Decimal("0"), Decimal("2100")),
            "4101": (Decimal("2000"), Decimal("0")),
            "2261": (Decimal("100"), Decimal("0")),
        }
        assert entry.description.startswith("Sales credit note invoice")

    def test_input_credit_note(self, session, make_invoice, post_invoice, company_id, chart):
        invoice = make_invoice(InvoiceType.INPUT, "-1000", "-50", description="rent refund")

        result = post_invoice(invoice)

        entry = JournalSelector(session).get_entry(company_id, result.journal_entry_id)
        assert _line_map(entry, chart) == {
            "6131": (Decimal("0"), Decimal("1000")),
            "2262": (Decimal("0"), Decimal("50")),
            "2101": (Decimal("1050"), Decimal("0")),
        }


class TestVoidInvoice:
    """POSTED -> VOIDED through a reversing entry."""

    def test_void_reverses_entry(self, session, invoices, make_invoice, post_invoice, company_id, actor_id):
        invoice = make_invoice(description="軟體開發")
        result = post_invoice(invoice)

        voided = invoices.void(company_id, invoice.id, "Issued in error", actor_id)

        assert voided.status == InvoiceStatus.VOIDED
        assert voided.void_reason == "Issued in error"
        selector = JournalSelector(session)
        assert selector.get_entry(company_id, result.journal_entry_id).status == EntryStatus.VOIDED
        reversal = selector.reversal_of(company_id, result.journal_entry_id)
        assert reversal is not None and reversal.status == EntryStatus.POSTED

    def test_void_restores_balances(self, session, invoices, make_invoice, post_invoice, company_id, actor_id):
        invoice = make_invoice(description="軟體開發")
        post_invoice(invoice)

        invoices.void(company_id, invoice.id, "Issued in error", actor_id)

        balance = LedgerSelector(session).trial_balance(company_id)
        assert balance.is_balanced
        assert balance.rows == ()

    def test_reason_required(self, invoices, make_invoice, post_invoice, company_id, actor_id):
        invoice = make_invoice()
        post_invoice(invoice)

        with pytest.raises(MissingReasonError):
            invoices.void(company_id, invoice.id, "", actor_id)

    def test_void_verified_rejected(self, invoices, make_invoice, company_id, actor_id):
        invoice = make_invoice()
        invoices.verify(company_id, invoice.id, actor_id)

        with pytest.raises(NotPostedError):
            invoices.void(company_id, invoice.id, "Too early", actor_id)

    def test_void_twice_rejected(self, invoices, make_invoice, post_invoice, company_id, actor_id):
        invoice = make_invoice()
        post_invoice(invoice)
        invoices.void(company_id, invoice.id, "First", actor_id)

        with pytest.raises(AlreadyVoidedError):
            invoices.void(company_id, invoice.id, "Second", actor_id)


class TestWorkflow:
    """The declared state machine."""

    @pytest.mark.parametrize(
        "action,state,allowed",
        [
            ("verify", InvoiceStatus.DRAFT, True),
            ("post", InvoiceStatus.VERIFIED, True),
            ("void", InvoiceStatus.POSTED, True),
            ("post", InvoiceStatus.DRAFT, False),
            ("verify", InvoiceStatus.POSTED, False),
            ("void", InvoiceStatus.VOIDED, False),
        ],
    )
    def test_allows(self, action, state, allowed):
        assert INVOICE_WORKFLOW.allows(action, state) is allowed
