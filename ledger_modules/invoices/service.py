"""
Invoice Lifecycle Service (``ledger_modules.invoices.service``).

Responsibility
--------------
Owns the invoice state machine DRAFT -> VERIFIED -> POSTED -> VOIDED and
turns a verified invoice into a balanced journal entry through the
kernel ``JournalService``.  Also tracks payments against invoices.

Architecture position
---------------------
**Modules layer** -- thin glue.  Composes the pure ``AccountClassifier``
(account suggestion) and the kernel ``JournalService`` (persistence of
entries).  Never commits: ``LedgerAPI`` owns the transaction.

Invariants enforced
-------------------
* Forward-only transitions, checked against ``INVOICE_WORKFLOW``; any
  other transition raises before a row is touched.
* ``total_amount == untaxed_amount + tax_amount`` on every write.
* Posting is atomic: the journal entry, its lines and the invoice link
  are flushed in one transaction; a failure leaves none of them.
* ``journal_entry_id`` is set exactly when the invoice is POSTED.
* Row locks on the invoice serialize concurrent post/void attempts.

Failure modes
-------------
* ``InvalidTransitionError`` / ``NotPostedError`` / ``AlreadyVoidedError``
  for a transition from the wrong status.
* ``InvalidAccountError`` when no revenue/expense account can be
  resolved or a posting account code is missing from the chart.
* ``UnbalancedPostingError`` if the built template does not balance.
* ``InvalidPaymentError`` for a non-positive, excessive or void payment.

Audit relevance
---------------
invoice_created, invoice_verified, invoice_posted, invoice_voided,
invoice_payment_recorded are logged at INFO with invoice and entry ids.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_engines.classifier import AccountClassifier, CandidateAccount
from ledger_kernel.db.types import ZERO, InvalidAmountError, to_money
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import LineSpec, SourceType
from ledger_kernel.domain.values import (
    InvoiceStatus,
    InvoiceType,
    PaymentMethod,
    PaymentStatus,
)
from ledger_kernel.exceptions import (
    AlreadyVoidedError,
    DuplicateInvoiceNumberError,
    InvalidAccountError,
    InvalidInvoiceAmountError,
    InvalidPaymentError,
    InvalidTransitionError,
    InvoiceIncompleteError,
    InvoiceNotFoundError,
    LedgerError,
    MissingReasonError,
    NotDraftError,
    NotPostedError,
    UnbalancedPostingError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.journal_service import JournalService
from ledger_modules.invoices.config import InvoiceConfig
from ledger_modules.invoices.models import (
    BatchFailure,
    BatchResult,
    Invoice,
    InvoicePayment,
    InvoiceSummary,
    PaymentResult,
    PostingResult,
)
from ledger_modules.invoices.orm import InvoiceModel, InvoicePaymentModel
from ledger_modules.invoices.workflows import INVOICE_WORKFLOW

logger = get_logger("modules.invoices.service")

_EDITABLE_FIELDS = frozenset({
    "number",
    "invoice_date",
    "due_date",
    "untaxed_amount",
    "tax_amount",
    "total_amount",
    "counterparty_name",
    "counterparty_tax_id",
    "description",
    "account_id",
    "tax_type",
    "is_deductible",
    "is_credit_note",
})


def derive_payment_status(
    paid: Decimal,
    total: Decimal,
    due_date: date | None,
    today: date,
) -> PaymentStatus:
    """PAID, then PARTIAL, then OVERDUE (past due, nothing paid), else UNPAID."""
    if paid >= total:
        return PaymentStatus.PAID
    if paid > ZERO:
        return PaymentStatus.PARTIAL
    if due_date is not None and due_date < today:
        return PaymentStatus.OVERDUE
    return PaymentStatus.UNPAID


def check_amounts(
    untaxed: Decimal, tax: Decimal, total: Decimal, is_credit_note: bool = False
) -> None:
    """Raise InvalidInvoiceAmountError unless total == untaxed + tax and total > 0."""
    if total != untaxed + tax:
        raise InvalidInvoiceAmountError(
            "total must equal untaxed + tax", str(untaxed), str(tax), str(total)
        )
    if untaxed < ZERO or tax < ZERO:
        raise InvalidInvoiceAmountError(
            "amounts must not be negative", str(untaxed), str(tax), str(total)
        )
    if total <= ZERO and not is_credit_note:
        raise InvalidInvoiceAmountError(
            "total must be positive", str(untaxed), str(tax), str(total)
        )


class InvoiceService(BaseService[InvoiceModel]):
    """
    Invoice Lifecycle Controller.

    Contract:
        Every public method takes ``company_id`` first.  Returns frozen
        DTOs from ``models.py``.

    Guarantees:
        - ``post`` builds the fixed template (receivable/revenue/output tax
          or expense/input tax/payable, sides swapped for credit notes),
          verifies it balances, then creates and posts the entry.
        - ``void`` delegates to ``JournalService.void`` on the linked entry.

    Non-goals:
        - Does NOT post cash receipts; payments only update the invoice.
        - Does NOT commit.
    """

    def __init__(
        self,
        session: Session,
        classifier: AccountClassifier,
        clock: Clock | None = None,
        config: InvoiceConfig | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._classifier = classifier
        self._config = config or InvoiceConfig()
        self._journal = JournalService(session, clock=self._clock)
        self._accounts = AccountSelector(session)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _load(self, company_id: UUID, invoice_id: UUID, lock: bool = False) -> InvoiceModel:
        stmt = select(InvoiceModel).where(
            InvoiceModel.id == invoice_id,
            InvoiceModel.company_id == company_id,
        )
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        invoice = self.session.execute(stmt).scalar_one_or_none()
        if invoice is None:
            raise InvoiceNotFoundError(str(invoice_id))
        return invoice

    def get_invoice(self, company_id: UUID, invoice_id: UUID) -> Invoice:
        return self._load(company_id, invoice_id).to_dto()

    def list_invoices(
        self,
        company_id: UUID,
        invoice_type: InvoiceType | None = None,
        status: InvoiceStatus | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Invoice]:
        stmt = select(InvoiceModel).where(InvoiceModel.company_id == company_id)
        if invoice_type is not None:
            stmt = stmt.where(InvoiceModel.type == InvoiceType(invoice_type).value)
        if status is not None:
            stmt = stmt.where(InvoiceModel.status == InvoiceStatus(status).value)
        if start is not None:
            stmt = stmt.where(InvoiceModel.invoice_date >= start)
        if end is not None:
            stmt = stmt.where(InvoiceModel.invoice_date <= end)
        stmt = stmt.order_by(InvoiceModel.invoice_date, InvoiceModel.number)
        return [row.to_dto() for row in self.session.execute(stmt).scalars()]

    def payments_for(self, company_id: UUID, invoice_id: UUID) -> list[InvoicePayment]:
        invoice = self._load(company_id, invoice_id)
        return [payment.to_dto() for payment in invoice.payments]

    def _require_transition(self, invoice: InvoiceModel, action: str) -> None:
        status = InvoiceStatus(invoice.status)
        if not INVOICE_WORKFLOW.allows(action, status):
            raise InvalidTransitionError(str(invoice.id), status.value, action)

    def _check_number_free(
        self, company_id: UUID, number: str, exclude_id: UUID | None = None
    ) -> None:
        stmt = select(InvoiceModel.id).where(
            InvoiceModel.company_id == company_id,
            InvoiceModel.number == number,
        )
        if exclude_id is not None:
            stmt = stmt.where(InvoiceModel.id != exclude_id)
        if self.session.execute(stmt).first() is not None:
            raise DuplicateInvoiceNumberError(number)

    @staticmethod
    def _money(value, label: str) -> Decimal:
        try:
            return to_money(value)
        except InvalidAmountError as exc:
            raise InvalidInvoiceAmountError(
                f"{label} is not a valid amount", str(value), "", ""
            ) from exc

    # -------------------------------------------------------------------------
    # Draft management
    # -------------------------------------------------------------------------

    def create_invoice(
        self,
        company_id: UUID,
        invoice_type: InvoiceType | str,
        invoice_date: date,
        untaxed_amount: Decimal | int | str,
        tax_amount: Decimal | int | str,
        actor_id: UUID,
        total_amount: Decimal | int | str | None = None,
        number: str | None = None,
        counterparty_name: str | None = None,
        counterparty_tax_id: str | None = None,
        description: str | None = None,
        account_id: UUID | None = None,
        due_date: date | None = None,
        tax_type: str = "1",
        is_deductible: bool = True,
        is_credit_note: bool = False,
    ) -> Invoice:
        """
        Create a DRAFT invoice.

        ``total_amount`` defaults to ``untaxed + tax``.  Credit notes may be
        given with negative amounts; they are stored as absolute values
        with ``is_credit_note`` set.
        """
        self._require_company(company_id, "create_invoice")
        invoice_type = InvoiceType(invoice_type)

        untaxed = self._money(untaxed_amount, "untaxed_amount")
        tax = self._money(tax_amount, "tax_amount")
        total = untaxed + tax if total_amount is None else self._money(total_amount, "total_amount")
        if is_credit_note or total < ZERO:
            is_credit_note = True
            untaxed, tax, total = abs(untaxed), abs(tax), abs(total)
        check_amounts(untaxed, tax, total, is_credit_note)

        if number:
            self._check_number_free(company_id, number)

        invoice = InvoiceModel(
            company_id=company_id,
            type=invoice_type.value,
            number=number or None,
            invoice_date=invoice_date,
            due_date=due_date,
            untaxed_amount=untaxed,
            tax_amount=tax,
            total_amount=total,
            counterparty_name=counterparty_name,
            counterparty_tax_id=counterparty_tax_id,
            description=description,
            account_id=account_id,
            status=InvoiceStatus.DRAFT.value,
            paid_amount=ZERO,
            payment_status=derive_payment_status(
                ZERO, total, due_date, self._clock.today()
            ).value,
            tax_type=tax_type,
            is_deductible=is_deductible,
            is_credit_note=is_credit_note,
            created_by_id=actor_id,
        )
        self.session.add(invoice)
        self.session.flush()

        logger.info(
            "invoice_created",
            extra={
                "invoice_id": str(invoice.id),
                "invoice_type": invoice_type.value,
                "number": number,
                "total": str(total),
            },
        )
        return invoice.to_dto()

    def update_draft_invoice(
        self, company_id: UUID, invoice_id: UUID, actor_id: UUID, **changes
    ) -> Invoice:
        """Edit a DRAFT invoice.  Unknown fields raise ValueError."""
        self._require_company(company_id, "update_draft_invoice")
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {sorted(unknown)}")

        invoice = self._load(company_id, invoice_id, lock=True)
        if InvoiceStatus(invoice.status) != InvoiceStatus.DRAFT:
            raise NotDraftError(str(invoice_id), invoice.status, "update")

        for name in ("untaxed_amount", "tax_amount", "total_amount"):
            if name in changes:
                changes[name] = self._money(changes[name], name)
        if changes.get("number"):
            self._check_number_free(company_id, changes["number"], exclude_id=invoice.id)

        for name, value in changes.items():
            setattr(invoice, name, value)
        if "total_amount" not in changes and (
            "untaxed_amount" in changes or "tax_amount" in changes
        ):
            invoice.total_amount = invoice.untaxed_amount + invoice.tax_amount
        check_amounts(
            invoice.untaxed_amount,
            invoice.tax_amount,
            invoice.total_amount,
            invoice.is_credit_note,
        )
        invoice.payment_status = derive_payment_status(
            invoice.paid_amount, invoice.total_amount, invoice.due_date, self._clock.today()
        ).value
        invoice.updated_by_id = actor_id
        self.session.flush()
        return invoice.to_dto()

    def delete_draft_invoice(self, company_id: UUID, invoice_id: UUID, actor_id: UUID) -> None:
        self._require_company(company_id, "delete_draft_invoice")
        invoice = self._load(company_id, invoice_id, lock=True)
        if InvoiceStatus(invoice.status) != InvoiceStatus.DRAFT:
            raise NotDraftError(str(invoice_id), invoice.status, "delete")
        self.session.delete(invoice)
        self.session.flush()
        logger.info(
            "invoice_deleted",
            extra={"invoice_id": str(invoice_id), "actor_id": str(actor_id)},
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def verify(self, company_id: UUID, invoice_id: UUID, actor_id: UUID) -> Invoice:
        """DRAFT -> VERIFIED.  Requires a number and a counterparty name."""
        self._require_company(company_id, "verify")
        with LogContext.bind(invoice_id=invoice_id):
            invoice = self._load(company_id, invoice_id, lock=True)
            self._require_transition(invoice, "verify")
            if not invoice.number:
                raise InvoiceIncompleteError(str(invoice_id), "number")
            if not invoice.counterparty_name:
                raise InvoiceIncompleteError(str(invoice_id), "counterparty_name")

            invoice.status = InvoiceStatus.VERIFIED.value
            invoice.verified_at = self._clock.now()
            invoice.verified_by_id = actor_id
            invoice.updated_by_id = actor_id
            self.session.flush()

            logger.info("invoice_verified", extra={"number": invoice.number})
            return invoice.to_dto()

    def post(self, company_id: UUID, invoice_id: UUID, actor_id: UUID) -> PostingResult:
        """
        VERIFIED -> POSTED, writing a POSTED journal entry.

        Raises:
            InvalidTransitionError: Invoice is not VERIFIED.
            InvalidAccountError: No usable revenue/expense or posting account.
            UnbalancedPostingError: Built lines do not balance.
        """
        self._require_company(company_id, "post")
        with LogContext.bind(invoice_id=invoice_id):
            invoice = self._load(company_id, invoice_id, lock=True)
            self._require_transition(invoice, "post")

            account_id, classified = self._resolve_account(company_id, invoice)
            lines = self._build_lines(company_id, invoice, account_id)

            debits = sum((line.debit for line in lines), ZERO)
            credits = sum((line.credit for line in lines), ZERO)
            if debits != credits:
                logger.critical(
                    "invoice_posting_unbalanced",
                    extra={"debits": str(debits), "credits": str(credits)},
                )
                raise UnbalancedPostingError(str(invoice_id), str(debits), str(credits))

            draft = self._journal.create_draft(
                company_id=company_id,
                entry_date=invoice.invoice_date,
                description=self._entry_description(invoice),
                lines=lines,
                actor_id=actor_id,
                source_type=SourceType.INVOICE,
                source_id=invoice.id,
            )
            entry = self._journal.post(company_id, draft.id, actor_id)

            invoice.account_id = account_id
            invoice.journal_entry_id = entry.id
            invoice.status = InvoiceStatus.POSTED.value
            invoice.posted_at = self._clock.now()
            invoice.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "invoice_posted",
                extra={
                    "number": invoice.number,
                    "entry_id": str(entry.id),
                    "journal_number": entry.journal_number,
                    "total": str(invoice.total_amount),
                    "classified": classified,
                },
            )
            return PostingResult(
                invoice_id=invoice.id,
                journal_entry_id=entry.id,
                journal_number=entry.journal_number,
                account_id=account_id,
                classified=classified,
            )

    def void(
        self, company_id: UUID, invoice_id: UUID, reason: str, actor_id: UUID
    ) -> Invoice:
        """POSTED -> VOIDED by reversing the linked journal entry."""
        self._require_company(company_id, "void")
        if reason is None or not reason.strip():
            raise MissingReasonError(str(invoice_id))

        with LogContext.bind(invoice_id=invoice_id):
            invoice = self._load(company_id, invoice_id, lock=True)
            status = InvoiceStatus(invoice.status)
            if status == InvoiceStatus.VOIDED:
                raise AlreadyVoidedError(str(invoice_id), status.value, "void")
            if not INVOICE_WORKFLOW.allows("void", status):
                raise NotPostedError(str(invoice_id), status.value, "void")

            result = self._journal.void(
                company_id, invoice.journal_entry_id, reason, actor_id, from_invoice=True
            )

            invoice.status = InvoiceStatus.VOIDED.value
            invoice.voided_at = self._clock.now()
            invoice.void_reason = reason.strip()
            invoice.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "invoice_voided",
                extra={
                    "number": invoice.number,
                    "entry_id": str(result.original.id),
                    "reversal_entry_id": str(result.reversal.id),
                },
            )
            return invoice.to_dto()

    # -------------------------------------------------------------------------
    # Posting template
    # -------------------------------------------------------------------------

    def _resolve_account(self, company_id: UUID, invoice: InvoiceModel) -> tuple[UUID, bool]:
        if invoice.account_id is not None:
            return invoice.account_id, False

        candidates = [
            CandidateAccount(id=a.id, code=a.code, name=a.name)
            for a in self._accounts.active_accounts(company_id)
        ]
        suggestion = self._classifier.classify(
            invoice_type=InvoiceType(invoice.type),
            description=invoice.description,
            counterparty_name=invoice.counterparty_name,
            accounts=candidates,
        )
        if suggestion is None:
            raise InvalidAccountError(str(invoice.id), "no account set and none could be classified")
        logger.info(
            "invoice_account_classified",
            extra={
                "account_code": suggestion.account_code,
                "confidence": suggestion.confidence,
            },
        )
        return suggestion.account_id, True

    def _account_id_for(self, company_id: UUID, code: str) -> UUID:
        account_id = self.session.execute(
            select(Account.id).where(
                Account.company_id == company_id,
                Account.code == code,
            )
        ).scalar_one_or_none()
        if account_id is None:
            raise InvalidAccountError(code, "posting account missing from chart")
        return account_id

    def _build_lines(
        self, company_id: UUID, invoice: InvoiceModel, account_id: UUID
    ) -> list[LineSpec]:
        untaxed = invoice.untaxed_amount
        tax = invoice.tax_amount
        total = invoice.total_amount
        cfg = self._config

        # (account_id, amount, is_debit) in the normal direction
        if InvoiceType(invoice.type) == InvoiceType.OUTPUT:
            legs = [
                (self._account_id_for(company_id, cfg.receivable_code), total, True),
                (account_id, untaxed, False),
                (self._account_id_for(company_id, cfg.output_tax_code), tax, False),
            ]
        else:
            legs = [
                (account_id, untaxed, True),
                (self._account_id_for(company_id, cfg.input_tax_code), tax, True),
                (self._account_id_for(company_id, cfg.payable_code), total, False),
            ]

        lines: list[LineSpec] = []
        for leg_account, amount, is_debit in legs:
            if amount == ZERO:
                continue
            if invoice.is_credit_note:
                is_debit = not is_debit
            if is_debit:
                lines.append(LineSpec.dr(leg_account, amount))
            else:
                lines.append(LineSpec.cr(leg_account, amount))
        return lines

    @staticmethod
    def _entry_description(invoice: InvoiceModel) -> str:
        kind = "Sales" if invoice.type == InvoiceType.OUTPUT.value else "Purchase"
        if invoice.is_credit_note:
            kind += " credit note"
        return f"{kind} invoice {invoice.number} {invoice.counterparty_name or ''}".strip()

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

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
        """Apply a payment.  Does not touch the journal."""
        self._require_company(company_id, "record_payment")
        method = PaymentMethod(method)
        try:
            amount = to_money(amount)
        except InvalidAmountError as exc:
            raise InvalidPaymentError(str(invoice_id), str(exc)) from exc

        with LogContext.bind(invoice_id=invoice_id):
            invoice = self._load(company_id, invoice_id, lock=True)
            if InvoiceStatus(invoice.status) == InvoiceStatus.VOIDED:
                raise InvalidPaymentError(str(invoice_id), "invoice is voided")
            if amount <= ZERO:
                raise InvalidPaymentError(str(invoice_id), "amount must be positive")
            remaining = invoice.total_amount - invoice.paid_amount
            if amount > remaining + self._config.payment_tolerance:
                raise InvalidPaymentError(
                    str(invoice_id), f"amount {amount} exceeds remaining {remaining}"
                )

            payment = InvoicePaymentModel(
                company_id=company_id,
                invoice_id=invoice.id,
                amount=amount,
                payment_date=payment_date,
                method=method.value,
                reference=reference,
                created_by_id=actor_id,
            )
            invoice.payments.append(payment)
            invoice.paid_amount = invoice.paid_amount + amount
            invoice.payment_status = derive_payment_status(
                invoice.paid_amount, invoice.total_amount, invoice.due_date, self._clock.today()
            ).value
            invoice.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "invoice_payment_recorded",
                extra={
                    "amount": str(amount),
                    "paid_amount": str(invoice.paid_amount),
                    "payment_status": invoice.payment_status,
                    "method": method.value,
                },
            )
            return PaymentResult(
                invoice_id=invoice.id,
                payment_id=payment.id,
                total_paid=invoice.paid_amount,
                payment_status=PaymentStatus(invoice.payment_status),
            )

    def mark_overdue(self, company_id: UUID) -> int:
        """Flip UNPAID invoices past their due date to OVERDUE.  Returns how many changed."""
        today = self._clock.today()
        rows = self.session.execute(
            select(InvoiceModel).where(
                InvoiceModel.company_id == company_id,
                InvoiceModel.status != InvoiceStatus.VOIDED.value,
                InvoiceModel.payment_status == PaymentStatus.UNPAID.value,
                InvoiceModel.due_date.is_not(None),
                InvoiceModel.due_date < today,
            )
        ).scalars().all()
        for invoice in rows:
            invoice.payment_status = PaymentStatus.OVERDUE.value
        self.session.flush()
        if rows:
            logger.info("invoices_marked_overdue", extra={"count": len(rows)})
        return len(rows)

    # -------------------------------------------------------------------------
    # Batches
    # -------------------------------------------------------------------------

    def _batch(self, action, company_id: UUID, invoice_ids: Iterable[UUID], actor_id: UUID) -> BatchResult:
        succeeded: list[UUID] = []
        failed: list[BatchFailure] = []
        for invoice_id in invoice_ids:
            savepoint = self.session.begin_nested()
            try:
                action(company_id, invoice_id, actor_id)
            except LedgerError as exc:
                savepoint.rollback()
                logger.warning(
                    "invoice_batch_item_failed",
                    extra={"invoice_id": str(invoice_id), "error_code": exc.code},
                )
                failed.append(BatchFailure(invoice_id, exc.code, str(exc)))
            else:
                savepoint.commit()
                succeeded.append(invoice_id)
        return BatchResult(succeeded=tuple(succeeded), failed=tuple(failed))

    def batch_verify(
        self, company_id: UUID, invoice_ids: Sequence[UUID], actor_id: UUID
    ) -> BatchResult:
        return self._batch(self.verify, company_id, invoice_ids, actor_id)

    def batch_post(
        self, company_id: UUID, invoice_ids: Sequence[UUID], actor_id: UUID
    ) -> BatchResult:
        return self._batch(self.post, company_id, invoice_ids, actor_id)

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def invoice_summary(self, company_id: UUID) -> InvoiceSummary:
        rows = self.session.execute(
            select(InvoiceModel).where(
                InvoiceModel.company_id == company_id,
                InvoiceModel.status != InvoiceStatus.VOIDED.value,
            )
        ).scalars()

        counts = {InvoiceType.OUTPUT: 0, InvoiceType.INPUT: 0}
        totals = {InvoiceType.OUTPUT: ZERO, InvoiceType.INPUT: ZERO}
        unpaid = {InvoiceType.OUTPUT: ZERO, InvoiceType.INPUT: ZERO}
        for invoice in rows:
            kind = InvoiceType(invoice.type)
            sign = -1 if invoice.is_credit_note else 1
            counts[kind] += 1
            totals[kind] += sign * invoice.total_amount
            unpaid[kind] += sign * (invoice.total_amount - invoice.paid_amount)

        return InvoiceSummary(
            output_count=counts[InvoiceType.OUTPUT],
            input_count=counts[InvoiceType.INPUT],
            total_output=totals[InvoiceType.OUTPUT],
            total_input=totals[InvoiceType.INPUT],
            unpaid_output=unpaid[InvoiceType.OUTPUT],
            unpaid_input=unpaid[InvoiceType.INPUT],
        )
