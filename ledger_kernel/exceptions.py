"""
Typed Exception Hierarchy for the Ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger (the UI/API layer) must react differently to a user
mistake, a stale screen and a corrupted book.  Every error therefore has:
  1. A TYPED class (catch by type, not by message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerError (base)
    |
    +-- ValidationError               recoverable, nothing was written
    |   +-- ImbalancedEntryError
    |   +-- InvalidAccountError
    |   +-- InvalidLineError
    |   +-- EmptyEntryError
    |   +-- FieldOverflowError
    |   +-- MalformedRowError
    |   +-- MissingCompanyScopeError
    |   +-- InvalidPaymentError
    |   +-- MissingReasonError
    |   +-- InvoiceIncompleteError
    |   +-- DuplicateInvoiceNumberError
    |   +-- InvalidInvoiceAmountError
    |
    +-- NotFoundError
    |   +-- EntryNotFoundError
    |   +-- InvoiceNotFoundError
    |   +-- AccountNotFoundError
    |
    +-- StateTransitionError          refresh and retry, or inform the user
    |   +-- AlreadyPostedError
    |   +-- AlreadyVoidedError
    |   +-- NotPostedError
    |   +-- NotDraftError
    |   +-- InvalidTransitionError
    |   +-- InvoiceOwnedEntryError
    |
    +-- DataIntegrityError            NOT recoverable locally, halt reporting
    |   +-- TrialBalanceOutOfBalanceError
    |   +-- UnbalancedPostingError
    |   +-- BalanceSheetMismatchError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------
Validation      | IMBALANCED_ENTRY              | Debits != Credits at draft time
                | INVALID_ACCOUNT               | Inactive, foreign or unknown account
                | INVALID_LINE                  | Both/neither side set, negative amount
                | EMPTY_ENTRY                   | Entry has no lines
                | FIELD_OVERFLOW                | Value too wide for a fixed-width field
                | MALFORMED_ROW                 | Export row missing a required value
                | MISSING_COMPANY_SCOPE         | Write attempted without company_id
                | INVALID_PAYMENT               | Non-positive, excessive or void payment
                | MISSING_REASON                | Void without a reason
                | INVOICE_INCOMPLETE            | Verify without number/counterparty
                | DUPLICATE_INVOICE_NUMBER      | Number already used in the company
                | INVALID_INVOICE_AMOUNT        | total != untaxed + tax, or total <= 0
----------------|-------------------------------|---------------------------------
Not found       | ENTRY_NOT_FOUND               | Journal entry id unknown in company
                | INVOICE_NOT_FOUND             | Invoice id unknown in company
                | ACCOUNT_NOT_FOUND             | Account code unknown in company
----------------|-------------------------------|---------------------------------
State           | ALREADY_POSTED                | post() on a POSTED entry
                | ALREADY_VOIDED                | post()/void() on a VOIDED entry
                | NOT_POSTED                    | void() on a non-POSTED item
                | NOT_DRAFT                     | delete of a non-DRAFT item
                | INVALID_TRANSITION            | Invoice moved off its state path
                | INVOICE_OWNED_ENTRY           | Entry void on an invoice-sourced entry
----------------|-------------------------------|---------------------------------
Integrity       | TRIAL_BALANCE_OUT_OF_BALANCE  | Grand debit total != credit total
                | UNBALANCED_POSTING            | Entry unbalanced at post time
                | BALANCE_SHEET_MISMATCH        | A != L + E + net income
----------------|-------------------------------|---------------------------------
Config          | CONFIGURATION_ERROR           | Invalid YAML configuration

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        api.post_invoice(company_id, invoice_id, actor_id)
    except StateTransitionError as e:
        refresh_and_report(e.code, e.current_status)
    except ValidationError as e:
        show_field_errors(e)
    except DataIntegrityError:
        page_on_call()   # the book is wrong, do not keep reporting
        raise
"""

from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    """
    Base exception for all ledger errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "LEDGER_ERROR"


# =============================================================================
# Validation
# =============================================================================


class ValidationError(LedgerError):
    """Input rejected before anything was written."""

    code: str = "VALIDATION_ERROR"


class ImbalancedEntryError(ValidationError):
    """Journal entry debits do not equal credits."""

    code: str = "IMBALANCED_ENTRY"

    def __init__(self, debits: str, credits: str):
        self.debits = debits
        self.credits = credits
        super().__init__(f"Imbalanced entry: debits={debits}, credits={credits}")


class InvalidAccountError(ValidationError):
    """Account is inactive, belongs to another company, or does not exist."""

    code: str = "INVALID_ACCOUNT"

    def __init__(self, account_id: str, reason: str):
        self.account_id = account_id
        self.reason = reason
        super().__init__(f"Invalid account {account_id}: {reason}")


class InvalidLineError(ValidationError):
    """A line must carry exactly one non-negative, non-zero side."""

    code: str = "INVALID_LINE"

    def __init__(self, line_index: int, reason: str):
        self.line_index = line_index
        self.reason = reason
        super().__init__(f"Invalid line {line_index}: {reason}")


class EmptyEntryError(ValidationError):
    """Journal entry has no lines."""

    code: str = "EMPTY_ENTRY"

    def __init__(self, entry_id: str | None = None):
        self.entry_id = entry_id
        super().__init__("Journal entry must have at least one line")


class FieldOverflowError(ValidationError):
    """An encoded value does not fit its fixed-width field."""

    code: str = "FIELD_OVERFLOW"

    def __init__(self, field: str, value: str, width: int, row: int | None = None):
        self.field = field
        self.value = value
        self.width = width
        self.row = row
        where = f" (record {row})" if row is not None else ""
        super().__init__(
            f"Value {value!r} overflows field '{field}' of width {width}{where}"
        )


class MalformedRowError(ValidationError):
    """A tax-filing row is missing or carries an unusable value."""

    code: str = "MALFORMED_ROW"

    def __init__(self, row: int, column: str, reason: str):
        self.row = row
        self.column = column
        self.reason = reason
        super().__init__(f"Row {row}, column '{column}': {reason}")


class MissingCompanyScopeError(ValidationError):
    """A write was attempted without a company scope."""

    code: str = "MISSING_COMPANY_SCOPE"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation '{operation}' requires a company_id")


class InvalidPaymentError(ValidationError):
    """Payment amount or target invoice is not acceptable."""

    code: str = "INVALID_PAYMENT"

    def __init__(self, invoice_id: str, reason: str):
        self.invoice_id = invoice_id
        self.reason = reason
        super().__init__(f"Invalid payment for invoice {invoice_id}: {reason}")


class MissingReasonError(ValidationError):
    """Voiding requires a non-empty reason."""

    code: str = "MISSING_REASON"

    def __init__(self, target_id: str):
        self.target_id = target_id
        super().__init__(f"A reason is required to void {target_id}")


class InvoiceIncompleteError(ValidationError):
    """Invoice lacks a field required for verification."""

    code: str = "INVOICE_INCOMPLETE"

    def __init__(self, invoice_id: str, field: str):
        self.invoice_id = invoice_id
        self.field = field
        super().__init__(f"Invoice {invoice_id} is missing '{field}'")


class DuplicateInvoiceNumberError(ValidationError):
    """Invoice number already exists in the company."""

    code: str = "DUPLICATE_INVOICE_NUMBER"

    def __init__(self, number: str):
        self.number = number
        super().__init__(f"Invoice number {number} already exists")


class InvalidInvoiceAmountError(ValidationError):
    """Invoice amounts are inconsistent or not positive."""

    code: str = "INVALID_INVOICE_AMOUNT"

    def __init__(self, reason: str, untaxed: str, tax: str, total: str):
        self.reason = reason
        self.untaxed = untaxed
        self.tax = tax
        self.total = total
        super().__init__(
            f"Invalid invoice amounts ({reason}): untaxed={untaxed}, tax={tax}, total={total}"
        )


# =============================================================================
# Not found
# =============================================================================


class NotFoundError(LedgerError):
    """Requested object does not exist in the company scope."""

    code: str = "NOT_FOUND"


class EntryNotFoundError(NotFoundError):
    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry not found: {entry_id}")


class InvoiceNotFoundError(NotFoundError):
    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found: {invoice_id}")


class AccountNotFoundError(NotFoundError):
    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account not found: {account_code}")


# =============================================================================
# State transitions
# =============================================================================


class StateTransitionError(LedgerError):
    """Operation is not legal from the object's current status."""

    code: str = "STATE_TRANSITION_ERROR"

    def __init__(self, target_id: str, current_status: str, operation: str):
        self.target_id = target_id
        self.current_status = current_status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} {target_id}: status is {current_status}"
        )


class AlreadyPostedError(StateTransitionError):
    code: str = "ALREADY_POSTED"


class AlreadyVoidedError(StateTransitionError):
    code: str = "ALREADY_VOIDED"


class NotPostedError(StateTransitionError):
    code: str = "NOT_POSTED"


class NotDraftError(StateTransitionError):
    code: str = "NOT_DRAFT"


class InvalidTransitionError(StateTransitionError):
    code: str = "INVALID_TRANSITION"


class InvoiceOwnedEntryError(StateTransitionError):
    """The entry was posted from an invoice; void the invoice instead."""

    code: str = "INVOICE_OWNED_ENTRY"

    def __init__(self, target_id: str, invoice_id: str | None):
        self.target_id = target_id
        self.invoice_id = invoice_id
        self.current_status = "POSTED"
        self.operation = "void"
        LedgerError.__init__(
            self,
            f"Cannot void {target_id}: it belongs to invoice {invoice_id}, use void_invoice",
        )


# =============================================================================
# Data integrity
# =============================================================================


class DataIntegrityError(LedgerError):
    """
    A ledger invariant was found violated in stored data.

    Never raised for user input; it means a bug upstream wrote bad rows.
    Dependent reporting must stop rather than return partial numbers.
    """

    code: str = "DATA_INTEGRITY_ERROR"


class TrialBalanceOutOfBalanceError(DataIntegrityError):
    code: str = "TRIAL_BALANCE_OUT_OF_BALANCE"

    def __init__(self, company_id: str, total_debits: str, total_credits: str):
        self.company_id = company_id
        self.total_debits = total_debits
        self.total_credits = total_credits
        super().__init__(
            f"Trial balance for company {company_id} does not balance: "
            f"debits={total_debits}, credits={total_credits}"
        )


class UnbalancedPostingError(DataIntegrityError):
    code: str = "UNBALANCED_POSTING"

    def __init__(self, entry_id: str, debits: str, credits: str):
        self.entry_id = entry_id
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"Entry {entry_id} is unbalanced at posting: "
            f"debits={debits}, credits={credits}"
        )


class BalanceSheetMismatchError(DataIntegrityError):
    code: str = "BALANCE_SHEET_MISMATCH"

    def __init__(self, total_assets: str, total_liabilities_and_equity: str):
        self.total_assets = total_assets
        self.total_liabilities_and_equity = total_liabilities_and_equity
        super().__init__(
            f"Balance sheet does not balance: assets={total_assets}, "
            f"liabilities+equity={total_liabilities_and_equity}"
        )


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(LedgerError):
    """Configuration file or override is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, message: str, path: str | None = None, detail: Any = None):
        self.path = path
        self.detail = detail
        super().__init__(message)
