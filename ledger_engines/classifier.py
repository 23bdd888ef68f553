"""
ledger_engines.classifier -- rule-based account suggestion for invoices.

Responsibility:
    Given an invoice direction, its description and the counterparty name,
    recommend an account from the company's active chart with a confidence
    score and a human-readable reason.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The rule table is an
    injected RuleSet (built from ledger_config), and the caller passes in
    the company's active accounts.

Invariants enforced:
    - Rules are evaluated in declaration order.  The rule with the most
      keyword hits wins; a tie keeps the earlier rule.
    - confidence = min(base + 0.05 * (hits - 1), 0.98).
    - No hit, or a winning rule whose account the company lacks, falls
      back to the per-direction default account at the default confidence.
    - No active accounts at all (or no default account) gives None.

Failure modes:
    - ValueError for an unknown invoice type.

Audit relevance:
    Advisory only.  The invoice module stores the suggested account on the
    invoice when it posts, so the journal shows what was used.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.values import InvoiceType
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.classifier")

CONFIDENCE_STEP = 0.05
CONFIDENCE_CAP = 0.98


@dataclass(frozen=True)
class ClassificationRule:
    """Keyword set pointing at an account code with a base confidence."""

    keywords: tuple[str, ...]
    account_code: str
    confidence: float

    def matches(self, text: str) -> list[str]:
        return [kw for kw in self.keywords if kw.lower() in text]


@dataclass(frozen=True)
class RuleSet:
    """
    Ordered rule tables per invoice direction plus the fallbacks.

    Immutable; build one per company or jurisdiction.
    """

    output_rules: tuple[ClassificationRule, ...]
    input_rules: tuple[ClassificationRule, ...]
    output_default_code: str = "4181"
    input_default_code: str = "6201"
    default_confidence: float = 0.5

    def rules_for(self, invoice_type: InvoiceType) -> tuple[ClassificationRule, ...]:
        if invoice_type == InvoiceType.OUTPUT:
            return self.output_rules
        return self.input_rules

    def default_code_for(self, invoice_type: InvoiceType) -> str:
        if invoice_type == InvoiceType.OUTPUT:
            return self.output_default_code
        return self.input_default_code


@dataclass(frozen=True)
class CandidateAccount:
    id: UUID
    code: str
    name: str


@dataclass(frozen=True)
class ClassificationResult:
    account_id: UUID
    account_code: str
    account_name: str
    confidence: float
    reasoning: str
    matched_keywords: tuple[str, ...] = ()

    @property
    def is_fallback(self) -> bool:
        return not self.matched_keywords


class AccountClassifier:
    """
    Scores invoice text against a RuleSet.

    Contract:
        ``classify`` never writes and never reads the clock; the same
        inputs always give the same suggestion.
    """

    def __init__(self, rules: RuleSet):
        self._rules = rules

    @property
    def rules(self) -> RuleSet:
        return self._rules

    @traced_engine("classifier", "1.0", fingerprint_fields=("invoice_type", "description", "counterparty_name"))
    def classify(
        self,
        *,
        invoice_type: InvoiceType | str,
        description: str | None,
        counterparty_name: str | None,
        accounts: Sequence[CandidateAccount],
    ) -> ClassificationResult | None:
        invoice_type = InvoiceType(invoice_type)
        if not accounts:
            logger.warning(
                "classifier_no_active_accounts",
                extra={"invoice_type": invoice_type.value},
            )
            return None

        by_code = {account.code: account for account in accounts}
        text = f"{description or ''} {counterparty_name or ''}".lower()

        best: ClassificationRule | None = None
        best_hits: list[str] = []
        for rule in self._rules.rules_for(invoice_type):
            hits = rule.matches(text)
            if hits and len(hits) > len(best_hits):
                best, best_hits = rule, hits

        if best is not None:
            account = by_code.get(best.account_code)
            if account is not None:
                confidence = min(
                    round(best.confidence + CONFIDENCE_STEP * (len(best_hits) - 1), 4),
                    CONFIDENCE_CAP,
                )
                return ClassificationResult(
                    account_id=account.id,
                    account_code=account.code,
                    account_name=account.name,
                    confidence=confidence,
                    reasoning="Matched keywords: " + ", ".join(best_hits),
                    matched_keywords=tuple(best_hits),
                )
            logger.info(
                "classifier_rule_account_missing",
                extra={"account_code": best.account_code},
            )

        default = by_code.get(self._rules.default_code_for(invoice_type))
        if default is None:
            return None
        return ClassificationResult(
            account_id=default.id,
            account_code=default.code,
            account_name=default.name,
            confidence=self._rules.default_confidence,
            reasoning="No rule matched; using the default account",
        )
