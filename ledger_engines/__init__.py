"""
Module: ledger_engines
Responsibility:
    Pure calculation engines used by the ledger modules.  Today that is the
    rule-based account classifier.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import ledger_kernel.domain.values and ledger_kernel.logging_config.
    MUST NOT import ledger_modules, tax_filing or ledger_services.

Invariants enforced:
    - Determinism: identical inputs always produce identical outputs.
    - No database access and no clock reads; callers pass in what the
      engine needs (for the classifier, the company's active accounts).

Usage:
    from ledger_engines.classifier import AccountClassifier, RuleSet
"""

from ledger_engines.classifier import (
    AccountClassifier,
    CandidateAccount,
    ClassificationResult,
    ClassificationRule,
    InvoiceType,
    RuleSet,
)
from ledger_engines.tracer import traced_engine

__all__ = [
    "AccountClassifier",
    "CandidateAccount",
    "ClassificationResult",
    "ClassificationRule",
    "InvoiceType",
    "RuleSet",
    "traced_engine",
]
