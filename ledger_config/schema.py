"""
Ledger configuration schema.

The typed form of ``defaults/ledger.yaml``.  The loader parses YAML into
these frozen dataclasses; bridges turn them into the runtime objects the
engines and modules consume (RuleSet, InvoiceConfig, MediaFileOptions).

Sections:
  classifier   ordered keyword rules per invoice direction + fallbacks
  posting      account codes used by the fixed invoice posting template
  accounts     default chart of accounts seeded for a new company
  tax_filing   media-file format codes and branch code
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClassifierRuleDef:
    keywords: tuple[str, ...]
    account_code: str
    confidence: float


@dataclass(frozen=True)
class ClassifierConfig:
    output_rules: tuple[ClassifierRuleDef, ...] = ()
    input_rules: tuple[ClassifierRuleDef, ...] = ()
    output_default_code: str = "4181"
    input_default_code: str = "6201"
    default_confidence: float = 0.5


# ---------------------------------------------------------------------------
# Posting template
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PostingAccounts:
    """Account codes for the invoice posting template."""

    receivable_code: str = "1131"
    payable_code: str = "2101"
    output_tax_code: str = "2261"
    input_tax_code: str = "2262"


# ---------------------------------------------------------------------------
# Chart of accounts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountDef:
    code: str
    name: str
    category: str


# ---------------------------------------------------------------------------
# Tax filing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxFilingDefaults:
    input_format_code: str = "25"
    output_format_code: str = "35"
    input_return_format_code: str = "23"
    output_return_format_code: str = "33"
    branch_code: str = "0"


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    """Complete, validated configuration."""

    version: int
    classifier: ClassifierConfig
    posting: PostingAccounts
    accounts: tuple[AccountDef, ...]
    tax_filing: TaxFilingDefaults
    checksum: str = ""
    source_path: str | None = field(default=None, compare=False)

    def account_codes(self) -> frozenset[str]:
        return frozenset(account.code for account in self.accounts)
