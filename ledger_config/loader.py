"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Reads a ledger YAML file, merges caller overrides and parses the result
into the frozen dataclasses of ``ledger_config.schema``.  Runtime callers
go through ``ledger_config.get_active_config()`` or ``load_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass.
* Rule confidences lie in [0, 1]; every rule has at least one keyword.
* Account categories are known; account codes are unique.
* Posting and classifier default codes exist in the chart.
* ``compute_checksum`` is a deterministic SHA-256 of the merged data.

Failure modes
-------------
* Missing file -> ``ConfigurationError`` (path attached).
* Malformed YAML -> ``ConfigurationError`` wrapping ``yaml.YAMLError``.
* Any validation violation above -> ``ConfigurationError``.
"""

from __future__ import annotations

import copy
import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    AccountDef,
    ClassifierConfig,
    ClassifierRuleDef,
    LedgerConfig,
    PostingAccounts,
    TaxFilingDefaults,
)
from ledger_kernel.exceptions import ConfigurationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("config.loader")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "ledger.yaml"

_CATEGORIES = frozenset({"asset", "liability", "equity", "revenue", "expense"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load one YAML file; an empty file gives an empty dict."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {path}", path=str(path)) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}", path=str(path)) from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Top level of {path} must be a mapping", path=str(path))
    return data


def merge_overrides(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``overrides`` into a copy of ``base``; lists are replaced."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_overrides(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form; identical data, identical checksum."""
    canonical = json.dumps(data, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _parse_rule(data: dict[str, Any], where: str) -> ClassifierRuleDef:
    try:
        keywords = tuple(str(kw) for kw in data["keywords"])
        rule = ClassifierRuleDef(
            keywords=keywords,
            account_code=str(data["account_code"]),
            confidence=float(data["confidence"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Malformed classifier rule at {where}: {exc}", detail=data) from exc
    if not rule.keywords or any(not kw.strip() for kw in rule.keywords):
        raise ConfigurationError(f"Classifier rule at {where} has an empty keyword", detail=data)
    if not 0.0 <= rule.confidence <= 1.0:
        raise ConfigurationError(
            f"Classifier rule at {where} has confidence {rule.confidence} outside [0, 1]",
            detail=data,
        )
    return rule


def parse_classifier(data: dict[str, Any]) -> ClassifierConfig:
    config = ClassifierConfig(
        output_rules=tuple(
            _parse_rule(rule, f"classifier.output_rules[{i}]")
            for i, rule in enumerate(data.get("output_rules", []))
        ),
        input_rules=tuple(
            _parse_rule(rule, f"classifier.input_rules[{i}]")
            for i, rule in enumerate(data.get("input_rules", []))
        ),
        output_default_code=str(data.get("output_default_code", "4181")),
        input_default_code=str(data.get("input_default_code", "6201")),
        default_confidence=float(data.get("default_confidence", 0.5)),
    )
    if not 0.0 <= config.default_confidence <= 1.0:
        raise ConfigurationError("classifier.default_confidence must lie in [0, 1]")
    return config


def parse_accounts(items: list[dict[str, Any]]) -> tuple[AccountDef, ...]:
    accounts: list[AccountDef] = []
    seen: set[str] = set()
    for i, item in enumerate(items):
        try:
            account = AccountDef(
                code=str(item["code"]),
                name=str(item["name"]),
                category=str(item["category"]).lower(),
            )
        except (KeyError, TypeError) as exc:
            raise ConfigurationError(f"Malformed account at accounts[{i}]: {exc}", detail=item) from exc
        if account.category not in _CATEGORIES:
            raise ConfigurationError(
                f"Account {account.code} has unknown category {account.category!r}",
                detail=item,
            )
        if account.code in seen:
            raise ConfigurationError(f"Duplicate account code {account.code}", detail=item)
        seen.add(account.code)
        accounts.append(account)
    return tuple(accounts)


def parse_config(data: dict[str, Any], source_path: str | None = None) -> LedgerConfig:
    """Parse and cross-validate a merged configuration mapping."""
    posting_data = data.get("posting", {}) or {}
    tax_data = data.get("tax_filing", {}) or {}
    try:
        posting = PostingAccounts(**{k: str(v) for k, v in posting_data.items()})
        tax_filing = TaxFilingDefaults(**{k: str(v) for k, v in tax_data.items()})
    except TypeError as exc:
        raise ConfigurationError(f"Unknown configuration key: {exc}", path=source_path) from exc

    config = LedgerConfig(
        version=int(data.get("version", 1)),
        classifier=parse_classifier(data.get("classifier", {}) or {}),
        posting=posting,
        accounts=parse_accounts(data.get("accounts", []) or []),
        tax_filing=tax_filing,
        checksum=compute_checksum(data),
        source_path=source_path,
    )
    _validate_references(config)
    return config


def _validate_references(config: LedgerConfig) -> None:
    codes = config.account_codes()
    if not codes:
        return
    referenced = {
        "posting.receivable_code": config.posting.receivable_code,
        "posting.payable_code": config.posting.payable_code,
        "posting.output_tax_code": config.posting.output_tax_code,
        "posting.input_tax_code": config.posting.input_tax_code,
        "classifier.output_default_code": config.classifier.output_default_code,
        "classifier.input_default_code": config.classifier.input_default_code,
    }
    for where, code in referenced.items():
        if code not in codes:
            raise ConfigurationError(
                f"{where} refers to account {code}, which is not in the chart",
                detail={"field": where, "code": code},
            )
    for rule in config.classifier.output_rules + config.classifier.input_rules:
        if rule.account_code not in codes:
            raise ConfigurationError(
                f"Classifier rule targets account {rule.account_code}, which is not in the chart",
                detail={"code": rule.account_code},
            )


def load_config(
    path: Path | str | None = None,
    overrides: dict[str, Any] | None = None,
) -> LedgerConfig:
    """
    Load the configuration at ``path`` (default file when None), apply
    ``overrides`` and validate.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(config_path)
    if overrides:
        data = merge_overrides(data, overrides)

    config = parse_config(data, source_path=str(config_path))
    logger.info(
        "ledger_config_loaded",
        extra={
            "path": str(config_path),
            "version": config.version,
            "checksum": config.checksum,
            "account_count": len(config.accounts),
            "rule_count": len(config.classifier.output_rules) + len(config.classifier.input_rules),
        },
    )
    return config
