"""
Config -> Engine bridges.

Turn parsed configuration into the immutable runtime objects the pure
engines take, so that engines never import ``ledger_config``.

Usage:
    from ledger_config import get_active_config
    from ledger_config.bridges import build_rule_set

    classifier = AccountClassifier(build_rule_set(get_active_config()))
"""

from __future__ import annotations

from ledger_config.schema import ClassifierRuleDef, LedgerConfig
from ledger_engines.classifier import ClassificationRule, RuleSet


def _rule(definition: ClassifierRuleDef) -> ClassificationRule:
    return ClassificationRule(
        keywords=definition.keywords,
        account_code=definition.account_code,
        confidence=definition.confidence,
    )


def build_rule_set(config: LedgerConfig) -> RuleSet:
    classifier = config.classifier
    return RuleSet(
        output_rules=tuple(_rule(r) for r in classifier.output_rules),
        input_rules=tuple(_rule(r) for r in classifier.input_rules),
        output_default_code=classifier.output_default_code,
        input_default_code=classifier.input_default_code,
        default_confidence=classifier.default_confidence,
    )
