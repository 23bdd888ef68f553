"""
Tests for the ledger configuration loader.

Covers:
- The packaged default file
- Overrides and checksums
- Validation failures
- The cached active configuration
"""

import pytest
import yaml

from ledger_config import (
    CONFIG_PATH_ENV,
    DEFAULT_CONFIG_PATH,
    get_active_config,
    load_config,
    reset_active_config,
)
from ledger_config.bridges import build_rule_set
from ledger_config.loader import compute_checksum, merge_overrides, parse_config
from ledger_kernel.domain.values import InvoiceType
from ledger_kernel.exceptions import ConfigurationError


@pytest.fixture
def default_data():
    with open(DEFAULT_CONFIG_PATH, encoding="utf-8") as f:
        return yaml.safe_load(f)


class TestDefaultConfig:
    """The packaged defaults/ledger.yaml."""

    def test_loads(self):
        config = load_config()

        assert config.version == 1
        assert config.source_path == str(DEFAULT_CONFIG_PATH)
        assert len(config.checksum) == 64

    def test_posting_accounts(self):
        posting = load_config().posting

        assert (posting.receivable_code, posting.payable_code) == ("1131", "2101")
        assert (posting.output_tax_code, posting.input_tax_code) == ("2261", "2262")

    def test_chart_has_every_referenced_code(self):
        config = load_config()
        codes = config.account_codes()

        for code in ("1131", "2101", "2261", "2262", "4181", "6201", "6131", "4101", "4111"):
            assert code in codes

    def test_categories_are_lowercase(self):
        categories = {account.category for account in load_config().accounts}

        assert categories <= {"asset", "liability", "equity", "revenue", "expense"}

    def test_tax_filing_defaults(self):
        tax_filing = load_config().tax_filing

        assert tax_filing.input_format_code == "25"
        assert tax_filing.output_format_code == "35"
        assert tax_filing.input_return_format_code == "23"
        assert tax_filing.output_return_format_code == "33"
        assert tax_filing.branch_code == "0"

    def test_rule_set_bridge(self):
        rules = build_rule_set(load_config())

        assert rules.default_code_for(InvoiceType.OUTPUT) == "4181"
        assert rules.default_code_for(InvoiceType.INPUT) == "6201"
        assert rules.default_confidence == 0.5
        assert any(r.account_code == "6131" for r in rules.rules_for(InvoiceType.INPUT))


class TestOverrides:
    """Overrides merge over the file and change the checksum."""

    def test_override_changes_value_and_checksum(self):
        base = load_config()
        changed = load_config(overrides={"tax_filing": {"branch_code": "1"}})

        assert changed.tax_filing.branch_code == "1"
        assert changed.tax_filing.input_format_code == "25"
        assert changed.checksum != base.checksum

    def test_merge_is_deep(self):
        merged = merge_overrides({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}})

        assert merged == {"a": {"b": 1, "c": 3}}

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_override_file(self, tmp_path, default_data):
        default_data["classifier"]["default_confidence"] = 0.4
        path = tmp_path / "ledger.yaml"
        path.write_text(yaml.safe_dump(default_data, allow_unicode=True), encoding="utf-8")

        config = load_config(path)

        assert config.classifier.default_confidence == 0.4
        assert config.source_path == str(path)


class TestValidation:
    """Invalid configuration raises ConfigurationError."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "missing.yaml")

    def test_unknown_category(self, default_data):
        default_data["accounts"].append({"code": "9999", "name": "Odd", "category": "suspense"})

        with pytest.raises(ConfigurationError, match="unknown category"):
            parse_config(default_data)

    def test_duplicate_code(self, default_data):
        default_data["accounts"].append(dict(default_data["accounts"][0]))

        with pytest.raises(ConfigurationError, match="Duplicate account code"):
            parse_config(default_data)

    def test_posting_code_missing_from_chart(self, default_data):
        default_data["posting"]["receivable_code"] = "1999"

        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(default_data)
        assert exc_info.value.detail == {"field": "posting.receivable_code", "code": "1999"}

    def test_rule_targets_missing_account(self, default_data):
        default_data["classifier"]["input_rules"].append(
            {"account_code": "6999", "confidence": 0.9, "keywords": ["x"]}
        )

        with pytest.raises(ConfigurationError, match="6999"):
            parse_config(default_data)

    def test_confidence_out_of_range(self, default_data):
        default_data["classifier"]["input_rules"][0]["confidence"] = 1.5

        with pytest.raises(ConfigurationError, match="outside"):
            parse_config(default_data)

    def test_blank_keyword(self, default_data):
        default_data["classifier"]["output_rules"][0]["keywords"] = ["  "]

        with pytest.raises(ConfigurationError, match="empty keyword"):
            parse_config(default_data)

    def test_unknown_posting_key(self, default_data):
        default_data["posting"]["cash_code"] = "1101"

        with pytest.raises(ConfigurationError, match="Unknown configuration key"):
            parse_config(default_data)


class TestActiveConfig:
    """Process-wide cached configuration."""

    def test_cached(self):
        assert get_active_config() is get_active_config()

    def test_env_path(self, tmp_path, monkeypatch, default_data):
        default_data["tax_filing"]["branch_code"] = "7"
        path = tmp_path / "override.yaml"
        path.write_text(yaml.safe_dump(default_data, allow_unicode=True), encoding="utf-8")
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))
        reset_active_config()

        assert get_active_config().tax_filing.branch_code == "7"

    def test_load_logged(self, captured_logs):
        load_config()

        records = [r for r in captured_logs() if r["message"] == "ledger_config_loaded"]
        assert records and records[0]["account_count"] > 0
