"""
ledger_config -- single entrypoint for ledger configuration.

Responsibility:
    ``get_active_config()`` returns the process-wide LedgerConfig: the
    classifier rule table, the invoice posting account codes, the default
    chart of accounts and the tax-filing format defaults.

Architecture position:
    Configuration -- sits above ``ledger_kernel`` and ``ledger_engines``
    and below ``ledger_modules`` / ``tax_filing`` / ``ledger_services``.
    The kernel and engines never import this package.

Invariants enforced:
    - The active config is loaded once and cached until
      ``reset_active_config()``.
    - ``LEDGER_CONFIG_PATH`` selects an override file; otherwise the
      packaged ``defaults/ledger.yaml`` is used.

Failure modes:
    - ConfigurationError from the loader for a missing or invalid file.
"""

from __future__ import annotations

import os
import threading

from ledger_config.loader import DEFAULT_CONFIG_PATH, compute_checksum, load_config
from ledger_config.schema import (
    AccountDef,
    ClassifierConfig,
    ClassifierRuleDef,
    LedgerConfig,
    PostingAccounts,
    TaxFilingDefaults,
)

CONFIG_PATH_ENV = "LEDGER_CONFIG_PATH"

_active: LedgerConfig | None = None
_lock = threading.Lock()


def get_active_config() -> LedgerConfig:
    """Return the cached configuration, loading it on first use."""
    global _active
    with _lock:
        if _active is None:
            _active = load_config(os.environ.get(CONFIG_PATH_ENV) or None)
        return _active


def reset_active_config() -> None:
    """Forget the cached configuration (tests, config reload)."""
    global _active
    with _lock:
        _active = None


__all__ = [
    "AccountDef",
    "ClassifierConfig",
    "ClassifierRuleDef",
    "CONFIG_PATH_ENV",
    "DEFAULT_CONFIG_PATH",
    "LedgerConfig",
    "PostingAccounts",
    "TaxFilingDefaults",
    "compute_checksum",
    "get_active_config",
    "load_config",
    "reset_active_config",
]
