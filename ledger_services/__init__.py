"""Upward API surface of the ledger core; owns transaction boundaries."""

from ledger_services.ledger_api import LedgerAPI

__all__ = ["LedgerAPI"]
