"""
Ledger Kernel

The double-entry core of the ledger:
- Balanced journal entries with per-company sequential numbering
- DRAFT -> POSTED -> VOIDED lifecycle, voiding by mirrored reversal
- Trial balance derived from posted lines (no stored balances)
- Tenant isolation by company_id on every read and write
"""

__version__ = "0.1.0"
