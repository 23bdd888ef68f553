"""
Ledger modules: the invoice lifecycle and financial reporting.

Modules sit above the kernel and the engines.  Each module keeps its
frozen models, ORM, config and service side by side.
"""
