"""
Module ORM Registry (``ledger_modules._orm_registry``).

Responsibility
--------------
Import every ORM model so that ``Base.metadata`` holds all table
definitions before ``create_tables()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Called lazily from
``ledger_kernel.db.engine.create_tables`` so the kernel keeps no import-time
dependency on modules.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``ledger_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import ledger_kernel.models  # noqa: F401
    import ledger_kernel.services.sequence_service  # noqa: F401  # sequence_counters
    import ledger_modules.invoices.orm  # noqa: F401
