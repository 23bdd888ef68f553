"""
Module: ledger_kernel.db.base
Responsibility: Declarative base classes for every ledger ORM model.  Provides
    the UUID primary key convention, the company scope column shared by all
    tenant data, and the TrackedBase mixin for audit timestamps.
Architecture position: Kernel > DB.  Lowest-level import target in the
    kernel; ALL model files import from here.  MUST NOT import from models/,
    services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - UUID primary keys: every model inherits a uuid4-generated key.
    - Decimal precision: type_annotation_map maps Decimal to Numeric(38, 9).
      Monetary amounts are NEVER floats.
    - Tenant isolation: CompanyScoped rows carry a non-null, indexed
      company_id; services refuse to write rows without it.

Failure modes:
    - IntegrityError on a NULL company_id (NOT NULL constraint).

Audit relevance:
    created_at / updated_at / created_by_id / updated_by_id form the basic
    audit metadata for every tracked ledger row.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID stored as String(36) so the schema runs on PostgreSQL and SQLite.

    Guarantees:
        - UUID -> str on bind, str -> UUID on load.
        - cache_ok=True keeps statement caching enabled.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all ledger models.

    Guarantees:
        - id is a uuid4 UUID stored as String(36).
        - Decimal maps to Numeric(38, 9).
        - datetime maps to DateTime(timezone=True).
        - int maps to BigInteger (sequence counters, record counts).
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with audit timestamps and actor tracking.

    Guarantees:
        - created_at is server NOW() on INSERT.
        - updated_at is server NOW() on INSERT and refreshed on UPDATE.
        - created_by_id is required; updated_by_id is optional.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    created_by_id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    updated_by_id: Mapped[PyUUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )


class CompanyScoped:
    """
    Mixin adding the tenant column.

    Every ledger table except the sequence counters is company scoped.
    Queries in selectors and services always filter on this column.
    """

    @declared_attr
    def company_id(cls) -> Mapped[PyUUID]:
        return mapped_column(UUIDString(), nullable=False, index=True)


UUID = PyUUID
