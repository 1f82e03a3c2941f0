"""
Module: recon_kernel.db.base
Responsibility: Declarative base for the bill and receipt ledgers.
Architecture position: Kernel > DB.  MUST NOT import from models/,
    selectors/, or outer layers.

Invariants enforced:
    - Every row has a uuid4 ``id``; a receipt's ``billing_id`` holds its
      bill's ``id``.  UUIDs are stored as 36-character strings so SQLite
      and PostgreSQL share one schema.
    - Money is Numeric(38, 9) and comes back as Decimal.
    - Timestamps are timezone-aware columns.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID in Python, CHAR-style string in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    """Declarative base: uuid4 primary key plus the ledger column type map."""

    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Adds row timestamps.

    An in-place amount correction leaves every receipt field as it was
    except ``amount`` and ``updated_at``.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )
