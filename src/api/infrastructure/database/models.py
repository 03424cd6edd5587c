"""SQLAlchemy declarative base and shared model utilities.

This module provides the declarative base class for all SQLAlchemy ORM models
and the mixins shared by every tenant-owned table.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> datetime:
    """Generate UTC timestamp for database defaults.

    Uses a named function instead of lambda for SQLAlchemy 2.0 compatibility.
    Ensures proper INSERT-time evaluation.
    """
    return datetime.now(timezone.utc)


def utc_now() -> datetime:
    """Current UTC time, shared by services that stamp domain timestamps."""
    return _utc_now()


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models.

    Money is stored as NUMERIC(14, 2); Decimal annotations map to it unless a
    column overrides the precision.
    """

    type_annotation_map: dict[type, Any] = {
        Decimal: Numeric(14, 2),
    }


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamp columns.

    Automatically sets created_at on insert and updates updated_at on modification.
    Uses timezone-aware UTC timestamps with Python-side default generation.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=_utc_now,  # Evaluated at INSERT time
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=_utc_now,  # Evaluated at INSERT time
        onupdate=_utc_now,  # Evaluated at UPDATE time
        nullable=False,
    )


class TenantScopedMixin:
    """Marks a model as owned by exactly one tenant.

    Every ORM query against a subclass is filtered to the tenant bound on the
    session (see ``infrastructure.database.tenant_session``), and new rows are
    stamped with that tenant on flush. The column is immutable after insert.
    """

    tenant_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("tenants.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
