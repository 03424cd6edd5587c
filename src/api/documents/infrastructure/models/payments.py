"""SQLAlchemy ORM models for payments and their invoice allocations."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TenantScopedMixin, TimestampMixin


class PaymentModel(Base, TenantScopedMixin, TimestampMixin):
    """A customer receipt or supplier disbursement.

    Exactly one of ``customer_id``/``supplier_id`` is set, matching
    ``payment_type``.
    """

    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("tenant_id", "number", name="uq_payments_tenant_number"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    number: Mapped[str] = mapped_column(String(40), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_type: Mapped[str] = mapped_column(String(32), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False)
    customer_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("customers.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    supplier_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bank_account: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
    approved_by_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<PaymentModel(id={self.id}, number={self.number}, status={self.status})>"


class PaymentAllocationModel(Base, TenantScopedMixin, TimestampMixin):
    """Part of a payment applied to one sales or purchase invoice."""

    __tablename__ = "payment_allocations"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    payment_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    invoice_type: Mapped[str] = mapped_column(String(32), nullable=False)
    invoice_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    amount_allocated: Mapped[Decimal] = mapped_column(nullable=False)
    # Invoice status before this allocation was applied.
    invoice_status_before: Mapped[str | None] = mapped_column(String(32), nullable=True)
