"""SQLAlchemy ORM models for sales and purchase orders."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from documents.infrastructure.models.mixins import DocumentHeaderMixin, DocumentLineMixin
from infrastructure.database.models import Base, TenantScopedMixin, TimestampMixin


class SalesOrderModel(Base, DocumentHeaderMixin, TenantScopedMixin, TimestampMixin):
    __tablename__ = "sales_orders"
    __table_args__ = (
        UniqueConstraint("tenant_id", "number", name="uq_sales_orders_tenant_number"),
    )

    customer_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    shipping_address_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("customer_addresses.id", ondelete="SET NULL"), nullable=True
    )
    billing_address_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("customer_addresses.id", ondelete="SET NULL"), nullable=True
    )
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<SalesOrderModel(id={self.id}, number={self.number}, status={self.status})>"


class SalesOrderLineModel(Base, DocumentLineMixin, TenantScopedMixin, TimestampMixin):
    __tablename__ = "sales_order_lines"

    document_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("items.id", ondelete="RESTRICT"), nullable=True
    )
    quantity_delivered: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=Decimal("0")
    )


class PurchaseOrderModel(Base, DocumentHeaderMixin, TenantScopedMixin, TimestampMixin):
    __tablename__ = "purchase_orders"
    __table_args__ = (
        UniqueConstraint("tenant_id", "number", name="uq_purchase_orders_tenant_number"),
    )

    supplier_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<PurchaseOrderModel(id={self.id}, number={self.number}, status={self.status})>"


class PurchaseOrderLineModel(Base, DocumentLineMixin, TenantScopedMixin, TimestampMixin):
    __tablename__ = "purchase_order_lines"

    document_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("items.id", ondelete="RESTRICT"), nullable=True
    )
    quantity_received: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=Decimal("0")
    )
