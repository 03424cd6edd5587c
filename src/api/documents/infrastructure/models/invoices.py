"""SQLAlchemy ORM models for sales and purchase invoices."""

from __future__ import annotations

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from documents.infrastructure.models.mixins import (
    DocumentHeaderMixin,
    DocumentLineMixin,
    InvoiceMixin,
)
from infrastructure.database.models import Base, TenantScopedMixin, TimestampMixin


class SalesInvoiceModel(
    Base, DocumentHeaderMixin, InvoiceMixin, TenantScopedMixin, TimestampMixin
):
    __tablename__ = "sales_invoices"
    __table_args__ = (
        UniqueConstraint("tenant_id", "number", name="uq_sales_invoices_tenant_number"),
    )

    customer_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    sales_order_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("sales_orders.id", ondelete="SET NULL"), nullable=True
    )
    shipping_address_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("customer_addresses.id", ondelete="SET NULL"), nullable=True
    )
    billing_address_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("customer_addresses.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<SalesInvoiceModel(id={self.id}, number={self.number}, status={self.status})>"


class SalesInvoiceLineModel(Base, DocumentLineMixin, TenantScopedMixin, TimestampMixin):
    __tablename__ = "sales_invoice_lines"

    document_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("sales_invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("items.id", ondelete="RESTRICT"), nullable=True
    )


class PurchaseInvoiceModel(
    Base, DocumentHeaderMixin, InvoiceMixin, TenantScopedMixin, TimestampMixin
):
    """Purchase invoice.

    ``number`` is our own series; the supplier's invoice number is kept in
    ``supplier_invoice_number``.
    """

    __tablename__ = "purchase_invoices"
    __table_args__ = (
        UniqueConstraint("tenant_id", "number", name="uq_purchase_invoices_tenant_number"),
    )

    supplier_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    purchase_order_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("purchase_orders.id", ondelete="SET NULL"), nullable=True
    )
    supplier_invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<PurchaseInvoiceModel(id={self.id}, number={self.number}, status={self.status})>"


class PurchaseInvoiceLineModel(Base, DocumentLineMixin, TenantScopedMixin, TimestampMixin):
    __tablename__ = "purchase_invoice_lines"

    document_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("purchase_invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("items.id", ondelete="RESTRICT"), nullable=True
    )
