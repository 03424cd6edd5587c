"""create document tables

Create order and invoice headers with their line tables. Every header
carries a ``(tenant_id, number)`` unique constraint, the last guard of
document numbering.

Revision ID: 7a4b1c2d3e5f
Revises: 5d2e8b4c9a10
Create Date: 2026-10-12 09:20:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "7a4b1c2d3e5f"
down_revision: Union[str, Sequence[str], None] = "5d2e8b4c9a10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(14, 2)
QUANTITY = sa.Numeric(14, 4)
RATE = sa.Numeric(5, 4)


def _owned() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "tenant_id",
            sa.String(26),
            sa.ForeignKey("tenants.id", ondelete="RESTRICT"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def _money(name: str) -> sa.Column:
    return sa.Column(name, MONEY, nullable=False, server_default="0")


def _header(table: str, *columns: sa.Column) -> None:
    op.create_table(
        table,
        *_owned(),
        sa.Column("number", sa.String(40), nullable=False),
        sa.Column("document_date", sa.Date, nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("payment_terms", sa.String(100), nullable=True),
        sa.Column("reference_number", sa.String(100), nullable=True),
        _money("subtotal"),
        _money("discount_amount"),
        _money("tax_amount"),
        _money("shipping_charges"),
        _money("grand_total"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_by_id", sa.String(26), nullable=True),
        sa.Column("approved_by_id", sa.String(26), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *columns,
        sa.UniqueConstraint("tenant_id", "number", name=f"uq_{table}_tenant_number"),
    )


def _lines(table: str, header: str, *columns: sa.Column) -> None:
    op.create_table(
        table,
        *_owned(),
        sa.Column(
            "document_id",
            sa.String(26),
            sa.ForeignKey(f"{header}.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("line_number", sa.Integer, nullable=False),
        sa.Column(
            "item_id",
            sa.String(26),
            sa.ForeignKey("items.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("quantity", QUANTITY, nullable=False),
        sa.Column("unit_price", QUANTITY, nullable=False),
        sa.Column("discount_percentage", RATE, nullable=False, server_default="0"),
        _money("discount_amount"),
        sa.Column("tax_rate", RATE, nullable=False, server_default="0"),
        _money("tax_amount"),
        _money("line_total"),
        *columns,
    )


def _party(name: str, table: str) -> sa.Column:
    return sa.Column(
        name,
        sa.String(26),
        sa.ForeignKey(f"{table}.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )


def _address(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.String(26),
        sa.ForeignKey("customer_addresses.id", ondelete="SET NULL"),
        nullable=True,
    )


def _source(name: str, table: str) -> sa.Column:
    return sa.Column(
        name, sa.String(26), sa.ForeignKey(f"{table}.id", ondelete="SET NULL"), nullable=True
    )


def upgrade() -> None:
    """Upgrade schema."""
    _header(
        "sales_orders",
        _party("customer_id", "customers"),
        _address("shipping_address_id"),
        _address("billing_address_id"),
        sa.Column("expected_delivery_date", sa.Date, nullable=True),
    )
    _lines(
        "sales_order_lines",
        "sales_orders",
        sa.Column("quantity_delivered", QUANTITY, nullable=False, server_default="0"),
    )

    _header(
        "purchase_orders",
        _party("supplier_id", "suppliers"),
        sa.Column("expected_delivery_date", sa.Date, nullable=True),
    )
    _lines(
        "purchase_order_lines",
        "purchase_orders",
        sa.Column("quantity_received", QUANTITY, nullable=False, server_default="0"),
    )

    _header(
        "sales_invoices",
        _party("customer_id", "customers"),
        _source("sales_order_id", "sales_orders"),
        _address("shipping_address_id"),
        _address("billing_address_id"),
        sa.Column("due_date", sa.Date, nullable=False),
        _money("amount_paid"),
        _money("balance_due"),
    )
    _lines("sales_invoice_lines", "sales_invoices")

    _header(
        "purchase_invoices",
        _party("supplier_id", "suppliers"),
        _source("purchase_order_id", "purchase_orders"),
        sa.Column("supplier_invoice_number", sa.String(100), nullable=True),
        sa.Column("due_date", sa.Date, nullable=False),
        _money("amount_paid"),
        _money("balance_due"),
    )
    _lines("purchase_invoice_lines", "purchase_invoices")


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "purchase_invoice_lines",
        "purchase_invoices",
        "sales_invoice_lines",
        "sales_invoices",
        "purchase_order_lines",
        "purchase_orders",
        "sales_order_lines",
        "sales_orders",
    ):
        op.drop_table(table)
