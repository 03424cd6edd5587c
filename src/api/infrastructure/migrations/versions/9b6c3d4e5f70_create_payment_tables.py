"""create payment tables

Revision ID: 9b6c3d4e5f70
Revises: 7a4b1c2d3e5f
Create Date: 2026-10-12 09:30:00.000000

Creates payments and payment_allocations. A payment references either a
customer or a supplier, never both.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "9b6c3d4e5f70"
down_revision: Union[str, Sequence[str], None] = "7a4b1c2d3e5f"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


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


def upgrade() -> None:
    """Create payment tables."""
    op.create_table(
        "payments",
        *_owned(),
        sa.Column("number", sa.String(40), nullable=False),
        sa.Column("payment_date", sa.Date, nullable=False),
        sa.Column("payment_type", sa.String(32), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=False),
        sa.Column(
            "customer_id",
            sa.String(26),
            sa.ForeignKey("customers.id", ondelete="RESTRICT"),
            nullable=True,
            index=True,
        ),
        sa.Column(
            "supplier_id",
            sa.String(26),
            sa.ForeignKey("suppliers.id", ondelete="RESTRICT"),
            nullable=True,
            index=True,
        ),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("reference_number", sa.String(100), nullable=True),
        sa.Column("bank_account", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("created_by_id", sa.String(26), nullable=True),
        sa.Column("approved_by_id", sa.String(26), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("tenant_id", "number", name="uq_payments_tenant_number"),
        sa.CheckConstraint(
            "(customer_id IS NULL) <> (supplier_id IS NULL)",
            name="ck_payments_single_party",
        ),
    )

    op.create_table(
        "payment_allocations",
        *_owned(),
        sa.Column(
            "payment_id",
            sa.String(26),
            sa.ForeignKey("payments.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("invoice_type", sa.String(32), nullable=False),
        sa.Column("invoice_id", sa.String(26), nullable=False, index=True),
        sa.Column("amount_allocated", sa.Numeric(14, 2), nullable=False),
    )


def downgrade() -> None:
    """Drop payment tables."""
    op.drop_table("payment_allocations")
    op.drop_table("payments")
