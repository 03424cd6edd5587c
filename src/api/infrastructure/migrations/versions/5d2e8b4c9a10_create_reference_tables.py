"""create reference tables

Create the customers, customer_addresses, suppliers and items tables that
documents reference. Codes are unique within a tenant.

Revision ID: 5d2e8b4c9a10
Revises: 3c1f0a9e7b21
Create Date: 2026-10-12 09:10:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "5d2e8b4c9a10"
down_revision: Union[str, Sequence[str], None] = "3c1f0a9e7b21"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _common() -> list[sa.Column]:
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


def _master_data(table: str, *columns: sa.Column) -> None:
    op.create_table(
        table,
        *_common(),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        *columns,
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("tenant_id", "code", name=f"uq_{table}_tenant_code"),
    )


def upgrade() -> None:
    """Upgrade schema."""
    _master_data("customers", sa.Column("email", sa.String(255), nullable=True))
    _master_data("suppliers", sa.Column("email", sa.String(255), nullable=True))
    _master_data(
        "items",
        sa.Column("unit_price", sa.Numeric(14, 4), nullable=False, server_default="0"),
    )

    op.create_table(
        "customer_addresses",
        *_common(),
        sa.Column(
            "customer_id",
            sa.String(26),
            sa.ForeignKey("customers.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("address_type", sa.String(20), nullable=False, server_default="BOTH"),
        sa.Column("line1", sa.String(255), nullable=False),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default="false"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("customer_addresses")
    op.drop_table("items")
    op.drop_table("suppliers")
    op.drop_table("customers")
