"""add_invoice_status_before_to_allocations

Record on each payment allocation the status its invoice had before the
allocation was applied, so cancelling the payment can put it back.

Revision ID: e1f2a3b4c5d6
Revises: c8d9e0f1a2b3
Create Date: 2026-10-18 10:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "e1f2a3b4c5d6"
down_revision: Union[str, Sequence[str], None] = "c8d9e0f1a2b3"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add invoice_status_before to payment_allocations."""
    # Nullable: allocations made before this revision fall back to the
    # invoice type's unpaid status.
    op.add_column(
        "payment_allocations",
        sa.Column(
            "invoice_status_before",
            sa.String(32),
            nullable=True,
        ),
    )


def downgrade() -> None:
    """Remove invoice_status_before from payment_allocations."""
    op.drop_column("payment_allocations", "invoice_status_before")
