"""enable row level security

Every tenant-owned table gets a policy comparing ``tenant_id`` with the
transaction-local ``app.current_tenant_id`` setting, which the application
sets at the start of each transaction. An unset or empty setting matches
no rows. FORCE makes the policies apply to the table owner as well.

Revision ID: c8d9e0f1a2b3
Revises: 9b6c3d4e5f70
Create Date: 2026-10-12 09:40:00.000000

"""

from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "c8d9e0f1a2b3"
down_revision: Union[str, Sequence[str], None] = "9b6c3d4e5f70"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TENANT_TABLES = (
    "roles",
    "users",
    "user_sessions",
    "customers",
    "customer_addresses",
    "suppliers",
    "items",
    "sales_orders",
    "sales_order_lines",
    "purchase_orders",
    "purchase_order_lines",
    "sales_invoices",
    "sales_invoice_lines",
    "purchase_invoices",
    "purchase_invoice_lines",
    "payments",
    "payment_allocations",
)


def upgrade() -> None:
    """Upgrade schema."""
    op.execute("""
        CREATE OR REPLACE FUNCTION get_current_tenant_id()
        RETURNS text AS $$
            SELECT NULLIF(current_setting('app.current_tenant_id', true), '');
        $$ LANGUAGE sql STABLE;
    """)

    for table in TENANT_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;")
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY;")
        op.execute(f"""
            CREATE POLICY tenant_isolation ON {table}
                USING (tenant_id = get_current_tenant_id())
                WITH CHECK (tenant_id = get_current_tenant_id());
        """)


def downgrade() -> None:
    """Downgrade schema."""
    for table in reversed(TENANT_TABLES):
        op.execute(f"DROP POLICY IF EXISTS tenant_isolation ON {table};")
        op.execute(f"ALTER TABLE {table} NO FORCE ROW LEVEL SECURITY;")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY;")

    op.execute("DROP FUNCTION IF EXISTS get_current_tenant_id();")
