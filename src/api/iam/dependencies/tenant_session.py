"""Tenant-bound session dependency.

Handlers that touch tenant-owned data depend on ``get_tenant_session``
instead of a raw session. The binding happens before the handler runs and
is cleared when the request finishes, whatever the outcome.
"""

from __future__ import annotations

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from iam.dependencies.tenant_context import get_tenant_context
from infrastructure.database.dependencies import get_write_session
from infrastructure.database.tenant_session import (
    TenantSession,
    bind_tenant,
    release_tenant,
)
from infrastructure.observability import DefaultTenantSessionProbe, TenantSessionProbe
from infrastructure.settings import DatabaseSettings, get_database_settings
from shared_kernel.exceptions import TenantRequiredError
from shared_kernel.middleware.tenant_context import TenantContext


def get_tenant_session_probe() -> TenantSessionProbe:
    """Get TenantSessionProbe instance.

    Returns:
        DefaultTenantSessionProbe instance for observability
    """
    return DefaultTenantSessionProbe()


async def get_tenant_session(
    tenant: Annotated[TenantContext | None, Depends(get_tenant_context)],
    session: Annotated[AsyncSession, Depends(get_write_session)],
    settings: Annotated[DatabaseSettings, Depends(get_database_settings)],
    probe: Annotated[TenantSessionProbe, Depends(get_tenant_session_probe)],
) -> AsyncGenerator[TenantSession, None]:
    """Bind the request session to the resolved tenant (FastAPI dependency).

    Raises:
        TenantRequiredError: If the request resolved no tenant (public path).
        TenantBindingError: If storage rejected the binding.
    """
    if tenant is None:
        raise TenantRequiredError()

    await bind_tenant(
        session,
        tenant.tenant_id,
        statement_timeout_ms=settings.statement_timeout_ms,
        probe=probe,
    )
    try:
        yield TenantSession(tenant=tenant, session=session)
    finally:
        release_tenant(session, probe=probe)
