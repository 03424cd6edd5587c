"""SQLAlchemy implementation of ITenantRepository.

Tenants are the unscoped root table, so these queries work on bound and
unbound sessions alike.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from iam.infrastructure.models import TenantModel
from iam.ports.repositories import ITenantRepository


class TenantRepository(ITenantRepository):
    """Repository managing storage of tenants."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: AsyncSession from FastAPI dependency injection
        """
        self._session = session

    async def add(self, tenant: TenantModel) -> None:
        self._session.add(tenant)
        await self._session.flush()

    async def get_by_id(self, tenant_id: str) -> TenantModel | None:
        stmt = select(TenantModel).where(TenantModel.id == tenant_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_code(self, code: str) -> TenantModel | None:
        stmt = select(TenantModel).where(TenantModel.code == code.strip().upper())
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_domain(self, domain: str) -> TenantModel | None:
        stmt = select(TenantModel).where(
            func.lower(TenantModel.domain) == domain.strip().lower()
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def code_exists(self, code: str) -> bool:
        stmt = select(TenantModel.id).where(TenantModel.code == code).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None
