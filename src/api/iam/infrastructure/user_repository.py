"""SQLAlchemy implementations of the tenant-owned IAM repositories.

Users, roles and sessions are only ever read through a tenant-bound
session; the binding's loader criteria restrict every query below to the
bound tenant, so no method filters on tenant_id itself.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from iam.infrastructure.models import RoleModel, UserModel, UserSessionModel
from iam.ports.repositories import IRoleRepository, ISessionRepository, IUserRepository


class UserRepository(IUserRepository):
    """Repository for users of the bound tenant."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Tenant-bound AsyncSession
        """
        self._session = session

    async def add(self, user: UserModel) -> None:
        self._session.add(user)
        await self._session.flush()

    async def get_by_id(self, user_id: str) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> UserModel | None:
        stmt = select(UserModel).where(
            func.lower(UserModel.email) == email.strip().lower()
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.username == username.strip())
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


class RoleRepository(IRoleRepository):
    """Repository for roles of the bound tenant."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, role: RoleModel) -> None:
        self._session.add(role)
        await self._session.flush()

    async def get_by_id(self, role_id: str) -> RoleModel | None:
        stmt = select(RoleModel).where(RoleModel.id == role_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


class SessionRepository(ISessionRepository):
    """Repository for login sessions of the bound tenant."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, user_session: UserSessionModel) -> None:
        self._session.add(user_session)
        await self._session.flush()

    async def get_active(self, session_id: str, now: datetime) -> UserSessionModel | None:
        stmt = select(UserSessionModel).where(
            UserSessionModel.id == session_id,
            UserSessionModel.expires_at > now,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete(self, session_id: str) -> bool:
        stmt = (
            delete(UserSessionModel)
            .where(UserSessionModel.id == session_id)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete_for_user(self, user_id: str) -> int:
        stmt = (
            delete(UserSessionModel)
            .where(UserSessionModel.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def delete_expired(self, now: datetime) -> int:
        stmt = (
            delete(UserSessionModel)
            .where(UserSessionModel.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount
