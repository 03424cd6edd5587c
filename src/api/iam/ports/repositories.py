"""Repository protocols (ports) for IAM bounded context.

Tenant-owned repositories (users, roles, sessions) operate on a session
that is already bound to a tenant, so none of their methods take a
tenant id: the binding decides which rows are visible.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from iam.infrastructure.models import (
    RoleModel,
    TenantModel,
    UserModel,
    UserSessionModel,
)


@runtime_checkable
class ITenantRepository(Protocol):
    """Repository for tenants (the unscoped root table)."""

    async def add(self, tenant: TenantModel) -> None:
        """Insert a new tenant and flush it."""
        ...

    async def get_by_id(self, tenant_id: str) -> TenantModel | None:
        """Retrieve a tenant by its ID."""
        ...

    async def get_by_code(self, code: str) -> TenantModel | None:
        """Retrieve a tenant by its company code."""
        ...

    async def get_by_domain(self, domain: str) -> TenantModel | None:
        """Retrieve a tenant by its domain."""
        ...

    async def code_exists(self, code: str) -> bool:
        """Check whether a company code is taken."""
        ...


@runtime_checkable
class IUserRepository(Protocol):
    """Repository for users of the bound tenant."""

    async def add(self, user: UserModel) -> None:
        """Insert a new user and flush it."""
        ...

    async def get_by_id(self, user_id: str) -> UserModel | None:
        """Retrieve a user by ID."""
        ...

    async def get_by_email(self, email: str) -> UserModel | None:
        """Retrieve a user by email (case-insensitive)."""
        ...

    async def get_by_username(self, username: str) -> UserModel | None:
        """Retrieve a user by username."""
        ...


@runtime_checkable
class IRoleRepository(Protocol):
    """Repository for roles of the bound tenant."""

    async def add(self, role: RoleModel) -> None:
        """Insert a new role and flush it."""
        ...

    async def get_by_id(self, role_id: str) -> RoleModel | None:
        """Retrieve a role by ID."""
        ...


@runtime_checkable
class ISessionRepository(Protocol):
    """Repository for login sessions of the bound tenant."""

    async def add(self, user_session: UserSessionModel) -> None:
        """Insert a new session and flush it."""
        ...

    async def get_active(self, session_id: str, now: datetime) -> UserSessionModel | None:
        """Retrieve a session that has not expired."""
        ...

    async def delete(self, session_id: str) -> bool:
        """Delete a session. Returns True if a row was removed."""
        ...

    async def delete_for_user(self, user_id: str) -> int:
        """Delete every session of a user. Returns the number removed."""
        ...

    async def delete_expired(self, now: datetime) -> int:
        """Delete expired sessions. Returns the number removed."""
        ...
