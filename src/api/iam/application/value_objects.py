"""Application-layer value objects for IAM bounded context.

These represent the authentication context of a request rather than core
business entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from iam.infrastructure.models import UserModel


@dataclass(frozen=True)
class Principal:
    """The authenticated user of the current request.

    A deliberately minimal projection of the user row: it never carries the
    password hash or any other credential material.
    """

    id: str
    tenant_id: str
    email: str
    username: str
    first_name: str
    last_name: str
    role_id: str | None = None

    @classmethod
    def from_model(cls, user: UserModel) -> Principal:
        return cls(
            id=user.id,
            tenant_id=user.tenant_id,
            email=user.email,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            role_id=user.role_id,
        )


@dataclass(frozen=True)
class ClientInfo:
    """Where a login came from, recorded on the session row."""

    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class AuthResult:
    """Outcome of signup, registration or login."""

    token: str
    expires_at: datetime
    principal: Principal
    tenant_id: str
    tenant_code: str
    tenant_name: str
