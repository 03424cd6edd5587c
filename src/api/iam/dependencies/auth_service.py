"""AuthService dependency.

Signup, registration and login start from an unbound session: the service
binds it to the target tenant itself once the tenant is known.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from iam.application.observability import AuthServiceProbe, DefaultAuthServiceProbe
from iam.application.services import AuthService
from iam.dependencies.authentication import get_jwt_validator
from iam.infrastructure.tenant_repository import TenantRepository
from iam.infrastructure.user_repository import (
    RoleRepository,
    SessionRepository,
    UserRepository,
)
from infrastructure.database.dependencies import get_write_session
from infrastructure.settings import DatabaseSettings, get_database_settings
from shared_kernel.auth import JWTValidator


def get_auth_service_probe() -> AuthServiceProbe:
    """Get AuthServiceProbe instance.

    Returns:
        DefaultAuthServiceProbe instance for observability
    """
    return DefaultAuthServiceProbe()


def get_auth_service(
    session: Annotated[AsyncSession, Depends(get_write_session)],
    validator: Annotated[JWTValidator, Depends(get_jwt_validator)],
    probe: Annotated[AuthServiceProbe, Depends(get_auth_service_probe)],
    settings: Annotated[DatabaseSettings, Depends(get_database_settings)],
) -> AuthService:
    """Get AuthService instance.

    Args:
        session: Request session (bound by the service)
        validator: JWT validator issuing tokens
        probe: AuthService probe for observability
        settings: Database settings (statement timeout)

    Returns:
        AuthService instance
    """
    return AuthService(
        session=session,
        tenant_repository=TenantRepository(session),
        user_repository=UserRepository(session),
        role_repository=RoleRepository(session),
        session_repository=SessionRepository(session),
        validator=validator,
        probe=probe,
        statement_timeout_ms=settings.statement_timeout_ms,
    )
