"""Current-principal dependency.

Authentication runs after tenant resolution and binding: the principal is
looked up through the request's tenant-bound session, so a user stored
under another tenant is simply not found.
"""

from typing import Annotated

from fastapi import Depends

from iam.application.observability import AuthenticationProbe
from iam.application.services import IdentityResolver
from iam.application.value_objects import Principal
from iam.dependencies.authentication import (
    get_authentication_probe,
    get_bearer_token,
    get_verified_claims,
)
from iam.dependencies.tenant_session import get_tenant_session
from iam.infrastructure.tenant_repository import TenantRepository
from iam.infrastructure.user_repository import SessionRepository, UserRepository
from infrastructure.database.tenant_session import TenantSession
from infrastructure.settings import AuthSettings, get_auth_settings
from shared_kernel.auth import TokenClaims
from shared_kernel.exceptions import UnauthenticatedError


def get_identity_resolver(
    tenant_session: Annotated[TenantSession, Depends(get_tenant_session)],
    probe: Annotated[AuthenticationProbe, Depends(get_authentication_probe)],
    settings: Annotated[AuthSettings, Depends(get_auth_settings)],
) -> IdentityResolver:
    """Get IdentityResolver instance working on the tenant-bound session."""
    session = tenant_session.session
    return IdentityResolver(
        session=session,
        tenant_repository=TenantRepository(session),
        user_repository=UserRepository(session),
        session_repository=SessionRepository(session),
        probe=probe,
        enforce_sessions=settings.enforce_sessions,
    )


def get_current_claims(
    token: Annotated[str | None, Depends(get_bearer_token)],
    claims: Annotated[TokenClaims | None, Depends(get_verified_claims)],
    probe: Annotated[AuthenticationProbe, Depends(get_authentication_probe)],
) -> TokenClaims:
    """Require verified claims on the request.

    Raises:
        UnauthenticatedError: If no token was sent or it failed verification.
    """
    if token is None:
        probe.authentication_failed(reason="Missing bearer token")
        raise UnauthenticatedError("Authentication required")
    if claims is None:
        probe.authentication_failed(reason="Invalid or expired token")
        raise UnauthenticatedError("Invalid or expired token")
    return claims


async def get_current_principal(
    token: Annotated[str | None, Depends(get_bearer_token)],
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    tenant_session: Annotated[TenantSession, Depends(get_tenant_session)],
    resolver: Annotated[IdentityResolver, Depends(get_identity_resolver)],
) -> Principal:
    """Resolve the authenticated principal of the request (FastAPI dependency).

    Raises:
        UnauthenticatedError: Missing, invalid or revoked credentials.
        TenantMismatchError: The token belongs to another tenant.
        PrincipalNotFoundError: The user does not exist in the tenant.
    """
    return await resolver.resolve(claims, tenant_session.tenant, token=token)
