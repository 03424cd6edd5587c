"""Identity resolution: verified token claims to an active principal.

Runs after the tenant has been resolved and bound, inside the request's
tenant-scoped session, so the user lookup itself can only see the bound
tenant's rows.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from iam.application.observability import (
    AuthenticationProbe,
    DefaultAuthenticationProbe,
)
from iam.application.security import hash_session_token
from iam.application.value_objects import Principal
from iam.domain.value_objects import TenantStatus, UserStatus
from iam.ports.repositories import ISessionRepository, ITenantRepository, IUserRepository
from infrastructure.database.models import utc_now
from shared_kernel.auth import TokenClaims
from shared_kernel.exceptions import (
    InvalidTenantIdError,
    PrincipalNotFoundError,
    TenantMismatchError,
    TenantSuspendedError,
    UnauthenticatedError,
)
from shared_kernel.middleware.tenant_context import TenantContext, canonical_tenant_id


class IdentityResolver:
    """Maps verified claims to the principal they identify.

    Fails with:
        TenantMismatchError: the token belongs to another tenant.
        PrincipalNotFoundError: the user is absent, inactive or stored under
            a different tenant.
        TenantSuspendedError: the tenant exists but is not active.
        UnauthenticatedError: the token's session was revoked or expired.
    """

    def __init__(
        self,
        session: AsyncSession,
        tenant_repository: ITenantRepository,
        user_repository: IUserRepository,
        session_repository: ISessionRepository,
        probe: AuthenticationProbe | None = None,
        enforce_sessions: bool = True,
    ):
        self._session = session
        self._tenant_repository = tenant_repository
        self._user_repository = user_repository
        self._session_repository = session_repository
        self._probe = probe or DefaultAuthenticationProbe()
        self._enforce_sessions = enforce_sessions

    async def resolve(
        self,
        claims: TokenClaims,
        tenant: TenantContext,
        token: str | None = None,
    ) -> Principal:
        """Resolve the principal for a request.

        Args:
            claims: Claims of a token already verified by the JWT validator.
            tenant: The request's resolved tenant; the session must be bound to it.
            token: The raw token, compared against the session's stored digest.

        Returns:
            Principal projection of the user.
        """
        try:
            claims_tenant = canonical_tenant_id(claims.tenant_id)
        except InvalidTenantIdError:
            self._probe.authentication_failed(reason="Token tenant is not a valid ULID")
            raise UnauthenticatedError("Invalid token")

        if claims_tenant != tenant.tenant_id:
            self._probe.tenant_mismatch(
                token_tenant_id=claims_tenant,
                request_tenant_id=tenant.tenant_id,
            )
            raise TenantMismatchError()

        async with self._session.begin():
            tenant_row = await self._tenant_repository.get_by_id(tenant.tenant_id)
            if tenant_row is None:
                self._probe.authentication_failed(reason="Tenant not found")
                raise PrincipalNotFoundError()
            if not TenantStatus(tenant_row.status).allows_access:
                self._probe.authentication_failed(reason=f"Tenant {tenant_row.status}")
                raise TenantSuspendedError()

            user = await self._user_repository.get_by_id(claims.sub)
            if (
                user is None
                or user.tenant_id != tenant.tenant_id
                or user.status != UserStatus.ACTIVE
            ):
                self._probe.authentication_failed(reason="User not found or inactive")
                raise PrincipalNotFoundError()

            if self._enforce_sessions:
                await self._check_session(claims, token)

            principal = Principal.from_model(user)

        self._probe.user_authenticated(user_id=principal.id, tenant_id=principal.tenant_id)
        return principal

    async def _check_session(self, claims: TokenClaims, token: str | None) -> None:
        if claims.session_id is None:
            self._probe.authentication_failed(reason="Token carries no session")
            raise UnauthenticatedError("Session expired or revoked")

        user_session = await self._session_repository.get_active(
            claims.session_id, utc_now()
        )
        if (
            user_session is None
            or user_session.user_id != claims.sub
            or (token is not None and user_session.token_hash != hash_session_token(token))
        ):
            self._probe.authentication_failed(reason="Session expired or revoked")
            raise UnauthenticatedError("Session expired or revoked")
