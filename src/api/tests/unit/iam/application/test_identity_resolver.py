"""Unit tests for IdentityResolver."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from iam.application.observability import AuthenticationProbe
from iam.application.security import hash_password
from iam.application.services import AuthService, IdentityResolver
from iam.infrastructure.models import TenantModel, UserModel
from iam.infrastructure.tenant_repository import TenantRepository
from iam.infrastructure.user_repository import (
    RoleRepository,
    SessionRepository,
    UserRepository,
)
from shared_kernel.auth import JWTValidator
from shared_kernel.exceptions import (
    PrincipalNotFoundError,
    TenantMismatchError,
    TenantSuspendedError,
    UnauthenticatedError,
)
from shared_kernel.middleware.tenant_context import TenantContext
from tests.unit.conftest import create_tenant, new_id, open_tenant_session


@pytest.fixture
def mock_probe() -> MagicMock:
    return MagicMock(spec=AuthenticationProbe)


@pytest_asyncio.fixture
async def login(sessionmaker, tenant_a: TenantModel, jwt_validator: JWTValidator):
    """A registered user of tenant A and the token issued to them."""
    async with sessionmaker() as session:
        service = AuthService(
            session=session,
            tenant_repository=TenantRepository(session),
            user_repository=UserRepository(session),
            role_repository=RoleRepository(session),
            session_repository=SessionRepository(session),
            validator=jwt_validator,
        )
        return await service.register(
            email="clerk@acme.test",
            username="clerk",
            password="secret-password",
            first_name="Bob",
            last_name="Clerk",
            tenant=TenantContext(tenant_id=tenant_a.id, source="header"),
        )


async def resolve(
    sessionmaker,
    tenant_id: str,
    claims,
    token: str | None,
    probe: MagicMock,
    enforce_sessions: bool = True,
):
    tenant_session = await open_tenant_session(sessionmaker, tenant_id)
    session = tenant_session.session
    try:
        resolver = IdentityResolver(
            session=session,
            tenant_repository=TenantRepository(session),
            user_repository=UserRepository(session),
            session_repository=SessionRepository(session),
            probe=probe,
            enforce_sessions=enforce_sessions,
        )
        return await resolver.resolve(claims, tenant_session.tenant, token)
    finally:
        await session.close()


class TestResolve:
    """Tests for IdentityResolver.resolve()."""

    @pytest.mark.asyncio
    async def test_resolves_active_user(
        self, sessionmaker, tenant_a, login, jwt_validator, mock_probe
    ) -> None:
        claims = jwt_validator.validate_token(login.token)

        principal = await resolve(sessionmaker, tenant_a.id, claims, login.token, mock_probe)

        assert principal == login.principal
        mock_probe.user_authenticated.assert_called_once_with(
            user_id=principal.id, tenant_id=tenant_a.id
        )

    @pytest.mark.asyncio
    async def test_token_for_another_tenant_is_rejected(
        self, sessionmaker, tenant_a, tenant_b, login, jwt_validator, mock_probe
    ) -> None:
        claims = jwt_validator.validate_token(login.token)

        with pytest.raises(TenantMismatchError):
            await resolve(sessionmaker, tenant_b.id, claims, login.token, mock_probe)

        mock_probe.tenant_mismatch.assert_called_once_with(
            token_tenant_id=tenant_a.id, request_tenant_id=tenant_b.id
        )

    @pytest.mark.asyncio
    async def test_invalid_tenant_claim(
        self, sessionmaker, tenant_a, login, jwt_validator, mock_probe
    ) -> None:
        claims = replace(jwt_validator.validate_token(login.token), tenant_id="acme")

        with pytest.raises(UnauthenticatedError):
            await resolve(sessionmaker, tenant_a.id, claims, login.token, mock_probe)

    @pytest.mark.asyncio
    async def test_lowercase_tenant_claim_matches(
        self, sessionmaker, tenant_a, login, jwt_validator, mock_probe
    ) -> None:
        claims = jwt_validator.validate_token(login.token)
        claims = replace(claims, tenant_id=claims.tenant_id.lower())

        principal = await resolve(sessionmaker, tenant_a.id, claims, login.token, mock_probe)

        assert principal.tenant_id == tenant_a.id

    @pytest.mark.asyncio
    async def test_user_stored_under_another_tenant_is_not_found(
        self, sessionmaker, tenant_a, tenant_b, seed, jwt_validator, mock_probe
    ) -> None:
        user = UserModel(
            id=new_id(),
            email="spy@globex.test",
            username="spy",
            password_hash=hash_password("pw"),
            first_name="S",
            last_name="Py",
        )
        await seed(tenant_b.id, user)
        issued = jwt_validator.issue_token(user_id=user.id, tenant_id=tenant_a.id)
        claims = jwt_validator.validate_token(issued.token)

        with pytest.raises(PrincipalNotFoundError):
            await resolve(
                sessionmaker, tenant_a.id, claims, issued.token, mock_probe, False
            )

    @pytest.mark.asyncio
    async def test_inactive_user_is_not_found(
        self, sessionmaker, tenant_a, login, jwt_validator, mock_probe
    ) -> None:
        tenant_session = await open_tenant_session(sessionmaker, tenant_a.id)
        async with tenant_session.session as session:
            async with session.begin():
                user = await session.get(UserModel, login.principal.id)
                user.status = "LOCKED"
        claims = jwt_validator.validate_token(login.token)

        with pytest.raises(PrincipalNotFoundError):
            await resolve(sessionmaker, tenant_a.id, claims, login.token, mock_probe)

    @pytest.mark.asyncio
    async def test_suspended_tenant(self, sessionmaker, jwt_validator, mock_probe) -> None:
        tenant = await create_tenant(sessionmaker, "DORMANT", status="SUSPENDED")
        issued = jwt_validator.issue_token(user_id=new_id(), tenant_id=tenant.id)
        claims = jwt_validator.validate_token(issued.token)

        with pytest.raises(TenantSuspendedError):
            await resolve(sessionmaker, tenant.id, claims, issued.token, mock_probe)

    @pytest.mark.asyncio
    async def test_revoked_session_is_rejected(
        self, sessionmaker, tenant_a, login, jwt_validator, mock_probe
    ) -> None:
        reissued = jwt_validator.issue_token(
            user_id=login.principal.id, tenant_id=tenant_a.id
        )
        claims = jwt_validator.validate_token(reissued.token)

        with pytest.raises(UnauthenticatedError):
            await resolve(sessionmaker, tenant_a.id, claims, reissued.token, mock_probe)

        mock_probe.authentication_failed.assert_called_once_with(
            reason="Session expired or revoked"
        )

    @pytest.mark.asyncio
    async def test_token_must_match_its_session(
        self, sessionmaker, tenant_a, login, jwt_validator, mock_probe
    ) -> None:
        claims = jwt_validator.validate_token(login.token)

        with pytest.raises(UnauthenticatedError):
            await resolve(sessionmaker, tenant_a.id, claims, "forged.token", mock_probe)

    @pytest.mark.asyncio
    async def test_sessions_can_be_left_unenforced(
        self, sessionmaker, tenant_a, login, jwt_validator, mock_probe
    ) -> None:
        reissued = jwt_validator.issue_token(
            user_id=login.principal.id, tenant_id=tenant_a.id
        )
        claims = jwt_validator.validate_token(reissued.token)

        principal = await resolve(
            sessionmaker, tenant_a.id, claims, reissued.token, mock_probe, False
        )

        assert principal.id == login.principal.id
