"""Unit tests for AuthService (signup, register, login, logout).

Runs against the SQLite test database so tenant binding and the
per-tenant uniqueness of users are exercised for real.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import select

from iam.application.observability import AuthServiceProbe
from iam.application.security import verify_password
from iam.application.services import AuthService
from iam.application.value_objects import ClientInfo
from iam.infrastructure.models import RoleModel, TenantModel, UserModel, UserSessionModel
from iam.infrastructure.tenant_repository import TenantRepository
from iam.infrastructure.user_repository import (
    RoleRepository,
    SessionRepository,
    UserRepository,
)
from iam.ports.exceptions import (
    DuplicateEmailError,
    DuplicateTenantDomainError,
    DuplicateUsernameError,
    InactiveAccountError,
    InvalidCredentialsError,
)
from shared_kernel.auth import JWTValidator
from shared_kernel.exceptions import (
    CrossTenantReferenceError,
    DocumentValidationError,
    NotFoundError,
    TenantRequiredError,
    TenantSuspendedError,
)
from shared_kernel.middleware.tenant_context import TenantContext
from tests.unit.conftest import create_tenant, open_tenant_session

PASSWORD = "correct horse battery"


@pytest.fixture
def mock_probe() -> MagicMock:
    return MagicMock(spec=AuthServiceProbe)


@pytest_asyncio.fixture
async def auth_service(sessionmaker, jwt_validator: JWTValidator, mock_probe: MagicMock):
    async with sessionmaker() as session:
        yield AuthService(
            session=session,
            tenant_repository=TenantRepository(session),
            user_repository=UserRepository(session),
            role_repository=RoleRepository(session),
            session_repository=SessionRepository(session),
            validator=jwt_validator,
            probe=mock_probe,
        )


async def load(sessionmaker, tenant_id: str, model: Any, *criteria) -> list[Any]:
    tenant_session = await open_tenant_session(sessionmaker, tenant_id)
    try:
        result = await tenant_session.session.execute(select(model).where(*criteria))
        return list(result.scalars().all())
    finally:
        await tenant_session.session.close()


def context(tenant: TenantModel) -> TenantContext:
    return TenantContext(tenant_id=tenant.id, source="header")


async def signup(service: AuthService, company: str = "Acme Trading Ltd.", **fields):
    fields.setdefault("email", "owner@acme.test")
    fields.setdefault("username", "owner")
    return await service.signup(
        company_name=company,
        password=PASSWORD,
        first_name="Ada",
        last_name="Owner",
        **fields,
    )


async def register(service: AuthService, **fields):
    fields.setdefault("email", "clerk@acme.test")
    fields.setdefault("username", "clerk")
    return await service.register(
        password=PASSWORD, first_name="Bob", last_name="Clerk", **fields
    )


class TestSignup:
    """Tests for creating a tenant with its first user."""

    @pytest.mark.asyncio
    async def test_creates_tenant_admin_role_and_user(
        self, auth_service, sessionmaker, jwt_validator, mock_probe
    ) -> None:
        result = await signup(auth_service)

        assert result.tenant_code == "ACME_TRADING_LTD"
        assert result.tenant_name == "Acme Trading Ltd."
        assert result.principal.tenant_id == result.tenant_id
        claims = jwt_validator.validate_token(result.token)
        assert claims.sub == result.principal.id
        assert claims.tenant_id == result.tenant_id

        [role] = await load(sessionmaker, result.tenant_id, RoleModel)
        [user] = await load(sessionmaker, result.tenant_id, UserModel)
        assert role.name == "Administrator"
        assert role.is_system is True
        assert user.role_id == role.id
        assert verify_password(PASSWORD, user.password_hash)
        mock_probe.tenant_signed_up.assert_called_once_with(
            tenant_id=result.tenant_id, code="ACME_TRADING_LTD", user_id=user.id
        )

    @pytest.mark.asyncio
    async def test_records_session_for_issued_token(
        self, auth_service, sessionmaker, jwt_validator
    ) -> None:
        result = await signup(
            auth_service, client=ClientInfo(ip_address="10.0.0.1", user_agent="pytest")
        )

        claims = jwt_validator.validate_token(result.token)
        [stored] = await load(sessionmaker, result.tenant_id, UserSessionModel)
        assert stored.id == claims.session_id
        assert stored.ip_address == "10.0.0.1"
        assert stored.token_hash != result.token

    @pytest.mark.asyncio
    async def test_taken_code_gets_numeric_suffix(self, auth_service, tenant_a) -> None:
        result = await signup(auth_service, company="acme")

        assert tenant_a.code == "ACME"
        assert result.tenant_code == "ACME_1"

    @pytest.mark.asyncio
    async def test_rejects_name_without_letters_or_digits(self, auth_service) -> None:
        with pytest.raises(DocumentValidationError):
            await signup(auth_service, company="!!!")

    @pytest.mark.asyncio
    async def test_rejects_registered_domain(self, auth_service, jwt_validator, sessionmaker):
        await signup(auth_service, domain="acme.test")

        async with sessionmaker() as session:
            other = AuthService(
                session=session,
                tenant_repository=TenantRepository(session),
                user_repository=UserRepository(session),
                role_repository=RoleRepository(session),
                session_repository=SessionRepository(session),
                validator=jwt_validator,
            )
            with pytest.raises(DuplicateTenantDomainError):
                await signup(other, company="Acme Two", domain="ACME.test")


class TestRegister:
    """Tests for joining an existing tenant."""

    @pytest.mark.asyncio
    async def test_joins_tenant_by_company_code(
        self, auth_service, tenant_a, sessionmaker, mock_probe
    ) -> None:
        result = await register(auth_service, company_code="acme")

        assert result.tenant_id == tenant_a.id
        assert result.principal.email == "clerk@acme.test"
        users = await load(sessionmaker, tenant_a.id, UserModel)
        assert [u.username for u in users] == ["clerk"]
        mock_probe.user_registered.assert_called_once_with(
            tenant_id=tenant_a.id, user_id=result.principal.id
        )

    @pytest.mark.asyncio
    async def test_resolved_tenant_wins_over_company_code(
        self, auth_service, tenant_a, tenant_b
    ) -> None:
        result = await register(auth_service, tenant=context(tenant_b), company_code="ACME")

        assert result.tenant_id == tenant_b.id

    @pytest.mark.asyncio
    async def test_requires_a_tenant(self, auth_service) -> None:
        with pytest.raises(TenantRequiredError):
            await register(auth_service, company_code="  ")

    @pytest.mark.asyncio
    async def test_unknown_company(self, auth_service) -> None:
        with pytest.raises(NotFoundError):
            await register(auth_service, company_code="NOPE")

    @pytest.mark.asyncio
    async def test_suspended_company(self, auth_service, sessionmaker) -> None:
        await create_tenant(sessionmaker, "DORMANT", status="SUSPENDED")

        with pytest.raises(TenantSuspendedError):
            await register(auth_service, company_code="DORMANT")

    @pytest.mark.asyncio
    async def test_duplicate_email_within_tenant(self, auth_service, tenant_a) -> None:
        await register(auth_service, tenant=context(tenant_a))

        with pytest.raises(DuplicateEmailError):
            await register(auth_service, tenant=context(tenant_a), username="other")

    @pytest.mark.asyncio
    async def test_duplicate_username_within_tenant(self, auth_service, tenant_a) -> None:
        await register(auth_service, tenant=context(tenant_a))

        with pytest.raises(DuplicateUsernameError):
            await register(auth_service, tenant=context(tenant_a), email="x@acme.test")

    @pytest.mark.asyncio
    async def test_same_email_in_another_tenant_is_allowed(
        self, auth_service, tenant_a, tenant_b
    ) -> None:
        first = await register(auth_service, tenant=context(tenant_a))
        second = await register(auth_service, tenant=context(tenant_b))

        assert first.principal.email == second.principal.email
        assert first.tenant_id != second.tenant_id

    @pytest.mark.asyncio
    async def test_rejects_role_of_another_tenant(
        self, auth_service, tenant_a, sessionmaker
    ) -> None:
        foreign = await signup(auth_service, company="Initech")
        [foreign_role] = await load(sessionmaker, foreign.tenant_id, RoleModel)

        with pytest.raises(CrossTenantReferenceError):
            await register(auth_service, tenant=context(tenant_a), role_id=foreign_role.id)

        assert await load(sessionmaker, tenant_a.id, UserModel) == []


class TestLogin:
    """Tests for password login and session replacement."""

    @pytest.mark.asyncio
    async def test_login_replaces_previous_session(
        self, auth_service, tenant_a, sessionmaker, jwt_validator, mock_probe
    ) -> None:
        registered = await register(auth_service, tenant=context(tenant_a))

        result = await auth_service.login("Clerk@acme.test", PASSWORD, context(tenant_a))

        claims = jwt_validator.validate_token(result.token)
        [stored] = await load(sessionmaker, tenant_a.id, UserSessionModel)
        assert stored.id == claims.session_id
        assert result.principal.id == registered.principal.id
        mock_probe.user_logged_in.assert_called_once_with(
            tenant_id=tenant_a.id, user_id=registered.principal.id, replaced_sessions=1
        )

    @pytest.mark.asyncio
    async def test_wrong_password(self, auth_service, tenant_a, mock_probe) -> None:
        await register(auth_service, tenant=context(tenant_a))

        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("clerk@acme.test", "wrong", context(tenant_a))

        mock_probe.login_failed.assert_called_once_with(
            tenant_id=tenant_a.id, reason="bad_credentials"
        )

    @pytest.mark.asyncio
    async def test_user_of_another_tenant_cannot_log_in(
        self, auth_service, tenant_a, tenant_b
    ) -> None:
        await register(auth_service, tenant=context(tenant_a))

        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("clerk@acme.test", PASSWORD, context(tenant_b))

    @pytest.mark.asyncio
    async def test_requires_a_tenant(self, auth_service) -> None:
        with pytest.raises(TenantRequiredError):
            await auth_service.login("clerk@acme.test", PASSWORD, None)

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, auth_service) -> None:
        unknown = TenantContext(tenant_id="01ARZ3NDEKTSV4RRFFQ69G5FAV", source="header")

        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("clerk@acme.test", PASSWORD, unknown)

    @pytest.mark.asyncio
    async def test_inactive_user(self, auth_service, tenant_a, sessionmaker) -> None:
        registered = await register(auth_service, tenant=context(tenant_a))
        tenant_session = await open_tenant_session(sessionmaker, tenant_a.id)
        async with tenant_session.session as session:
            async with session.begin():
                user = await session.get(UserModel, registered.principal.id)
                user.status = "INACTIVE"

        with pytest.raises(InactiveAccountError):
            await auth_service.login("clerk@acme.test", PASSWORD, context(tenant_a))


class TestLogout:
    """Tests for ending a session."""

    @pytest.mark.asyncio
    async def test_deletes_the_tokens_session(
        self, auth_service, tenant_a, sessionmaker, jwt_validator, mock_probe
    ) -> None:
        registered = await register(auth_service, tenant=context(tenant_a))
        claims = jwt_validator.validate_token(registered.token)
        tenant_session = await open_tenant_session(sessionmaker, tenant_a.id)

        try:
            await auth_service.logout(claims, tenant_session)
        finally:
            await tenant_session.session.close()

        assert await load(sessionmaker, tenant_a.id, UserSessionModel) == []
        mock_probe.user_logged_out.assert_called_once_with(
            tenant_id=tenant_a.id, user_id=registered.principal.id
        )

    @pytest.mark.asyncio
    async def test_keeps_other_users_sessions(
        self, auth_service, tenant_a, sessionmaker, jwt_validator
    ) -> None:
        clerk = await register(auth_service, tenant=context(tenant_a))
        other = await register(
            auth_service, tenant=context(tenant_a), email="other@acme.test", username="other"
        )
        tenant_session = await open_tenant_session(sessionmaker, tenant_a.id)

        try:
            await auth_service.logout(jwt_validator.validate_token(clerk.token), tenant_session)
            assert not tenant_session.session.in_transaction()
        finally:
            await tenant_session.session.close()

        [remaining] = await load(sessionmaker, tenant_a.id, UserSessionModel)
        assert remaining.id == jwt_validator.validate_token(other.token).session_id
