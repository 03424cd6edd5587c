"""Account and session lifecycle for IAM bounded context.

Registration has two explicit paths:

* ``signup`` creates a brand-new tenant (company) and its first,
  administrator user.
* ``register`` joins an existing tenant, named either by the resolved
  tenant context or by its company code. Without either it fails with
  ``TenantRequiredError``; it never creates a tenant implicitly.

Every path binds the session to the target tenant before touching any
tenant-owned table.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from iam.application.observability import AuthServiceProbe, DefaultAuthServiceProbe
from iam.application.security import hash_password, hash_session_token, verify_password
from iam.application.value_objects import AuthResult, ClientInfo, Principal
from iam.domain.value_objects import (
    RoleId,
    SubscriptionTier,
    TenantCode,
    TenantId,
    TenantStatus,
    UserId,
    UserStatus,
)
from iam.infrastructure.models import (
    RoleModel,
    TenantModel,
    UserModel,
    UserSessionModel,
)
from iam.infrastructure.user_repository import SessionRepository
from iam.ports.exceptions import (
    DuplicateEmailError,
    DuplicateTenantDomainError,
    DuplicateUsernameError,
    InactiveAccountError,
    InvalidCredentialsError,
)
from iam.ports.repositories import (
    IRoleRepository,
    ISessionRepository,
    ITenantRepository,
    IUserRepository,
)
from infrastructure.database.models import utc_now
from infrastructure.database.tenant_session import TenantSession, bind_tenant
from shared_kernel.auth import JWTValidator, TokenClaims
from shared_kernel.exceptions import (
    CrossTenantReferenceError,
    DocumentValidationError,
    DuplicateError,
    NotFoundError,
    TenantRequiredError,
    TenantSuspendedError,
)
from shared_kernel.middleware.tenant_context import TenantContext

ADMIN_ROLE_NAME = "Administrator"
MAX_TENANT_CODE_ATTEMPTS = 100


class AuthService:
    """Application service for signup, registration, login and logout."""

    def __init__(
        self,
        session: AsyncSession,
        tenant_repository: ITenantRepository,
        user_repository: IUserRepository,
        role_repository: IRoleRepository,
        session_repository: ISessionRepository,
        validator: JWTValidator,
        probe: AuthServiceProbe | None = None,
        statement_timeout_ms: int | None = None,
    ):
        """Initialize AuthService with dependencies.

        Args:
            session: Request session; bound to a tenant by this service
            tenant_repository: Repository for tenants
            user_repository: Repository for users of the bound tenant
            role_repository: Repository for roles of the bound tenant
            session_repository: Repository for login sessions
            validator: Issues the bearer tokens
            probe: Optional domain probe for observability
            statement_timeout_ms: Statement timeout applied when binding
        """
        self._session = session
        self._tenant_repository = tenant_repository
        self._user_repository = user_repository
        self._role_repository = role_repository
        self._session_repository = session_repository
        self._validator = validator
        self._probe = probe or DefaultAuthServiceProbe()
        self._statement_timeout_ms = statement_timeout_ms

    async def signup(
        self,
        company_name: str,
        email: str,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str | None = None,
        domain: str | None = None,
        client: ClientInfo | None = None,
    ) -> AuthResult:
        """Create a new tenant with its first (administrator) user.

        Raises:
            DocumentValidationError: If no company code can be derived.
            DuplicateTenantDomainError: If the domain is already registered.
            DuplicateError: If a concurrent signup claimed the same code.
        """
        try:
            base_code = TenantCode.from_name(company_name)
        except ValueError as e:
            raise DocumentValidationError(str(e)) from e

        try:
            async with self._session.begin():
                if domain and await self._tenant_repository.get_by_domain(domain):
                    raise DuplicateTenantDomainError()

                code = await self._unique_tenant_code(base_code)
                tenant = TenantModel(
                    id=TenantId.generate().value,
                    code=code.value,
                    name=company_name.strip(),
                    domain=domain.strip().lower() if domain else None,
                    status=TenantStatus.ACTIVE.value,
                    subscription_tier=SubscriptionTier.STANDARD.value,
                )
                await self._tenant_repository.add(tenant)
                await self._bind(tenant.id)

                role = RoleModel(
                    id=RoleId.generate().value,
                    tenant_id=tenant.id,
                    name=ADMIN_ROLE_NAME,
                    description="Full access to the company account",
                    is_system=True,
                )
                await self._role_repository.add(role)

                user = self._new_user(
                    tenant_id=tenant.id,
                    email=email,
                    username=username,
                    password=password,
                    first_name=first_name,
                    last_name=last_name,
                    phone=phone,
                    role_id=role.id,
                )
                await self._user_repository.add(user)

                result = await self._open_session(user, tenant, client)
        except IntegrityError as e:
            raise DuplicateError("Company or user already exists") from e

        self._probe.tenant_signed_up(tenant_id=tenant.id, code=tenant.code, user_id=user.id)
        return result

    async def register(
        self,
        email: str,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        tenant: TenantContext | None = None,
        company_code: str | None = None,
        phone: str | None = None,
        role_id: str | None = None,
        client: ClientInfo | None = None,
    ) -> AuthResult:
        """Join an existing tenant.

        The tenant comes from the resolved tenant context when present,
        otherwise from ``company_code``.

        Raises:
            TenantRequiredError: If neither a tenant nor a company code is given.
            NotFoundError: If the tenant does not exist.
            TenantSuspendedError: If the tenant is not active.
            DuplicateEmailError / DuplicateUsernameError: On conflicts in the tenant.
            CrossTenantReferenceError: If ``role_id`` is not a role of the tenant.
        """
        if tenant is None and not (company_code and company_code.strip()):
            raise TenantRequiredError()

        try:
            async with self._session.begin():
                if tenant is not None:
                    tenant_row = await self._tenant_repository.get_by_id(tenant.tenant_id)
                else:
                    tenant_row = await self._tenant_repository.get_by_code(company_code or "")
                if tenant_row is None:
                    raise NotFoundError("Company not found")
                if not TenantStatus(tenant_row.status).allows_access:
                    raise TenantSuspendedError()

                await self._bind(tenant_row.id)

                if await self._user_repository.get_by_email(email):
                    raise DuplicateEmailError()
                if await self._user_repository.get_by_username(username):
                    raise DuplicateUsernameError()
                if role_id is not None and await self._role_repository.get_by_id(role_id) is None:
                    raise CrossTenantReferenceError("Role", role_id)

                user = self._new_user(
                    tenant_id=tenant_row.id,
                    email=email,
                    username=username,
                    password=password,
                    first_name=first_name,
                    last_name=last_name,
                    phone=phone,
                    role_id=role_id,
                )
                await self._user_repository.add(user)

                result = await self._open_session(user, tenant_row, client)
        except IntegrityError as e:
            raise DuplicateError("User already exists") from e

        self._probe.user_registered(tenant_id=tenant_row.id, user_id=user.id)
        return result

    async def login(
        self,
        email: str,
        password: str,
        tenant: TenantContext | None,
        client: ClientInfo | None = None,
    ) -> AuthResult:
        """Authenticate with email and password inside a tenant.

        A successful login replaces the user's previous sessions (one active
        session per user) and sweeps the tenant's expired sessions.

        Raises:
            TenantRequiredError: If no tenant was resolved for the request.
            InvalidCredentialsError: On unknown email, wrong password or unknown tenant.
            InactiveAccountError: If the user is not active.
            TenantSuspendedError: If the tenant is not active.
        """
        if tenant is None:
            raise TenantRequiredError()

        async with self._session.begin():
            tenant_row = await self._tenant_repository.get_by_id(tenant.tenant_id)
            if tenant_row is None:
                self._probe.login_failed(tenant_id=tenant.tenant_id, reason="unknown_tenant")
                raise InvalidCredentialsError()
            if not TenantStatus(tenant_row.status).allows_access:
                self._probe.login_failed(tenant_id=tenant.tenant_id, reason="tenant_inactive")
                raise TenantSuspendedError()

            await self._bind(tenant_row.id)

            user = await self._user_repository.get_by_email(email)
            if user is None or not verify_password(password, user.password_hash):
                self._probe.login_failed(tenant_id=tenant.tenant_id, reason="bad_credentials")
                raise InvalidCredentialsError()
            if user.status != UserStatus.ACTIVE:
                self._probe.login_failed(tenant_id=tenant.tenant_id, reason="user_inactive")
                raise InactiveAccountError()

            now = utc_now()
            user.last_login_at = now
            replaced = await self._session_repository.delete_for_user(user.id)
            await self._session_repository.delete_expired(now)

            result = await self._open_session(user, tenant_row, client)

        self._probe.user_logged_in(
            tenant_id=tenant_row.id, user_id=user.id, replaced_sessions=replaced
        )
        return result

    async def logout(self, claims: TokenClaims, tenant_session: TenantSession) -> None:
        """End the session the token belongs to.

        Args:
            claims: Verified claims of the caller's token.
            tenant_session: The request's tenant-bound session.
        """
        if claims.session_id is None:
            return
        # The request session, not the one this service binds per operation.
        sessions = SessionRepository(tenant_session.session)
        async with tenant_session.session.begin():
            await sessions.delete(claims.session_id)
        self._probe.user_logged_out(tenant_id=tenant_session.tenant_id, user_id=claims.sub)

    async def _bind(self, tenant_id: str) -> None:
        await bind_tenant(
            self._session, tenant_id, statement_timeout_ms=self._statement_timeout_ms
        )

    async def _unique_tenant_code(self, base: TenantCode) -> TenantCode:
        candidate = base
        for counter in range(1, MAX_TENANT_CODE_ATTEMPTS + 1):
            if not await self._tenant_repository.code_exists(candidate.value):
                return candidate
            candidate = base.with_suffix(counter)
        raise DuplicateError(f"Could not find a free company code for {base.value}")

    def _new_user(
        self,
        tenant_id: str,
        email: str,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str | None,
        role_id: str | None,
    ) -> UserModel:
        return UserModel(
            id=UserId.generate().value,
            tenant_id=tenant_id,
            email=email.strip().lower(),
            username=username.strip(),
            password_hash=hash_password(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone=phone,
            role_id=role_id,
            status=UserStatus.ACTIVE.value,
        )

    async def _open_session(
        self,
        user: UserModel,
        tenant: TenantModel,
        client: ClientInfo | None,
    ) -> AuthResult:
        issued = self._validator.issue_token(
            user_id=user.id,
            tenant_id=tenant.id,
            email=user.email,
            username=user.username,
            role_id=user.role_id,
        )
        client = client or ClientInfo()
        await self._session_repository.add(
            UserSessionModel(
                id=issued.session_id,
                tenant_id=tenant.id,
                user_id=user.id,
                token_hash=hash_session_token(issued.token),
                ip_address=client.ip_address,
                user_agent=(client.user_agent or "")[:512] or None,
                expires_at=issued.expires_at,
            )
        )
        return AuthResult(
            token=issued.token,
            expires_at=issued.expires_at,
            principal=Principal.from_model(user),
            tenant_id=tenant.id,
            tenant_code=tenant.code,
            tenant_name=tenant.name,
        )
