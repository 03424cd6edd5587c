"""HTTP routes for signup, registration, login and logout."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from iam.application.services import AuthService
from iam.application.value_objects import ClientInfo, Principal
from iam.dependencies.auth_service import get_auth_service
from iam.dependencies.tenant_context import get_tenant_context
from iam.dependencies.tenant_session import get_tenant_session
from iam.dependencies.user import get_current_claims, get_current_principal
from iam.presentation.auth.models import (
    AuthResponse,
    LoginRequest,
    PrincipalResponse,
    RegisterRequest,
    SignupRequest,
)
from infrastructure.database.tenant_session import TenantSession
from shared_kernel.auth import TokenClaims
from shared_kernel.middleware.tenant_context import TenantContext

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


def _client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    request: Request,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Create a new company with its first administrator.

    Returns:
        AuthResponse with the new user's token

    Raises:
        DuplicateTenantDomainError: 409 if the domain is taken
        DocumentValidationError: 400 if no company code can be derived
    """
    result = await service.signup(
        company_name=body.company_name,
        email=body.email,
        username=body.username,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        domain=body.domain,
        client=_client_info(request),
    )
    return AuthResponse.from_result(result)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    tenant: Annotated[TenantContext | None, Depends(get_tenant_context)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Join an existing company, named by tenant context or company code.

    Raises:
        TenantRequiredError: 400 if no company was named
        NotFoundError: 404 if the company does not exist
        DuplicateEmailError: 409 if the email is taken in the company
    """
    result = await service.register(
        email=body.email,
        username=body.username,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        tenant=tenant,
        company_code=body.company_code,
        phone=body.phone,
        role_id=body.role_id,
        client=_client_info(request),
    )
    return AuthResponse.from_result(result)


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    tenant: Annotated[TenantContext | None, Depends(get_tenant_context)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Log in to a company with email and password.

    Raises:
        TenantRequiredError: 400 if no company was named
        InvalidCredentialsError: 401 on bad credentials
    """
    result = await service.login(
        email=body.email,
        password=body.password,
        tenant=tenant,
        client=_client_info(request),
    )
    return AuthResponse.from_result(result)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    principal: Annotated[Principal, Depends(get_current_principal)],
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    tenant_session: Annotated[TenantSession, Depends(get_tenant_session)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> None:
    """End the caller's session."""
    await service.logout(claims, tenant_session)


@router.get("/me")
async def me(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> PrincipalResponse:
    """Return the authenticated user."""
    return PrincipalResponse.from_principal(principal)
