"""Pydantic models for authentication API requests and responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from iam.application.value_objects import AuthResult, Principal


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SignupRequest(_CamelModel):
    """Request model for creating a new company account."""

    company_name: str = Field(
        ..., alias="companyName", min_length=1, max_length=255, description="Company name"
    )
    domain: str | None = Field(default=None, max_length=255, description="Company domain")
    email: str = Field(..., min_length=3, max_length=255)
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=50)


class RegisterRequest(_CamelModel):
    """Request model for joining an existing company.

    The company is named by ``tenantId`` (resolved with the request's tenant
    context) or by ``companyCode``.
    """

    tenant_id: str | None = Field(default=None, alias="tenantId")
    company_code: str | None = Field(default=None, alias="companyCode", max_length=50)
    email: str = Field(..., min_length=3, max_length=255)
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    role_id: str | None = Field(default=None, alias="roleId")


class LoginRequest(_CamelModel):
    """Request model for logging in."""

    tenant_id: str | None = Field(default=None, alias="tenantId")
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class PrincipalResponse(_CamelModel):
    """Response model for the authenticated user."""

    id: str
    tenant_id: str = Field(..., serialization_alias="tenantId")
    email: str
    username: str
    first_name: str = Field(..., serialization_alias="firstName")
    last_name: str = Field(..., serialization_alias="lastName")
    role_id: str | None = Field(default=None, serialization_alias="roleId")

    @classmethod
    def from_principal(cls, principal: Principal) -> PrincipalResponse:
        return cls(
            id=principal.id,
            tenant_id=principal.tenant_id,
            email=principal.email,
            username=principal.username,
            first_name=principal.first_name,
            last_name=principal.last_name,
            role_id=principal.role_id,
        )


class AuthResponse(_CamelModel):
    """Response model for signup, registration and login."""

    token: str
    expires_at: datetime = Field(..., serialization_alias="expiresAt")
    user: PrincipalResponse
    tenant_id: str = Field(..., serialization_alias="tenantId")
    company_code: str = Field(..., serialization_alias="companyCode")
    company_name: str = Field(..., serialization_alias="companyName")

    @classmethod
    def from_result(cls, result: AuthResult) -> AuthResponse:
        """Convert an AuthResult to the API response.

        Args:
            result: Outcome of an authentication use case

        Returns:
            AuthResponse
        """
        return cls(
            token=result.token,
            expires_at=result.expires_at,
            user=PrincipalResponse.from_principal(result.principal),
            tenant_id=result.tenant_id,
            company_code=result.tenant_code,
            company_name=result.tenant_name,
        )
