"""Tenant context FastAPI dependency.

Resolves the tenant of the current request before any storage access.
Sources are tried in order and the first hit wins:

1. ``credential`` - the tenant of the request's already-verified token
2. ``token`` - the tenant of a bearer token verified here
3. ``header`` - the X-Tenant-ID header (when header override is enabled)
4. ``body`` - ``tenantId`` in the JSON body, on pre-auth paths only

A header can therefore never outrank an authenticated claim. A protected
path without any tenant fails with ``TenantRequiredError``; public paths
proceed with no tenant.

Usage in FastAPI routes:
    @router.get("/example")
    async def example(
        tenant: Annotated[TenantContext | None, Depends(get_tenant_context)],
    ):
        ...
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Annotated

from fastapi import Depends, Request

from iam.dependencies.authentication import (
    get_bearer_token,
    get_jwt_validator,
    get_verified_claims,
)
from infrastructure.settings import TenancySettings, get_tenancy_settings
from shared_kernel.auth import InvalidTokenError, JWTValidator, TokenClaims
from shared_kernel.exceptions import InvalidTenantIdError, TenantRequiredError
from shared_kernel.middleware.observability import DefaultTenantContextProbe
from shared_kernel.middleware.observability.tenant_context_probe import (
    TenantContextProbe,
)
from shared_kernel.middleware.tenant_context import (
    TenantContext,
    TenantSource,
    canonical_tenant_id,
)


def _accept(
    raw_value: object,
    source: TenantSource,
    path: str,
    probe: TenantContextProbe,
) -> TenantContext:
    try:
        tenant_id = canonical_tenant_id(raw_value)
    except InvalidTenantIdError:
        probe.invalid_tenant_id_format(raw_value=str(raw_value), source=source)
        raise
    probe.tenant_resolved(tenant_id=tenant_id, source=source, path=path)
    return TenantContext(tenant_id=tenant_id, source=source)


def resolve_tenant_context(
    path: str,
    probe: TenantContextProbe,
    verified_claims: TokenClaims | None = None,
    bearer_token: str | None = None,
    validator: JWTValidator | None = None,
    x_tenant_id: str | None = None,
    body_tenant_id: object | None = None,
    allow_header: bool = True,
    public_paths: Collection[str] = (),
    preauth_paths: Collection[str] = (),
) -> TenantContext | None:
    """Resolve the tenant of a request.

    This is the core logic for the tenant context dependency. It performs
    no storage access.

    Args:
        path: The request path, used for public/pre-auth decisions.
        probe: Domain probe for observability.
        verified_claims: Claims already verified earlier in the request.
        bearer_token: Raw bearer token to verify when no claims are given.
        validator: Validator for ``bearer_token``.
        x_tenant_id: The X-Tenant-ID header value, or None if missing.
        body_tenant_id: ``tenantId`` from the JSON body, or None.
        allow_header: Whether the header may supply the tenant.
        public_paths: Paths allowed to proceed without a tenant.
        preauth_paths: Paths whose body may supply the tenant.

    Returns:
        TenantContext, or None for a public path with no tenant.

    Raises:
        InvalidTenantIdError: If the winning source is not a valid ULID.
        TenantRequiredError: If a protected path has no tenant.
    """
    if verified_claims is not None:
        return _accept(verified_claims.tenant_id, "credential", path, probe)

    if bearer_token and validator is not None:
        try:
            claims = validator.validate_token(bearer_token)
        except InvalidTokenError as e:
            # Authentication reports the bad token; tenant falls through.
            probe.bearer_token_ignored(reason=str(e))
        else:
            return _accept(claims.tenant_id, "token", path, probe)

    if allow_header and x_tenant_id and x_tenant_id.strip():
        return _accept(x_tenant_id, "header", path, probe)

    if path in preauth_paths and body_tenant_id not in (None, ""):
        return _accept(body_tenant_id, "body", path, probe)

    if path in public_paths:
        probe.public_path_without_tenant(path=path)
        return None

    probe.tenant_missing(path=path)
    raise TenantRequiredError()


def get_tenant_context_probe() -> TenantContextProbe:
    """Get TenantContextProbe instance for tenant context resolution.

    Returns:
        DefaultTenantContextProbe instance for observability
    """
    return DefaultTenantContextProbe()


async def get_body_tenant_id(
    request: Request,
    settings: Annotated[TenancySettings, Depends(get_tenancy_settings)],
) -> object | None:
    """Read ``tenantId`` from the JSON body of pre-auth requests only."""
    if request.url.path not in settings.preauth_paths:
        return None
    try:
        body = await request.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("tenantId")
    return None


async def get_tenant_context(
    request: Request,
    probe: Annotated[TenantContextProbe, Depends(get_tenant_context_probe)],
    settings: Annotated[TenancySettings, Depends(get_tenancy_settings)],
    claims: Annotated[TokenClaims | None, Depends(get_verified_claims)],
    body_tenant_id: Annotated[object | None, Depends(get_body_tenant_id)],
    bearer_token: Annotated[str | None, Depends(get_bearer_token)],
    validator: Annotated[JWTValidator, Depends(get_jwt_validator)],
) -> TenantContext | None:
    """Resolve tenant context for the current request (FastAPI dependency)."""
    return resolve_tenant_context(
        path=request.url.path,
        probe=probe,
        verified_claims=claims,
        bearer_token=bearer_token,
        validator=validator,
        x_tenant_id=request.headers.get(settings.header_name),
        body_tenant_id=body_tenant_id,
        allow_header=settings.allow_header_override,
        public_paths=settings.public_paths,
        preauth_paths=settings.preauth_paths,
    )
