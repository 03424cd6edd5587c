"""Credential dependencies: bearer token extraction and verification.

``get_verified_claims`` is cached per request by FastAPI, so the tenant
resolver and the identity resolver share a single verification.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header

from iam.application.observability import (
    AuthenticationProbe,
    DefaultAuthenticationProbe,
)
from infrastructure.settings import get_auth_settings
from shared_kernel.auth import (
    InvalidTokenError,
    JWTValidator,
    TokenClaims,
    parse_bearer_token,
)
from shared_kernel.auth.observability import DefaultJWTValidatorProbe


@lru_cache
def get_jwt_validator() -> JWTValidator:
    """Get cached JWT validator.

    Uses lru_cache to ensure a single JWTValidator instance is reused across
    requests.

    Returns:
        JWTValidator instance configured from auth settings.
    """
    settings = get_auth_settings()
    return JWTValidator(
        secret=settings.jwt_secret.get_secret_value(),
        probe=DefaultJWTValidatorProbe(),
        algorithm=settings.jwt_algorithm,
        issuer=settings.issuer,
        token_ttl=timedelta(minutes=settings.token_ttl_minutes),
        leeway=timedelta(seconds=settings.leeway_seconds),
    )


def get_authentication_probe() -> AuthenticationProbe:
    """Get AuthenticationProbe instance.

    Returns:
        DefaultAuthenticationProbe instance for observability
    """
    return DefaultAuthenticationProbe()


def get_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Extract the bearer token from the Authorization header, if any."""
    return parse_bearer_token(authorization)


def get_verified_claims(
    token: Annotated[str | None, Depends(get_bearer_token)],
    validator: Annotated[JWTValidator, Depends(get_jwt_validator)],
) -> TokenClaims | None:
    """Verify the bearer token once per request.

    Returns None when no token was sent or the token is invalid; callers
    that require authentication turn that into ``UnauthenticatedError``.
    """
    if token is None:
        return None
    try:
        return validator.validate_token(token)
    except InvalidTokenError:
        return None
