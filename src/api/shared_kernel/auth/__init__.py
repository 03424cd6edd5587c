"""Authentication shared kernel module."""

from shared_kernel.auth.jwt_validator import (
    InvalidTokenError,
    IssuedToken,
    JWTValidator,
    TokenClaims,
    parse_bearer_token,
)
from shared_kernel.auth.observability import (
    DefaultJWTValidatorProbe,
    JWTValidatorProbe,
)

__all__ = [
    "InvalidTokenError",
    "IssuedToken",
    "JWTValidator",
    "JWTValidatorProbe",
    "DefaultJWTValidatorProbe",
    "TokenClaims",
    "parse_bearer_token",
]
