"""JWT issuing and validation with a shared HMAC secret.

Validation is pure: it never touches storage. Only the configured
algorithm is accepted, so unsigned (``alg: none``) tokens and
algorithm-confusion attempts fail like any other bad signature.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError
from ulid import ULID

if TYPE_CHECKING:
    from shared_kernel.auth.observability import JWTValidatorProbe


@dataclass(frozen=True)
class TokenClaims:
    """Validated JWT claims."""

    sub: str
    tenant_id: str
    issued_at: datetime
    expires_at: datetime
    session_id: str | None = None
    email: str | None = None
    username: str | None = None
    role_id: str | None = None


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed token and the session it belongs to."""

    token: str
    session_id: str
    expires_at: datetime


class InvalidTokenError(Exception):
    """Raised when JWT validation fails."""

    pass


class JWTValidator:
    """Issues and validates HS256 bearer tokens.

    Validates signature, expiry (with a small fixed leeway), issuer, and
    the presence of the subject and tenant claims.
    """

    def __init__(
        self,
        secret: str,
        probe: JWTValidatorProbe,
        algorithm: str = "HS256",
        issuer: str | None = None,
        token_ttl: timedelta = timedelta(days=7),
        leeway: timedelta = timedelta(seconds=10),
    ):
        """Initialize the JWT validator.

        Args:
            secret: Shared HMAC secret.
            probe: Observability probe for logging events.
            algorithm: The only algorithm tokens may be signed with.
            issuer: Expected and issued ``iss`` claim, if any.
            token_ttl: Lifetime of issued tokens.
            leeway: Clock skew tolerated when checking expiry.
        """
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._probe = probe
        self._algorithm = algorithm
        self._issuer = issuer
        self._token_ttl = token_ttl
        self._leeway = leeway

    def issue_token(
        self,
        user_id: str,
        tenant_id: str,
        email: str | None = None,
        username: str | None = None,
        role_id: str | None = None,
        session_id: str | None = None,
        now: datetime | None = None,
    ) -> IssuedToken:
        """Sign a token for a principal in a tenant.

        Args:
            user_id: Subject claim.
            tenant_id: Tenant claim.
            email: Optional email claim.
            username: Optional username claim.
            role_id: Optional role claim.
            session_id: Session id stored as ``jti``; generated when omitted.
            now: Issue time, defaults to the current UTC time.

        Returns:
            IssuedToken with the encoded token, its session id and expiry.
        """
        issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        expires_at = issued_at + self._token_ttl
        session_id = session_id or str(ULID())

        payload: dict[str, Any] = {
            "sub": user_id,
            "tenant_id": tenant_id,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": session_id,
            "email": email,
            "username": username,
            "role_id": role_id,
        }
        if self._issuer:
            payload["iss"] = self._issuer

        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        self._probe.token_issued(user_id=user_id, tenant_id=tenant_id)

        return IssuedToken(token=token, session_id=session_id, expires_at=expires_at)

    def validate_token(self, token: str) -> TokenClaims:
        """Validate JWT and return claims.

        Args:
            token: The JWT token string.

        Returns:
            TokenClaims containing the validated claims.

        Raises:
            InvalidTokenError: If token is invalid, expired, or verification fails.
        """
        # First, do a quick check for malformed tokens
        try:
            unverified_header = jwt.get_unverified_header(token)
        except JWTError as e:
            self._probe.token_validation_failed(reason=f"Malformed token: {e}")
            raise InvalidTokenError(f"Invalid token format: {e}") from e

        if not unverified_header:
            self._probe.token_validation_failed(reason="Missing token header")
            raise InvalidTokenError("Invalid token: missing header")

        try:
            claims = jwt.decode(
                token=token,
                key=self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_iss": self._issuer is not None,
                    "verify_aud": False,
                    "require_exp": True,
                    "require_iat": True,
                    "require_sub": True,
                    "leeway": int(self._leeway.total_seconds()),
                },
            )
        except ExpiredSignatureError as e:
            self._probe.token_validation_failed(reason="Token expired")
            raise InvalidTokenError("Token has expired") from e
        except JWTClaimsError as e:
            if "issuer" in str(e).lower():
                self._probe.token_validation_failed(reason="Invalid issuer")
                raise InvalidTokenError("Invalid issuer claim") from e
            self._probe.token_validation_failed(reason=f"Claims error: {e}")
            raise InvalidTokenError(f"Invalid token claims: {e}") from e
        except JWTError as e:
            error_msg = str(e).lower()
            if "signature" in error_msg:
                self._probe.token_validation_failed(reason="Invalid signature")
                raise InvalidTokenError("Invalid token signature") from e
            self._probe.token_validation_failed(reason=f"JWT error: {e}")
            raise InvalidTokenError(f"Invalid token: {e}") from e

        user_id = claims.get("sub")
        tenant_id = claims.get("tenant_id")
        if not user_id:
            self._probe.token_validation_failed(reason="Missing sub claim")
            raise InvalidTokenError("Missing required claim: sub")
        if not tenant_id or not isinstance(tenant_id, str):
            self._probe.token_validation_failed(reason="Missing tenant_id claim")
            raise InvalidTokenError("Missing required claim: tenant_id")

        self._probe.token_validated(user_id=str(user_id), tenant_id=tenant_id)

        return TokenClaims(
            sub=str(user_id),
            tenant_id=tenant_id,
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            session_id=_optional_str(claims.get("jti")),
            email=_optional_str(claims.get("email")),
            username=_optional_str(claims.get("username")),
            role_id=_optional_str(claims.get("role_id")),
        )


def _optional_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def parse_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Any other scheme, or a header without a token, yields None.
    """
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]
