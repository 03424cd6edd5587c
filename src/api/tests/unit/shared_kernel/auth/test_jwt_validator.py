"""Unit tests for JWT issuing and validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from jose import jwt

from shared_kernel.auth.jwt_validator import (
    InvalidTokenError,
    JWTValidator,
    TokenClaims,
    parse_bearer_token,
)
from tests.unit.conftest import TEST_ISSUER, TEST_SECRET

TENANT_ID = "01JAAAAAAAAAAAAAAAAAAAAAAA"


def _payload(**overrides) -> dict:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "01JUSER0000000000000000000",
        "tenant_id": TENANT_ID,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=1)).timestamp()),
        "jti": "01JSESSION0000000000000000",
        "iss": TEST_ISSUER,
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}


class TestIssueToken:
    """Tests for JWTValidator.issue_token()."""

    def test_issued_token_validates_with_same_claims(
        self, jwt_validator: JWTValidator
    ) -> None:
        """A freshly issued token should round-trip through validation."""
        issued = jwt_validator.issue_token(
            user_id="user-1",
            tenant_id=TENANT_ID,
            email="a@example.com",
            username="alice",
            role_id="role-1",
        )

        claims = jwt_validator.validate_token(issued.token)

        assert isinstance(claims, TokenClaims)
        assert claims.sub == "user-1"
        assert claims.tenant_id == TENANT_ID
        assert claims.session_id == issued.session_id
        assert claims.email == "a@example.com"
        assert claims.username == "alice"
        assert claims.role_id == "role-1"
        assert claims.expires_at == issued.expires_at

    def test_expiry_follows_configured_ttl(self, jwt_validator: JWTValidator) -> None:
        """Tokens should expire one TTL after issue."""
        now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

        issued = jwt_validator.issue_token(user_id="u", tenant_id=TENANT_ID, now=now)

        assert issued.expires_at == now + timedelta(hours=1)

    def test_fires_probe_on_issue(
        self, jwt_validator: JWTValidator, mock_jwt_probe: MagicMock
    ) -> None:
        """Should record the issued token in the probe."""
        jwt_validator.issue_token(user_id="u", tenant_id=TENANT_ID)

        mock_jwt_probe.token_issued.assert_called_once_with(user_id="u", tenant_id=TENANT_ID)

    def test_rejects_empty_secret(self, mock_jwt_probe: MagicMock) -> None:
        """An empty secret would accept forged tokens and must be refused."""
        with pytest.raises(ValueError):
            JWTValidator(secret="", probe=mock_jwt_probe)


class TestValidateToken:
    """Tests for JWTValidator.validate_token() failure modes."""

    def test_rejects_wrong_signature(self, jwt_validator: JWTValidator) -> None:
        token = jwt.encode(_payload(), "another-secret", algorithm="HS256")

        with pytest.raises(InvalidTokenError, match="signature"):
            jwt_validator.validate_token(token)

    def test_rejects_expired_token(self, jwt_validator: JWTValidator) -> None:
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            _payload(
                iat=int(past.timestamp()),
                exp=int((past + timedelta(minutes=5)).timestamp()),
            ),
            TEST_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError, match="expired"):
            jwt_validator.validate_token(token)

    def test_accepts_token_expired_within_leeway(self, jwt_validator: JWTValidator) -> None:
        """Clock skew up to the leeway should be tolerated."""
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            _payload(
                iat=int((now - timedelta(minutes=5)).timestamp()),
                exp=int((now - timedelta(seconds=3)).timestamp()),
            ),
            TEST_SECRET,
            algorithm="HS256",
        )

        claims = jwt_validator.validate_token(token)

        assert claims.tenant_id == TENANT_ID

    def test_rejects_wrong_issuer(self, jwt_validator: JWTValidator) -> None:
        token = jwt.encode(_payload(iss="someone-else"), TEST_SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError, match="issuer"):
            jwt_validator.validate_token(token)

    def test_rejects_missing_tenant_claim(self, jwt_validator: JWTValidator) -> None:
        token = jwt.encode(_payload(tenant_id=None), TEST_SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError, match="tenant_id"):
            jwt_validator.validate_token(token)

    def test_rejects_missing_subject(self, jwt_validator: JWTValidator) -> None:
        token = jwt.encode(_payload(sub=None), TEST_SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            jwt_validator.validate_token(token)

    def test_rejects_other_algorithm(self, jwt_validator: JWTValidator) -> None:
        """Only the configured algorithm is accepted."""
        token = jwt.encode(_payload(), TEST_SECRET, algorithm="HS512")

        with pytest.raises(InvalidTokenError):
            jwt_validator.validate_token(token)

    def test_rejects_malformed_token(
        self, jwt_validator: JWTValidator, mock_jwt_probe: MagicMock
    ) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_validator.validate_token("not-a-jwt")

        mock_jwt_probe.token_validation_failed.assert_called_once()

    def test_fires_probe_on_success(
        self, jwt_validator: JWTValidator, mock_jwt_probe: MagicMock
    ) -> None:
        token = jwt.encode(_payload(), TEST_SECRET, algorithm="HS256")

        jwt_validator.validate_token(token)

        mock_jwt_probe.token_validated.assert_called_once_with(
            user_id="01JUSER0000000000000000000", tenant_id=TENANT_ID
        )


class TestParseBearerToken:
    """Tests for parse_bearer_token()."""

    def test_extracts_token(self) -> None:
        assert parse_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self) -> None:
        assert parse_bearer_token("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer", "Bearer a b"])
    def test_returns_none_for_other_headers(self, header: str | None) -> None:
        assert parse_bearer_token(header) is None
