"""Unit tests for infrastructure settings."""

import pytest
from pydantic import ValidationError

from infrastructure.settings import (
    AuthSettings,
    DatabaseSettings,
    DocumentSettings,
    TenancySettings,
)


class TestDatabaseSettingsPoolConfiguration:
    """Tests for connection pool configuration."""

    def test_default_pool_settings(self):
        """Should have sensible pool defaults."""
        settings = DatabaseSettings()
        assert settings.pool_min_connections >= 1
        assert settings.pool_max_connections >= settings.pool_min_connections

    def test_pool_max_must_be_greater_than_or_equal_to_min(self):
        """Should validate max >= min."""
        with pytest.raises(ValidationError) as exc_info:
            DatabaseSettings(pool_min_connections=10, pool_max_connections=5)

        assert "pool_max_connections" in str(exc_info.value)

    def test_pool_max_equal_to_min_is_valid(self):
        settings = DatabaseSettings(pool_min_connections=5, pool_max_connections=5)
        assert settings.pool_max_connections == 5

    def test_pool_min_must_be_positive(self):
        with pytest.raises(ValidationError):
            DatabaseSettings(pool_min_connections=0)


class TestDatabaseSettingsConnection:
    """Tests for connection targets."""

    def test_connection_string_hides_password(self):
        settings = DatabaseSettings(password="s3cret", username="app", host="db")
        assert "s3cret" not in settings.connection_string
        assert settings.connection_string == "postgresql://app@db:5432/bizops"

    def test_url_overrides_fields(self):
        settings = DatabaseSettings(url="postgresql+asyncpg://app:pw@db:5432/erp")
        assert settings.connection_string == "db:5432/erp"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("BIZOPS_DB_STATEMENT_TIMEOUT_MS", "2500")
        assert DatabaseSettings().statement_timeout_ms == 2500


class TestAuthSettings:
    """Tests for credential settings."""

    def test_secret_is_not_printed(self, monkeypatch):
        monkeypatch.setenv("BIZOPS_AUTH_JWT_SECRET", "very-secret")
        settings = AuthSettings()

        assert settings.jwt_secret.get_secret_value() == "very-secret"
        assert "very-secret" not in repr(settings)

    def test_leeway_is_bounded(self):
        with pytest.raises(ValidationError):
            AuthSettings(leeway_seconds=3600)


class TestTenancySettings:
    """Tests for tenant resolution settings."""

    def test_preauth_paths_are_public(self):
        settings = TenancySettings()
        assert set(settings.preauth_paths) <= set(settings.public_paths)

    def test_document_routes_are_not_public(self):
        settings = TenancySettings()
        assert not any(p.startswith("/api/documents") for p in settings.public_paths)

    def test_header_override_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("BIZOPS_TENANCY_ALLOW_HEADER_OVERRIDE", "false")
        assert TenancySettings().allow_header_override is False


class TestDocumentSettings:
    """Tests for document numbering settings."""

    def test_defaults(self):
        settings = DocumentSettings()
        assert settings.max_attempts == 3
        assert settings.sequence_pad_width == 5

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValidationError):
            DocumentSettings(max_attempts=0)
