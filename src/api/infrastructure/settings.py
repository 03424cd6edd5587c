"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly,
in particular ``BIZOPS_AUTH_JWT_SECRET`` and the database password.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        BIZOPS_DB_HOST: Database host (default: localhost)
        BIZOPS_DB_PORT: Database port (default: 5432)
        BIZOPS_DB_DATABASE: Database name (default: bizops)
        BIZOPS_DB_USERNAME: Database user (default: bizops)
        BIZOPS_DB_PASSWORD: Database password (required in production)
        BIZOPS_DB_URL: Full SQLAlchemy async URL, overrides the fields above
        BIZOPS_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        BIZOPS_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
        BIZOPS_DB_STATEMENT_TIMEOUT_MS: Per-transaction statement timeout (default: 15000)
    """

    model_config = SettingsConfigDict(
        env_prefix="BIZOPS_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="bizops", description="Database name")
    username: str = Field(default="bizops", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    url: str | None = Field(
        default=None,
        description="Full async database URL (e.g. sqlite+aiosqlite:///./dev.db)",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )
    statement_timeout_ms: int = Field(
        default=15_000,
        description="Transaction-local statement_timeout applied on PostgreSQL",
        ge=0,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        if self.url is not None:
            return self.url.split("@")[-1]
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class AuthSettings(BaseSettings):
    """Credential issuing and verification settings.

    Environment variables:
        BIZOPS_AUTH_JWT_SECRET: Shared HMAC secret for signing tokens
        BIZOPS_AUTH_JWT_ALGORITHM: Signing algorithm (default: HS256)
        BIZOPS_AUTH_TOKEN_TTL_MINUTES: Token lifetime (default: 7 days)
        BIZOPS_AUTH_LEEWAY_SECONDS: Clock skew tolerance on expiry (default: 10)
        BIZOPS_AUTH_ISSUER: Value of the iss claim (default: bizops-api)
        BIZOPS_AUTH_ENFORCE_SESSIONS: Reject tokens whose session was revoked (default: true)
    """

    model_config = SettingsConfigDict(
        env_prefix="BIZOPS_AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    jwt_secret: SecretStr = Field(
        default=SecretStr("change-me-in-production"),
        description="Shared secret used to sign and verify tokens",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    token_ttl_minutes: int = Field(
        default=7 * 24 * 60,
        description="Lifetime of issued tokens in minutes",
        ge=1,
    )
    leeway_seconds: int = Field(
        default=10,
        description="Clock skew tolerated when checking exp/iat",
        ge=0,
        le=300,
    )
    issuer: str = Field(default="bizops-api", description="Token issuer claim")
    enforce_sessions: bool = Field(
        default=True,
        description="Require the token's session record to still exist",
    )


class TenancySettings(BaseSettings):
    """Tenant resolution settings.

    Environment variables:
        BIZOPS_TENANCY_ALLOW_HEADER_OVERRIDE: Accept X-Tenant-ID when no credential
            carries a tenant (default: true, development convenience)
        BIZOPS_TENANCY_HEADER_NAME: Header carrying the tenant id (default: X-Tenant-ID)
        BIZOPS_TENANCY_PUBLIC_PATHS: Paths that may run without any tenant
        BIZOPS_TENANCY_PREAUTH_PATHS: Paths whose JSON body may carry tenantId
    """

    model_config = SettingsConfigDict(
        env_prefix="BIZOPS_TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    allow_header_override: bool = Field(
        default=True,
        description="Accept the tenant header as a last-resort tenant source",
    )
    header_name: str = Field(default="X-Tenant-ID", description="Tenant header name")
    public_paths: list[str] = Field(
        default_factory=lambda: [
            "/health",
            "/api/health",
            "/api/auth/signup",
            "/api/auth/register",
            "/api/auth/login",
        ],
        description="Paths that do not require a tenant",
    )
    preauth_paths: list[str] = Field(
        default_factory=lambda: ["/api/auth/register", "/api/auth/login"],
        description="Paths where the request body may name the tenant",
    )


class DocumentSettings(BaseSettings):
    """Document numbering and transaction settings.

    Environment variables:
        BIZOPS_DOCUMENTS_MAX_ATTEMPTS: Attempts per document operation (default: 3)
        BIZOPS_DOCUMENTS_RETRY_BACKOFF_SECONDS: Base backoff between attempts (default: 0.05)
        BIZOPS_DOCUMENTS_TRANSACTION_TIMEOUT_SECONDS: Upper bound per transaction (default: 10)
        BIZOPS_DOCUMENTS_SEQUENCE_PAD_WIDTH: Zero padding of sequence numbers (default: 5)
    """

    model_config = SettingsConfigDict(
        env_prefix="BIZOPS_DOCUMENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_attempts: int = Field(default=3, ge=1, le=10)
    retry_backoff_seconds: float = Field(default=0.05, ge=0.0, le=5.0)
    transaction_timeout_seconds: float = Field(default=10.0, gt=0.0, le=300.0)
    sequence_pad_width: int = Field(default=5, ge=1, le=12)


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="BizOps API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def auth(self) -> AuthSettings:
        """Get auth settings."""
        return get_auth_settings()

    @property
    def tenancy(self) -> TenancySettings:
        """Get tenancy settings."""
        return get_tenancy_settings()

    @property
    def documents(self) -> DocumentSettings:
        """Get document settings."""
        return get_document_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings."""
    return DatabaseSettings()


@lru_cache
def get_auth_settings() -> AuthSettings:
    """Get cached auth settings."""
    return AuthSettings()


@lru_cache
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings."""
    return TenancySettings()


@lru_cache
def get_document_settings() -> DocumentSettings:
    """Get cached document settings."""
    return DocumentSettings()
