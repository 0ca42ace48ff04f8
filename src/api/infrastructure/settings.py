"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        LEDGERDESK_DB_HOST: Database host (default: localhost)
        LEDGERDESK_DB_PORT: Database port (default: 5432)
        LEDGERDESK_DB_DATABASE: Database name (default: ledgerdesk)
        LEDGERDESK_DB_USERNAME: Database user (default: ledgerdesk)
        LEDGERDESK_DB_PASSWORD: Database password (required in production)
        LEDGERDESK_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        LEDGERDESK_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
        LEDGERDESK_DB_CONNECT_TIMEOUT_SECONDS: Connection attempt timeout (default: 5)
        LEDGERDESK_DB_STATEMENT_TIMEOUT_SECONDS: Per-statement timeout (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGERDESK_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="ledgerdesk", description="Database name")
    username: str = Field(default="ledgerdesk", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
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
    connect_timeout_seconds: float = Field(
        default=5.0,
        description="Give up connecting after this many seconds",
        gt=0,
    )
    statement_timeout_seconds: float = Field(
        default=10.0,
        description="Cancel a statement running longer than this",
        gt=0,
    )
    application_name: str = Field(
        default="ledgerdesk-api",
        description="Reported to PostgreSQL as application_name",
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
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class IdentitySettings(BaseSettings):
    """Identity store (GoTrue / Supabase Auth) settings.

    Environment variables:
        LEDGERDESK_IDENTITY_BASE_URL: Auth API root, e.g. https://x.supabase.co/auth/v1
        LEDGERDESK_IDENTITY_API_KEY: Public (anon) API key sent with every call
        LEDGERDESK_IDENTITY_SERVICE_ROLE_KEY: Admin key for account lookup/creation
        LEDGERDESK_IDENTITY_JWT_SECRET: Shared HS256 secret used to sign access tokens
        LEDGERDESK_IDENTITY_JWT_AUDIENCE: Expected audience claim (default: authenticated)
        LEDGERDESK_IDENTITY_DEFAULT_COUNTRY_CODE: Prefix for bare phone numbers (default: +91)
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGERDESK_IDENTITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:9999",
        description="Identity store REST API root",
    )
    api_key: SecretStr = Field(default=SecretStr(""), description="Public API key")
    service_role_key: SecretStr = Field(
        default=SecretStr(""),
        description="Admin API key for account management",
    )
    jwt_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Shared secret used to verify access tokens",
    )
    jwt_audience: str = Field(
        default="authenticated",
        description="Expected access token audience",
    )
    default_country_code: str = Field(
        default="+91",
        description="Country prefix applied to phone numbers without one",
        pattern=r"^\+[1-9]\d{0,3}$",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for identity store HTTP calls",
        gt=0,
    )
    refresh_margin_seconds: int = Field(
        default=60,
        description="Rotate the access token when it expires within this window",
        ge=0,
    )
    federated_providers: list[str] = Field(
        default=["google"],
        description="Providers allowed for federated sign-in",
    )
    challenge_ttl_seconds: int = Field(
        default=3600,
        description="Lifetime of an OTP challenge as configured in the identity store",
        ge=60,
    )


class CookieSettings(BaseSettings):
    """Names and attributes of the request-scoped credential cookies.

    Environment variables:
        LEDGERDESK_COOKIE_SECURE: Set the Secure attribute (default: true)
        LEDGERDESK_COOKIE_CHALLENGE_SIGNING_KEY: Key used to sign OTP challenge cookies
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGERDESK_COOKIE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    access_token_name: str = Field(default="access_token")
    refresh_token_name: str = Field(default="refresh_token")
    business_name: str = Field(default="current_business_id")
    challenge_prefix: str = Field(default="otp_challenge_")
    pkce_verifier_name: str = Field(default="pkce_verifier")
    secure: bool = Field(default=True, description="Send cookies over HTTPS only")
    samesite: str = Field(default="lax", pattern="^(lax|strict|none)$")
    business_max_age_seconds: int = Field(
        default=60 * 60 * 24 * 30,
        description="Lifetime of the current-business pointer cookie",
    )
    refresh_max_age_seconds: int = Field(
        default=60 * 60 * 24 * 30,
        description="Lifetime of the refresh token cookie",
    )
    pkce_max_age_seconds: int = Field(default=600)
    challenge_signing_key: SecretStr = Field(
        default=SecretStr(""),
        description="HS256 key for OTP challenge cookies; unset refuses challenges",
    )


class GateSettings(BaseSettings):
    """Route lists and rewrite targets for the edge authorization gate.

    List values are read from JSON, e.g.
    LEDGERDESK_GATE_PROTECTED_PREFIXES='["/dashboard", "/settings"]'.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGERDESK_GATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    protected_prefixes: list[str] = Field(
        default=[
            "/dashboard",
            "/parties",
            "/inventory",
            "/analytics",
            "/account_settings",
            "/settings",
            "/bills",
            "/businesses",
            "/api",
            "/auth/link",
        ],
    )
    auth_only_paths: list[str] = Field(
        default=["/login", "/signup", "/auth/login", "/auth/signup", "/auth/verify"],
    )
    unauthorized_path: str = Field(default="/unauthorized")
    authorized_path: str = Field(default="/authorized")


class TenancySettings(BaseSettings):
    """Tenant context settings.

    Environment variables:
        LEDGERDESK_TENANCY_DEFAULT_BUSINESS_NAME: Name for auto-provisioned businesses
        LEDGERDESK_TENANCY_PROVISION_RETRY_LIMIT: Attempts before giving up on a
            contended auto-provisioning
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGERDESK_TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_business_name: str = Field(default="My Business", min_length=1)
    default_currency: str = Field(default="INR")
    default_fiscal_year: str = Field(default="april-march")
    provision_retry_limit: int = Field(default=3, ge=1, le=10)


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Ledgerdesk API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_identity_settings() -> IdentitySettings:
    """Get cached identity store settings."""
    return IdentitySettings()


@lru_cache
def get_cookie_settings() -> CookieSettings:
    """Get cached cookie settings."""
    return CookieSettings()


@lru_cache
def get_gate_settings() -> GateSettings:
    """Get cached edge gate settings."""
    return GateSettings()


@lru_cache
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings."""
    return TenancySettings()
