"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Refuse insecure auth configuration (empty / default JWT secret in prod)

Collaborators:
  - api/main.py: CORS, pool sizing, startup validation
  - container.py: token issuer, lockout policy, account store selection
  - identity/session.py: protected prefixes and cookie names

Constraints:
  - Lives in API/infrastructure layer, NOT in domain/application
  - No business logic, pure configuration

Notes:
  - Singleton via lru_cache; tests build Settings(...) directly
  - Prefix lists are comma-separated strings (same as allowed_origins)
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: PostgreSQL connection string
        app_env: Application environment (development/test/production)
        allowed_origins: Comma-separated CORS origins
        cors_allow_credentials: Allow cookies cross-origin (default: True)
        max_body_bytes: Max request body size (default: 1MB)
        jwt_secret: Secret for signing access/refresh tokens (HS256)
        jwt_access_ttl_minutes: Access token TTL (default: 1 day)
        jwt_refresh_ttl_days: Refresh token TTL (default: 30 days)
        jwt_cookie_name: Cookie carrying the access token
        jwt_refresh_cookie_name: Cookie carrying the refresh token
        jwt_cookie_secure: Set Secure on auth cookies
        lockout_max_attempts: Failed logins before locking (default: 5)
        lockout_duration_minutes: Lock window (default: 15)
        protected_page_prefixes: Page prefixes that redirect to login
        protected_api_prefixes: API prefixes that answer 401
        public_paths: Paths under protected prefixes that stay public
        login_path: Login entry point for redirects
        account_store: postgres | memory
    """

    # Database
    database_url: str = ""

    # Environment
    app_env: str = "development"

    # CORS configuration
    allowed_origins: str = "http://localhost:3000"
    cors_allow_credentials: bool = True

    # Security - Hardening
    max_body_bytes: int = 1024 * 1024  # 1MB

    # Security - JWT Auth
    jwt_secret: str = "dev-secret"
    jwt_access_ttl_minutes: int = 24 * 60
    jwt_refresh_ttl_days: int = 30
    jwt_cookie_name: str = "token"
    jwt_refresh_cookie_name: str = "refreshToken"
    jwt_cookie_secure: bool = False

    # Security - Lockout
    lockout_max_attempts: int = 5
    lockout_duration_minutes: int = 15

    # Session middleware
    protected_page_prefixes: str = "/dashboard,/admin"
    protected_api_prefixes: str = "/api"
    public_paths: str = (
        "/api/auth/login,/api/auth/logout,/api/auth/register,/api/auth/refresh"
    )
    login_path: str = "/login"

    # Database - Connection Pool
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_pool_timeout_seconds: float = 5.0
    db_connect_timeout_seconds: int = 5
    db_statement_timeout_ms: int = 10000

    # Storage backend
    account_store: str = "postgres"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Dev Tools (Backend Safe)
    dev_seed_admin: bool = False
    dev_seed_admin_email: str = "admin@fleet.local"
    dev_seed_admin_password: str = "admin-dev-1234"
    dev_seed_admin_role: str = "admin"
    dev_seed_admin_force_reset: bool = False

    @field_validator("lockout_max_attempts", "lockout_duration_minutes")
    @classmethod
    def lockout_values_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("lockout settings must be greater than 0")
        return v

    @field_validator("jwt_access_ttl_minutes", "jwt_refresh_ttl_days")
    @classmethod
    def token_ttl_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("token TTL must be greater than 0")
        return v

    @field_validator("account_store")
    @classmethod
    def account_store_valid(cls, v: str) -> str:
        store = (v or "postgres").strip().lower()
        if store not in {"postgres", "memory"}:
            raise ValueError("account_store must be postgres or memory")
        return store

    @field_validator("jwt_secret")
    @classmethod
    def jwt_secret_not_empty(cls, v: str) -> str:
        if not (v or "").strip():
            raise ValueError("JWT_SECRET must not be empty")
        return v

    @model_validator(mode="after")
    def validate_pool_bounds(self):
        if self.db_pool_min_size < 0 or self.db_pool_max_size < 1:
            raise ValueError("db pool sizes must be positive")
        if self.db_pool_min_size > self.db_pool_max_size:
            raise ValueError("db_pool_min_size must be <= db_pool_max_size")
        return self

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        insecure_secrets = {"dev-secret", "changeme", "change-me", "password"}
        jwt_secret = self.jwt_secret.strip()
        if jwt_secret in insecure_secrets:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        if not self.jwt_cookie_secure:
            raise ValueError("JWT_COOKIE_SECURE must be true in production")
        if self.account_store != "postgres":
            raise ValueError("ACCOUNT_STORE must be postgres in production")
        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def get_allowed_origins_list(self) -> list[str]:
        return _split_csv(self.allowed_origins)

    def get_protected_page_prefixes(self) -> list[str]:
        return _split_csv(self.protected_page_prefixes)

    def get_protected_api_prefixes(self) -> list[str]:
        return _split_csv(self.protected_api_prefixes)

    def get_public_paths(self) -> list[str]:
        return _split_csv(self.public_paths)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()
