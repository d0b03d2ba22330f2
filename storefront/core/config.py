"""Application configuration management using Pydantic Settings."""

import logging
import secrets
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Fallback used when no Stripe secret key is configured anywhere
PLACEHOLDER_STRIPE_SECRET_KEY = "sk_test_your_key_here"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Payment credentials set here are defaults only; values stored through
    the admin settings API take precedence at runtime.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="storefront-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3001, description="Server port")
    max_request_body_size: int = Field(default=1_048_576, description="Maximum request body size in bytes")

    # CORS / frontend
    cors_origins: str = Field(
        default="http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )
    client_url: str = Field(
        default="http://localhost:5173",
        description="Storefront URL used for checkout success/cancel redirects",
    )

    # Database
    database_url: str = Field(default="sqlite:///./orders.db", description="SQLAlchemy database URL")

    # Stripe
    stripe_secret_key: str = Field(default="", description="Stripe secret API key")
    stripe_publishable_key: str = Field(default="", description="Stripe publishable key (for frontend)")
    stripe_webhook_secret: str = Field(default="", description="Stripe webhook signing secret")
    currency: str = Field(default="usd", description="Currency for all checkout sessions")

    # Admin auth
    admin_password: str = Field(default="", description="Admin password (hashed at startup)")
    admin_password_hash: str = Field(default="", description="Pre-computed pbkdf2_sha256 admin password hash")
    jwt_secret: str = Field(default="", description="HMAC secret for admin bearer tokens")
    admin_token_ttl_seconds: int = Field(default=86400, description="Admin token lifetime in seconds")
    login_rate_limit_attempts: int = Field(default=5, description="Login attempts allowed per window")
    login_rate_limit_window_seconds: int = Field(default=300, description="Login rate limit window in seconds")

    @model_validator(mode="after")
    def set_jwt_secret_default(self) -> "Settings":
        """Generate a per-process token secret when JWT_SECRET is not set.

        Tokens signed with a generated secret stop verifying after a restart.
        """
        if not self.jwt_secret:
            self.jwt_secret = secrets.token_urlsafe(32)
            if self.is_production:
                logger.warning("JWT_SECRET not configured; admin tokens will not survive a restart")
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is a SQLite file."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
