"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Speaker Invitations API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/invitations",
        description="PostgreSQL connection URL with asyncpg driver",
    )

    # Invitation tokens
    invitation_token_secret: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="HMAC secret used to sign invitation response tokens",
    )
    invitation_token_algorithm: str = Field(default="HS256")
    invitation_expiry_days: int = Field(default=30, ge=1)
    response_base_url: str = Field(
        default="http://localhost:3000",
        description="Public URL of the response page; the token is appended as a query param",
    )

    # Dispatch
    dispatch_rate_limit_ms: int = Field(
        default=1000,
        ge=0,
        description="Minimum spacing between two notifier calls of a campaign",
    )
    dispatch_max_workers: int = Field(default=3, ge=1, le=10)
    notifier_timeout_seconds: float = Field(default=10.0, gt=0)
    notifier_backend: str = Field(
        default="log",
        pattern="^(log|smtp)$",
        description="'log' only records messages, 'smtp' delivers them",
    )

    # SMTP
    smtp_host: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587)
    smtp_username: str = Field(default="")
    smtp_password: str = Field(default="")
    smtp_from: str = Field(default="")
    smtp_use_tls: bool = Field(default=True)

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable HTTP rate limiting (disable for tests)",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Hosting providers usually hand out a plain ``postgresql://`` URL,
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
