"""Application configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="eduverify", description="Application name")
    environment: Literal["development", "testing", "staging", "production"] = Field(
        default="development", description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Debug mode flag")
    secret_key: str = Field(
        default="dev-secret-key-change-in-production",
        description="Secret key for signing session tokens",
    )

    # API
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="CORS allowed origins",
    )

    # Database
    db_host: str = Field(default="localhost", description="PostgreSQL host")
    db_port: int = Field(default=5432, description="PostgreSQL port")
    db_user: str = Field(default="postgres", description="PostgreSQL user")
    db_password: str = Field(default="postgres", description="PostgreSQL password")
    db_name: str = Field(default="eduverify", description="PostgreSQL database name")
    database_url_override: str | None = Field(
        default=None,
        description="Full async database URL, takes precedence over db_* fields",
    )
    db_echo: bool = Field(default=False, description="Echo SQL statements")
    db_create_tables: bool = Field(
        default=False,
        description="Create tables on startup instead of relying on migrations",
    )

    # Wallet authentication
    auth_store_backend: Literal["database", "memory"] = Field(
        default="database",
        description="Backend for nonce and identity storage",
    )
    nonce_ttl_seconds: int = Field(
        default=300, gt=0, description="Challenge nonce lifetime in seconds"
    )
    sign_message_statement: str = Field(
        default=(
            "Sign this message to verify wallet ownership. "
            "This request will not trigger a blockchain transaction "
            "or cost any gas fees."
        ),
        description="Human-readable statement embedded in the sign message",
    )

    # Session tokens
    access_token_expire_minutes: int = Field(
        default=30, gt=0, description="Access token expiration in minutes"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="json", description="Log output format"
    )

    @computed_field
    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @computed_field
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    def require_production_secret(self) -> None:
        """Refuse to start in production with the development secret.

        Raises:
            ValueError: Production environment with default secret key
        """
        if self.is_production and self.secret_key.startswith("dev-secret-key"):
            raise ValueError(
                "SECRET_KEY must be set to a non-default value in production"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
