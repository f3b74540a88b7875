"""Application configuration via pydantic settings."""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = Field("ParkShare API", alias="APP_NAME")
    api_v1_prefix: str = "/api/v1"

    database_url: str = Field(..., alias="DATABASE_URL")
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    secret_key: str = Field(..., alias="SECRET_KEY")
    jwt_secret_key: str = Field(default="", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    default_admin_email: str | None = Field(default=None, alias="DEFAULT_ADMIN_EMAIL")
    default_admin_password: str | None = Field(
        default=None, alias="DEFAULT_ADMIN_PASSWORD"
    )

    default_currency: str = Field("USD", alias="DEFAULT_CURRENCY")

    # Booking policy
    check_in_window_minutes: int = Field(60, alias="CHECK_IN_WINDOW_MINUTES")
    overtime_multiplier: Decimal = Field(Decimal("1.5"), alias="OVERTIME_MULTIPLIER")
    full_refund_hours: int = Field(48, alias="FULL_REFUND_HOURS")
    partial_refund_hours: int = Field(24, alias="PARTIAL_REFUND_HOURS")
    partial_refund_percentage: int = Field(50, alias="PARTIAL_REFUND_PERCENTAGE")

    cors_allow_origins: str = Field("http://localhost:5173", alias="CORS_ALLOW_ORIGINS")
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")

    rate_limit_default: str = Field("100/minute", alias="RATE_LIMIT_DEFAULT")
    rate_limit_login: str = Field("10/minute", alias="RATE_LIMIT_LOGIN")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        case_sensitive=False,
        extra="ignore",
    )

    def model_post_init(self, __context: Any) -> None:
        """Populate JWT secret from the generic secret when not provided."""

        if not self.jwt_secret_key:
            object.__setattr__(self, "jwt_secret_key", self.secret_key)

    @property
    def cors_origins(self) -> list[str]:
        """Comma separated ``CORS_ALLOW_ORIGINS`` as a list."""
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
