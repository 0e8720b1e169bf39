"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./carenotify.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used for timestamps persisted by the service",
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending transactional emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of transactional messages",
        min_length=3,
    )
    app_base_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL used to build links embedded in emails",
    )
    brand_name: str = Field(
        default="Living & Leaving",
        description="Product name shown as the default author of announcements",
    )
    support_email: str = Field(
        default="support@example.com",
        description="Support address rendered in the footer of notification emails",
    )
    delivery_log_retention_days: int = Field(
        default=7,
        description="Age in days after which successful delivery logs are purged",
        gt=0,
    )
    quiet_hours_policy: Literal["suppress", "defer"] = Field(
        default="suppress",
        description="Whether emails gated by quiet hours are dropped or deferred",
    )
    presence_check_enabled: bool = Field(
        default=False,
        description="Query channel presence before recording a delivery attempt",
    )
    recent_delivery_logs_limit: int = Field(
        default=50,
        description="Default page size for the recent delivery logs listing",
        gt=0,
    )

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
