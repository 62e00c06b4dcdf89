"""
Runtime configuration helpers for the moderation service.

Loads DATABASE_URL and the moderation policy knobs from the environment and
the .env file located in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import EmailStr, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Required; set via the environment or .env
    database_url: str = Field(..., alias="DATABASE_URL")

    app_name: str = Field(default="Report Moderation", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")

    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    moderator_roles: str = Field(default="owner,admin,moderator", alias="MODERATOR_ROLES")

    # Moderation policy
    temporary_ban_days: int = Field(default=7, alias="TEMPORARY_BAN_DAYS")
    max_page_size: int = Field(default=100, alias="MAX_PAGE_SIZE")
    report_update_max_attempts: int = Field(default=3, alias="REPORT_UPDATE_MAX_ATTEMPTS")
    enforcement_max_attempts: int = Field(default=3, alias="ENFORCEMENT_MAX_ATTEMPTS")
    enforcement_backoff_seconds: float = Field(default=0.25, alias="ENFORCEMENT_BACKOFF_SECONDS")
    enforcement_sweep_interval_seconds: int = Field(default=60, alias="ENFORCEMENT_SWEEP_INTERVAL_SECONDS")
    disable_enforcement_sweep: bool = Field(default=False, alias="DISABLE_ENFORCEMENT_SWEEP")

    # Notification e-mail channel
    notify_by_email: bool = Field(default=False, alias="NOTIFY_BY_EMAIL")
    email_host: str | None = Field(default=None, alias="EMAIL_HOST")
    email_port: int = Field(default=587, alias="EMAIL_PORT")
    email_username: str | None = Field(default=None, alias="EMAIL_USERNAME")
    email_password: str | None = Field(default=None, alias="EMAIL_PASSWORD")
    email_from_address: EmailStr | None = Field(default=None, alias="EMAIL_FROM_ADDRESS")
    email_use_tls: bool = Field(default=True, alias="EMAIL_USE_TLS")
    mailgun_api_key: str | None = Field(default=None, alias="MAILGUN_API_KEY")
    mailgun_domain: str | None = Field(default=None, alias="MAILGUN_DOMAIN")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def moderator_role_set(self) -> frozenset[str]:
        return frozenset(role.strip().lower() for role in self.moderator_roles.split(",") if role.strip())


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
