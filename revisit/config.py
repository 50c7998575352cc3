from __future__ import annotations

import secrets
from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App environment
    env: str = Field(default="development", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./dev.db", alias="DATABASE_URL")

    # Time handling
    default_timezone: str = Field(default="Asia/Kolkata", alias="DEFAULT_TIMEZONE")

    # Shared secret expected in X-Cron-Secret by /api/check-reminders.
    # Blank or unset means one is generated once per process.
    cron_secret: Optional[str] = Field(default=None, alias="CRON_SECRET")

    # Outbound mail
    mail_host: str = Field(default="localhost", alias="MAIL_HOST")
    mail_port: int = Field(default=587, alias="MAIL_PORT")
    mail_user: Optional[str] = Field(default=None, alias="MAIL_USER")
    mail_pass: Optional[str] = Field(default=None, alias="MAIL_PASS")
    mail_from: Optional[str] = Field(default=None, alias="MAIL_FROM")
    mail_use_tls: bool = Field(default=True, alias="MAIL_USE_TLS")
    delivery_timeout_seconds: float = Field(default=10.0, alias="DELIVERY_TIMEOUT_SECONDS")

    # Rate limiting (slowapi / limits storage URI, e.g. redis://localhost:6379/0)
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit: str = Field(default="100/15 minutes", alias="RATE_LIMIT")
    rate_limit_storage_uri: str = Field(default="memory://", alias="RATE_LIMIT_STORAGE_URI")

    # In-process trigger for due reminders
    reminder_scheduler_enabled: bool = Field(default=False, alias="REMINDER_SCHEDULER_ENABLED")
    reminder_check_interval_minutes: int = Field(default=1, alias="REMINDER_CHECK_INTERVAL_MINUTES")

    # Logging configuration used by revisit.logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    console_log_level: str = Field(default="INFO", alias="CONSOLE_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    _cron_secret_generated: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: Any) -> None:
        if not (self.cron_secret or "").strip():
            self.cron_secret = secrets.token_hex(32)
            self._cron_secret_generated = True

    @property
    def cron_secret_generated(self) -> bool:
        """True when CRON_SECRET was blank or unset and a random one was made."""
        return self._cron_secret_generated

    @property
    def sender_address(self) -> Optional[str]:
        return self.mail_from or self.mail_user


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
