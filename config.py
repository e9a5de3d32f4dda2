"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

The two process-wide secrets (TOKEN_SECRET and HMAC_VERIFICATION_CODE_SECRET)
are required: AppSettings() raises a pydantic ValidationError when either is
missing or empty, so a misconfigured process never starts serving requests.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "account-service"


class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Session tokens (HS256)
    token_secret: str = Field(min_length=1)
    token_ttl_seconds: int = 86400
    # None: secure cookies only when AppSettings.env is "production"
    cookie_secure: Optional[bool] = None

    # One-time codes
    hmac_verification_code_secret: str = Field(min_length=1)
    code_ttl_seconds: int = 600

    # argon2id work factor
    password_hash_time_cost: int = 3
    password_hash_memory_cost: int = 65536
    password_hash_parallelism: int = 4


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_name: str = "account-service"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    auth: Optional[AuthSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.auth is None:
            self.auth = AuthSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        if self.auth.cookie_secure is None:
            self.auth.cookie_secure = self.is_production

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
