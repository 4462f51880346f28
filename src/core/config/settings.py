# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SchoolHub settings.

Every group reads its own environment prefix; ``Settings`` bundles them and
``get_settings()`` hands out one cached instance.

Example:
    >>> from src.core.config.settings import get_settings
    >>> get_settings().board.lock_ttl_seconds
    300
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-this-in-production"


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection for the shared school database.

    Schools are not given separate databases; every table carries school_id.
    """

    model_config = SettingsConfigDict(env_prefix="DB_", extra="ignore")

    user: str = "schoolhub"
    password: SecretStr = SecretStr("schoolhub_password")
    host: str = "schoolhub-db"
    port: int = 5432
    database: str = "schoolhub"
    pool_size: int = 10
    max_overflow: int = 20
    echo: bool = False

    def _dsn(self, scheme: str) -> str:
        secret = self.password.get_secret_value()
        return f"{scheme}://{self.user}:{secret}@{self.host}:{self.port}/{self.database}"

    @property
    def url(self) -> str:
        """asyncpg URL used by the application engine and Alembic."""
        return self._dsn("postgresql+asyncpg")

    @property
    def sync_url(self) -> str:
        """Driverless URL for tools such as psql."""
        return self._dsn("postgresql")


class JWTSettings(BaseSettings):
    """Bearer token validation.

    Attributes:
        secret_key: HMAC key shared with the session provider.
        algorithm: Signing algorithm.
        access_token_expire_minutes: Lifetime of tokens minted locally.
    """

    model_config = SettingsConfigDict(env_prefix="JWT_", extra="ignore")

    secret_key: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(
        default=30,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )


class RateLimitSettings(BaseSettings):
    """Per-client request budget enforced by slowapi."""

    model_config = SettingsConfigDict(env_prefix="RATE_LIMIT_", extra="ignore")

    requests_per_minute: int = 120
    enabled: bool = True


class CORSSettings(BaseSettings):
    """Browser origins allowed to call the API."""

    model_config = SettingsConfigDict(env_prefix="CORS_", extra="ignore")

    origins: str = "http://localhost:3000"
    allow_credentials: bool = True
    allow_methods: list[str] = ["GET", "POST", "PATCH", "DELETE", "OPTIONS"]
    allow_headers: list[str] = ["Authorization", "Content-Type", "X-Request-ID"]

    @property
    def origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class ApplicationSettings(BaseSettings):
    """Application review.

    Attributes:
        processing_lock_ttl_seconds: Age after which an approve or reject
            lock no longer blocks other admins.
    """

    model_config = SettingsConfigDict(env_prefix="APPLICATION_", extra="ignore")

    processing_lock_ttl_seconds: int = Field(default=300, ge=1)


class ProgressBoardSettings(BaseSettings):
    """Teacher progress board limits.

    Attributes:
        lock_ttl_seconds: Age after which a card lock no longer blocks others.
        max_concurrent_locks: Cards one user may hold locked at once.
        max_cards_per_column: Cards a teacher may keep in one column.
        move_timeout_seconds: Client-side bound on a single move request.
        base_url: API root used by the board client.
    """

    model_config = SettingsConfigDict(env_prefix="BOARD_", extra="ignore")

    lock_ttl_seconds: int = Field(default=300, ge=1)
    max_concurrent_locks: int = Field(default=10, ge=1)
    max_cards_per_column: int = Field(default=1000, ge=1)
    move_timeout_seconds: float = Field(default=10.0, gt=0)
    base_url: str = "http://localhost:8000"


class Settings(BaseSettings):
    """Top-level settings; obtain through get_settings()."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "test", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    applications: ApplicationSettings = Field(default_factory=ApplicationSettings)
    board: ProgressBoardSettings = Field(default_factory=ProgressBoardSettings)

    @model_validator(mode="after")
    def _reject_default_secret_in_production(self) -> Self:
        if self.is_production and self.jwt.secret_key.get_secret_value() == DEFAULT_JWT_SECRET:
            raise ValueError(
                "JWT secret key must be changed from default in production. "
                "Set JWT_SECRET_KEY environment variable."
            )
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide Settings, loading it on first use."""
    return Settings()


def clear_settings_cache() -> None:
    """Forget the cached Settings so the next call re-reads the environment."""
    get_settings.cache_clear()
