from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="Group Live API", env="APP_NAME", description="Human readable service name")
    environment: str = Field(default="development", env="ENVIRONMENT", description="Deployment environment name")
    debug: bool = Field(default=True, env="DEBUG", description="Enable debug mode")

    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost",
            "http://localhost:8081",
            "http://127.0.0.1",
            "http://127.0.0.1:8081",
        ],
        env="CORS_ORIGINS",
        description="List of allowed CORS origins",
    )

    database_user: str = Field(default="grouplive", env="DATABASE_USER")
    database_password: str = Field(default="grouplive", env="DATABASE_PASSWORD")
    database_host: str = Field(default="db", env="DATABASE_HOST")
    database_port: int = Field(default=3306, env="DATABASE_PORT")
    database_name: str = Field(default="grouplive", env="DATABASE_NAME")
    database_dsn: str | None = Field(
        default=None,
        env="DATABASE_DSN",
        description="Full SQLAlchemy URL overriding the individual DATABASE_* settings.",
    )

    jwt_secret_key: str = Field(default="changeme", env="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", env="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, env="ACCESS_TOKEN_EXPIRE_MINUTES")
    default_display_name: str = Field(
        default="Utente",
        env="DEFAULT_DISPLAY_NAME",
        description="Label used for hosts without a profile or token name.",
    )

    presence_ttl_seconds: int = Field(
        default=120,
        env="PRESENCE_TTL_SECONDS",
        description="Window after a heartbeat during which a presence record counts as active.",
    )
    members_count_cache_seconds: int = Field(
        default=15,
        ge=1,
        env="MEMBERS_COUNT_CACHE_SECONDS",
        description="How long an aggregated member count is served before being recomputed.",
    )
    cache_url: str | None = Field(
        default=None,
        env="CACHE_URL",
        description="Redis URL for the member count cache; in-process cache when unset.",
    )

    livekit_api_key: str | None = Field(default=None, env="LIVEKIT_API_KEY")
    livekit_api_secret: str | None = Field(default=None, env="LIVEKIT_API_SECRET")
    livekit_url: str | None = Field(
        default=None,
        env="LIVEKIT_URL",
        description="WebSocket address of the media server handed to clients with their token.",
    )
    livekit_token_ttl_seconds: int = Field(
        default=6 * 60 * 60,
        env="LIVEKIT_TOKEN_TTL_SECONDS",
        description="Lifetime of minted media access tokens.",
    )
    live_start_grace_seconds: int = Field(
        default=0,
        env="LIVE_START_GRACE_SECONDS",
        description="Sessions started within this window are not treated as stale by viewers.",
    )

    reapers_enabled: bool = Field(
        default=True,
        env="REAPERS_ENABLED",
        description="Run the stale session and inactive group sweeps inside the API process.",
    )
    stale_live_sweep_interval_seconds: int = Field(
        default=10 * 60, env="STALE_LIVE_SWEEP_INTERVAL_SECONDS"
    )
    group_retention_seconds: int = Field(
        default=60 * 60,
        env="GROUP_RETENTION_SECONDS",
        description="Groups not updated for this long become cleanup candidates.",
    )
    group_presence_guard_seconds: int = Field(
        default=10 * 60,
        env="GROUP_PRESENCE_GUARD_SECONDS",
        description="Any presence heartbeat inside this window keeps a candidate group alive.",
    )
    group_cleanup_time: str = Field(
        default="01:05",
        env="GROUP_CLEANUP_TIME",
        description="Local wall-clock time (HH:MM) of the daily inactive group sweep.",
    )
    group_cleanup_timezone: str = Field(default="Europe/Rome", env="GROUP_CLEANUP_TIMEZONE")

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        if self.database_dsn:
            return self.database_dsn
        return (
            f"mysql+pymysql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):  # type: ignore[override]
        if v in (None, "", Ellipsis):
            return v
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, (list, tuple, set)):
            return list(v)
        return v

    @field_validator("livekit_api_key", "livekit_api_secret", "livekit_url", mode="before")
    @classmethod
    def strip_livekit_value(cls, value: str | None) -> str | None:
        if value in (None, Ellipsis):
            return None
        stripped = str(value).strip()
        return stripped or None

    @field_validator("group_cleanup_time")
    @classmethod
    def validate_cleanup_time(cls, value: str) -> str:
        hours, _, minutes = value.partition(":")
        if not (hours.isdigit() and minutes.isdigit()) or int(hours) > 23 or int(minutes) > 59:
            raise ValueError("group_cleanup_time must use the HH:MM format")
        return f"{int(hours):02d}:{int(minutes):02d}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
