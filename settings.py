"""
Process-wide configuration using pydantic-settings.

Values are read once from the environment (and the project's `.env` file) into
an immutable `Settings` object. Call `get_settings()` instead of reading
`os.environ` directly so every component sees the same snapshot.

Environment variables:
- SUPABASE_URL / SUPABASE_KEY: store credentials (server-side key only)
- KIE_API_KEY, KIE_API_BASE, KIE_MODEL, KIE_POLL_INTERVAL_SECONDS: image API
- APP_URL: base URL used to resolve relative template image paths
- AI_PHOTO_*: generation cap, variant count, deadline, stale threshold, bucket
- LOG_LEVEL, CORS_ORIGINS: API process settings
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_PATH = Path(__file__).parent / ".env"

MAX_VARIANTS = 3

DEFAULT_KIE_API_BASE = "https://api.kie.ai/api/v1/jobs"
DEFAULT_KIE_MODEL = "nano-banana-pro"
DEFAULT_APP_URL = "http://localhost:8000"
DEFAULT_STORAGE_BUCKET = "ai-photos"


class Settings(BaseSettings):
    """Immutable configuration snapshot."""

    model_config = SettingsConfigDict(
        env_file=_ENV_PATH,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    supabase_url: Optional[str] = Field(default=None, validation_alias="SUPABASE_URL")
    supabase_key: Optional[str] = Field(default=None, validation_alias="SUPABASE_KEY")

    kie_api_key: Optional[str] = Field(default=None, validation_alias="KIE_API_KEY")
    kie_api_base: str = Field(default=DEFAULT_KIE_API_BASE, validation_alias="KIE_API_BASE")
    kie_model: str = Field(default=DEFAULT_KIE_MODEL, validation_alias="KIE_MODEL")
    kie_poll_interval_seconds: float = Field(
        default=3.0, gt=0, validation_alias="KIE_POLL_INTERVAL_SECONDS"
    )

    app_url: str = Field(default=DEFAULT_APP_URL, validation_alias="APP_URL")

    max_generations_per_lead: int = Field(
        default=3, ge=1, validation_alias="AI_PHOTO_MAX_GENERATIONS_PER_LEAD"
    )
    count_failed_generations: bool = Field(default=True, validation_alias="AI_PHOTO_COUNT_FAILED")
    variant_count: int = Field(default=1, ge=1, validation_alias="AI_PHOTO_VARIANT_COUNT")
    generation_deadline_seconds: float = Field(
        default=150.0, gt=0, validation_alias="AI_PHOTO_DEADLINE_SECONDS"
    )
    stale_after_seconds: float = Field(
        default=600.0, gt=0, validation_alias="AI_PHOTO_STALE_AFTER_SECONDS"
    )
    storage_bucket: str = Field(
        default=DEFAULT_STORAGE_BUCKET, validation_alias="AI_PHOTO_STORAGE_BUCKET"
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    cors_origins_str: str = Field(
        default="*",
        validation_alias="CORS_ORIGINS",
        description="Allowed CORS origins (comma-separated string)",
    )

    @field_validator("app_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @model_validator(mode="after")
    def check_variant_count(self) -> "Settings":
        if self.variant_count > MAX_VARIANTS:
            raise ValueError(
                f"variant_count must be between 1 and {MAX_VARIANTS}, got {self.variant_count}"
            )
        return self

    @property
    def cors_origins(self) -> Tuple[str, ...]:
        """CORS origins as a tuple; `*` when none are configured."""
        origins = tuple(o.strip() for o in self.cors_origins_str.split(",") if o.strip())
        return origins or ("*",)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide Settings, loading them on first use."""

    return Settings()


__all__ = ["MAX_VARIANTS", "Settings", "get_settings"]
