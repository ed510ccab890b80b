"""Application settings loaded from environment variables.

Uses pydantic-settings for validation and type coercion. App-specific
settings use the ``AGRISAHAY_`` prefix; GCP / provider / infrastructure
settings use their canonical environment variable names via
``validation_alias``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Central configuration for the AgriSahay service.

    Environment variables are loaded from a ``.env`` file when present.
    App-specific keys are prefixed with ``AGRISAHAY_``; GCP, inference
    provider and infra keys use their standard names (configured via
    ``validation_alias``).
    """

    model_config = SettingsConfigDict(
        env_prefix="AGRISAHAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ── App ────────────────────────────────────────────────────────────
    env: Literal["development", "production"] = "development"

    # ── Inference provider ─────────────────────────────────────────────
    inference_provider: Literal["gemini", "openai"] = "gemini"
    inference_timeout_seconds: float = Field(default=60.0, gt=0)
    inference_temperature: float = Field(default=0.1, ge=0.0, le=2.0)

    # ── GCP / Gemini ───────────────────────────────────────────────────
    gcp_project_id: str = Field(default="", validation_alias="GCP_PROJECT_ID")
    vertex_ai_location: str = Field(default="asia-south1", validation_alias="VERTEX_AI_LOCATION")
    gemini_model: str = Field(default="gemini-2.0-flash", validation_alias="GEMINI_MODEL")
    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")

    # ── OpenAI-compatible chat completions ─────────────────────────────
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    openai_base_url: str = Field(default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL")
    openai_model: str = Field(default="gpt-4o", validation_alias="OPENAI_MODEL")

    # ── Redis ──────────────────────────────────────────────────────────
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")

    # ── API ────────────────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")
    cors_origins: str = Field(default="http://localhost:5173,http://localhost:3000", validation_alias="CORS_ORIGINS")

    # ── Sessions ───────────────────────────────────────────────────────
    session_secret: str = Field(default="", validation_alias="SESSION_SECRET")

    # ── Recommendation audit log ───────────────────────────────────────
    audit_enabled: bool = True
    audit_max_records_per_owner: int = Field(default=200, ge=1)

    # ── Logging ────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # ── Derived Properties ─────────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        return self.env == Environment.PRODUCTION

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Module-level singleton -- import ``settings`` everywhere.
settings = Settings()
