"""
PaperInsight Configuration

Centralized configuration using Pydantic Settings.
All configuration is loaded from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini API configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="", extra="ignore"
    )

    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    google_api_key: str | None = Field(default=None, alias="GOOGLE_API_KEY")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta", alias="GEMINI_BASE_URL"
    )

    text_model: str = Field(
        default="gemini-2.5-flash-preview-09-2025", alias="GEMINI_TEXT_MODEL"
    )
    image_model: str = Field(default="imagen-4.0-generate-001", alias="GEMINI_IMAGE_MODEL")
    tts_model: str = Field(default="gemini-2.5-flash-preview-tts", alias="GEMINI_TTS_MODEL")

    timeout: float = Field(default=120.0, gt=0.0, alias="GEMINI_TIMEOUT")
    max_retries: int = Field(default=5, ge=0, le=10, alias="GEMINI_MAX_RETRIES")
    backoff_base: float = Field(default=1.0, ge=0.0, alias="GEMINI_BACKOFF_BASE")

    # The TTS endpoint returns raw PCM without a header; the rate is fixed by the service.
    speech_sample_rate: int = Field(default=24000, ge=1)

    @property
    def api_key(self) -> str | None:
        """Resolved API key (GEMINI_API_KEY wins over GOOGLE_API_KEY)."""
        return self.gemini_api_key or self.google_api_key


class SessionDefaults(BaseSettings):
    """Initial values for per-session user settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="", extra="ignore"
    )

    summary_length: Literal["concise", "detailed"] = Field(
        default="detailed", alias="PAPERINSIGHT_SUMMARY_LENGTH"
    )
    voice_id: str = Field(default="Aoede", alias="PAPERINSIGHT_VOICE")
    web_search_enabled: bool = Field(default=True, alias="PAPERINSIGHT_WEB_SEARCH")
    target_language: str = Field(default="日本語", alias="PAPERINSIGHT_TARGET_LANGUAGE")
    status_clear_seconds: float = Field(
        default=5.0, ge=0.0, alias="PAPERINSIGHT_STATUS_CLEAR_SECONDS"
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="", extra="ignore"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )
    log_format: Literal["json", "text"] = Field(default="text", alias="LOG_FORMAT")


class FeatureFlags(BaseSettings):
    """Feature flags for optional functionality."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="", extra="ignore"
    )

    debug: bool = Field(default=False, alias="PAPERINSIGHT_DEBUG")
    trace_path: Path = Field(
        default=Path("~/.paperinsight/traces"), alias="PAPERINSIGHT_TRACE_PATH"
    )

    @field_validator("trace_path", mode="before")
    @classmethod
    def resolve_path(cls, v: str | Path) -> Path:
        """Resolve path and expand user."""
        return Path(v).expanduser().resolve()


class Settings(BaseSettings):
    """
    Main PaperInsight settings aggregator.

    Usage:
        from paperinsight.config import get_settings
        settings = get_settings()
        print(settings.gemini.text_model)
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    session: SessionDefaults = Field(default_factory=SessionDefaults)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    features: FeatureFlags = Field(default_factory=FeatureFlags)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
