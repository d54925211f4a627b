"""
Configuration settings for the OpenLesson challenge engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # AI Integration (OpenRouter)
    # ========================================
    openrouter_api_key: str | None = Field(
        default=None,
        description="OpenRouter API key used for generation and grading",
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter API base URL",
    )
    ai_model: str = Field(
        default="google/gemini-3-pro-preview",
        description="Model identifier sent with every completion request",
    )
    ai_request_timeout: float | None = Field(
        default=None,
        description="Seconds before an upstream call is abandoned (None waits indefinitely)",
    )
    app_url: str = Field(
        default="http://localhost:3000",
        description="Sent as HTTP-Referer so OpenRouter can attribute traffic",
    )
    app_title: str = Field(
        default="OpenLesson",
        description="Sent as X-Title alongside each completion request",
    )

    # ========================================
    # Sampling
    # ========================================
    generation_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Temperature for plan and adaptation generation",
    )
    evaluation_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Temperature for grading (lower = less variance)",
    )
    max_output_tokens: int = Field(
        default=4096,
        gt=0,
        description="Token budget per completion",
    )

    # ========================================
    # Adaptation
    # ========================================
    adaptation_default_score: float = Field(
        default=70.0,
        ge=0.0,
        le=100.0,
        description="Average assumed when no scored submission exists",
    )
    adaptation_runway: int = Field(
        default=3,
        ge=1,
        description="Pending challenges to keep ahead of the learner",
    )
    auto_recompute: bool = Field(
        default=True,
        description="Run adaptive recompute after each evaluation",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///openlesson.db",
        description="SQLAlchemy connection string",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # API Server / CLI
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )
    cli_user_id: str = Field(
        default="local",
        description="User identifier the CLI acts as when --user is not given",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def has_ai_configured(self) -> bool:
        """Check if the model credential is present."""
        return bool(self.openrouter_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
