"""Centralised application configuration.

Settings are loaded from environment variables or the `.env` file in the
project root. Using pydantic's BaseSettings provides convenient parsing
and type checking. The quiz service reads a fresh Settings instance per
request (see ``services.quiz_generate.app.main.get_pipeline``) so the
Gemini key can be rotated without a restart.
"""

from __future__ import annotations

from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Gemini
    gemini_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("GEMINI_API_KEY", "gemini_api_key")
    )
    gemini_model: str = Field(
        default="gemini-1.5-flash-latest",
        validation_alias=AliasChoices("GEMINI_MODEL", "gemini_model"),
    )
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias=AliasChoices("GEMINI_API_BASE", "gemini_api_base"),
    )

    # Reject upstream payloads that don't look like a quiz question (off keeps
    # the raw pass-through behaviour)
    quiz_validate_shape: bool = Field(
        default=False,
        validation_alias=AliasChoices("QUIZ_VALIDATE_SHAPE", "quiz_validate_shape"),
    )

    # UI/CORS (optional, comma-separated)
    cors_allow_origins: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
    )

    # Logging/observability
    log_level: str = Field(
        default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level")
    )
    langfuse_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("LANGFUSE_ENABLED", "langfuse_enabled"),
    )
    langfuse_host: str = Field(
        default="", validation_alias=AliasChoices("LANGFUSE_HOST", "langfuse_host")
    )
    langfuse_public_key: str = Field(
        default="",
        validation_alias=AliasChoices("LANGFUSE_PUBLIC_KEY", "langfuse_public_key"),
    )
    langfuse_secret_key: str = Field(
        default="",
        validation_alias=AliasChoices("LANGFUSE_SECRET_KEY", "langfuse_secret_key"),
    )
    # Tracing config
    tracing_backend: str = Field(
        default="langfuse",
        validation_alias=AliasChoices("TRACING_BACKEND", "tracing_backend"),
    )
    trace_name: str = Field(
        default="quiz-trace", validation_alias=AliasChoices("TRACE_NAME", "trace_name")
    )

    def cors_origins(self) -> List[str]:
        """Split ``cors_allow_origins`` into a clean list of origins."""
        raw = self.cors_allow_origins or ""
        return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]
