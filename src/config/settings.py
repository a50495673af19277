# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for invocation defaults: retry policy, telemetry
switches, the default wire namespace, OpenAI-compatible endpoint settings
and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Retry policy ===
    max_retries: int = 2
    retry_base_delay_s: float = 2.0
    retry_backoff_factor: float = 2.0
    retry_jitter: bool = True

    # === Telemetry ===
    telemetry_enabled: bool = False
    telemetry_record_inputs: bool = True
    telemetry_record_outputs: bool = True
    telemetry_tracer_name: str = "inferlink"

    # === Wire format ===
    wire_namespace: str = "openaiCompatible"

    # === OpenAI-compatible endpoint ===
    openai_compatible_provider: str = "openai-compatible"
    openai_compatible_base_url: str = "https://api.openai.com/v1"
    openai_compatible_api_key: str = ""
    openai_compatible_max_embeddings_per_call: int = 2048

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:  # noqa: N805
        """MAX_RETRIES must be non-negative."""
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.retry_base_delay_s < 0:
            errors.append("RETRY_BASE_DELAY_S must be >= 0")

        if self.retry_backoff_factor < 1.0:
            errors.append("RETRY_BACKOFF_FACTOR must be >= 1.0")

        if self.openai_compatible_max_embeddings_per_call < 1:
            errors.append("OPENAI_COMPATIBLE_MAX_EMBEDDINGS_PER_CALL must be >= 1")

        if not self.wire_namespace:
            errors.append("WIRE_NAMESPACE must not be empty")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-call config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
