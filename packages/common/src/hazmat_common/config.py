"""Configuration management using Pydantic BaseSettings.

Loads process-level configuration from environment variables with sensible
defaults for local use. Per-user settings that the pipeline reads on every
request (API key, model choices, knowledge servers) live in the settings
store instead; the values here are the fallbacks.

Usage:
    from hazmat_common.config import get_settings

    settings = get_settings()
    print(settings.database_path)
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    All settings have development defaults. Override via:
    - Environment variables (e.g., DATABASE_PATH=...)
    - .env file in working directory

    Attributes:
        database_path: SQLite file holding local documents and settings
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json or console)
        google_api_key: Gemini API key used when none is stored
        validation_model: Default model for shipment validation
        suggestion_model: Default model for field suggestions
        ocr_model: Default model for screenshot validation
        extraction_model: Default model for SDS field extraction
        ocr_language: Tesseract language pack
        ocr_min_text_chars: Text-layer length below which a PDF is OCR'd
        ocr_raster_scale: Upscale factor for rasterizing PDF pages
        knowledge_connect_timeout_ms: Handshake timeout for knowledge servers
        knowledge_fetch_timeout_ms: Deadline for one knowledge server's whole contribution
        sds_max_chars: Maximum document characters sent for SDS extraction
        otel_console_export: Print trace spans to the console
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    database_path: str = Field(
        default="data/hazmat_kb.db",
        description="SQLite database path",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="console",
        description="Log format: json or console",
    )

    # Inference
    google_api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (fallback when none is stored)",
    )
    validation_model: str = Field(
        default="gemini-2.5-flash",
        description="Model used for shipment validation",
    )
    suggestion_model: str = Field(
        default="gemini-2.5-flash",
        description="Model used for field suggestions",
    )
    ocr_model: str = Field(
        default="gemini-2.5-flash",
        description="Model used for screenshot validation",
    )
    extraction_model: str = Field(
        default="gemini-2.5-flash-lite",
        description="Model used for SDS field extraction",
    )

    # Document extraction
    ocr_language: str = Field(
        default="eng",
        description="Tesseract language pack",
    )
    ocr_min_text_chars: int = Field(
        default=50,
        ge=0,
        description="Minimum text-layer length before falling back to OCR",
    )
    ocr_raster_scale: float = Field(
        default=2.0,
        gt=0.0,
        description="Page rasterization upscale factor",
    )
    sds_max_chars: int = Field(
        default=30000,
        gt=0,
        description="Document characters sent for SDS extraction",
    )

    # Knowledge servers
    knowledge_connect_timeout_ms: int = Field(
        default=15000,
        gt=0,
        description="Knowledge server handshake timeout (ms)",
    )
    knowledge_fetch_timeout_ms: int = Field(
        default=60000,
        gt=0,
        description="Per-server knowledge fetch deadline (ms)",
    )

    # Telemetry (optional)
    otel_console_export: bool = Field(
        default=False,
        description="Export trace spans to the console",
    )

    @field_validator("log_level", "log_format")
    @classmethod
    def validate_choice(cls, v: str, info: ValidationInfo) -> str:
        choices = {
            "log_level": ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
            "log_format": ("json", "console"),
        }[info.field_name]
        for choice in choices:
            if v.strip().lower() == choice.lower():
                return choice
        raise ValueError(f"{info.field_name} must be one of {', '.join(choices)}")

    @field_validator("google_api_key")
    @classmethod
    def blank_key_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """An empty GOOGLE_API_KEY counts as not configured."""
        if v is None or not v.strip():
            return None
        return v.strip()


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, read once. Tests call ``get_settings.cache_clear()``."""
    return Settings()
