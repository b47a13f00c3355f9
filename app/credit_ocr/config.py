"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PDF_MEDIA_TYPE = "application/pdf"
DOC_MEDIA_TYPE = "application/msword"
DOCX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str | None = None

    # Upstream call behaviour
    attachment_mode: Literal["inline", "reference"] = "inline"
    upstream_timeout_seconds: float = Field(default=60.0, gt=0)
    upstream_max_retries: int = Field(default=0, ge=0)
    upstream_json_mode: bool = True

    # Admission policy
    allowed_media_types: list[str] = Field(
        default_factory=lambda: [PDF_MEDIA_TYPE, DOC_MEDIA_TYPE, DOCX_MEDIA_TYPE]
    )
    pdf_only: bool = False
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, gt=0)

    # Extraction
    extraction_schema: Literal["legal_business_name", "credit_application"] = (
        "credit_application"
    )
    raw_output_limit: int = Field(default=4000, ge=100)

    # HTTP
    host: str = "0.0.0.0"
    port: int = Field(default=3000, gt=0, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Debug flags
    log_level: str = "INFO"
    debug: bool = False

    model_config = SettingsConfigDict(
        # Load from .env file in the package directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
    )

    @field_validator("allowed_media_types")
    @classmethod
    def normalize_media_types(cls, v: list[str]) -> list[str]:
        """Lower-case media types so admission can compare them directly."""
        return [m.strip().lower() for m in v if m.strip()]

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
