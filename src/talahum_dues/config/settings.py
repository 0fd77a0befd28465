"""Configuration settings for the Talahum dues client."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlatSettings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Dashboard API
    api_url: str = Field(
        default="http://localhost:8000/api", validation_alias="TALAHUM_API_URL"
    )
    api_token: SecretStr | None = Field(default=None, validation_alias="TALAHUM_API_TOKEN")
    token_file: Path | None = Field(default=None, validation_alias="TALAHUM_TOKEN_FILE")
    api_timeout: float = Field(default=30.0, validation_alias="TALAHUM_TIMEOUT")

    # Document export
    export_dir: Path = Field(default=Path("exports"), validation_alias="EXPORT_DIR")
    pdf_font_path: Path | None = Field(default=None, validation_alias="PDF_FONT_PATH")

    # Receipt header and amounts
    association_name: str = Field(
        default="جمعية التلاحم الخيرية", validation_alias="ASSOCIATION_NAME"
    )
    association_address: str = Field(
        default="تعز-المعافر", validation_alias="ASSOCIATION_ADDRESS"
    )
    association_locality: str = Field(
        default="الشعوبة-الظهرة", validation_alias="ASSOCIATION_LOCALITY"
    )
    currency_label: str = Field(default="ر.س", validation_alias="CURRENCY_LABEL")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> FlatSettings:
    """Get cached settings instance."""
    return FlatSettings()
