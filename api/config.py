"""
Configuration module for FastAPI application.

This module handles environment variables, settings, and configuration
for the sales browser API.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application settings
    app_name: str = Field(default="Retail Sales Browser API")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)

    # Server settings
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Store settings: memory, json or parquet
    store_backend: str = Field(default="memory")
    data_file: Optional[str] = Field(default=None)

    # Import settings
    import_batch_size: int = Field(default=1000, ge=1)
    max_upload_size_mb: int = Field(default=10, ge=1)

    # Query settings
    default_page_size: int = Field(default=10, ge=1)

    # CORS settings
    allowed_origins: List[str] = Field(default=["*"])

    # Logging settings
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


# Global settings instance
settings = Settings()
