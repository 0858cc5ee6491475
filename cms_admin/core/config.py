"""
CMS Admin Application Configuration

Configuration management with environment variable support.
Implements secure defaults and validation for all settings.
"""

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import CACHE_STORAGE_PREFIX, DEFAULT_CACHE_TTL_MS

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation and secure defaults."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # Environment settings
    ENVIRONMENT: str = Field(
        default="development", description="Application environment"
    )
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_JSON: bool = Field(
        default=False, description="Render log lines as JSON instead of console text"
    )

    # Request cache configuration
    CACHE_TTL_MS: int = Field(
        default=DEFAULT_CACHE_TTL_MS,
        ge=1,
        description="Default time-to-live for cached responses in milliseconds",
    )
    CACHE_STORAGE_PREFIX: str = Field(
        default=CACHE_STORAGE_PREFIX,
        min_length=1,
        description="Prefix for cache entries in the backing store",
    )
    CACHE_BACKEND: str = Field(
        default="memory", description="Backing store: memory, file or redis"
    )
    CACHE_FILE_PATH: str = Field(
        default=".cms_cache.json", description="JSON file used by the file backend"
    )
    CACHE_PRODUCER_TIMEOUT_SECONDS: Optional[float] = Field(
        default=None,
        gt=0,
        description="Reject in-flight requests after this many seconds (unset = wait forever)",
    )

    # Redis configuration
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )

    # API configuration
    API_BASE_URL: str = Field(
        default="http://localhost:9005", description="CMS REST API base URL"
    )
    API_TIMEOUT_SECONDS: float = Field(
        default=30.0, gt=0, le=300, description="HTTP request timeout"
    )
    API_PLATFORM: str = Field(
        default="cms", description="Value sent in the Platform request headers"
    )

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        allowed = ["development", "staging", "production", "test"]
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    @field_validator("CACHE_BACKEND")
    @classmethod
    def validate_cache_backend(cls, v):
        """Validate cache backend name."""
        allowed = ["memory", "file", "redis"]
        if v.lower() not in allowed:
            raise ValueError(f"CACHE_BACKEND must be one of: {allowed}")
        return v.lower()

    @field_validator("API_BASE_URL")
    @classmethod
    def validate_api_base_url(cls, v):
        """Validate API base URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API_BASE_URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
