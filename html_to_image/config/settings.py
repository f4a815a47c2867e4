"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Annotated, Optional, List, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
import json


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="HTML to Image Service", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # Rendering Configuration
    wkhtmltoimage_path: str = Field(
        default="wkhtmltoimage", description="wkhtmltoimage executable name or path"
    )
    render_timeout: float = Field(
        default=5.0, gt=0, description="Deadline for a single conversion in seconds"
    )
    request_timeout: float = Field(
        default=5.0, gt=0, description="Deadline for handling a render request in seconds"
    )
    expose_error_details: bool = Field(
        default=True, description="Return renderer error output to clients"
    )

    # Security Configuration
    allowed_hosts: Annotated[List[str], NoDecode] = Field(
        default=["*"], description="Allowed hosts for CORS"
    )

    # Compression Configuration
    gzip_minimum_size: int = Field(default=1000, ge=0, description="Minimum size to compress")

    # Rate Limiting Configuration
    rate_limit_enabled: bool = Field(default=True, description="Enable rate limiting")
    rate_limit_max: int = Field(default=100, gt=0, description="Requests allowed per window")
    rate_limit_window: int = Field(default=86400, gt=0, description="Window length in seconds")
    rate_limit_bypass_header: str = Field(
        default="Rate-Bypass", description="Header carrying the rate limit bypass secret"
    )
    rate_limit_bypass_secret: Optional[str] = Field(
        default=None, description="Secret that skips rate limiting"
    )
    rate_limit_bypass_secret_hashes: Annotated[List[str], NoDecode] = Field(
        default=[], description="SHA-256 hashes of secrets that skip rate limiting"
    )
    rate_limit_storage_url: Optional[str] = Field(
        default=None, description="Redis URL for shared rate limit counters"
    )

    # Monitoring Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("allowed_hosts", "rate_limit_bypass_secret_hashes", mode="before")
    @classmethod
    def parse_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse a list from a JSON array string, comma-separated string or list."""
        if isinstance(v, str):
            # Handle JSON-like string: ["*"] or ["host1", "host2"]
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # Handle comma-separated string: "*" or "host1,host2"
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("rate_limit_bypass_secret_hashes")
    @classmethod
    def normalize_hashes(cls, v: List[str]) -> List[str]:
        """Hex digests compare case-insensitively."""
        return [digest.lower() for digest in v]

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="HTML2IMG_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
