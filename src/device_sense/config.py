"""
Configuration management for device-sense.

Uses Pydantic Settings for environment variable validation and type safety.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class DetectionSettings(BaseSettings):
    """Detection pipeline configuration."""

    rules_path: Optional[str] = Field(
        default=None,
        description="YAML rule tables to load; the bundled sample tables when unset"
    )
    max_subject_length: int = Field(
        default=2048,
        ge=1,
        description="Only this many leading User-Agent characters are matched"
    )
    match_timeout: float = Field(
        default=0.1,
        gt=0,
        description="Seconds a single rule pattern search may run"
    )
    validate_rules: bool = Field(
        default=True,
        description="Validate every rule when the tables are loaded"
    )

    class Config:
        env_prefix = "DEVICE_SENSE_DETECTION_"


class CacheSettings(BaseSettings):
    """Profile cache configuration."""

    backend: Literal["none", "memory", "sqlite"] = Field(
        default="none",
        description="Cache backend for detected profiles"
    )
    max_entries: int = Field(
        default=1024,
        ge=1,
        description="Entries kept by the in-memory cache"
    )
    db_path: str = Field(
        default="/var/cache/device-sense/profiles.db",
        description="SQLite database for the sqlite backend"
    )

    class Config:
        env_prefix = "DEVICE_SENSE_CACHE_"


class AppConfig(BaseSettings):
    """Main application configuration."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # Nested configurations
    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v

    class Config:
        env_prefix = "DEVICE_SENSE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the global configuration instance.

    Lazily loads configuration on first access.

    Returns:
        AppConfig: The global configuration instance
    """
    global _config
    if _config is None:
        _config = AppConfig(
            detection=DetectionSettings(),
            cache=CacheSettings(),
        )
    return _config


def reload_config() -> AppConfig:
    """
    Reload configuration from environment variables.

    Useful for testing or when environment changes.

    Returns:
        AppConfig: The reloaded configuration instance
    """
    global _config
    _config = None
    return get_config()
