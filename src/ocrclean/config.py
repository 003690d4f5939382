"""
Configuration management for ocrclean.

Configuration is loaded from:
1. Environment variables (highest priority), e.g. OCRCLEAN_PROCESSING__MAX_WORKERS=8
2. config.yaml file
3. Default values (lowest priority)

Rule sets (patterns, misreads, lookups, dedup) are not settings; they are
declarative data loaded by ``ocrclean.core.rules.load_rule_set``. Settings only
say where to find them and how to run.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ocrclean.core.constants import DEFAULT_MAX_WORKERS


class ProcessingSettings(BaseSettings):
    """Batch processing configuration."""

    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1)
    rules_path: Path | None = None  # Built-in paint-code rules when unset


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["text", "json"] = "text"
    file: str | None = None

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


class Settings(BaseSettings):
    """Main settings class that combines all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="OCRCLEAN_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML values arrive as init kwargs; environment must still win
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def load_yaml_config(path: Path | None = None) -> dict:
    """Load configuration from YAML file."""
    if path is None:
        # Look for config.yaml in standard locations
        candidates = [
            Path("config.yaml"),
            Path("config/config.yaml"),
            Path.home() / ".ocrclean" / "config.yaml",
        ]
        for candidate in candidates:
            if candidate.exists():
                path = candidate
                break

    if path and path.exists():
        with open(path) as f:
            return yaml.safe_load(f) or {}

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    yaml_config = load_yaml_config()

    # Merge YAML config with environment variables
    # Environment variables take precedence
    return Settings(**yaml_config)


def reload_settings() -> Settings:
    """Force reload of settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
