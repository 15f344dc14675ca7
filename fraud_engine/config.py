"""
Order Fraud Engine - Configuration Management

Environment-based process settings (logging, location of the detection
config file) and construction of the process-wide ConfigManager.

Environment variables use the ``FRAUD_ENGINE_`` prefix, e.g.
``FRAUD_ENGINE_LOG_LEVEL=DEBUG`` or ``FRAUD_ENGINE_CONFIG_PATH=/etc/fraud.json``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domains.fraud_detection.config import ConfigManager, load_config_file
from .utils.logger import setup_logging


class EngineSettings(BaseSettings):
    """Process settings for hosts embedding the fraud engine."""

    log_level: str = Field("INFO", description="Log level")
    log_format: str = Field("json", description="Log format: json or console")
    config_path: Optional[Path] = Field(None, description="JSON file with detection config")

    model_config = SettingsConfigDict(
        env_prefix="FRAUD_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        fmt = v.lower()
        if fmt not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}")
        return fmt


@lru_cache()
def get_settings() -> EngineSettings:
    return EngineSettings()


def build_config_manager(settings: Optional[EngineSettings] = None) -> ConfigManager:
    """
    Create the process-wide ConfigManager.

    Loads the detection config file when one is configured, else defaults.

    Raises:
        ConfigurationError: If the config file is unreadable or invalid
    """
    settings = settings or get_settings()
    if settings.config_path is not None:
        return ConfigManager(load_config_file(settings.config_path))
    return ConfigManager()


def configure(settings: Optional[EngineSettings] = None) -> ConfigManager:
    """Set up logging and return a ready ConfigManager."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)
    return build_config_manager(settings)
