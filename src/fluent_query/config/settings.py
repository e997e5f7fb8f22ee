"""
Configuration management for fluent-query.

This module provides environment-based configuration using Pydantic BaseSettings.
Builder defaults (generated parameter marker) and executor defaults (database URL,
statement logging) are read from here so that applications can tune them without
code changes.
"""

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("FQ_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE

_PARAM_PREFIX_PATTERN = re.compile(r"^[A-Za-z_]\w*$")


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variables are loaded with the FQ_ prefix. For example,
    FQ_PARAM_PREFIX overrides the param_prefix setting.

    Fields read without prefix (uppercase names):
    - LOG_LEVEL: Logging level
    - LOG_TO_FILE: Enable file logging
    - LOG_FILE_DIR: Directory for log files
    - DATABASE_URL: SQLAlchemy URL used by SqlAlchemyExecutor.from_settings()
    - DB_ECHO: Echo SQL emitted by the SQLAlchemy engine
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )
    LOG_TO_FILE: bool = Field(
        default=False,
        validation_alias="LOG_TO_FILE",
        description="Write logs to a daily rotating file in addition to stdout",
    )
    LOG_FILE_DIR: str = Field(
        default="logs",
        validation_alias="LOG_FILE_DIR",
        description="Directory for log files",
    )
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="SQLAlchemy database URL",
    )
    DB_ECHO: bool = Field(
        default=False,
        validation_alias="DB_ECHO",
        description="Echo SQL emitted by the SQLAlchemy engine",
    )

    param_prefix: str = Field(
        default="P",
        description="Marker used for generated parameter names (:P1, :P2, ...)",
    )
    log_statements: bool = Field(
        default=False,
        description="Log every executed statement at debug level",
    )

    @field_validator("param_prefix")
    @classmethod
    def _validate_param_prefix(cls, value: str) -> str:
        """Generated keys must be valid bind names."""
        if not _PARAM_PREFIX_PATTERN.match(value):
            raise ValueError(
                f"param_prefix must start with a letter or underscore and contain "
                f"only word characters, got {value!r}"
            )
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    model_config = SettingsConfigDict(
        env_prefix="FQ_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded once and reused across
    the application lifecycle.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
