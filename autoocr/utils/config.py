"""
Configuration management for autoocr.

Uses pydantic-settings to load configuration from environment variables
(prefixed with ``AUTOOCR_``) and .env files. Command line flags are passed
in as overrides by ``autoocr.main``.
"""

from pathlib import Path
from typing import Any, Dict, Literal, Optional

from loguru import logger
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from autoocr.exceptions import ConfigError
from autoocr.utils.helpers import parse_duration, parse_file_mode

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Validated, immutable settings for one run."""

    # Directories
    input_dir: Path = Path("input")
    output_dir: Path = Path("output")

    # pdfsandwich
    pdf_sandwich: str = "pdfsandwich"
    languages: str = "deu+eng"

    # Processing delay after the last watch event, in seconds
    delay: float = 5.0

    # Output
    keep_original: bool = True
    out_permissions: int = 0o644
    dir_permissions: int = 0o755

    # Logging
    log_format: Literal["plain", "json"] = "plain"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="AUTOOCR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("input_dir", "output_dir", "pdf_sandwich", "languages", mode="before")
    @classmethod
    def _not_empty(cls, value: Any) -> Any:
        if isinstance(value, (str, Path)) and not str(value).strip():
            raise ValueError("can not be empty")
        return value

    @field_validator("delay", mode="before")
    @classmethod
    def _parse_delay(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("delay")
    @classmethod
    def _positive_delay(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("delay can not be smaller or equal to zero")
        return value

    @field_validator("out_permissions", "dir_permissions", mode="before")
    @classmethod
    def _parse_mode(cls, value: Any) -> Any:
        if isinstance(value, (str, int)):
            return parse_file_mode(value)
        return value

    @field_validator("log_format", mode="before")
    @classmethod
    def _lower_format(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level: {value}")
        return level


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Build settings from the environment plus explicit overrides.

    Args:
        overrides: Values that take precedence over the environment;
            ``None`` entries are ignored

    Returns:
        Validated settings

    Raises:
        ConfigError: If any value is invalid
    """
    values = {k: v for k, v in (overrides or {}).items() if v is not None}
    try:
        settings = Settings(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"invalid settings: {problems}") from e

    logger.debug(f"Settings loaded: {settings.model_dump()}")
    return settings
