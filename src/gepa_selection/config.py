"""Runtime settings and logging setup."""

import sys
from typing import Optional

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


class Settings(BaseSettings):
    """Selection runtime settings from environment or direct initialization."""

    profile: str = "balanced"
    seed: Optional[int] = None
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="GEPA_SELECTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


def get_settings() -> Settings:
    """Load settings from environment."""
    return Settings()


def configure_logging(level: str = "INFO") -> int:
    """Replace loguru sinks with a single stderr sink at ``level``."""
    logger.remove()
    return logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
