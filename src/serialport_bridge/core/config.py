"""Application configuration using pydantic-settings."""

import logging
import sys

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    prefixed with SERIALPORT_ (e.g., SERIALPORT_API_PORT).
    """

    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    default_timeout: int = 200
    default_size: int = 1024
    encoding: str = "utf-8"

    model_config = SettingsConfigDict(env_prefix="SERIALPORT_")


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
