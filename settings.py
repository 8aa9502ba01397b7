"""
settings.py — Configuration and logging setup.
Tunables come from the environment (LIFTLOG_*) or a local .env file.
Google credentials stay in Streamlit secrets, see gateway.py.
"""

import logging
import sys
from functools import lru_cache

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    spreadsheet_title: str = "Lift Log Studio"
    app_env: str = "local"
    log_level: str = "INFO"
    # Skip Google Sheets entirely and keep everything in memory
    offline: bool = False
    default_rest_seconds: int = 60
    profiles: list[str] = ["Athlete", "Guest"]

    model_config = SettingsConfigDict(
        env_prefix="LIFTLOG_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    is_dev = settings.app_env in {"local", "dev"}

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )

    renderer = structlog.dev.ConsoleRenderer() if is_dev else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
