"""
Runtime settings loaded from environment variables (prefix ATTRIBUTION_).
"""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Deployment settings. Scoring tables live in AttributionConfig."""

    db_path: str = ":memory:"
    log_level: str = "INFO"
    env: str = "prod"
    sweep_interval_seconds: int = 3600
    sweep_max_workers: int = 1

    model_config = SettingsConfigDict(env_prefix="ATTRIBUTION_", env_file=".env", extra="ignore")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
