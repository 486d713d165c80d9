"""Application configuration."""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_RULES_DATA = Path(__file__).resolve().parent.parent / "rules" / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API
    app_name: str = "Claim Rules Engine"
    debug: bool = False
    log_level: str = "INFO"

    # Paths
    rules_dir: str = str(_RULES_DATA)
    templates_file: str = str(_RULES_DATA / "templates.yaml")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Set the root log level and format from settings."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
