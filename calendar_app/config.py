"""Application settings, read from the environment."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, field_validator


class Settings(BaseModel):
    events_file: Path | None = None
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level


def load_settings() -> Settings:
    """Build Settings from ``CALENDAR_*`` environment variables."""
    return Settings(
        events_file=os.environ.get("CALENDAR_EVENTS_FILE") or None,
        log_level=os.environ.get("CALENDAR_LOG_LEVEL", "INFO"),
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
