"""Ledger configuration loaded from environment variables."""

from datetime import time
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the time ledger engine and its HTTP adapter."""

    # Zone that calendar dates and HH:mm corrections are local to
    LEDGER_TIMEZONE: str = "UTC"

    # Boundary used to close a segment nobody clocked out of
    END_OF_DAY: time = time(23, 59, 59)

    REPORT_SHIFT_SEPARATOR: str = " | "

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True)


settings = Settings()


@lru_cache
def ledger_timezone(name: str = None) -> ZoneInfo:
    return ZoneInfo(name or settings.LEDGER_TIMEZONE)
