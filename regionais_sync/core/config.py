"""Configuration settings for the application.

Values are read once from the environment at import time; tests override
them by monkeypatching attributes on the shared `settings` instance.
"""
import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    DB_PATH: str = field(default_factory=lambda: os.getenv("DB_PATH", "data/app.db"))
    REGIONAIS_API_URL: str = field(default_factory=lambda: os.getenv("REGIONAIS_API_URL", ""))
    REGIONAIS_SYNC_INTERVAL_SECONDS: float = field(
        default_factory=lambda: float(os.getenv("REGIONAIS_SYNC_INTERVAL_SECONDS", "3600"))
    )
    REGIONAIS_FETCH_TIMEOUT_SECONDS: float = field(
        default_factory=lambda: float(os.getenv("REGIONAIS_FETCH_TIMEOUT_SECONDS", "10"))
    )
    REGIONAIS_SYNC_ENABLED: bool = field(default_factory=lambda: _env_bool("REGIONAIS_SYNC_ENABLED"))
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


settings = Settings()
