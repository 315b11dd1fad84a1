from enum import Enum
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PastDuePolicy(str, Enum):
    """What arming does when the scheduled moment has already passed."""
    FIRE_IMMEDIATELY = "fire_immediately"
    REJECT = "reject"


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///reminders.db"
    SQLITE_JOURNAL_MODE: Optional[str] = "WAL"  # None leaves the SQLite default
    DATABASE_ECHO: bool = False  # Set to True for SQL logging

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Foreground presentation of delivered notifications
    NOTIFICATION_SHOW_ALERT: bool = True
    NOTIFICATION_PLAY_SOUND: bool = True
    NOTIFICATION_SET_BADGE: bool = False

    # Scheduling
    PAST_DUE_POLICY: PastDuePolicy = PastDuePolicy.FIRE_IMMEDIATELY

    # Metrics
    METRICS_ENABLED: bool = False
    METRICS_PORT: int = 9108

    @field_validator("SQLITE_JOURNAL_MODE", mode="before")
    @classmethod
    def blank_journal_mode_is_none(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return str(v).strip().upper()

    model_config = SettingsConfigDict(env_prefix="REMINDER_", env_file=".env", extra="ignore")


settings = Settings()
