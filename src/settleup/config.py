from __future__ import annotations

from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    bot_token: str = Field(..., alias="BOT_TOKEN")
    database_url: str = Field(..., alias="DATABASE_URL")
    tz: str = Field("America/New_York", alias="TZ")
    reminder_hour: int = Field(18, alias="REMINDER_HOUR", ge=0, le=23)
    reminder_minute: int = Field(0, alias="REMINDER_MINUTE", ge=0, le=59)
    debt_threshold_cents: int = Field(100, alias="DEBT_THRESHOLD_CENTS", ge=0)
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @property
    def zoneinfo(self) -> ZoneInfo:
        return ZoneInfo(self.tz)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
