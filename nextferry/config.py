# nextferry/config.py
from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- Operating timezone ---
    TZ_NAME: str = "Asia/Hong_Kong"

    # --- Sources ---
    SCHEDULE_CSV_URL: str = (
        "https://www.sunferry.com.hk/eta/timetable/SunFerry_central_muiwo_timetable_eng.csv"
    )
    HOLIDAYS_JSON_URL: str = "https://www.1823.gov.hk/common/ical/en.json"
    ETA_CENTRAL_TO_MUI_WO_URL: str | None = None
    ETA_MUI_WO_TO_CENTRAL_URL: str | None = None
    HTTP_TIMEOUT: float = 7.0
    FETCH_RETRY_ATTEMPTS: int = 3
    FETCH_RETRY_DELAY: float = 0.4

    # --- Cadence ---
    POLL_MODE: str = "cron"
    TICK_SECONDS: int = 30
    REFRESH_SECONDS: int = 60

    # --- Timetable ---
    JOURNEY_MINUTES: int = 0

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("TICK_SECONDS")
    @classmethod
    def _tick_divides_minute(cls, v: int) -> int:
        if v <= 0 or 60 % v != 0:
            raise ValueError("TICK_SECONDS must divide 60")
        return v


settings = Settings()
