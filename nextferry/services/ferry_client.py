# nextferry/services/ferry_client.py
from __future__ import annotations

import json

import requests

from nextferry.config import settings
from nextferry.domain.models import Direction


class FerryClient:
    def __init__(
        self,
        schedule_url: str | None = None,
        holidays_url: str | None = None,
        eta_urls: dict[Direction, str | None] | None = None,
        timeout: float | None = None,
    ):
        # --- Timetable (CSV) ---
        self.schedule_url = (schedule_url or settings.SCHEDULE_CSV_URL or "").strip()

        # --- Public holidays (iCal JSON) ---
        self.holidays_url = (holidays_url or settings.HOLIDAYS_JSON_URL or "").strip()

        # --- Live ETA, one feed per direction ---
        if eta_urls is None:
            eta_urls = {
                Direction.CENTRAL_TO_MUI_WO: settings.ETA_CENTRAL_TO_MUI_WO_URL,
                Direction.MUI_WO_TO_CENTRAL: settings.ETA_MUI_WO_TO_CENTRAL_URL,
            }
        self.eta_urls = {d: (u or "").strip() for d, u in eta_urls.items()}

        self.timeout = float(timeout or settings.HTTP_TIMEOUT or 7.0)

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept-Encoding": "gzip, deflate, br",
            }
        )

    def fetch_schedule_csv(self) -> str:
        if not self.schedule_url:
            raise RuntimeError("SCHEDULE_CSV_URL is not configured")
        r = self._session.get(self.schedule_url, timeout=self.timeout)
        r.raise_for_status()
        return r.content.decode("utf-8-sig", errors="replace")

    def fetch_holidays_raw(self) -> dict:
        if not self.holidays_url:
            raise RuntimeError("HOLIDAYS_JSON_URL is not configured")
        r = self._session.get(self.holidays_url, timeout=self.timeout)
        r.raise_for_status()
        # 1823 serves the calendar with a BOM.
        return json.loads(r.content.decode("utf-8-sig"))

    def has_eta_feed(self, direction: Direction) -> bool:
        return bool(self.eta_urls.get(direction))

    def fetch_eta_raw(self, direction: Direction) -> dict | list:
        url = self.eta_urls.get(direction)
        if not url:
            raise RuntimeError(f"ETA feed for {direction.value!r} is not configured")
        r = self._session.get(url, timeout=self.timeout)
        r.raise_for_status()
        return r.json()


_client_singleton: FerryClient | None = None


def get_client() -> FerryClient:
    global _client_singleton
    if _client_singleton is None:
        _client_singleton = FerryClient()
    return _client_singleton
