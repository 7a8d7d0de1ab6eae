from __future__ import annotations

from collections import Counter
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from apscheduler.jobstores.base import JobLookupError

from nextferry.domain.models import Direction
from nextferry.services.time_resolver import TimeResolver

HKT = ZoneInfo("Asia/Hong_Kong")

SAMPLE_CSV = "\ufeff" + """Direction,Service Date,Service Hour,Remark
Central to Mui Wo,Mondays to Fridays except public holidays,9:00 a.m.,1
Central to Mui Wo,Mondays to Fridays except public holidays,9:30 a.m.,2
Central - Mui Wo,Saturdays except public holidays,10:00 a.m.,3
Central → Mui Wo,Sundays and public holidays,11:00 a.m.,
Mui Wo to Central,Mondays to Fridays except public holidays,7:00 a.m.,1
Mui Wo->Central,Mondays to Fridays except public holidays,12:00 p.m.,1
Mui Wo-Central,Sundays and public holidays,12:00 a.m.,9
Peng Chau to Central,Mondays to Fridays except public holidays,8:00 a.m.,1
Central to Mui Wo,Holidays on Mars,8:00 a.m.,1
Central to Mui Wo,Mondays to Fridays except public holidays,noon,1
"""

HOLIDAYS_JSON = {
    "vcalendar": [
        {
            "vevent": [
                {"summary": "The first day of January", "dtstart": ["20250101", {"value": "DATE"}]},
                {"summary": "Lunar New Year's Day", "dtstart": {"date": "20250129"}},
                {"summary": "Bogus", "dtstart": {"date": "2025-13"}},
            ]
        }
    ]
}


def hk(y: int, m: int, d: int, hh: int = 0, mm: int = 0, ss: int = 0) -> datetime:
    return datetime(y, m, d, hh, mm, ss, tzinfo=HKT)


class MutableClock:
    def __init__(self, instant: datetime):
        self.instant = instant

    def __call__(self) -> datetime:
        return self.instant


class FakeClient:
    def __init__(
        self,
        csv_text: str = SAMPLE_CSV,
        holidays: dict | None = None,
        eta: dict[Direction, list] | None = None,
        fail: set[str] | None = None,
    ):
        self.csv_text = csv_text
        self.holidays = HOLIDAYS_JSON if holidays is None else holidays
        self.eta = eta or {}
        self.fail = fail if fail is not None else set()
        self.calls: Counter[str] = Counter()
        self.before_return = None

    def _maybe_fail(self, name: str) -> None:
        self.calls[name] += 1
        if self.before_return is not None:
            self.before_return(name)
        if name in self.fail:
            raise RuntimeError(f"{name} unavailable")

    def fetch_schedule_csv(self) -> str:
        self._maybe_fail("schedule")
        return self.csv_text

    def fetch_holidays_raw(self) -> dict:
        self._maybe_fail("holidays")
        return self.holidays

    def has_eta_feed(self, direction: Direction) -> bool:
        return direction in self.eta

    def fetch_eta_raw(self, direction: Direction):
        self._maybe_fail(f"eta:{direction.name.lower()}")
        return {"data": self.eta[direction]}


class FakeScheduler:
    def __init__(self):
        self.jobs: dict[str, dict] = {}
        self.paused: set[str] = set()
        self.modified: dict[str, dict] = {}
        self.resumed: list[str] = []
        self.running = False
        self.shutdown_wait = None

    def add_job(self, func, trigger=None, id=None, **kw):
        self.jobs[id] = {"func": func, "trigger": trigger, **kw}

    def _check(self, job_id: str) -> None:
        if job_id not in self.jobs:
            raise JobLookupError(job_id)

    def pause_job(self, job_id: str) -> None:
        self._check(job_id)
        self.paused.add(job_id)

    def resume_job(self, job_id: str) -> None:
        self._check(job_id)
        self.paused.discard(job_id)
        self.resumed.append(job_id)

    def modify_job(self, job_id: str, **changes) -> None:
        self._check(job_id)
        self.modified[job_id] = changes
        self.paused.discard(job_id)

    def remove_job(self, job_id: str) -> None:
        self._check(job_id)
        del self.jobs[job_id]

    def start(self) -> None:
        self.running = True

    def shutdown(self, wait: bool = True) -> None:
        self.running = False
        self.shutdown_wait = wait


@pytest.fixture
def clock():
    # Monday
    return MutableClock(hk(2025, 1, 20, 9, 15))


@pytest.fixture
def resolver(clock):
    return TimeResolver("Asia/Hong_Kong", clock=clock)


@pytest.fixture
def fake_client():
    return FakeClient()
