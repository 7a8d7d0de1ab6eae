# nextferry/services/refresh_scheduler.py
from __future__ import annotations

import logging
import threading
from contextlib import suppress

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from nextferry.config import settings
from nextferry.services.engine import ScheduleEngine, get_engine
from nextferry.services.time_resolver import next_boundary

log = logging.getLogger("scheduler")

TICK_JOB = "tick"
REFRESH_JOB = "refresh_sources"
RESYNC_JOB = "resync"
INITIAL_JOB = "initialize"


def cron_seconds(tick_seconds: int) -> str:
    return ",".join(str(s) for s in range(0, 60, tick_seconds))


class FerryRefresher:
    """Periodic tick + source refresh, paused while the consumer is hidden."""

    def __init__(
        self,
        engine: ScheduleEngine,
        scheduler: BackgroundScheduler | None = None,
        *,
        tick_seconds: int | None = None,
        refresh_seconds: int | None = None,
        mode: str | None = None,
    ) -> None:
        self.engine = engine
        self.tz = engine.time_resolver.tz
        self.scheduler = scheduler or BackgroundScheduler(timezone=self.tz)
        self.tick_seconds = tick_seconds or settings.TICK_SECONDS
        self.refresh_seconds = refresh_seconds or settings.REFRESH_SECONDS
        self.mode = (mode or settings.POLL_MODE or "cron").strip().lower()

        self._lock = threading.RLock()
        self._visible = True
        self._stopped = False

    @property
    def visible(self) -> bool:
        with self._lock:
            return self._visible

    def start(self) -> None:
        s = self.scheduler
        s.add_job(
            self.engine.initialize,
            "date",
            run_date=self.engine.time_resolver.now(),
            id=INITIAL_JOB,
            replace_existing=True,
        )
        if self.mode == "cron":
            s.add_job(
                self.engine.tick,
                CronTrigger(second=cron_seconds(self.tick_seconds), timezone=self.tz),
                id=TICK_JOB,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            s.add_job(
                self.engine.refresh,
                IntervalTrigger(seconds=self.refresh_seconds, timezone=self.tz),
                id=REFRESH_JOB,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
        else:
            log.info("Mode %s: no background polling.", self.mode)
        s.start()

    def on_visibility(self, visible: bool) -> bool:
        """Host visibility signal. Returns True when it changed the polling state."""
        with self._lock:
            if self._stopped or visible == self._visible:
                return False
            self._visible = visible
            if not visible:
                self._pause()
                log.info("Polling paused: consumer hidden")
                return True

            now = self.engine.time_resolver.now()
            self.scheduler.add_job(
                self.engine.refresh,
                "date",
                run_date=now,
                id=RESYNC_JOB,
                replace_existing=True,
            )
            if self.mode == "cron":
                # Realign on the operating-timezone clock; the resync covers "now".
                with suppress(JobLookupError):
                    self.scheduler.modify_job(
                        TICK_JOB, next_run_time=next_boundary(now, self.tick_seconds)
                    )
                with suppress(JobLookupError):
                    self.scheduler.resume_job(REFRESH_JOB)
            log.info("Polling resumed: consumer visible")
            return True

    def _pause(self) -> None:
        for job_id in (TICK_JOB, REFRESH_JOB):
            with suppress(JobLookupError):
                self.scheduler.pause_job(job_id)

    def shutdown(self) -> None:
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            for job_id in (TICK_JOB, REFRESH_JOB, RESYNC_JOB, INITIAL_JOB):
                with suppress(JobLookupError):
                    self.scheduler.remove_job(job_id)
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
            self.engine.close()
            log.info("Refresher stopped")


_SINGLETON: FerryRefresher | None = None


def get_refresher() -> FerryRefresher:
    global _SINGLETON
    if _SINGLETON is None:
        _SINGLETON = FerryRefresher(get_engine())
    return _SINGLETON
