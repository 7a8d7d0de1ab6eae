# nextferry/services/engine.py
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date, datetime
from functools import partial
from typing import Any

from nextferry.config import settings
from nextferry.domain.live_models import EtaRecord, eta_records_from_payload
from nextferry.domain.models import DayType, Direction, EngineState
from nextferry.services.common_fetch import FetchOutcome, fetch_with_retry
from nextferry.services.day_types import classify_day_type
from nextferry.services.ferry_client import FerryClient, get_client
from nextferry.services.holidays import holidays_from_ical_json, is_public_holiday
from nextferry.services.live_arrivals import resolve_live_arrivals
from nextferry.services.next_departure import resolve_next_departures
from nextferry.services.schedule_store import REMARKS, ScheduleStore
from nextferry.services.time_resolver import TimeResolver

log = logging.getLogger("engine")

SOURCE_SCHEDULE = "schedule"
SOURCE_HOLIDAYS = "holidays"
SCHEDULE_ERROR = "Failed to load ferry schedule"

# Retained ETA readings older than this are no longer resolved
MAX_ETA_STALE_SECONDS = 180

EventHook = Callable[[dict[str, Any]], None]


def eta_source(direction: Direction) -> str:
    return f"eta:{direction.name.lower()}"


class ScheduleEngine:
    """Owns EngineState; the only writer is its own refresh/tick sequence."""

    def __init__(
        self,
        client: FerryClient | None = None,
        time_resolver: TimeResolver | None = None,
        *,
        journey_minutes: int | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
        remarks: Mapping[str, str] = REMARKS,
        on_event: EventHook | None = None,
        eta_max_stale_seconds: int = MAX_ETA_STALE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._time = time_resolver or TimeResolver()
        self._journey_minutes = (
            settings.JOURNEY_MINUTES if journey_minutes is None else journey_minutes
        )
        self._retry_attempts = (
            settings.FETCH_RETRY_ATTEMPTS if retry_attempts is None else retry_attempts
        )
        self._retry_delay = settings.FETCH_RETRY_DELAY if retry_delay is None else retry_delay
        self._remarks = remarks
        self._on_event = on_event
        self._eta_max_stale_seconds = eta_max_stale_seconds
        self._sleep = sleep

        self._state = EngineState()
        # direction -> (fetched_at, records)
        self._eta: dict[Direction, tuple[datetime, tuple[EtaRecord, ...]]] = {}

        self._cycle_lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._closed = False

        # --- Debug/metrics ---
        self._debug: deque[dict[str, Any]] = deque(maxlen=300)

    # ---------------- Public API ----------------

    @property
    def client(self) -> FerryClient:
        if self._client is None:
            self._client = get_client()
        return self._client

    @property
    def time_resolver(self) -> TimeResolver:
        return self._time

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> EngineState:
        return self._state

    def recent_events(self) -> list[dict[str, Any]]:
        return list(self._debug)

    def day_type_for(self, day: date) -> DayType:
        return classify_day_type(day, self._state.holidays)

    def is_public_holiday(self, day: date) -> bool:
        return is_public_holiday(day, self._state.holidays)

    def initialize(self) -> bool:
        return self.refresh()

    def refresh(self) -> bool:
        """One ingest cycle: fetch every source concurrently, then commit once.

        Returns False when the cycle was skipped (another refresh in flight)
        or its results were dropped because the engine was closed meanwhile.
        """
        if self._closed:
            return False
        if not self._refresh_lock.acquire(blocking=False):
            self._log("refresh_skipped")
            return False
        try:
            outcomes = self._gather()
            with self._cycle_lock:
                if self._closed:
                    self._log("refresh_dropped", sources=sorted(outcomes))
                    return False
                self._commit(outcomes)
                self._recompute()
            return True
        finally:
            self._refresh_lock.release()

    def tick(self) -> bool:
        """Recompute results for the current time. Overlapping ticks are skipped."""
        if self._closed:
            return False
        if not self._cycle_lock.acquire(blocking=False):
            self._log("tick_skipped")
            return False
        try:
            self._recompute()
            return True
        finally:
            self._cycle_lock.release()

    def close(self) -> None:
        self._closed = True
        self._log("closed")

    # ---------------- Ingest ----------------

    def _ingest_schedule(self) -> ScheduleStore:
        return ScheduleStore.from_csv(self.client.fetch_schedule_csv(), remarks=self._remarks)

    def _ingest_holidays(self):
        return holidays_from_ical_json(self.client.fetch_holidays_raw())

    def _ingest_eta(self, direction: Direction) -> tuple[EtaRecord, ...]:
        return tuple(eta_records_from_payload(self.client.fetch_eta_raw(direction)))

    def _jobs(self) -> dict[str, Callable[[], Any]]:
        jobs: dict[str, Callable[[], Any]] = {
            SOURCE_SCHEDULE: self._ingest_schedule,
            SOURCE_HOLIDAYS: self._ingest_holidays,
        }
        for d in Direction:
            if self.client.has_eta_feed(d):
                jobs[eta_source(d)] = partial(self._ingest_eta, d)
        return jobs

    def _gather(self) -> dict[str, FetchOutcome]:
        jobs = self._jobs()
        fetch = partial(
            fetch_with_retry,
            attempts=self._retry_attempts,
            delay=self._retry_delay,
            sleep=self._sleep,
        )
        with ThreadPoolExecutor(max_workers=len(jobs), thread_name_prefix="ingest") as pool:
            futures = {label: pool.submit(fetch, fn, label=label) for label, fn in jobs.items()}
            return {label: fut.result() for label, fut in futures.items()}

    def _commit(self, outcomes: dict[str, FetchOutcome]) -> None:
        state = self._state
        now = self._time.now()
        entries = state.entries
        holidays = state.holidays
        error = state.error
        source_errors = dict(state.source_errors)
        eta = dict(self._eta)

        for label, out in outcomes.items():
            if not out.ok:
                source_errors[label] = out.error or "unknown"
                self._log("ingest_failed", source=label, attempts=out.attempts, error=out.error)
                if label == SOURCE_SCHEDULE:
                    error = SCHEDULE_ERROR
                continue

            if label == SOURCE_SCHEDULE:
                store: ScheduleStore = out.data
                if not len(store):
                    source_errors[label] = "parsed_zero_items"
                    error = SCHEDULE_ERROR
                    self._log("ingest_failed", source=label, error="parsed_zero_items")
                    continue
                entries = store.entries()
                error = None
                self._log(
                    "ingest_ok",
                    source=label,
                    attempts=out.attempts,
                    entries=len(store),
                    dropped=store.rows_dropped,
                )
            elif label == SOURCE_HOLIDAYS:
                if not out.data:
                    source_errors[label] = "parsed_zero_items"
                    self._log("ingest_failed", source=label, error="parsed_zero_items")
                    continue
                holidays = out.data
                self._log("ingest_ok", source=label, attempts=out.attempts, holidays=len(holidays))
            else:
                direction = next(d for d in Direction if eta_source(d) == label)
                eta[direction] = (now, out.data)
                self._log("ingest_ok", source=label, attempts=out.attempts, records=len(out.data))
            source_errors.pop(label, None)

        self._eta = eta
        self._state = replace(
            state,
            entries=entries,
            holidays=holidays,
            loading=False,
            error=error,
            source_errors=source_errors,
            last_refresh=now,
        )

    # ---------------- Resolution ----------------

    def _recompute(self) -> None:
        state = self._state
        now = self._time.now()
        try:
            next_departures = resolve_next_departures(
                now.date(),
                self._time.tomorrow(now),
                now,
                state.entries,
                state.holidays,
                journey_minutes=self._journey_minutes,
            )
            live_arrivals = resolve_live_arrivals(self._fresh_eta(now), now)
        except Exception:
            log.exception("resolution failed at %s", now.isoformat())
            return

        self._state = replace(
            state,
            now=now,
            next_departures=next_departures,
            live_arrivals=live_arrivals,
        )
        self._log(
            "resolved",
            now=now.strftime("%Y-%m-%d %H:%M:%S"),
            day_type=classify_day_type(now.date(), state.holidays).name,
            next_departures=len(next_departures),
            live_arrivals=len(live_arrivals),
        )

    def _fresh_eta(self, now: datetime) -> dict[Direction, tuple[EtaRecord, ...]]:
        fresh: dict[Direction, tuple[EtaRecord, ...]] = {}
        for direction, (fetched_at, records) in self._eta.items():
            if (now - fetched_at).total_seconds() > self._eta_max_stale_seconds:
                continue
            fresh[direction] = records
        return fresh

    # -------- Internals: logging --------

    def _log(self, stage: str, **kv) -> None:
        evt = {"t": int(time.time()), "stage": stage, **kv}
        self._debug.append(evt)
        log.info("engine %s %s", stage, kv)
        if self._on_event is None:
            return
        try:
            self._on_event(evt)
        except Exception:
            log.exception("event hook failed for stage=%s", stage)


_SINGLETON: ScheduleEngine | None = None


def get_engine() -> ScheduleEngine:
    global _SINGLETON
    if _SINGLETON is None:
        _SINGLETON = ScheduleEngine()
    return _SINGLETON
