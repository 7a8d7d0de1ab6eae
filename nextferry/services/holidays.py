# nextferry/services/holidays.py
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from nextferry.domain.models import HolidaySet

log = logging.getLogger("holidays")


def _dtstart_text(dtstart: Any) -> str | None:
    # 1823 publishes ["20250101", {"value": "DATE"}]; other exports use dicts.
    if isinstance(dtstart, str):
        return dtstart
    if isinstance(dtstart, dict):
        val = dtstart.get("date") or dtstart.get("date-time")
        return val if isinstance(val, str) else None
    if isinstance(dtstart, list | tuple) and dtstart and isinstance(dtstart[0], str):
        return dtstart[0]
    return None


def parse_yyyymmdd(s: str | None) -> date | None:
    if not s:
        return None
    head = s.strip()[:8]
    if len(head) != 8 or not head.isdigit():
        return None
    try:
        return datetime.strptime(head, "%Y%m%d").date()
    except ValueError:
        return None


def holidays_from_events(events: Iterable[Any]) -> HolidaySet:
    out: set[date] = set()
    for ev in events:
        if not isinstance(ev, dict):
            continue
        d = parse_yyyymmdd(_dtstart_text(ev.get("dtstart")))
        if d is not None:
            out.add(d)
    return frozenset(out)


def holidays_from_ical_json(payload: Any) -> HolidaySet:
    """Build the holiday set from an iCal-as-JSON document (``vcalendar[0].vevent``)."""
    events: list = []
    if isinstance(payload, dict):
        cal = payload.get("vcalendar") or []
        if isinstance(cal, list) and cal and isinstance(cal[0], dict):
            ev = cal[0].get("vevent") or []
            if isinstance(ev, list):
                events = ev
    holidays = holidays_from_events(events)
    log.info("Loaded %d public holidays from %d events", len(holidays), len(events))
    return holidays


def is_public_holiday(day: date, holidays: HolidaySet) -> bool:
    return day in holidays
