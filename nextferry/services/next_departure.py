# nextferry/services/next_departure.py
from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, datetime

from nextferry.domain.models import (
    DayType,
    Direction,
    HolidaySet,
    NextDeparture,
    ScheduleEntry,
)
from nextferry.services.day_types import classify_day_type


def minutes_until(target: datetime, now: datetime) -> int:
    return math.ceil((target - now).total_seconds() / 60)


def format_countdown(minutes: int) -> str:
    if minutes > 60:
        return f"{minutes // 60}h {minutes % 60}m"
    return f"{minutes}m"


def _ordered(
    entries: Iterable[ScheduleEntry], direction: Direction, day_type: DayType
) -> list[ScheduleEntry]:
    # sorted() is stable: equal departures keep source row order.
    return sorted(
        (e for e in entries if e.direction is direction and e.day_type is day_type),
        key=lambda e: e.departure,
    )


def _build(
    entry: ScheduleEntry, day: date, now: datetime, journey_minutes: int, is_today: bool
) -> NextDeparture:
    dep = entry.departure.on(day, now.tzinfo)
    mins = minutes_until(dep, now)
    return NextDeparture(
        direction=entry.direction,
        from_label=entry.direction.from_label,
        to_label=entry.direction.to_label,
        departure_clock=entry.departure.hhmm,
        arrival_clock=entry.departure.plus_minutes(journey_minutes).hhmm,
        minutes_until=mins,
        time_until=format_countdown(mins),
        is_today=is_today,
        remark=entry.remark,
    )


def resolve_next_departure(
    direction: Direction,
    today: date,
    tomorrow: date,
    now: datetime,
    entries: Iterable[ScheduleEntry],
    holidays: HolidaySet,
    *,
    journey_minutes: int = 0,
) -> NextDeparture | None:
    """Next scheduled departure for ``direction``.

    Today's day-type is scanned in ascending departure order for the first
    departure strictly after ``now``; failing that, the earliest departure of
    tomorrow's day-type is taken. ``None`` when neither day has an entry.
    """
    entries = tuple(entries)

    today_type = classify_day_type(today, holidays)
    for entry in _ordered(entries, direction, today_type):
        if entry.departure.on(today, now.tzinfo) > now:
            return _build(entry, today, now, journey_minutes, is_today=True)

    tomorrow_type = classify_day_type(tomorrow, holidays)
    candidates = _ordered(entries, direction, tomorrow_type)
    if candidates:
        return _build(candidates[0], tomorrow, now, journey_minutes, is_today=False)
    return None


def resolve_next_departures(
    today: date,
    tomorrow: date,
    now: datetime,
    entries: Iterable[ScheduleEntry],
    holidays: HolidaySet,
    *,
    journey_minutes: int = 0,
) -> tuple[NextDeparture, ...]:
    entries = tuple(entries)
    out: list[NextDeparture] = []
    for direction in Direction:
        nd = resolve_next_departure(
            direction,
            today,
            tomorrow,
            now,
            entries,
            holidays,
            journey_minutes=journey_minutes,
        )
        if nd is not None:
            out.append(nd)
    return tuple(out)
