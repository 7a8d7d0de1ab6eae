# nextferry/services/live_arrivals.py
from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta

from nextferry.domain.live_models import EtaRecord, parse_eta_json
from nextferry.domain.models import ClockTime, Direction, LiveArrival
from nextferry.services.next_departure import format_countdown, minutes_until

# Hour gap beyond which a past-looking ETA is read as tomorrow's.
TOMORROW_HOUR_GAP = 12


def place_eta(hour: int, minute: int, now: datetime) -> tuple[datetime, bool] | None:
    """Put a dateless ETA on today or tomorrow; ``None`` when it looks stale."""
    clock = ClockTime(hour, minute)
    eta_today = clock.on(now.date(), now.tzinfo)
    if eta_today > now:
        return eta_today, True
    if abs(now.hour - hour) > TOMORROW_HOUR_GAP:
        return clock.on(now.date() + timedelta(days=1), now.tzinfo), False
    return None


def _live_arrival(direction: Direction, rec: EtaRecord, now: datetime) -> LiveArrival | None:
    hm = rec.hour_minute()
    if hm is None:
        return None
    placed = place_eta(hm[0], hm[1], now)
    if placed is None:
        return None
    eta, is_today = placed
    mins = minutes_until(eta, now)
    return LiveArrival(
        direction=direction,
        from_label=direction.from_label,
        to_label=direction.to_label,
        arrival_clock=eta.strftime("%H:%M"),
        minutes_until=mins,
        time_until=format_countdown(mins),
        is_today=is_today,
    )


def resolve_live_arrivals(
    records_by_direction: Mapping[Direction, Iterable[EtaRecord | dict]],
    now: datetime,
) -> tuple[LiveArrival, ...]:
    candidates: list[LiveArrival] = []
    for direction in Direction:
        for raw in records_by_direction.get(direction) or ():
            rec = parse_eta_json(raw)
            if rec is None:
                continue
            la = _live_arrival(direction, rec, now)
            if la is not None:
                candidates.append(la)

    ranked = [la for la in candidates if la.minutes_until > 0]
    ranked.sort(key=lambda la: la.arrival_clock)
    return tuple(ranked)
