# nextferry/viewmodels/ferry_state.py
from __future__ import annotations

from typing import Any

from nextferry.domain.models import EngineState, LiveArrival, NextDeparture, ScheduleEntry


def next_departure_as_dict(nd: NextDeparture) -> dict[str, Any]:
    return {
        "direction": nd.direction.value,
        "from": nd.from_label,
        "to": nd.to_label,
        "departure_time": nd.departure_clock,
        "arrival_time": nd.arrival_clock,
        "minutes_until": nd.minutes_until,
        "time_until": nd.time_until,
        "is_today": nd.is_today,
        "remarks": nd.remark,
    }


def live_arrival_as_dict(la: LiveArrival) -> dict[str, Any]:
    return {
        "direction": la.direction.value,
        "from": la.from_label,
        "to": la.to_label,
        "arrival_time": la.arrival_clock,
        "minutes_until": la.minutes_until,
        "time_until": la.time_until,
        "is_today": la.is_today,
    }


def schedule_entry_as_dict(e: ScheduleEntry) -> dict[str, Any]:
    return {
        "direction": e.direction.value,
        "day_type": e.day_type.value,
        "departure_time": e.departure.hhmm,
        "remarks": e.remark,
    }


def state_as_dict(state: EngineState) -> dict[str, Any]:
    return {
        "now": state.now.isoformat() if state.now else None,
        "loading": state.loading,
        "error": state.error,
        "source_errors": dict(state.source_errors),
        "last_refresh": state.last_refresh.isoformat() if state.last_refresh else None,
        "schedule_entries": len(state.entries),
        "holidays": len(state.holidays),
        "next_ferries": [next_departure_as_dict(nd) for nd in state.next_departures],
        "live_arrivals": [live_arrival_as_dict(la) for la in state.live_arrivals],
    }
