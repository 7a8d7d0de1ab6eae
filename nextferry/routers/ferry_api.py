# nextferry/routers/ferry_api.py
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from nextferry.services.day_types import parse_day_type
from nextferry.services.engine import get_engine
from nextferry.services.refresh_scheduler import get_refresher
from nextferry.services.schedule_store import normalize_direction
from nextferry.viewmodels.ferry_state import (
    live_arrival_as_dict,
    next_departure_as_dict,
    schedule_entry_as_dict,
    state_as_dict,
)

router = APIRouter(prefix="/api", tags=["ferry"])


class VisibilityIn(BaseModel):
    visible: bool


def _parse_date(value: str | None) -> date:
    if not value:
        return get_engine().time_resolver.now().date()
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise HTTPException(422, f"Invalid date {value!r}, expected YYYY-MM-DD") from None


@router.get("/state")
def state():
    return state_as_dict(get_engine().snapshot())


@router.get("/next-ferries")
def next_ferries():
    st = get_engine().snapshot()
    return {
        "loading": st.loading,
        "error": st.error,
        "items": [next_departure_as_dict(nd) for nd in st.next_departures],
    }


@router.get("/live-arrivals")
def live_arrivals():
    st = get_engine().snapshot()
    return {"items": [live_arrival_as_dict(la) for la in st.live_arrivals]}


@router.get("/schedule")
def schedule(
    direction: str = Query(default="", description="e.g. 'Central to Mui Wo' or empty"),
    day_type: str = Query(default="", description="weekday|saturday|sunday or empty"),
):
    entries = get_engine().snapshot().entries
    if direction:
        d = normalize_direction(direction)
        if d is None:
            raise HTTPException(422, f"Unknown direction {direction!r}")
        entries = tuple(e for e in entries if e.direction is d)
    if day_type:
        dt = parse_day_type(day_type)
        if dt is None:
            raise HTTPException(422, f"Unknown day type {day_type!r}")
        entries = tuple(e for e in entries if e.day_type is dt)
    return {"items": [schedule_entry_as_dict(e) for e in entries]}


@router.get("/day-type")
def day_type(date_: str | None = Query(default=None, alias="date")):
    d = _parse_date(date_)
    dt = get_engine().day_type_for(d)
    return {"date": d.isoformat(), "day_type": dt.name, "label": dt.value}


@router.get("/holiday")
def holiday(date_: str | None = Query(default=None, alias="date")):
    d = _parse_date(date_)
    return {"date": d.isoformat(), "is_public_holiday": get_engine().is_public_holiday(d)}


@router.post("/visibility")
def visibility(body: VisibilityIn):
    changed = get_refresher().on_visibility(body.visible)
    return {"ok": True, "visible": body.visible, "changed": changed}


@router.post("/refresh")
def refresh():
    committed = get_engine().refresh()
    return {"ok": committed, **state_as_dict(get_engine().snapshot())}
