from __future__ import annotations

from fastapi import APIRouter, HTTPException

from nextferry.domain.models import Direction
from nextferry.services.engine import get_engine

router = APIRouter(tags=["live"])


@router.get("/_health")
def health():
    return {"ok": True}


@router.get("/_debug/events")
def debug_events(limit: int = 50):
    events = get_engine().recent_events()
    return {"events": events[-max(1, limit) :]}


@router.get("/_debug/raw-eta/{direction_key}")
def raw_eta(direction_key: str):
    try:
        direction = Direction[direction_key.upper()]
    except KeyError:
        raise HTTPException(404, "Unknown direction") from None
    client = get_engine().client
    if not client.has_eta_feed(direction):
        raise HTTPException(404, f"No ETA feed configured for {direction.value!r}")
    return client.fetch_eta_raw(direction)
