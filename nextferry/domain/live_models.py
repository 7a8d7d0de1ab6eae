# nextferry/domain/live_models.py
from __future__ import annotations

import re

from pydantic import BaseModel, Field, ValidationError

ETA_RE = re.compile(r"^\s*(\d{2}):(\d{2})\s*$")


class EtaRecord(BaseModel):
    eta: str = Field(..., description="bare HH:MM (24h, zero-padded), no date")
    vessel: str | None = None
    pier: str | None = None

    def hour_minute(self) -> tuple[int, int] | None:
        m = ETA_RE.match(self.eta or "")
        if not m:
            return None
        h, mi = int(m.group(1)), int(m.group(2))
        if h > 23 or mi > 59:
            return None
        return h, mi


def parse_eta_json(record: object) -> EtaRecord | None:
    if isinstance(record, EtaRecord):
        return record
    if not isinstance(record, dict):
        return None
    raw = record.get("eta")
    if raw is None:
        raw = record.get("ETA")
    if not isinstance(raw, str):
        return None
    try:
        return EtaRecord(
            eta=raw,
            vessel=(str(record.get("vessel") or record.get("vessel_name") or "") or None),
            pier=(str(record.get("pier") or "") or None),
        )
    except ValidationError:
        return None


def eta_records_from_payload(payload: object) -> list[EtaRecord]:
    """Accepts a bare list, ``{"data": [...]}`` or ``{"eta": [...]}``."""
    items: object = payload
    if isinstance(payload, dict):
        items = payload.get("data")
        if items is None:
            items = payload.get("eta")
    if not isinstance(items, list):
        return []
    out: list[EtaRecord] = []
    for it in items:
        rec = parse_eta_json(it)
        if rec is not None:
            out.append(rec)
    return out
