# nextferry/services/schedule_store.py
from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from nextferry.domain.models import ClockTime, Direction, ScheduleEntry
from nextferry.services.day_types import parse_day_type

log = logging.getLogger("schedule_store")

# -------------------- Lookup tables --------------------

REMARKS: Mapping[str, str] = MappingProxyType(
    {
        "1": "Ordinary ferry service and freight service is allowed",
        "2": (
            "Ordinary ferry service and freight service is allowed and via Peng Chau "
            "for alighting passengers only"
        ),
        "3": "Saturdays only and freight service is allowed (except public holidays)",
    }
)

DIRECTION_ALIASES: Mapping[Direction, tuple[str, ...]] = MappingProxyType(
    {
        Direction.CENTRAL_TO_MUI_WO: (
            "Central to Mui Wo",
            "Central-Mui Wo",
            "Central → Mui Wo",
            "Central->Mui Wo",
        ),
        Direction.MUI_WO_TO_CENTRAL: (
            "Mui Wo to Central",
            "Mui Wo-Central",
            "Mui Wo → Central",
            "Mui Wo->Central",
        ),
    }
)

COLUMN_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "direction": ("direction",),
        "day_type": ("service date", "day type", "day_type"),
        "time": ("service hour", "time", "departure time", "departure_time"),
        "remark": ("remark", "remarks"),
    }
)

# -------------------- Utils --------------------

_SEP_RE = re.compile(r"\s*(?:->|→|–|—|-|\bto\b)\s*")
_WS_RE = re.compile(r"\s+")
_CLOCK_RE = re.compile(
    r"^\s*(\d{1,2})\s*:\s*(\d{2})\s*(?:([ap])\.?\s*m\.?)?\s*$",
    re.IGNORECASE,
)


def _direction_key(text: str) -> str:
    s = _SEP_RE.sub(">", (text or "").strip().lower())
    return _WS_RE.sub(" ", s)


def normalize_direction(
    text: str | None,
    aliases: Mapping[Direction, Iterable[str]] = DIRECTION_ALIASES,
) -> Direction | None:
    key = _direction_key(text or "")
    if not key:
        return None
    for direction, spellings in aliases.items():
        for alias in spellings:
            if _direction_key(alias) in key:
                return direction
    return None


def parse_clock(text: str | None) -> ClockTime | None:
    """``"7:05"``, ``"07:05"``, ``"12:00 a.m."``, ``" 1 : 30 PM "`` -> ClockTime, else None."""
    if not text:
        return None
    m = _CLOCK_RE.match(text)
    if not m:
        return None
    h, mi = int(m.group(1)), int(m.group(2))
    meridiem = (m.group(3) or "").lower()
    if mi > 59:
        return None
    if meridiem:
        if not 1 <= h <= 12:
            return None
        if meridiem == "p" and h != 12:
            h += 12
        elif meridiem == "a" and h == 12:
            h = 0
    elif h > 23:
        return None
    return ClockTime(h, mi)


def _norm_row(row: Mapping) -> dict:
    out = {}
    for k, v in row.items():
        if k is None:
            continue
        kk = str(k).strip().lstrip("\ufeff").lower()
        out[kk] = v.strip() if isinstance(v, str) else v
    return out


def _pick(row: dict, field: str) -> str:
    for name in COLUMN_ALIASES[field]:
        val = row.get(name)
        if val:
            return str(val)
    return ""


# -------------------- Store --------------------


@dataclass(frozen=True)
class ScheduleStore:
    _entries: tuple[ScheduleEntry, ...] = ()
    rows_read: int = 0
    rows_dropped: int = 0

    def entries(self) -> tuple[ScheduleEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Mapping],
        remarks: Mapping[str, str] = REMARKS,
        aliases: Mapping[Direction, Iterable[str]] = DIRECTION_ALIASES,
    ) -> ScheduleStore:
        entries: list[ScheduleEntry] = []
        read = 0
        for raw in rows:
            read += 1
            row = _norm_row(raw)
            direction = normalize_direction(_pick(row, "direction"), aliases)
            day_type = parse_day_type(_pick(row, "day_type"))
            departure = parse_clock(_pick(row, "time"))
            if direction is None or day_type is None or departure is None:
                log.debug("Dropping timetable row %r", raw)
                continue
            remark = remarks.get(_pick(row, "remark").strip(), "")
            entries.append(ScheduleEntry(direction, day_type, departure, remark))
        store = cls(tuple(entries), rows_read=read, rows_dropped=read - len(entries))
        log.debug(
            "Loaded %d timetable entries (rows=%d dropped=%d)",
            len(entries),
            read,
            store.rows_dropped,
        )
        return store

    @classmethod
    def from_csv(
        cls,
        text: str,
        remarks: Mapping[str, str] = REMARKS,
        aliases: Mapping[Direction, Iterable[str]] = DIRECTION_ALIASES,
    ) -> ScheduleStore:
        reader = csv.DictReader(io.StringIO((text or "").lstrip("\ufeff")))
        rows = (
            r for r in reader if any(isinstance(v, str) and v.strip() for v in r.values())
        )
        return cls.from_rows(rows, remarks=remarks, aliases=aliases)
