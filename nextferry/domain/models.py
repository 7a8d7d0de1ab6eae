# nextferry/domain/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum


class Direction(str, Enum):
    CENTRAL_TO_MUI_WO = "Central to Mui Wo"
    MUI_WO_TO_CENTRAL = "Mui Wo to Central"

    @property
    def from_label(self) -> str:
        return self.value.split(" to ", 1)[0]

    @property
    def to_label(self) -> str:
        return self.value.split(" to ", 1)[1]


class DayType(str, Enum):
    WEEKDAY = "Mondays to Fridays except public holidays"
    SATURDAY = "Saturdays except public holidays"
    SUNDAY_OR_HOLIDAY = "Sundays and public holidays"


HolidaySet = frozenset[date]


@dataclass(frozen=True, order=True)
class ClockTime:
    hour: int
    minute: int

    def __post_init__(self) -> None:
        if not (0 <= self.hour <= 23 and 0 <= self.minute <= 59):
            raise ValueError(f"invalid clock time {self.hour}:{self.minute}")

    @property
    def hhmm(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def on(self, day: date, tz) -> datetime:
        """Civil instant of this time-of-day on ``day`` in ``tz``."""
        return datetime(day.year, day.month, day.day, self.hour, self.minute, tzinfo=tz)

    def plus_minutes(self, minutes: int) -> ClockTime:
        base = datetime(2000, 1, 1, self.hour, self.minute) + timedelta(minutes=minutes)
        return ClockTime(base.hour, base.minute)


@dataclass(frozen=True)
class ScheduleEntry:
    direction: Direction
    day_type: DayType
    departure: ClockTime
    remark: str = ""


@dataclass(frozen=True)
class NextDeparture:
    direction: Direction
    from_label: str
    to_label: str
    departure_clock: str  # HH:MM
    arrival_clock: str  # HH:MM
    minutes_until: int
    time_until: str  # "15m" | "1h 5m"
    is_today: bool
    remark: str = ""


@dataclass(frozen=True)
class LiveArrival:
    direction: Direction
    from_label: str
    to_label: str
    arrival_clock: str  # HH:MM
    minutes_until: int
    time_until: str
    is_today: bool


@dataclass(frozen=True)
class EngineState:
    entries: tuple[ScheduleEntry, ...] = ()
    holidays: HolidaySet = frozenset()
    next_departures: tuple[NextDeparture, ...] = ()
    live_arrivals: tuple[LiveArrival, ...] = ()
    now: datetime | None = None
    loading: bool = True
    error: str | None = None
    source_errors: dict[str, str] = field(default_factory=dict)
    last_refresh: datetime | None = None
