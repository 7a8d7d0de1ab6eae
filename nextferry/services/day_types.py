# nextferry/services/day_types.py
from __future__ import annotations

import re
from datetime import date

from nextferry.domain.models import DayType, HolidaySet
from nextferry.services.holidays import is_public_holiday

_SATURDAY = 5
_SUNDAY = 6

DAY_TYPE_CODES: dict[str, DayType] = {
    "weekday": DayType.WEEKDAY,
    "weekdays": DayType.WEEKDAY,
    "wd": DayType.WEEKDAY,
    "mon-fri": DayType.WEEKDAY,
    "monday to friday": DayType.WEEKDAY,
    "sat": DayType.SATURDAY,
    "saturday": DayType.SATURDAY,
    "saturdays": DayType.SATURDAY,
    "sun": DayType.SUNDAY_OR_HOLIDAY,
    "sunday": DayType.SUNDAY_OR_HOLIDAY,
    "sundays": DayType.SUNDAY_OR_HOLIDAY,
    "ph": DayType.SUNDAY_OR_HOLIDAY,
    "holiday": DayType.SUNDAY_OR_HOLIDAY,
    "sun/ph": DayType.SUNDAY_OR_HOLIDAY,
}

_WS = re.compile(r"\s+")


def classify_day_type(day: date, holidays: HolidaySet) -> DayType:
    # Holiday dominates Saturday.
    if is_public_holiday(day, holidays) or day.weekday() == _SUNDAY:
        return DayType.SUNDAY_OR_HOLIDAY
    if day.weekday() == _SATURDAY:
        return DayType.SATURDAY
    return DayType.WEEKDAY


def parse_day_type(text: str | None) -> DayType | None:
    """Timetable wording or short code -> DayType."""
    s = _WS.sub(" ", (text or "").strip().lower())
    if not s:
        return None
    for dt in DayType:
        if s == dt.value.lower():
            return dt
    if s in DAY_TYPE_CODES:
        return DAY_TYPE_CODES[s]
    # "Saturdays except public holidays" mentions holidays, so order matters.
    if s.startswith("monday") or "weekday" in s:
        return DayType.WEEKDAY
    if s.startswith("saturday"):
        return DayType.SATURDAY
    if s.startswith("sunday") or "public holiday" in s:
        return DayType.SUNDAY_OR_HOLIDAY
    return None
