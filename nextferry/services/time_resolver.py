# nextferry/services/time_resolver.py
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from nextferry.config import settings


def _system_clock() -> datetime:
    return datetime.now(UTC)


class TimeResolver:
    """Civil time in the fixed operating timezone, independent of the host TZ."""

    def __init__(
        self,
        tz_name: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.tz_name = tz_name or settings.TZ_NAME
        self.tz = ZoneInfo(self.tz_name)
        self._clock = clock or _system_clock

    def now(self) -> datetime:
        return self.localize(self._clock())

    def localize(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        return instant.astimezone(self.tz)

    def today(self, instant: datetime | None = None) -> date:
        return self.localize(instant).date() if instant else self.now().date()

    def tomorrow(self, instant: datetime | None = None) -> date:
        return self.today(instant) + timedelta(days=1)


def next_boundary(now: datetime, period_s: int) -> datetime:
    """First instant strictly after ``now`` whose seconds-of-day are a multiple of ``period_s``.

    ``now`` must already be expressed in the operating timezone, so that the
    boundary follows that clock rather than the host's.
    """
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elapsed = (now - midnight).total_seconds()
    steps = int(elapsed // period_s) + 1
    return midnight + timedelta(seconds=steps * period_s)
