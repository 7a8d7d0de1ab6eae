from datetime import UTC, date, datetime

from conftest import MutableClock, hk

from nextferry.services.time_resolver import TimeResolver, next_boundary


def test_now_is_in_operating_timezone_regardless_of_host():
    tr = TimeResolver("Asia/Hong_Kong", clock=lambda: datetime(2025, 1, 20, 20, 0, tzinfo=UTC))
    now = tr.now()
    assert (now.year, now.month, now.day, now.hour) == (2025, 1, 21, 4)
    assert now.utcoffset().total_seconds() == 8 * 3600


def test_naive_instants_are_read_as_utc():
    tr = TimeResolver("Asia/Hong_Kong")
    local = tr.localize(datetime(2025, 1, 20, 16, 30))
    assert (local.day, local.hour, local.minute) == (21, 0, 30)


def test_tomorrow_crosses_month_and_year():
    clock = MutableClock(hk(2024, 12, 31, 23, 30))
    tr = TimeResolver("Asia/Hong_Kong", clock=clock)
    assert tr.today() == date(2024, 12, 31)
    assert tr.tomorrow() == date(2025, 1, 1)
    assert tr.tomorrow(hk(2025, 2, 28, 12)) == date(2025, 3, 1)
    assert tr.tomorrow(hk(2024, 2, 28, 12)) == date(2024, 2, 29)


def test_tomorrow_of_a_utc_instant_uses_local_date():
    tr = TimeResolver("Asia/Hong_Kong")
    # 17:00 UTC on the 20th is already the 21st in Hong Kong
    assert tr.tomorrow(datetime(2025, 1, 20, 17, 0, tzinfo=UTC)) == date(2025, 1, 22)


def test_next_boundary():
    assert next_boundary(hk(2025, 1, 20, 10, 0, 12), 30) == hk(2025, 1, 20, 10, 0, 30)
    assert next_boundary(hk(2025, 1, 20, 10, 0, 30), 30) == hk(2025, 1, 20, 10, 1, 0)
    assert next_boundary(hk(2025, 1, 20, 10, 0, 59), 60) == hk(2025, 1, 20, 10, 1, 0)
    assert next_boundary(hk(2025, 1, 20, 23, 59, 45), 30) == hk(2025, 1, 21, 0, 0, 0)
