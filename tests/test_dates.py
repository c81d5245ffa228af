from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from wheelbot.utils.dates import (
    as_utc,
    epoch_millis,
    format_wait,
    local_day,
    next_local_day_start,
    start_of_local_day,
    to_naive_utc,
)

UTC = timezone.utc
NY = ZoneInfo("America/New_York")


def test_naive_values_are_treated_as_utc():
    naive = datetime(2026, 10, 19, 12, 0)
    assert as_utc(naive) == datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
    assert to_naive_utc(datetime(2026, 10, 19, 8, 0, tzinfo=NY)) == datetime(2026, 10, 19, 12, 0)


def test_local_day_boundaries():
    late_evening_ny = datetime(2026, 10, 19, 3, 0, tzinfo=UTC)
    assert local_day(late_evening_ny, NY) == date(2026, 10, 18)
    assert start_of_local_day(date(2026, 10, 19), NY) == datetime(2026, 10, 19, 4, 0, tzinfo=UTC)
    assert next_local_day_start(late_evening_ny, NY) == datetime(2026, 10, 19, 4, 0, tzinfo=UTC)


def test_next_day_start_in_utc():
    at = datetime(2026, 10, 19, 15, 30, tzinfo=UTC)
    assert next_local_day_start(at, ZoneInfo("UTC")) == datetime(2026, 10, 20, tzinfo=UTC)


def test_epoch_millis():
    assert epoch_millis(datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=UTC)) == 1500


def test_format_wait():
    assert format_wait(timedelta(hours=8, minutes=30, seconds=59)) == "8h 30m"
    assert format_wait(timedelta(minutes=5)) == "0h 5m"
    assert format_wait(timedelta(seconds=-10)) == "0h 0m"
