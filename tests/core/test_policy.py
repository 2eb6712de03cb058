from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from clarity_logs.core.models import Frequency, RotationConfig
from clarity_logs.core.policy import RotationPolicy
from clarity_logs.core.rotator import local_now


def _policy(now: datetime, **kwargs) -> RotationPolicy:
    return RotationPolicy(RotationConfig(**kwargs), now=now)


def test_size_only_has_no_schedule() -> None:
    policy = _policy(datetime(2025, 1, 1, tzinfo=UTC), max_size=100)
    assert policy.next_rotation_time is None
    assert policy.should_rotate(99, datetime(2030, 1, 1, tzinfo=UTC)) is False
    assert policy.should_rotate(100, datetime(2030, 1, 1, tzinfo=UTC)) is True


def test_empty_file_never_rotates_on_size() -> None:
    policy = _policy(datetime(2025, 1, 1, tzinfo=UTC), max_size=1)
    assert policy.should_rotate(0, datetime(2025, 1, 1, tzinfo=UTC)) is False


def test_daily_schedules_today_when_time_is_ahead() -> None:
    now = datetime(2025, 3, 10, 1, 0, tzinfo=UTC)
    policy = _policy(now, frequency="daily", rotate_hour=2, rotate_minute=30)
    assert policy.next_rotation_time == datetime(2025, 3, 10, 2, 30, tzinfo=UTC)


def test_daily_schedules_tomorrow_when_time_has_passed() -> None:
    now = datetime(2025, 3, 10, 0, 0, tzinfo=UTC)
    policy = _policy(now, frequency=Frequency.DAILY)
    # Exactly at the boundary is not "strictly after".
    assert policy.next_rotation_time == datetime(2025, 3, 11, 0, 0, tzinfo=UTC)


def test_weekly_uses_monday_zero() -> None:
    # 2025-03-10 is a Monday.
    now = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)
    policy = _policy(now, frequency="weekly", rotate_day_of_week=6)
    assert policy.next_rotation_time == datetime(2025, 3, 16, 0, 0, tzinfo=UTC)


def test_weekly_same_day_passed_moves_a_week() -> None:
    now = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)
    policy = _policy(now, frequency="weekly", rotate_day_of_week=0, rotate_hour=9)
    assert policy.next_rotation_time == datetime(2025, 3, 17, 9, 0, tzinfo=UTC)


def test_monthly_clamps_to_short_months() -> None:
    now = datetime(2025, 4, 2, tzinfo=UTC)
    policy = _policy(now, frequency="monthly", rotate_day_of_month=31)
    assert policy.next_rotation_time == datetime(2025, 4, 30, 0, 0, tzinfo=UTC)


def test_monthly_rolls_over_year_end() -> None:
    now = datetime(2025, 12, 15, tzinfo=UTC)
    policy = _policy(now, frequency="monthly", rotate_day_of_month=1)
    assert policy.next_rotation_time == datetime(2026, 1, 1, 0, 0, tzinfo=UTC)


def test_time_trigger_fires_once_per_period() -> None:
    start = datetime(2025, 1, 1, 23, 59, tzinfo=UTC)
    policy = _policy(start, frequency="daily", max_size=10_000)
    midnight = datetime(2025, 1, 2, 0, 0, 30, tzinfo=UTC)

    assert policy.should_rotate(10, midnight) is True
    assert policy.next_rotation_time == datetime(2025, 1, 3, 0, 0, tzinfo=UTC)
    assert policy.should_rotate(10, midnight + timedelta(minutes=1)) is False


def test_size_or_time_whichever_first() -> None:
    now = datetime(2025, 1, 1, 10, 0, tzinfo=UTC)
    policy = _policy(now, frequency="daily", max_size=50)
    assert policy.should_rotate(60, now) is True
    assert policy.next_rotation_time == datetime(2025, 1, 2, 0, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"frequency": "hourly"},
        {"max_files": 0},
        {"max_size": 0},
        {"rotate_hour": 24},
        {"rotate_minute": -1},
        {"rotate_day_of_week": 7},
        {"rotate_day_of_month": 0},
    ],
)
def test_rotation_config_rejects_invalid_values(kwargs) -> None:
    with pytest.raises(ValueError):
        RotationConfig(**kwargs)


def test_daily_schedule_keeps_wall_clock_hour_across_dst() -> None:
    tz = ZoneInfo("America/New_York")
    # DST starts on 2025-03-09 at 02:00 local time.
    now = datetime(2025, 3, 8, 12, 0, tzinfo=tz)
    policy = _policy(now, frequency=Frequency.DAILY, rotate_hour=12)

    nxt = policy.next_rotation_time
    assert nxt == datetime(2025, 3, 9, 12, 0, tzinfo=tz)
    assert nxt.utcoffset() == timedelta(hours=-4)
    assert nxt.astimezone(UTC) - now.astimezone(UTC) == timedelta(hours=23)


def test_default_clock_is_wall_clock_time() -> None:
    assert local_now().tzinfo is None
