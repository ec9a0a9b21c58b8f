from datetime import datetime

import pytest

from cqplugins.timer import Timer
from cqplugins.wake import first_weekday, is_due, next_wake_time


def _timer(month=0, day=0, week=0, hour=0, minute=0):
    t = Timer()
    t.month = month
    t.day = day
    t.week = week
    t.hour = hour
    t.minute = minute
    return t


def _saturday_timer():
    t = Timer()
    t.month = -1
    t.week = 6
    t.hour = 16
    t.minute = 30
    return t


@pytest.mark.parametrize(
    "now",
    [
        datetime(2022, 6, 15, 10, 0),
        datetime(2022, 6, 18, 17, 0),
        datetime(2022, 6, 18, 16, 29, 59),
        datetime(2022, 12, 31, 23, 59),
        datetime(2024, 2, 29, 0, 0),
    ],
)
def test_next_wake_time_is_in_future(now):
    assert next_wake_time(_saturday_timer(), now) > now


def test_next_wake_time_worked_example():
    now = datetime(2022, 6, 15, 10, 0)
    wake = next_wake_time(_saturday_timer(), now)
    assert wake == datetime(2022, 6, 18, 16, 30)
    assert wake.isoweekday() % 7 == 6


@pytest.mark.parametrize(
    "now", [datetime(2022, 6, 15, 10, 0, 5), datetime(2022, 6, 15, 10, 45), datetime(2022, 6, 30, 23, 50)]
)
def test_hourly_timer_wakes_on_minute(now):
    t = _timer(month=-1, day=-1, week=-1, hour=-1, minute=30)
    wake = next_wake_time(t, now)
    assert wake > now
    assert wake.minute == 30


def test_every_minute_timer():
    now = datetime(2022, 6, 15, 10, 0, 5)
    t = _timer(month=-1, day=-1, week=-1, hour=-1, minute=-1)
    assert next_wake_time(t, now) > now


@pytest.mark.parametrize("week", range(7))
def test_first_weekday(week):
    day = first_weekday(datetime(2022, 6, 15, 10, 0), week)
    assert day.month == 6
    assert 1 <= day.day <= 7
    assert day.isoweekday() % 7 == week
    assert (day.hour, day.minute) == (10, 0)


def test_is_due_every_day():
    t = _timer(month=-1, day=-1, week=-1, hour=16, minute=30)
    assert is_due(t, datetime(2022, 6, 15, 16, 30))
    assert not is_due(t, datetime(2022, 6, 15, 16, 31))
    assert not is_due(t, datetime(2022, 6, 15, 15, 30))


def test_is_due_weekly():
    t = _saturday_timer()
    assert is_due(t, datetime(2022, 6, 18, 16, 30))
    assert not is_due(t, datetime(2022, 6, 17, 16, 30))


def test_is_due_fixed_date():
    t = _timer(month=12, day=25, week=0, hour=8, minute=0)
    assert is_due(t, datetime(2022, 12, 25, 8, 0))
    assert not is_due(t, datetime(2022, 11, 25, 8, 0))
    assert not is_due(t, datetime(2022, 12, 24, 8, 0))