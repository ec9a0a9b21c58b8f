"""When a calendar timer next wakes and whether it is due."""

from __future__ import annotations

from datetime import datetime, timedelta

from .timer import Timer


def _go_weekday(moment: datetime) -> int:
    """Weekday with Sunday as 0."""
    return moment.isoweekday() % 7


def _normalized(year, month, day, hour=0, minute=0, second=0, microsecond=0) -> datetime:
    """Build a datetime, carrying out-of-range fields into larger units."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return datetime(year, month, 1) + timedelta(
        days=day - 1, hours=hour, minutes=minute, seconds=second, microseconds=microsecond
    )


def _add_date(moment: datetime, years: int = 0, months: int = 0, days: int = 0) -> datetime:
    return _normalized(
        moment.year + years,
        moment.month + months,
        moment.day + days,
        moment.hour,
        moment.minute,
        moment.second,
        moment.microsecond,
    )


def first_weekday(date: datetime, week: int) -> datetime:
    """The first day of ``date``'s month falling on ``week`` (Sunday is 0)."""
    day = _add_date(date, days=1 - date.day)
    while _go_weekday(day) != week:
        day = _add_date(day, days=1)
    return day


def next_wake_time(timer: Timer, now: datetime | None = None) -> datetime:
    """The next moment after ``now`` at which ``timer`` should be checked."""
    if now is None:
        now = datetime.now()
    m, d, h, mn, w = timer.month, timer.day, timer.hour, timer.minute, timer.week

    unit = timedelta(0)
    if mn >= 0:
        if h < 0:
            unit = timedelta(hours=1)
        elif d < 0 or w < 0:
            unit = timedelta(days=1)
        elif d == 0 and w >= 0:
            delta = timedelta(days=w - _go_weekday(now))
            if delta < timedelta(0):
                delta = timedelta(days=7)
            unit += delta
    else:
        unit = timedelta(minutes=1)

    stable = 0
    if mn < 0:
        mn = now.minute
    if h < 0:
        h = now.hour
    else:
        stable |= 0x8
    if d < 0:
        d = now.day
    elif d > 0:
        stable |= 0x4
    else:
        d = now.day
        if w >= 0:
            stable |= 0x2
    if m < 0:
        m = now.month
    else:
        stable |= 0x1

    if stable == 0b0101:
        if timer.day != now.day or timer.month != now.month:
            h = 0
    elif stable == 0b1001:
        if timer.month != now.month:
            d = 0
    elif stable == 0b0001:
        if timer.month != now.month:
            d = 0
            h = 0

    date = _normalized(now.year, m, d, h, mn, now.second, now.microsecond)
    if unit > timedelta(0):
        date += unit

    if date <= now:
        if timer.month < 0:
            if timer.day > 0 or (timer.day == 0 and timer.week >= 0):
                date = _add_date(date, months=1)
            elif timer.day < 0 or timer.week < 0:
                if timer.hour > 0:
                    date = _add_date(date, days=1)
                elif timer.minute > 0:
                    date += timedelta(hours=1)
        else:
            date = _add_date(date, years=1)

    if stable & 0x8 and date.hour != h:
        if stable & 0x4 == 0:
            date = _add_date(date, days=1) - timedelta(hours=1)
        elif stable & 0x2 == 0:
            date = _add_date(date, days=7) - timedelta(hours=1)
        elif stable == 0:
            date = _add_date(date, months=1) - timedelta(hours=1)
        else:
            date = _add_date(date, years=1) - timedelta(hours=1)

    if stable & 0x4 and date.day != d:
        if stable == 0:
            date = _add_date(date, months=1, days=-1)
        else:
            date = _add_date(date, years=1, days=-1)

    if stable & 0x2 and _go_weekday(date) != w:
        if stable == 0:
            date = _add_date(date, months=1)
        else:
            date = _add_date(date, years=1)
        date = first_weekday(date, w)

    if date <= now:
        date = now + timedelta(minutes=1)
    return date


def is_due(timer: Timer, now: datetime | None = None) -> bool:
    """Whether ``timer`` matches ``now`` and its alert should be sent."""
    if now is None:
        now = datetime.now()
    if not (timer.month < 0 or timer.month == now.month):
        return False
    if timer.day < 0 or timer.day == now.day:
        pass
    elif timer.day == 0:
        if not (timer.week < 0 or timer.week == _go_weekday(now)):
            return False
    else:
        return False
    if not (timer.hour < 0 or timer.hour == now.hour):
        return False
    return timer.minute < 0 or timer.minute == now.minute