"""Slacking-off reminder: countdowns to the weekend and public holidays."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

HOLIDAY_NAMES = ("元旦", "春节", "清明节", "劳动节", "端午节", "中秋节", "国庆节")

GREETING = (
    "上午好，摸鱼人！\n工作再累，一定不要忘记摸鱼哦！有事没事起身去茶水间，去厕所，"
    "去廊道走走别老在工位上坐着，钱是老板的,但命是自己的。\n"
)
CLOSING = "上班是帮老板赚钱，摸鱼是赚老板的钱！最后，祝愿天下所有摸鱼人，都能愉快的渡过每一天…"

_RECORD = re.compile(r"([+-]?\d+)_([+-]?\d+)_([+-]?\d+)_([+-]?\d+)")


@dataclass(frozen=True)
class Holiday:
    """A named holiday starting at ``date`` and lasting ``duration``."""

    name: str
    date: datetime
    duration: timedelta = timedelta(0)

    def describe(self, now: datetime | None = None) -> str:
        """How far away the holiday is, or whether it is on or over."""
        if now is None:
            now = datetime.now()
        left = self.date - now
        if left >= timedelta(0):
            days = left.total_seconds() / 86400.0
            return f"距离{self.name}还有: {days:.2f}天！"
        if left + self.duration >= timedelta(0):
            return f"好好享受 {self.name} 假期吧!"
        return f"今年 {self.name} 假期已过"


def parse_holiday(name: str, record: str) -> Holiday:
    """Build a holiday from a ``days_year_month_day`` record.

    Raises ValueError when the record does not have that form or names no real date.
    """
    match = _RECORD.fullmatch(record.strip())
    if match is None:
        raise ValueError(f"invalid holiday record: {record!r}")
    days, year, month, day = (int(group) for group in match.groups())
    return Holiday(name, datetime(year, month, day), timedelta(days=days))


def weekend_message(now: datetime | None = None) -> str:
    """How many days remain until the weekend."""
    if now is None:
        now = datetime.now()
    weekday = now.isoweekday() % 7  # Sunday is 0
    if weekday in (0, 6):
        return "好好享受周末吧！"
    return f"距离周末还有:{5 - weekday}天！"


def reminder_text(now: datetime | None, holidays: Iterable[Holiday]) -> str:
    """The whole daily reminder for ``now`` with a line per holiday."""
    if now is None:
        now = datetime.now()
    parts = [now.strftime("%Y-%m-%d"), GREETING, weekend_message(now), "\n"]
    for holiday in holidays:
        parts.append(holiday.describe(now))
        parts.append("\n")
    parts.append(CLOSING)
    return "".join(parts)