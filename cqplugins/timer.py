"""Group reminder timers: packed schedule fields and command parsing."""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

_ENABLED_BIT = 0x800000
_FIELD_SPACE = 0xFFFFFF
_CHINESE_DIGITS = "零一二三四五六七八九十"
_ASCII_INT = re.compile(r"[+-]?[0-9]+")


class _PackedField:
    """A signed bit field inside ``Timer.emdwhm``; all ones reads as -1."""

    def __init__(self, shift: int, width: int) -> None:
        self.shift = shift
        self.ones = (1 << width) - 1

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        raw = (obj.emdwhm >> self.shift) & self.ones
        return -1 if raw == self.ones else raw

    def __set__(self, obj, value: int) -> None:
        mask = self.ones << self.shift
        obj.emdwhm = ((value << self.shift) & mask) | (obj.emdwhm & (_FIELD_SPACE & ~mask))


@dataclass
class Timer:
    """A reminder for one group, either a calendar pattern or a cron expression.

    The calendar pattern is packed into ``emdwhm``: enable 1 bit, month 4,
    day 5, weekday 3 (Sunday is 0), hour 5, minute 6. A field of all ones
    means "every".
    """

    id: int = 0
    emdwhm: int = 0
    self_id: int = 0
    group_id: int = 0
    alert: str = ""
    cron: str = ""
    url: str = ""

    month = _PackedField(19, 4)
    day = _PackedField(14, 5)
    week = _PackedField(11, 3)
    hour = _PackedField(6, 5)
    minute = _PackedField(0, 6)

    @property
    def enabled(self) -> bool:
        return self.emdwhm & _ENABLED_BIT != 0

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if value:
            self.emdwhm |= _ENABLED_BIT
        else:
            self.emdwhm &= _FIELD_SPACE & ~_ENABLED_BIT

    def timer_info(self) -> str:
        """Normalised description used as the identity of the timer."""
        if self.cron:
            return f"[{self.group_id}]{self.cron}"
        return (
            f"[{self.group_id}]{self.month}月{self.day}日{self.week}周"
            f"{self.hour}:{self.minute}"
        )

    def timer_id(self) -> int:
        """First four bytes of the MD5 of ``timer_info``, little endian."""
        digest = hashlib.md5(self.timer_info().encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "little")

    def message(self) -> list[dict]:
        """Message segments sent when the timer fires."""
        segments = [
            {"type": "at", "data": {"qq": "all"}},
            {"type": "text", "data": {"text": self.alert}},
        ]
        if self.url:
            segments.append({"type": "image", "data": {"file": self.url, "cache": "0"}})
        return segments


def get_filled_cron_timer(cron: str, alert: str, image: str, bot_id: int, group_id: int) -> Timer:
    """Build a timer driven by a cron expression."""
    return Timer(self_id=bot_id, group_id=group_id, alert=alert, cron=cron, url=image)


def _drop_middle_ten(text: str) -> str:
    return text[0] + text[2]


def _invalid_day(value: int) -> bool:
    return (value != -1 and value <= 0) or value > 31


def get_filled_timer(
    date_strs: Sequence[str], bot_id: int, group_id: int, match_date_only: bool
) -> Timer:
    """Build a calendar timer from the groups of a reminder command.

    ``date_strs`` holds the whole match followed by month, day or weekday,
    hour, minute, the optional "用<url>" part and the alert text. Raises
    ValueError when a field is out of range.
    """
    month_str, day_week, hour_str, minute_str = date_strs[1:5]
    timer = Timer()

    month = chinese_num_to_int(month_str)
    if (month != -1 and month <= 0) or month > 12:
        raise ValueError("月份非法！")
    timer.month = month

    if len(day_week) == 4:  # includes the trailing 日
        day = chinese_num_to_int(_drop_middle_ten(day_week))
        if _invalid_day(day):
            raise ValueError("日期非法1！")
        timer.day = day
    elif day_week.endswith("日"):
        day = chinese_num_to_int(day_week[:-1])
        if _invalid_day(day):
            raise ValueError("日期非法2！")
        timer.day = day
    elif day_week.startswith("每"):
        timer.week = -1
    else:
        week = chinese_num_to_int(day_week[1:])
        if week == 7:
            week = 0
        if not 0 <= week <= 6:
            raise ValueError("星期非法！")
        timer.week = week

    if len(hour_str) == 3:
        hour_str = _drop_middle_ten(hour_str)
    hour = chinese_num_to_int(hour_str)
    if hour < -1 or hour > 23:
        raise ValueError("小时非法！")
    timer.hour = hour

    if len(minute_str) == 3:
        minute_str = _drop_middle_ten(minute_str)
    minute = chinese_num_to_int(minute_str)
    if minute < -1 or minute > 59:
        raise ValueError("分钟非法！")
    timer.minute = minute

    if not match_date_only:
        url_part = date_strs[5]
        if url_part:
            timer.url = url_part.encode("utf-8")[len("用".encode("utf-8")):].decode(
                "utf-8", "replace"
            )
            logger.debug("timer image url: %s", timer.url)
            if not timer.url.startswith("http"):
                raise ValueError("url非法！")
        timer.alert = date_strs[6]
        timer.enabled = True

    timer.self_id = bot_id
    timer.group_id = group_id
    return timer


def chinese_num_to_int(text: str) -> int:
    """Convert a one or two character number, Arabic or Chinese, to int.

    Supports -10 to 99. "每" alone is -1, "每二" is -2 and so on.
    """
    if not text:
        raise ValueError("empty number")
    if text[0].isdecimal():
        return int(text) if _ASCII_INT.fullmatch(text) else 0
    if text[0] == "每":
        return -chinese_char_to_int(text[1]) if len(text) == 2 else -1
    if len(text) == 1:
        return chinese_char_to_int(text)
    tens = chinese_char_to_int(text[0])
    if tens != 10:
        tens *= 10
    units = chinese_char_to_int(text[1])
    if units == 10:
        units = 0
    return tens + units


def chinese_char_to_int(char: str) -> int:
    """Map one Chinese numeral to 0..10; 日 and 天 (Sunday) map to 7."""
    if char in ("日", "天"):
        return 7
    index = _CHINESE_DIGITS.find(char) if len(char) == 1 else -1
    return index if index >= 0 else 0