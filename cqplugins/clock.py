"""Schedules reminder timers, persists them in SQLite and fires them."""

from __future__ import annotations

import logging
import re
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from .timer import Timer
from .wake import is_due, next_wake_time

logger = logging.getLogger(__name__)

_MONTH_NAMES = {
    name: index
    for index, name in enumerate(
        ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"],
        start=1,
    )
}
_DAY_NAMES = {
    name: index for index, name in enumerate(["sun", "mon", "tue", "wed", "thu", "fri", "sat"])
}
_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_SEARCH_YEARS = 5


@dataclass(frozen=True)
class CronSchedule:
    """A parsed cron expression, or a constant delay for ``@every``."""

    minutes: frozenset = frozenset()
    hours: frozenset = frozenset()
    days: frozenset = frozenset()
    months: frozenset = frozenset()
    weekdays: frozenset = frozenset()
    dom_star: bool = False
    dow_star: bool = False
    every: timedelta | None = None

    def _day_matches(self, moment: datetime) -> bool:
        dom = moment.day in self.days
        dow = moment.isoweekday() % 7 in self.weekdays
        if self.dom_star or self.dow_star:
            return dom and dow
        return dom or dow

    def next_after(self, moment: datetime) -> datetime | None:
        """The first activation strictly after ``moment``; None if there is none."""
        if self.every is not None:
            return moment.replace(microsecond=0) + self.every
        t = moment.replace(second=0, microsecond=0) + timedelta(minutes=1)
        limit = t.year + _SEARCH_YEARS
        while t.year <= limit:
            if t.month not in self.months:
                year, month = (t.year + 1, 1) if t.month == 12 else (t.year, t.month + 1)
                t = datetime(year, month, 1)
            elif not self._day_matches(t):
                t = t.replace(hour=0, minute=0) + timedelta(days=1)
            elif t.hour not in self.hours:
                t = t.replace(minute=0) + timedelta(hours=1)
            elif t.minute not in self.minutes:
                t += timedelta(minutes=1)
            else:
                return t
        return None


def _parse_duration(text: str) -> timedelta:
    if text in ("0", "+0", "-0"):
        seconds = 0.0
    else:
        body = text.lstrip("+-")
        negative = text.startswith("-")
        position, seconds = 0, 0.0
        for match in _DURATION_PART.finditer(body):
            if match.start() != position:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            position = match.end()
        if not body or position != len(body):
            raise ValueError(f"invalid duration: {text!r}")
        if negative:
            seconds = -seconds
    whole = int(seconds)
    return timedelta(seconds=max(whole, 1))


def _parse_value(text: str, names: dict[str, int] | None) -> int:
    if names and text.lower() in names:
        return names[text.lower()]
    if not text.isdigit():
        raise ValueError(f"failed to parse int from {text!r}")
    return int(text)


def _parse_field(expr: str, low: int, high: int, names=None) -> tuple[frozenset, bool]:
    values: set[int] = set()
    star = False
    for part in expr.split(","):
        if part.count("/") > 1:
            raise ValueError(f"too many slashes: {part!r}")
        range_part, slash, step_part = part.partition("/")
        step = 1
        if slash:
            step = _parse_value(step_part, None)
            if step <= 0:
                raise ValueError(f"step must be positive: {part!r}")
        part_star = False
        if range_part in ("*", "?"):
            start, end = low, high
            part_star = True
        else:
            if range_part.count("-") > 1:
                raise ValueError(f"too many hyphens: {part!r}")
            lo_text, dash, hi_text = range_part.partition("-")
            start = _parse_value(lo_text, names)
            end = _parse_value(hi_text, names) if dash else start
            if slash and not dash:
                end = high
        if step > 1:
            part_star = False
        if start < low or end > high or start > end:
            raise ValueError(f"value out of range ({low}-{high}): {part!r}")
        values.update(range(start, end + 1, step))
        star = star or part_star
    return frozenset(values), star


def parse_cron(expr: str) -> CronSchedule:
    """Parse a five-field cron expression or a descriptor such as ``@daily``."""
    expr = expr.strip()
    if expr.startswith("@every "):
        return CronSchedule(every=_parse_duration(expr[len("@every "):].strip()))
    if expr.startswith("@"):
        if expr not in _DESCRIPTORS:
            raise ValueError(f"unrecognized descriptor: {expr}")
        expr = _DESCRIPTORS[expr]
    fields = expr.split()
    if len(fields) != 5:
        raise ValueError(f"expected exactly 5 fields, found {len(fields)}: {expr!r}")
    minutes, _ = _parse_field(fields[0], 0, 59)
    hours, _ = _parse_field(fields[1], 0, 23)
    days, dom_star = _parse_field(fields[2], 1, 31)
    months, _ = _parse_field(fields[3], 1, 12, _MONTH_NAMES)
    weekdays, dow_star = _parse_field(fields[4], 0, 6, _DAY_NAMES)
    return CronSchedule(minutes, hours, days, months, weekdays, dom_star, dow_star)


_COLUMNS = "id, emdwhm, sid, gid, alert, cron, url"


class Clock:
    """Holds the registered timers and runs each one on its own thread.

    ``sender`` is called with the timer whenever it fires.
    """

    def __init__(self, db_path, sender: Callable[[Timer], None]) -> None:
        self._sender = sender
        self._lock = threading.RLock()
        self._timers: dict[int, Timer] = {}
        self._stops: dict[int, threading.Event] = {}
        self._threads: list[threading.Thread] = []
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS timer("
                "id INTEGER PRIMARY KEY NOT NULL, emdwhm INTEGER NOT NULL, "
                "sid INTEGER NOT NULL, gid INTEGER NOT NULL, alert TEXT NOT NULL, "
                "cron TEXT NOT NULL, url TEXT NOT NULL)"
            )
            self._db.commit()
            rows = self._db.execute(f"SELECT {_COLUMNS} FROM timer").fetchall()
        for row in rows:
            timer = Timer(*row)
            try:
                self.register_timer(timer, False)
            except ValueError as err:
                logger.warning("skipping stored timer %08x: %s", timer.id, err)

    def register_timer(self, timer: Timer, save: bool) -> int:
        """Schedule ``timer`` and return its key; raises ValueError for a bad cron."""
        if save:
            timer.id = timer.timer_id()
        key = timer.id
        schedule = parse_cron(timer.cron) if timer.cron else None
        with self._lock:
            old = self._timers.get(key)
            if old is not None and old is not timer:
                old.enabled = False
            old_stop = self._stops.pop(key, None)
            if old_stop is not None:
                old_stop.set()
        logger.info("registering timer %08x", key)
        if save:
            self.add_timer_into_db(timer)
        self.add_timer_into_map(timer)
        if schedule is not None or timer.enabled:
            stop = threading.Event()
            thread = threading.Thread(
                target=self._run, args=(timer, schedule, stop), name=f"timer-{key:08x}", daemon=True
            )
            with self._lock:
                self._stops[key] = stop
                self._threads.append(thread)
            thread.start()
        return key

    def _fire(self, timer: Timer) -> None:
        try:
            self._sender(timer)
        except Exception:
            logger.exception("sending timer %08x failed", timer.id)

    def _run(self, timer: Timer, schedule: CronSchedule | None, stop: threading.Event) -> None:
        while not stop.is_set():
            if schedule is None and not timer.enabled:
                return
            now = datetime.now()
            wake = schedule.next_after(now) if schedule is not None else next_wake_time(timer, now)
            if wake is None:
                stop.wait()
                return
            seconds = max(0.0, (wake - now).total_seconds())
            logger.debug("timer %08x sleeps %ds", timer.id, seconds)
            if stop.wait(seconds):
                return
            if schedule is not None:
                self._fire(timer)
            elif timer.enabled and is_due(timer, datetime.now()):
                self._fire(timer)

    def cancel_timer(self, key: int) -> bool:
        """Stop and forget the timer with ``key``; False if there is none."""
        with self._lock:
            timer = self._timers.pop(key, None)
            if timer is None:
                return False
            if not timer.cron:
                timer.enabled = False
            stop = self._stops.pop(key, None)
            if stop is not None:
                stop.set()
            self._db.execute("DELETE FROM timer WHERE id = ?", (key,))
            self._db.commit()
        return True

    def list_timers(self, group_id: int) -> list[str]:
        """Readable descriptions of the timers of one group."""
        with self._lock:
            timers = list(self._timers.values())
        lines = []
        for timer in timers:
            if timer.group_id != group_id:
                continue
            info = timer.timer_info()
            text = info[info.index("]") + 1:] + "\n"
            text = text.replace("-1", "每")
            text = text.replace("月0日0周", "月周天")
            text = text.replace("月0日", "月")
            text = text.replace("日0周", "日")
            lines.append(text)
        return lines

    def get_timer(self, key: int) -> Timer | None:
        with self._lock:
            return self._timers.get(key)

    def add_timer_into_db(self, timer: Timer) -> None:
        with self._lock:
            self._db.execute(
                f"REPLACE INTO timer({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    timer.id,
                    timer.emdwhm,
                    timer.self_id,
                    timer.group_id,
                    timer.alert,
                    timer.cron,
                    timer.url,
                ),
            )
            self._db.commit()

    def add_timer_into_map(self, timer: Timer) -> None:
        with self._lock:
            self._timers[timer.id] = timer

    def close(self) -> None:
        """Stop every timer thread and close the database."""
        with self._lock:
            for stop in self._stops.values():
                stop.set()
            self._stops.clear()
            threads = list(self._threads)
            self._threads.clear()
        for thread in threads:
            thread.join(timeout=1)
        with self._lock:
            self._db.close()

    def __enter__(self) -> "Clock":
        return self

    def __exit__(self, *exc) -> None:
        self.close()