"""Group administration helpers: greetings, mutes, toggles and gist checks."""

from __future__ import annotations

import hashlib
import logging
import random
import re
import sqlite3
import threading
import time
from typing import Callable, Mapping, Sequence

import requests

logger = logging.getLogger(__name__)

GIST_RAW = "https://gist.githubusercontent.com/{}/{}/raw/{}"
AVATAR_URL = "http://q4.qlogo.cn/g?b=qq&nk={}&s=640"
MAX_MUTE_MINUTES = 43199  # the longest mute QQ allows is just under a month
GIST_WINDOW_SECONDS = 600
JOIN_CHECK_BIT = 0x1
GIST_APPROVAL_BIT = 0x10

_ANSWER_MARK = "答案："
_ENABLE_WORDS = ("开启", "打开", "启用")
_DISABLE_WORDS = ("关闭", "关掉", "禁用")
_MINUTE_UNITS = {"分钟"}
_HOUR_UNITS = {"小时"}
_DAY_UNITS = {"天"}
_EXT_MINUTE_UNITS = {"分钟", "min", "mins", "m"}
_EXT_HOUR_UNITS = {"小时", "hour", "hours", "h"}
_EXT_DAY_UNITS = {"天", "day", "days", "d"}
_INT64 = re.compile(r"[+-]?[0-9]+")


def welcome_to_cq(
    template: str, user_id: int, nickname: str, group_id: int, group_name: str
) -> str:
    """Expand the placeholders of a welcome or farewell template into CQ text."""
    uid = str(user_id)
    replacements = (
        ("{at}", f"[CQ:at,qq={uid}]"),
        ("{nickname}", nickname),
        ("{avatar}", "[CQ:image,file=" + AVATAR_URL.format(uid) + "]"),
        ("{uid}", uid),
        ("{gid}", str(group_id)),
        ("{groupname}", group_name),
    )
    text = template
    for placeholder, value in replacements:
        text = text.replace(placeholder, value)
    return text


def mute_minutes(amount, unit: str, extended_units: bool = False) -> int:
    """Length of a mute in minutes, capped just below a month.

    Unknown units count as minutes. ``extended_units`` also accepts the
    English unit names used by the self-mute command.
    """
    minutes = int(amount)
    hours = _EXT_HOUR_UNITS if extended_units else _HOUR_UNITS
    days = _EXT_DAY_UNITS if extended_units else _DAY_UNITS
    if unit in hours:
        minutes *= 60
    elif unit in days:
        minutes *= 60 * 24
    return min(minutes, MAX_MUTE_MINUTES) if minutes >= 43200 else minutes


def unescape_forward(content: str) -> str:
    """Restore the square brackets of CQ codes in forwarded text."""
    return content.replace("&#91;", "[").replace("&#93;", "]")


def parse_gist_answer(comment: str) -> tuple[str, str]:
    """Split a join request answer of the form ``user/gisthash``.

    Raises ValueError when the answer has no user part before a slash.
    """
    position = comment.find(_ANSWER_MARK)
    answer = comment[position + len(_ANSWER_MARK):] if position >= 0 else comment
    divider = answer.find("/")
    if divider <= 0:
        raise ValueError("格式错误!")
    return answer[:divider], answer[divider + 1:]


def gist_url(user: str, gist_hash: str, group_id: int) -> str:
    """Raw URL of the gist file named after the MD5 of the group number."""
    name = hashlib.md5(str(group_id).encode("ascii")).hexdigest()
    return GIST_RAW.format(user, gist_hash, name)


def _toggle(data: int, option: str, on: Callable[[int], int], off: Callable[[int], int]) -> int:
    if option in _ENABLE_WORDS:
        return on(data)
    if option in _DISABLE_WORDS:
        return off(data)
    raise ValueError(f"unknown option: {option}")


def toggle_join_check(data: int, option: str) -> int:
    """Switch the join quiz bit in a group's settings word."""
    return _toggle(
        data, option, lambda d: d | JOIN_CHECK_BIT, lambda d: d & 0x7FFFFFFF_FFFFFFFE
    )


def toggle_gist_approval(data: int, option: str) -> int:
    """Switch automatic gist approval in a group's settings word."""
    return _toggle(
        data, option, lambda d: d | GIST_APPROVAL_BIT, lambda d: d & 0x7FFFFFFF_FFFFFFFD
    )


def pick_lucky_member(members: Sequence[Mapping], rng: random.Random | None = None) -> Mapping:
    """Pick one of the ten members who spoke most recently."""
    if not members:
        raise ValueError("no members to pick from")
    ordered = sorted(members, key=lambda m: int(m.get("last_sent_time", 0)))
    recent = ordered[max(0, len(ordered) - 10):]
    return (rng or random).choice(recent)


class ManagerStore:
    """Welcome and farewell messages and gist-verified members, in SQLite."""

    def __init__(self, db_path) -> None:
        self._lock = threading.Lock()
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            for table in ("welcome", "farewell"):
                self._db.execute(
                    f"CREATE TABLE IF NOT EXISTS {table}("
                    "gid INTEGER PRIMARY KEY NOT NULL, msg TEXT NOT NULL)"
                )
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS member("
                "qq INTEGER PRIMARY KEY NOT NULL, ghun TEXT NOT NULL)"
            )
            self._db.commit()

    def _set(self, table: str, group_id: int, text: str) -> None:
        with self._lock:
            self._db.execute(f"REPLACE INTO {table}(gid, msg) VALUES (?, ?)", (group_id, text))
            self._db.commit()

    def _get(self, table: str, group_id: int) -> str | None:
        with self._lock:
            row = self._db.execute(
                f"SELECT msg FROM {table} WHERE gid = ?", (group_id,)
            ).fetchone()
        return row[0] if row else None

    def set_welcome(self, group_id: int, text: str) -> None:
        self._set("welcome", group_id, text)

    def get_welcome(self, group_id: int) -> str | None:
        """The group's welcome template, or None if none is set."""
        return self._get("welcome", group_id)

    def set_farewell(self, group_id: int, text: str) -> None:
        self._set("farewell", group_id, text)

    def get_farewell(self, group_id: int) -> str | None:
        """The group's farewell template, or None if none is set."""
        return self._get("farewell", group_id)

    def has_member(self, user: str) -> bool:
        """Whether a member with this GitHub user name was already admitted."""
        with self._lock:
            row = self._db.execute("SELECT 1 FROM member WHERE ghun = ?", (user,)).fetchone()
        return row is not None

    def add_member(self, qq: int, user: str) -> None:
        with self._lock:
            self._db.execute("REPLACE INTO member(qq, ghun) VALUES (?, ?)", (qq, user))
            self._db.commit()

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "ManagerStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _http_fetch(url: str) -> bytes:
    response = requests.get(url, timeout=30)
    response.raise_for_status()
    return response.content


def check_new_user(
    store: ManagerStore,
    qq: int,
    group_id: int,
    user: str,
    gist_hash: str,
    fetch: Callable[[str], bytes] | None = None,
    now: float | None = None,
) -> tuple[bool, str]:
    """Verify a join request against a gist holding a recent Unix timestamp.

    Returns whether to admit the user and, if not, the reason.
    """
    if store.has_member(user):
        return False, "该github用户已入群"
    url = gist_url(user, gist_hash, group_id)
    logger.debug("visiting gist %s", url)
    try:
        data = (fetch or _http_fetch)(url)
    except OSError as err:
        return False, "无法连接到gist: " + str(err)
    text = data.decode("utf-8", "replace") if isinstance(data, bytes) else str(data)
    logger.debug("gist content: %s", text)
    if not _INT64.fullmatch(text):
        return False, "时间戳格式错误: " + text
    stamp = int(text)
    current = time.time() if now is None else now
    if abs(int(current - stamp)) < GIST_WINDOW_SECONDS:
        store.add_member(qq, user)
        return True, ""
    return False, "时间戳超时"