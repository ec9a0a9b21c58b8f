"""Per-group galleries of "wives" and the daily draw."""

from __future__ import annotations

import hashlib
import random
from datetime import date
from pathlib import Path

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def group_folder_name(group_id: int) -> str:
    """The group number written in base 36, the name of its folder."""
    number = int(group_id)
    sign = "-" if number < 0 else ""
    number = abs(number)
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return sign + "".join(reversed(digits))


def clean_wife_name(text: str, prefix: str) -> str:
    """The name after the last ``prefix`` in a command, without spaces or slashes."""
    text = text.replace(" ", "")
    position = text.rfind(prefix)
    if position < 0:
        return ""
    name = text[position + len(prefix):]
    return name.replace("/", "").replace("\\", "")


def wife_index(nickname: str, day: date, count: int) -> int:
    """Which of ``count`` wives ``nickname`` draws on ``day``; fixed for the day."""
    if count <= 0:
        raise ValueError("count must be positive")
    digest = hashlib.md5(f"{nickname}{day.year}{day.month}{day.day}".encode("utf-8")).digest()
    seed = int.from_bytes(digest[:8], "little", signed=True)
    return random.Random(seed).randrange(count)


class WifeGallery:
    """Pictures stored under ``base``, one folder per group."""

    def __init__(self, base) -> None:
        self.base = Path(base)

    def _folder(self, group_id: int) -> Path:
        return self.base / group_folder_name(group_id)

    def draw(self, group_id: int, nickname: str, today: date | None = None) -> tuple[str, Path]:
        """The wife ``nickname`` draws today as (name, picture path).

        With a single picture everyone gets it. LookupError when there is none.
        """
        folder = self._folder(group_id)
        if not folder.is_dir():
            raise LookupError("一个wife也没有哦~")
        names = sorted(entry.name for entry in folder.iterdir())
        if not names:
            raise LookupError("一个wife也没有哦~")
        if len(names) == 1:
            chosen = names[0]
        else:
            chosen = names[wife_index(nickname, today or date.today(), len(names))]
        return chosen, folder / chosen

    def add(self, group_id: int, name: str, data: bytes) -> Path:
        """Store a picture under ``name``; ValueError when the name is empty."""
        if not name:
            raise ValueError("没有找到wife的名字！")
        folder = self._folder(group_id)
        folder.mkdir(parents=True, exist_ok=True)
        target = folder / name
        target.write_bytes(data)
        return target

    def remove(self, group_id: int, name: str) -> None:
        """Delete a picture; FileNotFoundError when it does not exist."""
        if not name:
            raise ValueError("没有找到wife的名字！")
        (self._folder(group_id) / name).unlink()