"""Senso-ji fortune slips: pictures and their readings."""

from __future__ import annotations

import sqlite3
import threading

BED = "https://gitcode.net/u011570312/senso-ji-omikuji/-/raw/main/%d_%d.jpg"


def image_urls(number: int) -> tuple[str, str]:
    """The front and back pictures of slip ``number``."""
    return BED % (number, 0), BED % (number, 1)


class KujiStore:
    """Readings of the slips, stored in SQLite by slip number."""

    def __init__(self, db_path) -> None:
        self._lock = threading.Lock()
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS kuji("
                "id INTEGER PRIMARY KEY NOT NULL, text TEXT NOT NULL)"
            )
            self._db.commit()

    def get(self, number: int) -> str:
        """The reading of slip ``number``; LookupError if it is not stored."""
        with self._lock:
            row = self._db.execute(
                "SELECT text FROM kuji WHERE id = ?", (int(number),)
            ).fetchone()
        if row is None:
            raise LookupError(f"no reading for slip {number}")
        return row[0]

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "KujiStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()