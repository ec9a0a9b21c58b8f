"""Local picture library: folders of images indexed by difference hash in SQLite."""

from __future__ import annotations

import io
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Iterator

from PIL import Image

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".gif", ".webp")
_HASH_WIDTH = 9
_HASH_HEIGHT = 8


def dhash(image: Image.Image) -> int:
    """64-bit difference hash of an image, as a signed integer.

    The image is reduced to 9x8 grey pixels; each bit tells whether a pixel
    is darker than its right neighbour, first row first.
    """
    gray = image.convert("L").resize((_HASH_WIDTH, _HASH_HEIGHT), Image.Resampling.BILINEAR)
    pixels = gray.tobytes()
    value = 0
    for start in range(0, len(pixels), _HASH_WIDTH):
        row = pixels[start:start + _HASH_WIDTH]
        for left, right in zip(row, row[1:]):
            value = (value << 1) | (left < right)
    return value - (1 << 64) if value >= 1 << 63 else value


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _walk_dirs(root: Path) -> Iterator[Path]:
    """Every directory below ``root``, parents before children, in name order."""
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            yield entry
            yield from _walk_dirs(entry)


class SetuLibrary:
    """Image classes, one table per folder name, each row a picture."""

    def __init__(self, db_path) -> None:
        self._path = Path(db_path)
        self._lock = threading.RLock()
        self._db = self._connect()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._path), check_same_thread=False)

    def scan_all(self, root) -> None:
        """Rebuild the whole library from every folder below ``root``."""
        root = Path(root)
        with self._lock:
            self._db.close()
            self._path.unlink(missing_ok=True)
            self._db = self._connect()
        for directory in _walk_dirs(root):
            self._scan(root, directory.relative_to(root).as_posix(), directory.name)

    def scan_class(self, root, name: str) -> None:
        """Rebuild one class from the folder ``root/name``."""
        self._scan(Path(root), name, name)

    def _scan(self, root: Path, relative: str, name: str) -> None:
        entries = sorted((root / relative).iterdir(), key=lambda p: p.name)
        table = _quote(name)
        with self._lock:
            self._db.execute(f"DROP TABLE IF EXISTS {table}")
            self._db.execute(
                f"CREATE TABLE {table}("
                "imgid INTEGER PRIMARY KEY NOT NULL, name TEXT NOT NULL, path TEXT NOT NULL)"
            )
            self._db.commit()
        for entry in entries:
            if not entry.is_file() or not entry.name.lower().endswith(IMAGE_SUFFIXES):
                continue
            relpath = f"{relative}/{entry.name}"
            logger.debug("reading %s", relpath)
            with Image.open(io.BytesIO(entry.read_bytes())) as image:
                image_id = dhash(image)
            logger.debug("inserting %s with id %d into %s", entry.name, image_id, name)
            with self._lock:
                self._db.execute(
                    f"REPLACE INTO {table}(imgid, name, path) VALUES (?, ?, ?)",
                    (image_id, entry.name, relpath),
                )
                self._db.commit()

    def classes(self) -> list[str]:
        """Names of all classes, sorted."""
        with self._lock:
            rows = self._db.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
            ).fetchall()
        return [row[0] for row in rows]

    def _require(self, name: str) -> None:
        if name not in self.classes():
            raise LookupError(f"no such class: {name}")

    def pick(self, name: str) -> tuple[int, str, str]:
        """A random picture of class ``name`` as (id, file name, relative path)."""
        self._require(name)
        with self._lock:
            row = self._db.execute(
                f"SELECT imgid, name, path FROM {_quote(name)} ORDER BY RANDOM() LIMIT 1"
            ).fetchone()
        if row is None:
            raise LookupError(f"class {name} is empty")
        return row[0], row[1], row[2]

    def count(self, name: str) -> int:
        """Number of pictures in class ``name``."""
        self._require(name)
        with self._lock:
            return self._db.execute(f"SELECT COUNT(*) FROM {_quote(name)}").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "SetuLibrary":
        return self

    def __exit__(self, *exc) -> None:
        self.close()