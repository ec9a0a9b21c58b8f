"""Collect and serve pictures from the jandan.net picture board."""

from __future__ import annotations

import logging
import re
import sqlite3
import threading
from typing import Callable

import lxml.html
import requests

logger = logging.getLogger(__name__)

API = "http://jandan.net/pic"

_MASK = (1 << 64) - 1
_ISO_POLY = 0xD800000000000000
_NUMBER = re.compile(r"\d+")
_PAGE_XPATH = "//*[@id='comments']/div[2]/div/span[@class='current-comment-page']/text()"
_PIC_XPATH = "//*[@class='view_img_link']"
_PREV_XPATH = (
    "//*[@id='comments']/div[@class='comments']/div[@class='cp-pagenavi']"
    "/a[@class='previous-comment-page']"
)


def _make_table(poly: int) -> tuple[int, ...]:
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            crc = (crc >> 1) ^ poly if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_ISO_TABLE = _make_table(_ISO_POLY)


def picture_id(url: str) -> int:
    """CRC-64 (ISO polynomial) of the URL, used as the picture's key."""
    crc = _MASK
    for byte in url.encode("utf-8"):
        crc = _ISO_TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ _MASK


def _signed(value: int) -> int:
    return value - (1 << 64) if value >= 1 << 63 else value


def _document(html):
    return lxml.html.document_fromstring(html)


def page_total(html) -> int:
    """The current page number shown on the board; ValueError if absent."""
    texts = _document(html).xpath(_PAGE_XPATH)
    match = _NUMBER.search(texts[0]) if texts else None
    if match is None:
        raise ValueError("page counter not found")
    return int(match.group())


def parse_page(html) -> tuple[list[str], str | None]:
    """Picture URLs on a page and the URL of the previous page, if any."""
    doc = _document(html)
    urls = [
        "https:" + next(iter(element.attrib.values()))
        for element in doc.xpath(_PIC_XPATH)
        if element.attrib
    ]
    previous = None
    links = doc.xpath(_PREV_XPATH)
    if links:
        values = list(links[0].attrib.values())
        if len(values) >= 2:
            previous = "https:" + values[1]
    return urls, previous


class PictureStore:
    """Picture URLs keyed by their checksum, in SQLite."""

    def __init__(self, db_path) -> None:
        self._lock = threading.Lock()
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS picture("
                "id INTEGER PRIMARY KEY NOT NULL, url TEXT NOT NULL)"
            )
            self._db.commit()

    def add(self, url: str) -> int:
        """Store ``url`` and return its key."""
        key = picture_id(url)
        with self._lock:
            self._db.execute(
                "REPLACE INTO picture(id, url) VALUES (?, ?)", (_signed(key), url)
            )
            self._db.commit()
        return key

    def contains(self, url: str) -> bool:
        with self._lock:
            row = self._db.execute(
                "SELECT 1 FROM picture WHERE id = ?", (_signed(picture_id(url)),)
            ).fetchone()
        return row is not None

    def random_url(self) -> str:
        """A random stored URL; LookupError when the store is empty."""
        with self._lock:
            row = self._db.execute(
                "SELECT url FROM picture ORDER BY RANDOM() LIMIT 1"
            ).fetchone()
        if row is None:
            raise LookupError("no pictures stored")
        return row[0]

    def count(self) -> int:
        with self._lock:
            return self._db.execute("SELECT COUNT(*) FROM picture").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "PictureStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _http_page(url: str) -> str:
    response = requests.get(url, timeout=30)
    response.raise_for_status()
    return response.text


def update_store(store: PictureStore, fetch_page: Callable[[str], str] | None = None) -> int:
    """Walk back through the board until a known picture is met; return how many were added."""
    fetch = fetch_page or _http_page
    page_url = API
    total = page_total(fetch(page_url))
    added = 0
    for index in range(total):
        logger.debug("processing page %d/%d", index, total)
        urls, previous = parse_page(fetch(page_url))
        for url in urls:
            if store.contains(url):
                return added  # everything older is already stored
            store.add(url)
            added += 1
        if index != total - 1:
            if previous is None:
                raise ValueError("previous page link not found")
            page_url = previous
    return added