"""Random pictures from the lolicon API, kept in a small ready queue."""

from __future__ import annotations

import base64
import json
import logging
import queue
from typing import Callable

import requests

logger = logging.getLogger(__name__)

API = "https://api.lolicon.app/setu/v2"
CAPACITY = 10
BATCH = 2
TIMEOUT_MESSAGE = "等待填充，请稍后再试......"


def parse_lolicon(data) -> str:
    """Original image URL of an API reply, on the i.pixiv.re mirror.

    Raises RuntimeError when the reply reports an error.
    """
    if isinstance(data, (bytes, bytearray, str)):
        data = json.loads(data)
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, str) and error:
        raise RuntimeError(error)
    try:
        url = data["data"][0]["urls"]["original"]
    except (KeyError, IndexError, TypeError):
        url = ""
    if not isinstance(url, str):
        url = ""
    return url.replace("i.pixiv.cat", "i.pixiv.re")


def image_name(url: str) -> str:
    """The file name of an image URL without its four-character extension."""
    return url[url.rfind("/") + 1:len(url) - 4]


def _get(url: str) -> bytes:
    response = requests.get(url, timeout=30)
    response.raise_for_status()
    return response.content


def _fetch_lolicon() -> str:
    return parse_lolicon(_get(API))


def fetch_custom(url: str) -> Callable[[], str]:
    """A fetcher that downloads ``url`` and returns it as a ``base64://`` image."""

    def fetch() -> str:
        return "base64://" + base64.b64encode(_get(url)).decode("ascii")

    return fetch


class ImageQueue:
    """A bounded queue of image references filled a couple at a time."""

    def __init__(self, fetch: Callable[[], str] | None = None, capacity: int = CAPACITY) -> None:
        self._fetch = fetch or _fetch_lolicon
        self._queue: queue.Queue[str] = queue.Queue(maxsize=capacity)

    def __len__(self) -> int:
        return self._queue.qsize()

    def fill(self) -> int:
        """Fetch up to two images into free slots; return how many were added."""
        room = self._queue.maxsize - self._queue.qsize()
        added = 0
        for _ in range(min(room, BATCH)):
            try:
                item = self._fetch()
            except (OSError, ValueError, RuntimeError) as err:
                logger.error("fetching image failed: %s", err)
                continue
            try:
                self._queue.put_nowait(item)
            except queue.Full:
                break
            added += 1
        return added

    def take(self, timeout: float | None = 60) -> str:
        """The oldest ready image; TimeoutError if none arrives in time."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError(TIMEOUT_MESSAGE) from None