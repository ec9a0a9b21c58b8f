"""Keyword illustration search."""

from __future__ import annotations

import json
import re
from typing import Iterable, Mapping
from urllib.parse import quote_plus

import requests

API = "https://api.pixivel.moe/v2/pixiv/illust/search/"
REFERER = "https://pixivel.moe/"
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/94.0.4606.61 Safari/537.36"
)

_HREF = re.compile(r'<a href=".*">')


def parse_search_result(data) -> list[dict]:
    """The illustrations of a search reply; RuntimeError if the reply reports an error."""
    if isinstance(data, (bytes, bytearray, str)):
        data = json.loads(data)
    if data.get("error"):
        raise RuntimeError(data.get("message") or "")
    illusts = (data.get("data") or {}).get("illusts")
    return list(illusts) if isinstance(illusts, list) else []


def format_tags(tags: Iterable[Mapping]) -> str:
    """Tags as ``#name (translation)`` lines, each preceded by a newline."""
    parts = []
    for tag in tags:
        parts.append("\n#" + (tag.get("name") or ""))
        translation = tag.get("translation") or ""
        if translation:
            parts.append(f" ({translation})")
    return "".join(parts)


def clean_description(text: str) -> str:
    """Turn line breaks into newlines and strip link markup."""
    text = text.replace("<br />", "\n").replace("</a>", "")
    return _HREF.sub("", text)


def search(keyword: str) -> list[dict]:
    """Search illustrations by keyword."""
    response = requests.get(
        API + quote_plus(keyword) + "?page=0",
        headers={"Referer": REFERER, "User-Agent": USER_AGENT},
        timeout=30,
    )
    response.raise_for_status()
    return parse_search_result(response.content)