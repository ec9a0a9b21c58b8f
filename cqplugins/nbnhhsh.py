"""Expand pinyin-initial abbreviations."""

from __future__ import annotations

import json

import requests

API = "https://lab.magiconch.com/api/nbnhhsh/guess"


def _as_text(value) -> str:
    return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)


def parse_guess(data) -> list[str]:
    """Candidate expansions from an API response, bytes, text or decoded JSON."""
    if isinstance(data, (bytes, bytearray, str)):
        data = json.loads(data)
    entry = data[0] if isinstance(data, list) and data else {}
    if not isinstance(entry, dict):
        return []
    values = entry["trans"] if "trans" in entry else entry.get("inputting")
    if not isinstance(values, list):
        return []
    return [_as_text(value) for value in values]


def guess(text: str) -> list[str]:
    """Ask the service what an abbreviation stands for."""
    response = requests.post(API, data={"text": text}, timeout=30)
    return parse_guess(response.content)