"""GitHub repository search."""

from __future__ import annotations

import json
from urllib.parse import urlencode

import requests

API = "https://api.github.com/search/repositories"
PREVIEW = "https://opengraph.githubassets.com/0/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/88.0.4324.182 Safari/537.36"
)


def notnull(text: str, default: str) -> str:
    """``text``, or ``default`` when it is empty."""
    return text if text else default


def net_get(url: str, headers=None) -> bytes:
    """GET ``url`` and return the body; RuntimeError unless the status is 200."""
    response = requests.get(url, headers=dict(headers or {}), timeout=30)
    if response.status_code != 200:
        raise RuntimeError(f"code {response.status_code}")
    return response.content


def search_repository(query: str) -> dict:
    """The best matching repository; LookupError when nothing matches."""
    body = net_get(f"{API}?{urlencode({'q': query})}", {"User-Agent": USER_AGENT})
    info = json.loads(body)
    if not int(info.get("total_count") or 0):
        raise LookupError("没有找到这样的仓库")
    return info["items"][0]


def _str(value) -> str:
    return value if isinstance(value, str) else ""


def _int(value) -> int:
    return int(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else 0


def format_repository(repo: dict) -> str:
    """A text summary of a repository from the search API."""
    license_key = _str((repo.get("license") or {}).get("key")).upper()
    return (
        f"{_str(repo.get('full_name'))}\n"
        f"Description: {_str(repo.get('description'))}\n"
        f"Star/Fork/Issue: {_int(repo.get('watchers'))}/{_int(repo.get('forks'))}/"
        f"{_int(repo.get('open_issues'))}\n"
        f"Language: {notnull(_str(repo.get('language')), 'None')}\n"
        f"License: {notnull(license_key, 'None')}\n"
        f"Last pushed: {_str(repo.get('pushed_at'))}\n"
        f"Jump: {_str(repo.get('html_url'))}\n"
    )


def preview_image_url(full_name: str) -> str:
    """The social preview image of a repository."""
    return PREVIEW + full_name