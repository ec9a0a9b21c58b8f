"""Generate "绝绝子" style sentences from a verb and a noun."""

from __future__ import annotations

import json

import requests

JUEJUEZI_URL = "https://www.offjuan.com/api/juejuezi/text"
REFERER = "https://juejuezi.offjuan.com/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36"
)
KEYWORD = "绝绝子"


def request_body(verb: str, noun: str) -> str:
    """The JSON body the service expects."""
    return '{"verb":"%s","noun":"%s"}' % (verb, noun)


def split_input(text: str) -> list[str]:
    """Strip the keyword from a message and split what is left.

    Two characters give ``[verb, noun]``. Longer text is returned whole as a
    single item, to be split into words by the caller. Fewer than two
    characters raise ValueError.
    """
    rest = text.replace(KEYWORD, "")
    if len(rest) < 2:
        raise ValueError("不要只输入绝绝子")
    if len(rest) == 2:
        return [rest[0], rest[1]]
    return [rest]


def juejuezi(verb: str, noun: str) -> str:
    """The generated sentence, or an empty string if the reply has none."""
    response = requests.post(
        JUEJUEZI_URL,
        data=request_body(verb, noun).encode("utf-8"),
        headers={"Referer": REFERER, "User-Agent": USER_AGENT},
        timeout=30,
    )
    try:
        payload = json.loads(response.content)
    except ValueError:
        return ""
    value = payload.get("text") if isinstance(payload, dict) else None
    if value is None:
        return ""
    return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)