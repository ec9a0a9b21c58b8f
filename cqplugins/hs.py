"""Hearthstone card search and deck images."""

from __future__ import annotations

import json

import requests

REFERER = "https://hs.fbigame.com"
USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 6.0; Nexus 5 Build/MRA58N) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/86.0.4240.198 Mobile Safari/537.36"
)
AJAX = "https://hs.fbigame.com/ajax.php?"
PARAMS = (
    "mod=get_cards_list&"
    "mode=-1&"
    "extend=-1&"
    "mutil_extend=&"
    "hero=-1&"
    "rarity=-1&"
    "cost=-1&"
    "mutil_cost=&"
    "techlevel=-1&"
    "type=-1&"
    "collectible=-1&"
    "isbacon=-1&"
    "page=1&"
    "search_type=1&"
    "deckmode=normal"
)
CARD_IMAGE = "https://res.fbigame.com/hs/v13/{}.png?auth_key={}"
MAX_CARDS = 5

_HASH_MARK = 'var hash = "'


def _get(url: str) -> bytes:
    response = requests.get(
        url, headers={"Referer": REFERER, "User-Agent": USER_AGENT}, timeout=30
    )
    response.raise_for_status()
    return response.content


def _text(value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def extract_hash(page) -> str:
    """The request hash embedded in the site's front page; ValueError if absent."""
    if isinstance(page, (bytes, bytearray)):
        page = bytes(page).decode("utf-8", "replace")
    _, found, rest = page.partition(_HASH_MARK)
    if not found:
        raise ValueError("page hash not found")
    return rest.partition('"')[0]


def search_url(page_hash: str, query: str) -> str:
    """The card list request for ``query``."""
    return AJAX + PARAMS + "&hash=" + page_hash + "&search=" + query


def deck_url(page_hash: str, code: str) -> str:
    """The deck image request for a deck code."""
    return (
        AJAX
        + PARAMS
        + "mod=general_deck_image&deck_code="
        + code
        + "&deck_text=&hash="
        + page_hash
        + "&search="
        + code
    )


def search_cards(query: str) -> list[dict]:
    """Cards matching ``query``, each with an added ``image_url``."""
    page_hash = extract_hash(_get(REFERER))
    data = json.loads(_get(search_url(page_hash, query)))
    cards = data.get("list") if isinstance(data, dict) else None
    if not isinstance(cards, list):
        return []
    return [
        {
            **card,
            "image_url": CARD_IMAGE.format(
                _text(card.get("CardID")), _text(card.get("auth_key"))
            ),
        }
        for card in cards
        if isinstance(card, dict)
    ]


def deck_image(code: str) -> str:
    """The deck picture of a deck code as a ``base64://`` image reference."""
    page_hash = extract_hash(_get(REFERER))
    data = json.loads(_get(deck_url(page_hash, code)))
    image = data.get("img") if isinstance(data, dict) else None
    return "base64://" + _text(image)