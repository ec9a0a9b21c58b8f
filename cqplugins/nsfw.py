"""Verdicts on image classification scores."""

from __future__ import annotations

from dataclasses import dataclass

HSO_IMAGE = "https://gchat.qpic.cn/gchatpic_new//--4234EDEC5F147A4C319A41149D7E0EA9/0"
THRESHOLD = 0.3


@dataclass(frozen=True)
class Classification:
    """Class probabilities of one picture."""

    drawings: float = 0.0
    hentai: float = 0.0
    neutral: float = 0.0
    porn: float = 0.0
    sexy: float = 0.0


def _tags(p: Classification) -> list[str]:
    tags = []
    if p.hentai > THRESHOLD:
        tags.append("hentai")
    if p.porn > THRESHOLD:
        tags.append("porn")
    if p.sexy > THRESHOLD:
        tags.append("hso")
    return tags


def judge(p: Classification) -> str:
    """Verdict for an explicitly requested rating."""
    if p.neutral > THRESHOLD:
        return "普通哦"
    kind = "二次元" if p.drawings > THRESHOLD or p.neutral < THRESHOLD else "三次元"
    return "".join([kind, *(" " + tag for tag in _tags(p))])


def auto_judge(p: Classification) -> str | None:
    """Verdict for automatic rating, or None when nothing is worth saying."""
    if p.neutral > THRESHOLD:
        return None
    tags = _tags(p)
    if not tags:
        return None
    kind = "二次元" if p.drawings > THRESHOLD else "三次元"
    return "".join([kind, *(" " + tag for tag in tags)])