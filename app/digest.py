"""Random pick and message template for the daily trivia digest."""

from __future__ import annotations

import random
from typing import Sequence

from .errors import EmptyPoolError
from .models import DigestPick

DIGEST_HEADER = "今日の豆知識"


def pick_one(pool: Sequence[DigestPick], rng: random.Random) -> DigestPick:
    """Return one pool entry, each with equal probability."""

    if not pool:
        raise EmptyPoolError("Cannot pick a digest item from an empty pool")
    return pool[rng.randrange(len(pool))]


def compose_message(
    pick: DigestPick, annotation: str | None, *, fallback_annotation: str
) -> str:
    """Render the push message body for ``pick``.

    The output is plain text, so fields are inserted without escaping.
    """

    text = annotation if annotation and annotation.strip() else fallback_annotation
    return (
        f"{pick.category_icon} {DIGEST_HEADER}\n\n"
        f"【{pick.category_name} 1位】{pick.title}\n\n"
        f"{text}"
    )
