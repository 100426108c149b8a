"""SVG share card summarising the top entries of a ranking."""

from __future__ import annotations

from textwrap import dedent
from typing import Any, Callable, Iterable, Mapping

from .errors import MalformedRecordError
from .models import RankingItem, coerce_records
from .utils import escape_markup

SVG_MEDIA_TYPE = "image/svg+xml"

CANVAS_WIDTH = 1200
CANVAS_HEIGHT = 630
MAX_ROWS = 3
MEDALS: tuple[str, ...] = ("🥇", "🥈", "🥉")
ROW_BASE_Y = 300
ROW_HEIGHT = 100

LOGO_TEXT = "MY RANKING"
FOOTER_TEXT = "#MyRanking"

CARD_TEMPLATE = dedent(
    """\
    <?xml version="1.0" encoding="UTF-8"?>
    <svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" viewBox="0 0 {width} {height}">
      <defs>
        <linearGradient id="card-background" x1="0" y1="0" x2="1" y2="1">
          <stop offset="0%" stop-color="#1a1a2e"/>
          <stop offset="100%" stop-color="#0f3460"/>
        </linearGradient>
      </defs>
      <rect width="{width}" height="{height}" fill="url(#card-background)"/>
      <rect class="frame" x="24" y="24" width="1152" height="582" rx="28" fill="none" stroke="#e2b714" stroke-width="4"/>
      <text class="logo" x="600" y="96" text-anchor="middle" font-family="'Noto Sans JP', sans-serif" font-size="40" font-weight="700" fill="#e2b714" letter-spacing="6">{logo}</text>
      <text class="category" x="600" y="176" text-anchor="middle" font-family="'Noto Sans JP', sans-serif" font-size="52" font-weight="700" fill="#ffffff">{icon} {name}</text>
      <line class="divider" x1="160" y1="216" x2="1040" y2="216" stroke="#e2b714" stroke-opacity="0.6" stroke-width="2"/>
    {rows}
      <text class="footer" x="600" y="584" text-anchor="middle" font-family="'Noto Sans JP', sans-serif" font-size="24" fill="#a6a6c8">{footer}</text>
    </svg>
    """
)

ROW_TEMPLATE = (
    '  <g class="rank-row" data-position="{position}">\n'
    '    <text x="180" y="{y}" font-size="60">{medal}</text>\n'
    '    <text x="280" y="{y}" font-family="\'Noto Sans JP\', sans-serif" '
    'font-size="48" font-weight="700" fill="#ffffff">{title}</text>\n'
    "  </g>"
)


def top_entries(
    items: Iterable[RankingItem | Mapping[str, Any]],
    limit: int = MAX_ROWS,
    on_skip: Callable[[MalformedRecordError], None] | None = None,
) -> list[RankingItem]:
    """Return at most ``limit`` items with the lowest ranks, best first.

    Only ``title`` and ``rank`` are read; rows without a valid rank are
    reported to ``on_skip`` and left out.
    """

    ranked = sorted(
        coerce_records(RankingItem, items, on_skip), key=lambda item: item.rank
    )
    return ranked[: min(limit, MAX_ROWS)]


def row_offset(index: int) -> int:
    """Return the baseline y coordinate of row ``index``."""

    return ROW_BASE_Y + index * ROW_HEIGHT


def render_ranking_card(
    category_name: str,
    category_icon: str,
    items: Iterable[RankingItem | Mapping[str, Any]],
    *,
    on_skip: Callable[[MalformedRecordError], None] | None = None,
) -> str:
    """Return a self-contained 1200x630 SVG document for the category's top three."""

    rows = [
        ROW_TEMPLATE.format(
            position=index + 1,
            y=row_offset(index),
            medal=MEDALS[index],
            title=escape_markup(item.title),
        )
        for index, item in enumerate(top_entries(items, on_skip=on_skip))
    ]
    return CARD_TEMPLATE.format(
        width=CANVAS_WIDTH,
        height=CANVAS_HEIGHT,
        logo=escape_markup(LOGO_TEXT),
        icon=escape_markup(category_icon),
        name=escape_markup(category_name),
        rows="\n".join(rows),
        footer=escape_markup(FOOTER_TEXT),
    )
