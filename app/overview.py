"""Plain-text overview of every ranking, used as the analysis prompt body."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable, Mapping

from .join import order_categories
from .models import Category, RankingItem, RecordId, coerce_records


def format_ranking_overview(
    categories: Iterable[Category | Mapping[str, Any]],
    items: Iterable[RankingItem | Mapping[str, Any]],
) -> str:
    """Render each category heading followed by its items in rank order."""

    items_by_category: dict[RecordId, list[RankingItem]] = defaultdict(list)
    for item in coerce_records(RankingItem, items):
        items_by_category[item.category_id].append(item)

    blocks: list[str] = []
    for category in order_categories(coerce_records(Category, categories)):
        lines = [f"【{category.icon} {category.name}】"]
        ranked = sorted(items_by_category.get(category.id, []), key=lambda item: item.rank)
        lines.extend(f"{item.rank}位: {item.title or ''}" for item in ranked)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
