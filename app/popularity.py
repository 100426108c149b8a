"""Aggregations over ranking items and user favorites."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Collection, Iterable, Mapping

from .errors import EmptyPoolError, MalformedRecordError
from .join import JoinFallback, enrich
from .models import (
    Category,
    DigestPick,
    Favorite,
    FavoriteSearchResult,
    PopularityEntry,
    Profile,
    RankingItem,
    RecordId,
    SearchResponse,
    coerce_record,
    coerce_records,
)
from .utils import normalize_title

DEFAULT_POPULAR_LIMIT = 10

SkipCallback = Callable[[MalformedRecordError], None]

RawRecord = Mapping[str, Any]


def build_digest_pool(
    top_items: Iterable[RankingItem | RawRecord],
    categories: Iterable[Category | RawRecord],
    *,
    fallback: JoinFallback[Category],
    on_skip: SkipCallback | None = None,
) -> list[DigestPick]:
    """Join top-ranked items to their categories and keep the titled ones.

    Items whose title is missing or empty are dropped; whitespace-only titles
    are kept as they are.

    ``top_items`` is expected to be prefiltered to the best rank. Several
    rank-one items in the same category all enter the pool.
    """

    items = coerce_records(RankingItem, top_items, on_skip)
    category_records = coerce_records(Category, categories, on_skip)
    joined = enrich(
        items,
        category_records,
        key_of=lambda item: item.category_id,
        id_of=lambda category: category.id,
        fallback=fallback,
    )

    pool = [
        DigestPick(
            title=entry.base.title,
            category_name=entry.match.name,
            category_icon=entry.match.icon,
        )
        for entry in joined
        if entry.base.title
    ]
    if not pool:
        raise EmptyPoolError("No ranking data found for the digest")
    return pool


@dataclass(slots=True)
class _TitleGroup:
    title: str
    category: str | None
    count: int = 0


def rank_popular_titles(
    favorites: Iterable[Favorite | RawRecord],
    public_profile_ids: Collection[RecordId],
    *,
    limit: int = DEFAULT_POPULAR_LIMIT,
    on_skip: SkipCallback | None = None,
) -> list[PopularityEntry]:
    """Count favorites of public users per normalised title.

    Groups are ordered by count descending; equal counts keep the order in
    which their first record was seen. The first record of a group supplies
    its display title and category. Owner ids are compared as strings.
    """

    public_ids = {str(profile_id) for profile_id in public_profile_ids}
    groups: dict[str, _TitleGroup] = {}

    for record in favorites:
        try:
            favorite = coerce_record(Favorite, record)
        except MalformedRecordError as exc:
            if on_skip is not None:
                on_skip(exc)
            continue
        if favorite.user_id not in public_ids:
            continue
        key = normalize_title(favorite.title)
        if not key:
            if on_skip is not None:
                on_skip(MalformedRecordError("Favorite has a blank title", record))
            continue
        group = groups.get(key)
        if group is None:
            group = groups[key] = _TitleGroup(
                title=favorite.title, category=favorite.category
            )
        group.count += 1

    # sorted() is stable, so ties stay in first-seen order.
    ranked = sorted(groups.values(), key=lambda group: group.count, reverse=True)
    return [
        PopularityEntry(
            rank=position,
            title=group.title,
            category=group.category,
            count=group.count,
        )
        for position, group in enumerate(ranked[: max(limit, 0)], start=1)
    ]


def search_favorites(
    favorites: Iterable[Favorite | RawRecord],
    profiles: Iterable[Profile | RawRecord],
    *,
    query: str,
    on_skip: SkipCallback | None = None,
) -> SearchResponse:
    """Shape prefiltered favorites into search results owned by public users."""

    public_profiles = [
        profile
        for profile in coerce_records(Profile, profiles, on_skip)
        if profile.is_public
    ]
    public_ids = {profile.id for profile in public_profiles}
    visible = [
        favorite
        for favorite in coerce_records(Favorite, favorites, on_skip)
        if favorite.user_id in public_ids
    ]
    # Every visible favorite has a public owner; the fallback only guards the join.
    joined = enrich(
        visible,
        public_profiles,
        key_of=lambda favorite: favorite.user_id,
        id_of=lambda profile: profile.id,
        fallback=JoinFallback(Profile(id="", handle="")),
    )
    results = [
        FavoriteSearchResult(
            title=entry.base.title,
            slot=entry.base.slot,
            category=entry.base.category,
            handle=entry.match.handle or "",
            display_name=entry.match.display_name,
            created_at=entry.base.created_at,
        )
        for entry in joined
    ]
    return SearchResponse(results=results, query=query)

