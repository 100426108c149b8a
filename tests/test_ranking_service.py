"""Tests for the orchestration service with in-memory collaborators."""

from __future__ import annotations

import random
from typing import Any, cast

import pytest

from app.config import Settings
from app.errors import EmptyPoolError, NotFoundError
from app.models import DigestPick
from app.services.anthropic import AnthropicClient
from app.services.line import LineMessagingClient
from app.services.rankings import RankingService
from app.services.supabase import SupabaseClient
from app.services.tmdb import TMDBClient


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class FakeStore:
    """Serves canned rows in place of the PostgREST client."""

    def __init__(
        self,
        *,
        categories: list[dict[str, Any]] | None = None,
        items: list[dict[str, Any]] | None = None,
        favorites: list[dict[str, Any]] | None = None,
        profiles: list[dict[str, Any]] | None = None,
    ):
        self.categories = categories or []
        self.items = items or []
        self.favorites = favorites or []
        self.profiles = profiles or []
        self.snapshot_limits: list[int] = []
        self.profile_id_requests: list[list[str] | None] = []

    async def list_categories(self) -> list[dict[str, Any]]:
        return list(self.categories)

    async def list_ranking_items(self, category_id=None) -> list[dict[str, Any]]:
        if category_id is None:
            return list(self.items)
        return [row for row in self.items if str(row["category_id"]) == str(category_id)]

    async def list_top_ranked_items(self) -> list[dict[str, Any]]:
        return [row for row in self.items if row.get("rank") == 1]

    async def list_recent_favorites(self, limit: int) -> list[dict[str, Any]]:
        self.snapshot_limits.append(limit)
        return self.favorites[:limit]

    async def search_favorites(self, query, *, slot=None, limit) -> list[dict[str, Any]]:
        needle = query.casefold()
        return [
            row
            for row in self.favorites
            if needle in row["title"].casefold() and (slot is None or row.get("slot") == slot)
        ][:limit]

    async def list_public_profiles(self, ids=None) -> list[dict[str, Any]]:
        self.profile_id_requests.append(None if ids is None else list(ids))
        rows = [row for row in self.profiles if row.get("is_public")]
        if ids is not None:
            wanted = set(ids)
            rows = [row for row in rows if row["id"] in wanted]
        return rows


class FakeAnthropic:
    def __init__(self, text: str | None = "Trivia!"):
        self.text = text
        self.trivia_requests: list[DigestPick] = []
        self.analysis_requests: list[str] = []

    async def generate_trivia(self, pick: DigestPick) -> str | None:
        self.trivia_requests.append(pick)
        return self.text

    async def analyze_rankings(self, overview: str) -> str | None:
        self.analysis_requests.append(overview)
        return self.text


class FakeLine:
    def __init__(self) -> None:
        self.messages: list[str] = []

    async def push_text(self, message: str, *, to: str | None = None) -> dict[str, Any]:
        self.messages.append(message)
        return {}


CATEGORIES = [
    {"id": 1, "name": "Movies", "icon": "🎬", "display_order": 2},
    {"id": 2, "name": "Ramen", "icon": "🍜", "display_order": 1},
]
ITEMS = [
    {"id": 10, "title": "Dune", "rank": 2, "category_id": 1},
    {"id": 11, "title": "Arrival", "rank": 1, "category_id": 1},
    {"id": 12, "title": "Heat", "rank": 3, "category_id": 1},
    {"id": 13, "title": "Alien", "rank": 4, "category_id": 1},
]


def build_service(
    store: FakeStore,
    *,
    anthropic: FakeAnthropic | None = None,
    line: FakeLine | None = None,
    **overrides: Any,
) -> RankingService:
    settings = Settings(_env_file=None, **overrides)  # type: ignore[arg-type]
    return RankingService(
        settings,
        cast(SupabaseClient, store),
        cast(AnthropicClient, anthropic or FakeAnthropic()),
        cast(LineMessagingClient, line or FakeLine()),
        cast(TMDBClient, object()),
        rng=random.Random(0),
    )


@pytest.mark.anyio("asyncio")
async def test_list_categories_sorted_by_display_order() -> None:
    service = build_service(FakeStore(categories=CATEGORIES))

    categories = await service.list_categories()

    assert [category.name for category in categories] == ["Ramen", "Movies"]


@pytest.mark.anyio("asyncio")
async def test_render_card_uses_top_three_of_category() -> None:
    service = build_service(FakeStore(categories=CATEGORIES, items=ITEMS))

    svg = await service.render_card("1")

    assert "🎬 Movies" in svg
    assert svg.count('class="rank-row"') == 3
    assert svg.index("Arrival") < svg.index("Dune") < svg.index("Heat")
    assert "Alien" not in svg


@pytest.mark.anyio("asyncio")
async def test_render_card_for_unknown_category_raises_not_found() -> None:
    service = build_service(FakeStore(categories=CATEGORIES, items=ITEMS))

    with pytest.raises(NotFoundError):
        await service.render_card("404")


@pytest.mark.anyio("asyncio")
async def test_send_digest_composes_and_pushes_message() -> None:
    line = FakeLine()
    anthropic = FakeAnthropic("Heptapod ink is circular.")
    service = build_service(
        FakeStore(categories=CATEGORIES, items=ITEMS), anthropic=anthropic, line=line
    )

    result = await service.send_digest()

    assert result.success is True
    assert result.item == "Arrival"
    assert result.trivia == "Heptapod ink is circular."
    assert result.message == "🎬 今日の豆知識\n\n【Movies 1位】Arrival\n\nHeptapod ink is circular."
    assert line.messages == [result.message]
    assert anthropic.trivia_requests[0].category_name == "Movies"


@pytest.mark.anyio("asyncio")
async def test_send_digest_falls_back_when_model_returns_nothing() -> None:
    service = build_service(
        FakeStore(categories=CATEGORIES, items=ITEMS),
        anthropic=FakeAnthropic(None),
        DIGEST_FALLBACK_TRIVIA="No trivia today.",
    )

    result = await service.send_digest()

    assert result.trivia == "No trivia today."
    assert result.message.endswith("\n\nNo trivia today.")


@pytest.mark.anyio("asyncio")
async def test_send_digest_uses_configured_unknown_category() -> None:
    items = [{"title": "Lonely", "rank": 1, "category_id": 77}]
    service = build_service(
        FakeStore(categories=CATEGORIES, items=items),
        UNKNOWN_CATEGORY_NAME="不明",
    )

    result = await service.send_digest()

    assert result.message.startswith("📋 今日の豆知識\n\n【不明 1位】Lonely")


@pytest.mark.anyio("asyncio")
async def test_send_digest_without_items_raises_empty_pool() -> None:
    line = FakeLine()
    service = build_service(FakeStore(categories=CATEGORIES), line=line)

    with pytest.raises(EmptyPoolError):
        await service.send_digest()
    assert line.messages == []


@pytest.mark.anyio("asyncio")
async def test_analyze_sends_overview_to_model() -> None:
    anthropic = FakeAnthropic("You love sci-fi.")
    service = build_service(FakeStore(categories=CATEGORIES, items=ITEMS), anthropic=anthropic)

    analysis = await service.analyze()

    assert analysis == "You love sci-fi."
    assert anthropic.analysis_requests[0].startswith("【🍜 Ramen】")
    assert "1位: Arrival\n2位: Dune" in anthropic.analysis_requests[0]


@pytest.mark.anyio("asyncio")
async def test_popular_filters_private_profiles_and_limits_snapshot() -> None:
    store = FakeStore(
        favorites=[
            {"title": "Arrival", "user_id": "u1", "category": "Movies"},
            {"title": "arrival ", "user_id": "u2", "category": "Movies"},
            {"title": "Dune", "user_id": "hidden", "category": "Movies"},
            {"title": "Dune", "user_id": "hidden", "category": "Movies"},
            {"user_id": "u1"},
        ],
        profiles=[
            {"id": "u1", "is_public": True},
            {"id": "u2", "is_public": True},
            {"id": "hidden", "is_public": False},
        ],
    )
    service = build_service(store, POPULAR_SNAPSHOT_LIMIT=500)

    entries = await service.popular()

    assert [(entry.rank, entry.title, entry.count) for entry in entries] == [
        (1, "Arrival", 2)
    ]
    assert store.snapshot_limits == [500]


@pytest.mark.anyio("asyncio")
async def test_search_joins_owner_profiles() -> None:
    store = FakeStore(
        favorites=[
            {"title": "Arrival", "user_id": "u1", "slot": 1, "category": "Movies"},
            {"title": "Arrival", "user_id": "u2", "slot": 2, "category": "Movies"},
            {"title": "Dune", "user_id": "u1", "slot": 2, "category": "Movies"},
        ],
        profiles=[
            {"id": "u1", "handle": "cine", "is_public": True},
            {"id": "u2", "handle": "private", "is_public": False},
        ],
    )
    service = build_service(store)

    response = await service.search("arr")
    slot_response = await service.search("arr", slot=2)

    assert [(r.title, r.handle) for r in response.results] == [("Arrival", "cine")]
    assert response.query == "arr"
    assert slot_response.results == []


@pytest.mark.anyio("asyncio")
async def test_search_without_matches_skips_profile_lookup() -> None:
    store = FakeStore(profiles=[{"id": "u1", "is_public": True}])
    service = build_service(store)

    response = await service.search("nothing")

    assert response.model_dump() == {"results": [], "query": "nothing"}
    assert store.profile_id_requests == []


@pytest.mark.anyio("asyncio")
async def test_digest_loop_starts_only_with_interval() -> None:
    disabled = build_service(FakeStore())
    await disabled.start()
    assert disabled._digest_task is None

    enabled = build_service(FakeStore(), DIGEST_INTERVAL=3600)
    await enabled.start()
    assert enabled._digest_task is not None
    await enabled.stop()
    assert enabled._digest_task is None
