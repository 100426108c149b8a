"""Coordinates store fetches with the ranking engine and outbound messaging."""

from __future__ import annotations

import asyncio
import logging
import random
from contextlib import suppress

from ..config import Settings
from ..digest import compose_message, pick_one
from ..errors import EmptyPoolError, MalformedRecordError, NotFoundError
from ..graphic import render_ranking_card
from ..join import JoinFallback, category_fallback, order_categories
from ..models import (
    Category,
    DigestResult,
    MovieSearchResult,
    PopularityEntry,
    RankingItem,
    SearchResponse,
    coerce_records,
)
from ..overview import format_ranking_overview
from ..popularity import build_digest_pool, rank_popular_titles, search_favorites
from .anthropic import AnthropicClient
from .line import LineMessagingClient
from .supabase import SupabaseClient
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


def _log_skipped(exc: MalformedRecordError) -> None:
    logger.warning("Skipping malformed record: %s", exc)


class RankingService:
    """Fetches complete snapshots from the store and hands them to the engine."""

    def __init__(
        self,
        settings: Settings,
        store: SupabaseClient,
        anthropic_client: AnthropicClient,
        line_client: LineMessagingClient,
        tmdb_client: TMDBClient,
        *,
        rng: random.Random | None = None,
    ):
        self._settings = settings
        self._store = store
        self._ai = anthropic_client
        self._line = line_client
        self._tmdb = tmdb_client
        self._rng = rng or random.Random()
        self._digest_task: asyncio.Task[None] | None = None

    @property
    def category_fallback(self) -> JoinFallback[Category]:
        return category_fallback(
            self._settings.unknown_category_name,
            self._settings.unknown_category_icon,
        )

    async def start(self) -> None:
        """Launch the scheduled digest loop when an interval is configured."""

        if self._settings.digest_interval_seconds <= 0:
            logger.info("Scheduled digest disabled")
            return
        if self._digest_task is None:
            self._digest_task = asyncio.create_task(self._digest_loop())

    async def stop(self) -> None:
        """Stop the scheduled digest loop."""

        if self._digest_task is None:
            return
        self._digest_task.cancel()
        with suppress(asyncio.CancelledError):
            await self._digest_task
        self._digest_task = None

    async def list_categories(self) -> list[Category]:
        rows = await self._store.list_categories()
        return order_categories(coerce_records(Category, rows, _log_skipped))

    async def list_items(self, category_id: str) -> list[RankingItem]:
        rows = await self._store.list_ranking_items(category_id)
        items = coerce_records(RankingItem, rows, _log_skipped)
        return sorted(items, key=lambda item: item.rank)

    async def render_card(self, category_id: str) -> str:
        """Return the SVG share card for one category."""

        categories, items = await asyncio.gather(
            self.list_categories(), self.list_items(category_id)
        )
        category = _find_category(categories, category_id)
        return render_ranking_card(
            category.name, category.icon, items, on_skip=_log_skipped
        )

    async def analyze(self) -> str:
        """Ask the language model to describe the taste behind all rankings."""

        category_rows, item_rows = await asyncio.gather(
            self._store.list_categories(), self._store.list_ranking_items()
        )
        overview = format_ranking_overview(category_rows, item_rows)
        analysis = await self._ai.analyze_rankings(overview)
        return analysis or self._settings.analysis_fallback_text

    async def popular(self) -> list[PopularityEntry]:
        """Return the most favorited titles across public profiles."""

        favorites, profiles = await asyncio.gather(
            self._store.list_recent_favorites(self._settings.popular_snapshot_limit),
            self._store.list_public_profiles(),
        )
        public_ids = {
            str(profile["id"])
            for profile in profiles
            if profile.get("is_public") is True and profile.get("id") is not None
        }
        return rank_popular_titles(
            favorites,
            public_ids,
            limit=self._settings.popular_limit,
            on_skip=_log_skipped,
        )

    async def search(self, query: str, *, slot: int | None = None) -> SearchResponse:
        """Search public favorites by title, optionally restricted to one slot."""

        favorites = await self._store.search_favorites(
            query, slot=slot, limit=self._settings.search_limit
        )
        if not favorites:
            return SearchResponse(results=[], query=query)
        owner_ids = [
            str(row["user_id"]) for row in favorites if row.get("user_id") is not None
        ]
        profiles = await self._store.list_public_profiles(owner_ids)
        return search_favorites(favorites, profiles, query=query, on_skip=_log_skipped)

    async def search_movies(self, query: str) -> list[MovieSearchResult]:
        return await self._tmdb.search_movies(query)

    async def send_digest(self) -> DigestResult:
        """Pick a first-place item, fetch trivia about it and push it to LINE."""

        categories, top_items = await asyncio.gather(
            self._store.list_categories(), self._store.list_top_ranked_items()
        )
        pool = build_digest_pool(
            top_items,
            categories,
            fallback=self.category_fallback,
            on_skip=_log_skipped,
        )
        picked = pick_one(pool, self._rng)
        logger.info("Digest picked %s from a pool of %d", picked.title, len(pool))

        trivia = await self._ai.generate_trivia(picked)
        trivia = trivia or self._settings.digest_fallback_trivia
        message = compose_message(
            picked,
            trivia,
            fallback_annotation=self._settings.digest_fallback_trivia,
        )
        await self._line.push_text(message)
        return DigestResult(success=True, item=picked.title, trivia=trivia, message=message)

    async def _digest_loop(self) -> None:
        while True:
            await asyncio.sleep(self._settings.digest_interval_seconds)
            try:
                await self.send_digest()
            except EmptyPoolError as exc:
                logger.warning("Scheduled digest skipped: %s", exc)
            except Exception as exc:  # pragma: no cover - background safety net
                logger.exception("Scheduled digest failed: %s", exc)


def _find_category(categories: list[Category], category_id: str) -> Category:
    for category in categories:
        if str(category.id) == str(category_id):
            return category
    raise NotFoundError(f"Category {category_id} not found")
