"""Read-only access to the ranking tables through the PostgREST API."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from ..config import Settings
from ..errors import UpstreamError

logger = logging.getLogger(__name__)

CATEGORY_COLUMNS = "id,name,name_en,icon,display_order"
RANKING_ITEM_COLUMNS = "id,title,title_en,rank,category_id,created_at"
FAVORITE_COLUMNS = "title,slot,category,user_id,created_at"
PROFILE_COLUMNS = "id,handle,display_name,is_public"


class SupabaseClient:
    """Thin wrapper around the store's REST endpoint."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def _headers(self) -> dict[str, str]:
        key = self._settings.supabase_anon_key
        if not key:
            raise RuntimeError("SUPABASE_ANON_KEY is required to query the store")
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept": "application/json",
        }

    async def select(self, table: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Run a ``select`` against ``table`` and return its rows.

        A response that is not a JSON array is treated as no rows.
        """

        response = await self._client.get(f"/{table}", params=params, headers=self._headers())
        if response.status_code >= 400:
            raise UpstreamError("Supabase", response.status_code, response.text)
        payload = response.json()
        if not isinstance(payload, list):
            logger.warning("Unexpected payload from %s: %r", table, type(payload).__name__)
            return []
        return [row for row in payload if isinstance(row, dict)]

    async def list_categories(self) -> list[dict[str, Any]]:
        return await self.select(
            "categories",
            {"select": CATEGORY_COLUMNS, "order": "display_order.asc"},
        )

    async def list_ranking_items(
        self, category_id: str | int | None = None
    ) -> list[dict[str, Any]]:
        """Return ranking items ordered by rank, optionally for one category."""

        params: dict[str, Any] = {"select": RANKING_ITEM_COLUMNS, "order": "rank.asc"}
        if category_id is not None:
            params["category_id"] = f"eq.{category_id}"
        return await self.select("ranking_items", params)

    async def list_top_ranked_items(self) -> list[dict[str, Any]]:
        """Return the first-place item of every category."""

        return await self.select(
            "ranking_items",
            {"select": "title,rank,category_id", "rank": "eq.1"},
        )

    async def list_recent_favorites(self, limit: int) -> list[dict[str, Any]]:
        """Return a bounded snapshot of the newest favorites across all users."""

        return await self.select(
            "favorites",
            {"select": FAVORITE_COLUMNS, "order": "created_at.desc", "limit": limit},
        )

    async def search_favorites(
        self, query: str, *, slot: int | None = None, limit: int
    ) -> list[dict[str, Any]]:
        """Return favorites whose title contains ``query`` (case-insensitive)."""

        params: dict[str, Any] = {
            "select": FAVORITE_COLUMNS,
            "title": f"ilike.*{_strip_wildcards(query)}*",
            "order": "created_at.desc",
            "limit": limit,
        }
        if slot is not None:
            params["slot"] = f"eq.{slot}"
        return await self.select("favorites", params)

    async def list_public_profiles(
        self, ids: Iterable[str] | None = None
    ) -> list[dict[str, Any]]:
        """Return profiles marked public, optionally restricted to ``ids``."""

        params: dict[str, Any] = {"select": PROFILE_COLUMNS, "is_public": "eq.true"}
        if ids is not None:
            unique_ids = sorted({str(value) for value in ids})
            if not unique_ids:
                return []
            params["id"] = "in.(" + ",".join(f'"{value}"' for value in unique_ids) + ")"
        return await self.select("profiles", params)


def _strip_wildcards(value: str) -> str:
    # * is the PostgREST wildcard.
    return value.strip().replace("*", "")
