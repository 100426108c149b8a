"""Movie lookups against The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..errors import UpstreamError
from ..models import MovieSearchResult

logger = logging.getLogger(__name__)

POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"


class TMDBClient:
    """Client responsible for searching TMDB for movies by title."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    async def search_movies(self, query: str) -> list[MovieSearchResult]:
        """Return TMDB's matches for ``query`` in the configured language."""

        if not self._settings.tmdb_api_key:
            raise RuntimeError("TMDB_API_KEY is required to search movies")

        params = {
            "api_key": self._settings.tmdb_api_key,
            "query": query,
            "language": self._settings.tmdb_language,
        }
        response = await self._client.get("/search/movie", params=params)
        if response.status_code >= 400:
            raise UpstreamError("TMDb API", response.status_code, response.text)

        data = response.json()
        results: list[MovieSearchResult] = []
        for candidate in data.get("results") or []:
            if not isinstance(candidate, dict):
                continue
            try:
                results.append(self._to_result(candidate))
            except ValidationError:
                logger.debug("Skipping malformed TMDB result: %r", candidate.get("id"))
                continue
        return results

    @staticmethod
    def _to_result(movie: dict[str, Any]) -> MovieSearchResult:
        poster_path = movie.get("poster_path")
        release_date = movie.get("release_date")
        return MovieSearchResult.model_validate(
            {
                "id": movie.get("id"),
                "title": movie.get("title"),
                "poster_url": f"{POSTER_BASE_URL}{poster_path}" if poster_path else None,
                "release_year": release_date[:4]
                if isinstance(release_date, str) and release_date
                else None,
                "rating": movie.get("vote_average"),
                "overview": movie.get("overview"),
            }
        )
