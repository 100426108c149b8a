"""Entry point for the FastAPI-powered ranking API."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager, contextmanager
from typing import Any, Iterator

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .config import settings
from .errors import EmptyPoolError, NotFoundError, UpstreamError
from .graphic import SVG_MEDIA_TYPE
from .services.anthropic import AnthropicClient
from .services.line import LineMessagingClient
from .services.rankings import RankingService
from .services.supabase import SupabaseClient
from .services.tmdb import TMDBClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_BANNER = "MY RANKING API v2.0"

app: FastAPI


async def build_ranking_service(exit_stack: AsyncExitStack) -> RankingService:
    """Open the upstream HTTP clients on ``exit_stack`` and wire the service."""

    store_kwargs: dict[str, Any] = {"timeout": httpx.Timeout(15.0, connect=5.0)}
    if settings.supabase_rest_url:
        store_kwargs["base_url"] = settings.supabase_rest_url
    else:
        logger.warning("SUPABASE_URL is not configured; store requests will fail")
    store_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(**store_kwargs)
    )
    anthropic_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.anthropic_api_url),
            timeout=httpx.Timeout(60.0, connect=10.0),
        )
    )
    line_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.line_api_url),
            timeout=httpx.Timeout(15.0, connect=5.0),
        )
    )
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(15.0, connect=5.0),
        )
    )

    return RankingService(
        settings,
        SupabaseClient(settings, store_http_client),
        AnthropicClient(settings, anthropic_http_client),
        LineMessagingClient(settings, line_http_client),
        TMDBClient(settings, tmdb_http_client),
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    exit_stack = AsyncExitStack()
    ranking_service = await build_ranking_service(exit_stack)
    app.state.ranking_service = ranking_service
    await ranking_service.start()

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await ranking_service.stop()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Rankings, popularity stats, share cards and daily trivia digests",
        version="2.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_ranking_service(app: FastAPI) -> RankingService:
    service = getattr(app.state, "ranking_service", None)
    if not isinstance(service, RankingService):
        raise RuntimeError("Ranking service not initialised")
    return service


@contextmanager
def _translate_errors() -> Iterator[None]:
    """Map engine and collaborator failures onto HTTP errors."""

    try:
        yield
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except EmptyPoolError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except UpstreamError as exc:
        logger.warning("Upstream failure: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except httpx.HTTPError as exc:
        logger.warning("Upstream request failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/")
    async def index() -> dict[str, str]:
        return {"message": API_BANNER}

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/rankings")
    async def list_rankings() -> list[dict[str, Any]]:
        service = get_ranking_service(fastapi_app)
        with _translate_errors():
            categories = await service.list_categories()
        return [category.model_dump(mode="json") for category in categories]

    @fastapi_app.get("/rankings/{category_id}")
    async def ranking_items(category_id: str) -> list[dict[str, Any]]:
        service = get_ranking_service(fastapi_app)
        with _translate_errors():
            items = await service.list_items(category_id)
        return [item.model_dump(mode="json") for item in items]

    @fastapi_app.get("/rankings/{category_id}/card.svg")
    async def ranking_card(category_id: str) -> Response:
        service = get_ranking_service(fastapi_app)
        with _translate_errors():
            svg = await service.render_card(category_id)
        return Response(content=svg, media_type=SVG_MEDIA_TYPE)

    @fastapi_app.get("/analyze")
    async def analyze() -> dict[str, str]:
        service = get_ranking_service(fastapi_app)
        with _translate_errors():
            analysis = await service.analyze()
        return {"analysis": analysis}

    @fastapi_app.get("/popular")
    async def popular() -> dict[str, Any]:
        service = get_ranking_service(fastapi_app)
        with _translate_errors():
            entries = await service.popular()
        return {"results": [entry.model_dump(mode="json") for entry in entries]}

    @fastapi_app.get("/search")
    async def search(q: str | None = None, slot: int | None = None) -> dict[str, Any]:
        query = (q or "").strip()
        if not query:
            raise HTTPException(status_code=400, detail='Missing query parameter "q"')
        service = get_ranking_service(fastapi_app)
        with _translate_errors():
            response = await service.search(query, slot=slot)
        return response.model_dump(mode="json")

    @fastapi_app.get("/search/movie")
    async def search_movie(q: str | None = None) -> dict[str, Any]:
        query = (q or "").strip()
        if not query:
            raise HTTPException(status_code=400, detail='Missing query parameter "q"')
        service = get_ranking_service(fastapi_app)
        with _translate_errors():
            movies = await service.search_movies(query)
        return {"results": [movie.model_dump(mode="json") for movie in movies]}

    @fastapi_app.post("/digest")
    async def digest() -> dict[str, Any]:
        service = get_ranking_service(fastapi_app)
        with _translate_errors():
            result = await service.send_digest()
        return result.model_dump(mode="json")


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
