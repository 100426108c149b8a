"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="MY RANKING API", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_anon_key: str | None = Field(default=None, alias="SUPABASE_ANON_KEY")

    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    anthropic_api_url: HttpUrl = Field(
        default="https://api.anthropic.com", alias="ANTHROPIC_API_URL"
    )
    anthropic_model: str = Field(
        default="claude-sonnet-4-5-20250929", alias="ANTHROPIC_MODEL"
    )
    anthropic_version: str = Field(default="2023-06-01", alias="ANTHROPIC_VERSION")

    line_channel_access_token: str | None = Field(
        default=None, alias="LINE_CHANNEL_ACCESS_TOKEN"
    )
    line_user_id: str | None = Field(default=None, alias="LINE_USER_ID")
    line_api_url: HttpUrl = Field(default="https://api.line.me", alias="LINE_API_URL")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_language: str = Field(default="ja-JP", alias="TMDB_LANGUAGE")

    popular_limit: int = Field(default=10, alias="POPULAR_LIMIT", ge=1, le=100)
    popular_snapshot_limit: int = Field(
        default=1_000, alias="POPULAR_SNAPSHOT_LIMIT", ge=1, le=10_000
    )
    search_limit: int = Field(default=50, alias="SEARCH_LIMIT", ge=1, le=500)

    digest_interval_seconds: int = Field(default=0, alias="DIGEST_INTERVAL", ge=0)
    digest_fallback_trivia: str = Field(
        default="豆知識を生成できませんでした。", alias="DIGEST_FALLBACK_TRIVIA"
    )
    analysis_fallback_text: str = Field(
        default="分析できませんでした。", alias="ANALYSIS_FALLBACK_TEXT"
    )

    unknown_category_name: str = Field(
        default="unknown", alias="UNKNOWN_CATEGORY_NAME"
    )
    unknown_category_icon: str = Field(default="📋", alias="UNKNOWN_CATEGORY_ICON")

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("supabase_url", mode="before")
    @classmethod
    def _strip_supabase_url(cls, value: object) -> object:
        """Drop trailing slashes so REST paths can be appended safely."""

        if isinstance(value, str):
            cleaned = value.strip().rstrip("/")
            return cleaned or None
        return value

    @field_validator(
        "supabase_anon_key",
        "anthropic_api_key",
        "line_channel_access_token",
        "line_user_id",
        "tmdb_api_key",
        mode="before",
    )
    @classmethod
    def _blank_secret_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def supabase_rest_url(self) -> str | None:
        """Return the PostgREST base URL derived from the project URL."""

        if not self.supabase_url:
            return None
        return f"{self.supabase_url}/rest/v1"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
