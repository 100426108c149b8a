"""Integration helpers for the Anthropic Messages API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..errors import UpstreamError
from ..models import DigestPick

logger = logging.getLogger(__name__)

TRIVIA_PROMPT_TEMPLATE = (
    "「{title}」（{category_name}カテゴリの1位）について、面白い豆知識を1つだけ教えてください。"
    "50文字程度で、雑学として楽しめる内容にしてください。豆知識の内容だけを返してください。"
)

ANALYSIS_PROMPT_TEMPLATE = (
    "以下はある人の好きなもののランキングデータです。"
    "この人の趣味の傾向、好みの特徴、意外な共通点などを300文字程度で分析してください。"
    "親しみやすい口調で。\n\n{overview}"
)

TRIVIA_MAX_TOKENS = 256
ANALYSIS_MAX_TOKENS = 1024


class AnthropicClient:
    """Client responsible for talking to the ``/v1/messages`` endpoint."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    async def complete(self, prompt: str, *, max_tokens: int) -> str | None:
        """Send a single-turn prompt and return the first text block, if any."""

        api_key = self._settings.anthropic_api_key
        if not api_key:
            raise RuntimeError("ANTHROPIC_API_KEY is required to generate text")

        payload = {
            "model": self._settings.anthropic_model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": self._settings.anthropic_version,
        }
        response = await self._client.post("/v1/messages", json=payload, headers=headers)
        if response.status_code >= 400:
            raise UpstreamError("Claude API", response.status_code, response.text)
        return _first_text_block(response.json())

    async def generate_trivia(self, pick: DigestPick) -> str | None:
        prompt = TRIVIA_PROMPT_TEMPLATE.format(
            title=pick.title, category_name=pick.category_name
        )
        return await self.complete(prompt, max_tokens=TRIVIA_MAX_TOKENS)

    async def analyze_rankings(self, overview: str) -> str | None:
        prompt = ANALYSIS_PROMPT_TEMPLATE.format(overview=overview)
        return await self.complete(prompt, max_tokens=ANALYSIS_MAX_TOKENS)


def _first_text_block(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    content = data.get("content")
    if not isinstance(content, list) or not content:
        logger.debug("Claude response carried no content blocks")
        return None
    block = content[0]
    if not isinstance(block, dict):
        return None
    text = block.get("text")
    if not isinstance(text, str) or not text:
        return None
    return text
