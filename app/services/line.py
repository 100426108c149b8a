"""Push delivery through the LINE Messaging API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..errors import UpstreamError

logger = logging.getLogger(__name__)


class LineMessagingClient:
    """Sends plain-text push messages to a single LINE recipient."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    async def push_text(self, message: str, *, to: str | None = None) -> dict[str, Any]:
        """Push ``message`` to ``to`` (or the configured user) and return LINE's reply."""

        token = self._settings.line_channel_access_token
        recipient = to or self._settings.line_user_id
        if not (token and recipient):
            raise RuntimeError(
                "LINE_CHANNEL_ACCESS_TOKEN and LINE_USER_ID are required to push messages"
            )

        response = await self._client.post(
            "/v2/bot/message/push",
            json={"to": recipient, "messages": [{"type": "text", "text": message}]},
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {token}",
            },
        )
        if response.status_code >= 400:
            raise UpstreamError("LINE API", response.status_code, response.text)
        logger.info("Pushed digest message to %s", recipient)
        if not response.content:
            return {}
        payload = response.json()
        return payload if isinstance(payload, dict) else {}
