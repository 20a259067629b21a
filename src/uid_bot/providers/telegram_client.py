"""Async HTTP client for the Telegram Bot API.

Implements the :class:`~uid_bot.protocols.ChatTransport` protocol on top
of ``sendMessage``, ``editMessageText``, ``deleteMessage`` and
``sendDocument``. The bot token is part of every request URL, so it is
never logged.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..protocols import ChatId, MessageHandle

logger = logging.getLogger(__name__)

DEFAULT_TELEGRAM_API_URL = "https://api.telegram.org"
DOCUMENT_CONTENT_TYPE = "application/zip"


class TelegramAPIError(Exception):
    """Telegram rejected a call or could not be reached."""

    def __init__(
        self,
        method: str,
        message: str = "",
        *,
        status_code: int = 0,
        error_code: int | None = None,
    ) -> None:
        self.method = method
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(f"Telegram {method} failed ({status_code}): {message}")


class TelegramBotClient:
    """Minimal Telegram Bot API client for status messages and documents."""

    def __init__(
        self,
        *,
        bot_token: str,
        base_url: str = DEFAULT_TELEGRAM_API_URL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not bot_token:
            raise ValueError("bot_token is required")

        self._bot_token = bot_token
        self._base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient()

    def _method_url(self, method: str) -> str:
        return f"{self._base_url}/bot{self._bot_token}/{method}"

    async def _call(
        self,
        method: str,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        try:
            resp = await self._client.request(
                "POST",
                self._method_url(method),
                json=json,
                data=data,
                files=files,
            )
        except httpx.HTTPError as e:
            # str(e) may contain the request URL, and with it the token.
            raise TelegramAPIError(method, type(e).__name__) from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or not body.get("ok"):
            description = ""
            error_code = None
            if isinstance(body, dict):
                description = str(body.get("description", ""))
                error_code = body.get("error_code")
            raise TelegramAPIError(
                method,
                description or f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                error_code=error_code,
            )
        return body.get("result")

    # ── ChatTransport ────────────────────────────────────────────

    async def send_message(
        self, chat_id: ChatId, text: str, *, reply_to: int | None = None,
    ) -> MessageHandle:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_to is not None:
            payload["reply_to_message_id"] = reply_to
            payload["allow_sending_without_reply"] = True

        result = await self._call("sendMessage", json=payload)
        return MessageHandle(chat_id=chat_id, message_id=int(result["message_id"]))

    async def edit_message(self, handle: MessageHandle, text: str) -> None:
        await self._call(
            "editMessageText",
            json={
                "chat_id": handle.chat_id,
                "message_id": handle.message_id,
                "text": text,
            },
        )

    async def delete_message(self, handle: MessageHandle) -> None:
        await self._call(
            "deleteMessage",
            json={"chat_id": handle.chat_id, "message_id": handle.message_id},
        )

    async def send_document(
        self,
        chat_id: ChatId,
        filename: str,
        content: bytes,
        *,
        reply_to: int | None = None,
    ) -> None:
        data: dict[str, Any] = {"chat_id": str(chat_id)}
        if reply_to is not None:
            data["reply_to_message_id"] = str(reply_to)
            data["allow_sending_without_reply"] = "true"

        await self._call(
            "sendDocument",
            data=data,
            files={"document": (filename, content, DOCUMENT_CONTENT_TYPE)},
        )
        logger.info(
            "Document sent: %s (%d bytes)",
            filename,
            len(content),
            extra={"chat_id": chat_id},
        )

    async def get_me(self) -> dict[str, Any]:
        """Return the bot's own user object (``id``, ``username``, ...)."""
        return await self._call("getMe")

    async def set_webhook(self, url: str) -> None:
        """Register *url* as the bot's webhook endpoint."""
        await self._call("setWebhook", json={"url": url})
