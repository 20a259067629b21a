"""Telegram webhook route.

Implements ``POST /webhook/{token}``: the path token must match the bot
token, so only Telegram (which knows it) can deliver updates. ``/uid``
commands are acknowledged immediately and handled as a background task;
every other update is acknowledged and ignored.
"""

from __future__ import annotations

import hmac

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request

from ..commands import UidCommandHandler, is_uid_command
from ..models import TelegramUpdate, WebhookAck
from ..observability.logging import get_logger
from ..protocols import ChatId

logger = get_logger(__name__)


def _token_matches(expected: str, given: str) -> bool:
    if not expected:
        # Local mode without a token: any path token is accepted.
        return True
    return hmac.compare_digest(expected.encode(), given.encode())


async def run_uid_command(
    handler: UidCommandHandler,
    chat_id: ChatId,
    text: str,
    reply_to: int | None,
) -> None:
    """Run a command, logging anything the handler did not deal with."""
    try:
        await handler.handle(chat_id, text, reply_to=reply_to)
    except Exception:
        logger.exception("command_crashed", chat_id=chat_id)


def create_webhook_router() -> APIRouter:
    """Create the Telegram webhook router."""
    router = APIRouter(tags=["webhook"])

    @router.post("/webhook/{token}", response_model=WebhookAck)
    async def telegram_webhook(
        token: str,
        update: TelegramUpdate,
        request: Request,
        background: BackgroundTasks,
    ) -> WebhookAck:
        settings = request.app.state.settings
        if not _token_matches(settings.bot_token, token):
            raise HTTPException(status_code=404, detail="Not Found")

        message = update.message
        if message is None or not is_uid_command(message.text, request.app.state.bot_username):
            return WebhookAck(handled=False)

        handler: UidCommandHandler = request.app.state.deps.handler
        background.add_task(
            run_uid_command,
            handler,
            message.chat.id,
            message.text or "",
            message.message_id,
        )
        return WebhookAck(handled=True)

    return router
