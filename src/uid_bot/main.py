"""uid-bot FastAPI application factory.

The create_app() factory is the single entry point for building the bot's
ASGI application. It wires the webhook route, health and metrics
endpoints, and injects the chat transport and account issuer.

Usage:
    # Local development (in-memory chat transport, real issuer)
    from uid_bot import create_app, BotSettings
    app = create_app(BotSettings())

    # Production
    app = create_app(BotSettings.from_env())

    # Testing (full DI control)
    app = create_app(settings, transport=fake_transport, issuer=fake_issuer)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from fastapi import FastAPI, Response
from fastapi.responses import PlainTextResponse

from .commands import UidCommandHandler
from .context import BotContext
from .inmemory import InMemoryChatTransport
from .observability.logging import configure_logging
from .observability.metrics import metrics_text
from .protocols import AccountIssuer, ChatTransport
from .providers.issuer_client import AccountIssuerClient
from .providers.telegram_client import TelegramAPIError, TelegramBotClient
from .provisioning.naming import NameDeriver
from .provisioning.pipeline import ProvisioningPipeline
from .provisioning.workspace import TransientStore
from .routes.webhook import create_webhook_router
from .settings import BotSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppDependencies:
    """Container for the collaborators built by the factory.

    Stored on ``app.state.deps`` so route handlers can access them.
    """

    transport: ChatTransport
    issuer: AccountIssuer
    store: TransientStore
    context: BotContext
    handler: UidCommandHandler
    http_client: httpx.AsyncClient | None = None


def build_dependencies(
    settings: BotSettings,
    *,
    transport: ChatTransport | None = None,
    issuer: AccountIssuer | None = None,
    context: BotContext | None = None,
    names: NameDeriver | None = None,
) -> AppDependencies:
    """Construct the bot's collaborators, filling in real clients."""
    http_client: httpx.AsyncClient | None = None
    if transport is None or issuer is None:
        http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    if transport is None:
        if settings.bot_token:
            transport = TelegramBotClient(
                bot_token=settings.bot_token,
                base_url=settings.telegram_api_url,
                http_client=http_client,
            )
        else:
            # Only reachable in local mode; validate() rejects it elsewhere.
            transport = InMemoryChatTransport()

    if issuer is None:
        issuer = AccountIssuerClient(
            base_url=settings.issuer_base_url,
            path=settings.issuer_path,
            http_client=http_client,
        )

    context = context or BotContext()
    names = names or NameDeriver()
    store = TransientStore(
        settings.scratch_root,
        cleanup_delay_seconds=settings.cleanup_delay_seconds,
    )
    pipeline = ProvisioningPipeline(issuer=issuer, names=names, context=context)
    handler = UidCommandHandler(
        transport=transport,
        pipeline=pipeline,
        store=store,
        names=names,
        retire_delay_seconds=settings.status_retire_delay_seconds,
    )
    return AppDependencies(
        transport=transport,
        issuer=issuer,
        store=store,
        context=context,
        handler=handler,
        http_client=http_client,
    )


def create_app(
    settings: BotSettings | None = None,
    *,
    transport: ChatTransport | None = None,
    issuer: AccountIssuer | None = None,
    context: BotContext | None = None,
    names: NameDeriver | None = None,
) -> FastAPI:
    """Create a configured uid-bot FastAPI application.

    Args:
        settings: Application settings. Defaults to local-dev settings.
        transport, issuer: Collaborator overrides. When None, the Telegram
            and issuer HTTP clients are built from settings (an in-memory
            chat transport is used locally when no bot token is set).
        context: Process-wide context; a fresh one by default.
        names: Name source override (tests pass a seeded one).

    Raises:
        ValueError: If settings validation fails.
    """
    if settings is None:
        settings = BotSettings()

    errors = settings.validate()
    if errors:
        raise ValueError(
            "Bot settings validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    deps = build_dependencies(
        settings,
        transport=transport,
        issuer=issuer,
        context=context,
        names=names,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        logger.info("Bot startup (environment=%s)", settings.environment)
        if isinstance(deps.transport, TelegramBotClient):
            if not app.state.bot_username:
                try:
                    me = await deps.transport.get_me()
                    app.state.bot_username = me.get("username") or None
                except TelegramAPIError as exc:
                    logger.error("Bot username lookup failed: %s", exc.message)
            if settings.public_url:
                try:
                    await deps.transport.set_webhook(settings.public_url + settings.webhook_path)
                    logger.info("Webhook registered for %s", settings.public_url)
                except TelegramAPIError as exc:
                    logger.error("Webhook registration failed: %s", exc.message)
        yield
        await deps.handler.flush()
        await deps.store.flush()
        if deps.http_client is not None:
            await deps.http_client.aclose()
        logger.info("Bot shutdown")

    app = FastAPI(
        title="uid-bot",
        description="Telegram bot that provisions guest account archives",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.deps = deps
    app.state.settings = settings
    app.state.bot_username = settings.bot_username or None

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "Bot is running!"

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "environment": settings.environment,
            "archives_built": deps.context.archive_sequence.last,
        }

    @app.get("/metrics")
    async def metrics() -> Response:
        body, content_type = metrics_text()
        return Response(content=body, media_type=content_type)

    app.include_router(create_webhook_router())

    return app


# For uvicorn, use --factory flag:
#   uvicorn uid_bot.main:create_app --factory
# This avoids executing create_app() at import time.
