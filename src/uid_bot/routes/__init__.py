"""HTTP routes for the bot's webhook front door."""

from .webhook import create_webhook_router

__all__ = ["create_webhook_router"]
