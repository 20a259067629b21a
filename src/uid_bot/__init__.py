"""Telegram bot that provisions batches of guest accounts as zip archives."""

from .main import create_app
from .settings import BotSettings

__all__ = ["create_app", "BotSettings"]
