"""External service clients for the bot."""

from .issuer_client import (
    AccountIssuerClient,
    IssuerTransportError,
    MalformedResponseError,
    UnitIssuerError,
)
from .telegram_client import TelegramAPIError, TelegramBotClient

__all__ = [
    "AccountIssuerClient",
    "IssuerTransportError",
    "MalformedResponseError",
    "TelegramAPIError",
    "TelegramBotClient",
    "UnitIssuerError",
]
