"""Protocol interfaces for the bot's external collaborators.

The app factory and the command handler accept any implementation that
matches these protocols: the Telegram and HTTP clients in production,
the InMemory variants for local development and tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

ChatId = int | str


@dataclass(frozen=True, slots=True)
class MessageHandle:
    """Address of a message the bot has sent and may edit or delete."""

    chat_id: ChatId
    message_id: int


@runtime_checkable
class ChatTransport(Protocol):
    """Outbound chat operations used by the provisioning flow."""

    async def send_message(
        self, chat_id: ChatId, text: str, *, reply_to: int | None = None,
    ) -> MessageHandle: ...
    async def edit_message(self, handle: MessageHandle, text: str) -> None: ...
    async def delete_message(self, handle: MessageHandle) -> None: ...
    async def send_document(
        self,
        chat_id: ChatId,
        filename: str,
        content: bytes,
        *,
        reply_to: int | None = None,
    ) -> None: ...


@runtime_checkable
class AccountIssuer(Protocol):
    """One guest account per call; raises ``UnitIssuerError`` on failure."""

    async def issue(self, name: str) -> dict[str, Any]: ...


@runtime_checkable
class ProgressListener(Protocol):
    """Per-unit callbacks awaited by the pipeline, in unit order."""

    async def unit_failed(self, index: int, reason: str) -> None: ...
    async def unit_completed(self, completed: int, total: int) -> None: ...
