"""In-memory collaborator implementations for local development and tests.

``InMemoryChatTransport`` is used when ENVIRONMENT=local and no bot token
is configured: it satisfies the ChatTransport protocol but only records
(and logs) what would have been sent.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from .protocols import ChatId, MessageHandle
from .provisioning.errors import IssuerTransportError, UnitIssuerError

logger = logging.getLogger(__name__)


@dataclass
class RecordedMessage:
    handle: MessageHandle
    text: str
    reply_to: int | None = None
    edits: list[str] = field(default_factory=list)
    deleted: bool = False

    @property
    def current_text(self) -> str:
        return self.edits[-1] if self.edits else self.text


@dataclass(frozen=True)
class RecordedDocument:
    chat_id: ChatId
    filename: str
    content: bytes
    reply_to: int | None = None


class InMemoryChatTransport:
    """Chat transport that keeps every message in memory."""

    def __init__(
        self,
        *,
        send_fails: bool = False,
        edit_fails: bool = False,
        delete_fails: bool = False,
        document_fails: bool = False,
    ) -> None:
        self.send_fails = send_fails
        self.edit_fails = edit_fails
        self.delete_fails = delete_fails
        self.document_fails = document_fails
        self.messages: list[RecordedMessage] = []
        self.documents: list[RecordedDocument] = []
        self.calls: list[tuple[str, Any]] = []
        self._ids = itertools.count(1)

    async def send_message(
        self, chat_id: ChatId, text: str, *, reply_to: int | None = None,
    ) -> MessageHandle:
        self.calls.append(("send_message", text))
        if self.send_fails:
            raise RuntimeError("send_message failed")
        handle = MessageHandle(chat_id=chat_id, message_id=next(self._ids))
        self.messages.append(RecordedMessage(handle=handle, text=text, reply_to=reply_to))
        logger.info("[chat %s] %s", chat_id, text)
        return handle

    async def edit_message(self, handle: MessageHandle, text: str) -> None:
        self.calls.append(("edit_message", text))
        if self.edit_fails:
            raise RuntimeError("edit_message failed")
        self._find(handle).edits.append(text)

    async def delete_message(self, handle: MessageHandle) -> None:
        self.calls.append(("delete_message", handle.message_id))
        if self.delete_fails:
            raise RuntimeError("delete_message failed")
        self._find(handle).deleted = True

    async def send_document(
        self,
        chat_id: ChatId,
        filename: str,
        content: bytes,
        *,
        reply_to: int | None = None,
    ) -> None:
        self.calls.append(("send_document", filename))
        if self.document_fails:
            raise RuntimeError("send_document failed")
        self.documents.append(
            RecordedDocument(chat_id=chat_id, filename=filename, content=content, reply_to=reply_to)
        )
        logger.info("[chat %s] document %s (%d bytes)", chat_id, filename, len(content))

    def texts(self) -> list[str]:
        """Original text of every sent message, in order."""
        return [m.text for m in self.messages]

    def _find(self, handle: MessageHandle) -> RecordedMessage:
        for message in self.messages:
            if message.handle == handle:
                return message
        raise KeyError(f"unknown message {handle.message_id}")


def guest_payload(uid: Any = "4000000001", password: str = "PW1") -> dict[str, Any]:
    """Issuer-shaped payload carrying a complete guest id/password pair."""
    return {
        "guest_account_info": {
            "com.garena.msdk.guest_uid": uid,
            "com.garena.msdk.guest_password": password,
        }
    }


class InMemoryAccountIssuer:
    """Account issuer that replays scripted outcomes.

    Each outcome is either a payload dict or a ``UnitIssuerError`` to
    raise. When the script runs out, fresh complete payloads are issued.
    """

    def __init__(self, outcomes: Iterable[dict[str, Any] | UnitIssuerError] = ()) -> None:
        self._outcomes = list(outcomes)
        self.names: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.names)

    async def issue(self, name: str) -> dict[str, Any]:
        self.names.append(name)
        n = len(self.names)
        if n <= len(self._outcomes):
            outcome = self._outcomes[n - 1]
            if isinstance(outcome, UnitIssuerError):
                raise outcome
            return outcome
        return guest_payload(uid=str(4000000000 + n), password=f"PW{n}")


class FailingAccountIssuer(InMemoryAccountIssuer):
    """Issuer whose every call fails at the transport level."""

    async def issue(self, name: str) -> dict[str, Any]:
        self.names.append(name)
        raise IssuerTransportError("issuer unreachable")
