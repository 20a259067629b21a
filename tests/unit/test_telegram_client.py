"""Unit tests for TelegramBotClient.

Tests Bot API calls with a mocked httpx transport.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from uid_bot.protocols import ChatTransport, MessageHandle
from uid_bot.providers.telegram_client import TelegramAPIError, TelegramBotClient

TOKEN = "123:secret-token"


def _ok(result=True) -> httpx.Response:
    return httpx.Response(200, json={"ok": True, "result": result})


def _make_client(*responses) -> tuple[TelegramBotClient, AsyncMock]:
    mock_http = AsyncMock()
    mock_http.request = AsyncMock(side_effect=list(responses))
    client = TelegramBotClient(
        bot_token=TOKEN,
        base_url="https://tg.test/",
        http_client=mock_http,
    )
    return client, mock_http


def test_requires_token():
    with pytest.raises(ValueError, match="bot_token"):
        TelegramBotClient(bot_token="", http_client=AsyncMock())


def test_satisfies_chat_transport_protocol():
    client, _ = _make_client()
    assert isinstance(client, ChatTransport)


# ── Test: messages ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_send_message_returns_handle():
    client, mock_http = _make_client(_ok({"message_id": 77}))

    handle = await client.send_message(42, "hi", reply_to=5)

    assert handle == MessageHandle(chat_id=42, message_id=77)
    call = mock_http.request.call_args
    assert call.args == ("POST", f"https://tg.test/bot{TOKEN}/sendMessage")
    assert call.kwargs["json"] == {
        "chat_id": 42,
        "text": "hi",
        "reply_to_message_id": 5,
        "allow_sending_without_reply": True,
    }


@pytest.mark.asyncio
async def test_send_message_without_reply():
    client, mock_http = _make_client(_ok({"message_id": 1}))

    await client.send_message(42, "hi")

    assert "reply_to_message_id" not in mock_http.request.call_args.kwargs["json"]


@pytest.mark.asyncio
async def test_edit_and_delete_target_the_handle():
    client, mock_http = _make_client(_ok(), _ok())
    handle = MessageHandle(chat_id=42, message_id=77)

    await client.edit_message(handle, "new text")
    await client.delete_message(handle)

    edit_call, delete_call = mock_http.request.call_args_list
    assert edit_call.args[1].endswith("/editMessageText")
    assert edit_call.kwargs["json"] == {"chat_id": 42, "message_id": 77, "text": "new text"}
    assert delete_call.args[1].endswith("/deleteMessage")
    assert delete_call.kwargs["json"] == {"chat_id": 42, "message_id": 77}


# ── Test: documents ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_send_document_is_multipart():
    client, mock_http = _make_client(_ok({"message_id": 3}))

    await client.send_document(42, "accounts_1.zip", b"PK\x03\x04", reply_to=9)

    call = mock_http.request.call_args
    assert call.args[1].endswith("/sendDocument")
    assert call.kwargs["data"] == {
        "chat_id": "42",
        "reply_to_message_id": "9",
        "allow_sending_without_reply": "true",
    }
    assert call.kwargs["files"] == {
        "document": ("accounts_1.zip", b"PK\x03\x04", "application/zip"),
    }


@pytest.mark.asyncio
async def test_set_webhook():
    client, mock_http = _make_client(_ok())

    await client.set_webhook("https://bot.example/webhook/x")

    call = mock_http.request.call_args
    assert call.args[1].endswith("/setWebhook")
    assert call.kwargs["json"] == {"url": "https://bot.example/webhook/x"}


# ── Test: errors ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_api_error_carries_description():
    client, _ = _make_client(
        httpx.Response(
            400,
            json={"ok": False, "error_code": 400, "description": "Bad Request: message not found"},
        )
    )

    with pytest.raises(TelegramAPIError) as exc_info:
        await client.delete_message(MessageHandle(chat_id=1, message_id=2))

    assert exc_info.value.method == "deleteMessage"
    assert exc_info.value.status_code == 400
    assert exc_info.value.error_code == 400
    assert "message not found" in exc_info.value.message


@pytest.mark.asyncio
async def test_non_json_response_is_api_error():
    client, _ = _make_client(httpx.Response(502, text="Bad Gateway"))

    with pytest.raises(TelegramAPIError) as exc_info:
        await client.send_message(1, "x")

    assert exc_info.value.message == "HTTP 502"


@pytest.mark.asyncio
async def test_transport_error_does_not_leak_token():
    client, _ = _make_client(httpx.ConnectError(f"cannot reach https://tg.test/bot{TOKEN}/sendMessage"))

    with pytest.raises(TelegramAPIError) as exc_info:
        await client.send_message(1, "x")

    assert TOKEN not in str(exc_info.value)
    assert exc_info.value.message == "ConnectError"


@pytest.mark.asyncio
async def test_get_me_returns_bot_user():
    client, mock_http = _make_client(_ok({"id": 1, "is_bot": True, "username": "uid_test_bot"}))

    me = await client.get_me()

    assert me["username"] == "uid_test_bot"
    assert mock_http.request.call_args.args[1].endswith("/getMe")
