"""Shared test fixtures for line-relay."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from line_relay.webhook.completion import CompletionClient
from line_relay.webhook.line import LineReplyClient, compute_signature

CHANNEL_SECRET = "test-channel-secret"


# --- Factory functions for test data ---


def make_text_event(
    text: str = "hello",
    reply_token: str = "reply-token-1",
    **kwargs: Any,
) -> dict[str, Any]:
    """Factory for a LINE text message event with sensible defaults."""
    event: dict[str, Any] = {
        "type": "message",
        "mode": "active",
        "timestamp": 1700000000000,
        "source": {"type": "user", "userId": "U123"},
        "webhookEventId": "01H000000000000000000000",
        "replyToken": reply_token,
        "message": {"id": "100001", "type": "text", "text": text},
    }
    event.update(kwargs)
    return event


def make_sticker_event(reply_token: str = "reply-token-sticker") -> dict[str, Any]:
    return {
        "type": "message",
        "replyToken": reply_token,
        "source": {"type": "user", "userId": "U123"},
        "message": {"id": "100002", "type": "sticker", "packageId": "1", "stickerId": "1"},
    }


def make_delivery(*events: dict[str, Any]) -> dict[str, Any]:
    return {"destination": "Uxxxxxxxx", "events": list(events)}


def sign_body(body: bytes, secret: str = CHANNEL_SECRET) -> dict[str, str]:
    """Headers carrying a valid x-line-signature for ``body``."""
    return {
        "content-type": "application/json",
        "x-line-signature": compute_signature(secret, body),
    }


def encode(payload: object) -> bytes:
    return json.dumps(payload).encode()


@pytest.fixture
def reply_client() -> MagicMock:
    client = MagicMock(spec=LineReplyClient)
    client.send_reply = AsyncMock(return_value=None)
    return client


@pytest.fixture
def completion_client() -> MagicMock:
    client = MagicMock(spec=CompletionClient)
    client.complete = AsyncMock(return_value="generated reply")
    return client
