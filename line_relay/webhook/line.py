"""LINE Messaging API: webhook signature verification and reply delivery.

Replies are sent exactly once per call with no retry; a failed send is
raised to the caller.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging

import httpx

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-line-signature"
_LINE_API_BASE = "https://api.line.me"


class ReplyError(Exception):
    """Raised when the LINE reply endpoint rejects a reply."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"LINE reply failed with status {status_code}: {detail}")


def compute_signature(channel_secret: str, body: bytes) -> str:
    """Base64-encoded HMAC-SHA256 of the raw body, keyed by the channel secret."""
    digest = hmac.new(channel_secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_signature(channel_secret: str, body: bytes, signature: str) -> bool:
    """Verify the x-line-signature header value against the raw body.

    Uses constant-time comparison via hmac.compare_digest.
    """
    if not signature:
        return False
    expected = compute_signature(channel_secret, body)
    return hmac.compare_digest(signature.encode(), expected.encode())


class LineReplyClient:
    """Sends text replies through the LINE reply endpoint."""

    def __init__(
        self,
        channel_access_token: str,
        api_base: str = _LINE_API_BASE,
        timeout: float = 10.0,
    ) -> None:
        self._channel_access_token = channel_access_token
        self._api_base = api_base
        self._timeout = timeout

    async def send_reply(self, reply_token: str, text: str) -> None:
        """Send one text message as the reply to ``reply_token``.

        TLS certificate verification enabled. Raises ReplyError on a 4xx/5xx
        response; transport errors propagate unchanged.
        """
        url = f"{self._api_base.rstrip('/')}/v2/bot/message/reply"
        payload = {
            "replyToken": reply_token,
            "messages": [{"type": "text", "text": text}],
        }
        headers = {"Authorization": f"Bearer {self._channel_access_token}"}

        async with httpx.AsyncClient(verify=True) as client:
            resp = await client.post(
                url, json=payload, headers=headers, timeout=self._timeout,
            )

        if resp.status_code >= 400:
            raise ReplyError(resp.status_code, resp.text)


async def reply_text(
    client: LineReplyClient | None, reply_token: str, text: str,
) -> bool:
    """Reply through ``client``; a missing client is a silent no-op.

    Returns True when a reply was sent.
    """
    if client is None:
        return False
    await client.send_reply(reply_token, text)
    return True
