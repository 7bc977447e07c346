"""ASGI middleware that verifies LINE webhook signatures."""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from line_relay.webhook.line import SIGNATURE_HEADER, verify_signature

logger = logging.getLogger(__name__)


class LineSignatureMiddleware:
    """Guards POST on the webhook path with x-line-signature verification.

    The raw body is read once for verification and replayed to the wrapped
    app. Other paths and methods pass through untouched.
    """

    def __init__(
        self,
        app: ASGIApp,
        channel_secret: str | None,
        webhook_path: str = "/webhook",
    ) -> None:
        self.app = app
        self._channel_secret = channel_secret
        self._webhook_path = webhook_path

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] != "http"
            or scope["method"] != "POST"
            or scope["path"] != self._webhook_path
        ):
            await self.app(scope, receive, send)
            return

        if not self._channel_secret:
            logger.error("Webhook delivery rejected: LINE_CHANNEL_SECRET not set")
            response = PlainTextResponse("LINE_CHANNEL_SECRET not set", status_code=500)
            await response(scope, receive, send)
            return

        request = Request(scope, receive)
        body = await request.body()
        signature = request.headers.get(SIGNATURE_HEADER, "")

        if not verify_signature(self._channel_secret, body, signature):
            logger.warning(
                "Webhook signature verification failed: has_signature=%s body_length=%d",
                bool(signature), len(body),
            )
            response = JSONResponse({"error": "Invalid webhook signature"}, status_code=401)
            await response(scope, receive, send)
            return

        await self.app(scope, _replay_body(body, receive), send)


def _replay_body(body: bytes, receive: Receive) -> Receive:
    consumed = False

    async def replay() -> Message:
        nonlocal consumed
        if not consumed:
            consumed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay
