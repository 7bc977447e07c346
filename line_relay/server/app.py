"""FastAPI webhook application."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.background import BackgroundTask

from line_relay.config import RelayConfig
from line_relay.models import CredentialPresence, HealthStatus, extract_events
from line_relay.server.signature_middleware import LineSignatureMiddleware
from line_relay.webhook.completion import CompletionClient
from line_relay.webhook.dispatcher import EventDispatcher
from line_relay.webhook.line import LineReplyClient

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/webhook"


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    return create_app(RelayConfig.from_env())


def build_dispatcher(config: RelayConfig) -> EventDispatcher:
    """Construct the shared clients once; a missing credential leaves its client None."""
    reply_client: LineReplyClient | None = None
    if config.line_channel_access_token:
        reply_client = LineReplyClient(config.line_channel_access_token)
    else:
        logger.warning("LINE_CHANNEL_ACCESS_TOKEN not set; replies are disabled")

    completion_client: CompletionClient | None = None
    if config.openai_api_key:
        completion_client = CompletionClient(
            api_key=config.openai_api_key,
            model=config.openai_model,
            base_url=config.openai_base_url,
        )
    else:
        logger.warning("OPENAI_API_KEY not set; users will receive a configuration notice")

    if not config.line_channel_secret:
        logger.warning("LINE_CHANNEL_SECRET not set; webhook deliveries will be rejected")

    return EventDispatcher(reply_client, completion_client)


def create_app(
    config: RelayConfig,
    dispatcher: EventDispatcher | None = None,
) -> FastAPI:
    """Create the relay app with signature verification on the webhook path."""
    if dispatcher is None:
        dispatcher = build_dispatcher(config)

    app = FastAPI(docs_url=None, redoc_url=None)

    @app.get("/")
    async def status() -> dict[str, Any]:
        return HealthStatus(
            env=CredentialPresence(
                hasOpenAI=config.has_openai,
                hasLineToken=config.has_line_token,
                hasLineSecret=config.has_line_secret,
            ),
        ).model_dump()

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    # Some platform infrastructure probes the webhook URL with GET
    @app.get(WEBHOOK_PATH)
    async def webhook_probe() -> Response:
        return PlainTextResponse("OK")

    @app.post(WEBHOOK_PATH)
    async def line_webhook(request: Request) -> Response:
        try:
            body = await request.body()
            events = extract_events(body)
        except Exception:
            logger.exception("Webhook intake failed before acknowledgment")
            return PlainTextResponse("Internal Server Error", status_code=500)

        logger.info("Webhook received events: %d", len(events))
        if not events:
            return PlainTextResponse("OK")

        # Runs after the response has been sent
        return PlainTextResponse(
            "OK",
            background=BackgroundTask(_dispatch_delivery, dispatcher, events),
        )

    # Signature verification wraps the app; the route only sees verified bodies
    app.add_middleware(
        LineSignatureMiddleware,
        channel_secret=config.line_channel_secret,
        webhook_path=WEBHOOK_PATH,
    )

    return app


async def _dispatch_delivery(
    dispatcher: EventDispatcher, events: list[dict[str, Any]],
) -> None:
    try:
        outcomes = await dispatcher.dispatch_all(events)
    except Exception:
        logger.exception("Delivery dispatch failed after acknowledgment")
        return
    logger.info(
        "Delivery processed: %s",
        ", ".join(outcome.value for outcome in outcomes),
    )
