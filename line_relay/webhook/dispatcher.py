"""Event dispatcher: one LINE event in, at most one reply out.

Pipeline per event:
1. Filter to text messages
2. Degraded no-op when no reply client is configured
3. Configuration-error reply when no completion client is configured
4. Completion request, reply with the result or with classified error text

Every failure is contained at dispatch(); sibling events in the same delivery
run as independent tasks and never observe each other's errors.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from line_relay.models import ErrorKind, LineEvent
from line_relay.webhook.completion import CompletionError, error_reply_text
from line_relay.webhook.line import reply_text
from line_relay.webhook.models import DispatchOutcome

if TYPE_CHECKING:
    from line_relay.webhook.completion import CompletionClient
    from line_relay.webhook.line import LineReplyClient

logger = logging.getLogger(__name__)

MISSING_API_KEY_REPLY = "OpenAI API key 未設定，請在環境變數設定 OPENAI_API_KEY。"


class EventDispatcher:
    """Processes webhook events against injected reply and completion clients."""

    def __init__(
        self,
        reply_client: LineReplyClient | None,
        completion_client: CompletionClient | None,
    ) -> None:
        self._reply_client = reply_client
        self._completion_client = completion_client

    async def dispatch(self, raw_event: Any) -> DispatchOutcome:
        """Process one event. Never raises."""
        try:
            return await self._handle(raw_event)
        except Exception:
            logger.exception("Event dispatch failed")
            return DispatchOutcome.FAILED

    async def dispatch_all(self, events: Iterable[Any]) -> list[DispatchOutcome]:
        """Run dispatch() for every event as its own task.

        Completion order between events is not defined.
        """
        tasks = [asyncio.create_task(self.dispatch(event)) for event in events]
        if not tasks:
            return []
        results = await asyncio.gather(*tasks, return_exceptions=True)
        outcomes: list[DispatchOutcome] = []
        for result in results:
            if isinstance(result, BaseException):
                logger.error("Event task ended with an exception: %r", result)
                outcomes.append(DispatchOutcome.FAILED)
            else:
                outcomes.append(result)
        return outcomes

    async def _handle(self, raw_event: Any) -> DispatchOutcome:
        event_type, message_type = _discriminators(raw_event)
        logger.info(
            "Event received: type=%s message_type=%s", event_type, message_type,
        )

        event = LineEvent.from_payload(raw_event)
        if event is None:
            logger.info("Ignoring event with unexpected shape")
            return DispatchOutcome.FILTERED

        if not event.is_text_message or not event.reply_token:
            return DispatchOutcome.FILTERED

        if self._reply_client is None:
            logger.warning("LINE client not configured, skipping reply")
            return DispatchOutcome.DEGRADED

        reply_token = event.reply_token
        if self._completion_client is None:
            await reply_text(self._reply_client, reply_token, MISSING_API_KEY_REPLY)
            return DispatchOutcome.REPLIED_WITH_ERROR

        message = event.message
        user_text = message.text if message is not None and message.text else ""
        try:
            content = await self._completion_client.complete(user_text)
        except CompletionError as exc:
            logger.error(
                "Completion failed: kind=%s status=%s message=%s",
                exc.kind.value, exc.status_code, exc.message,
            )
            await reply_text(self._reply_client, reply_token, error_reply_text(exc))
            return DispatchOutcome.REPLIED_WITH_ERROR
        except Exception as exc:
            logger.exception("Completion request raised an unexpected error")
            error = CompletionError(str(exc) or type(exc).__name__, kind=ErrorKind.UNKNOWN)
            await reply_text(self._reply_client, reply_token, error_reply_text(error))
            return DispatchOutcome.REPLIED_WITH_ERROR

        await reply_text(self._reply_client, reply_token, content)
        logger.info("Replied to event")
        return DispatchOutcome.REPLIED


def _discriminators(raw_event: Any) -> tuple[Any, Any]:
    """Raw ``type`` and ``message.type`` of an event, None where absent."""
    if not isinstance(raw_event, dict):
        return None, None
    message = raw_event.get("message")
    message_type = message.get("type") if isinstance(message, dict) else None
    return raw_event.get("type"), message_type
