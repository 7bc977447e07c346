"""Shared Pydantic data models for line-relay."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

# --- Enums ---


class ErrorKind(str, Enum):
    CREDENTIAL_INVALID = "credential_invalid"
    TRANSIENT = "transient"
    UNKNOWN = "unknown"


# --- LINE webhook models ---


class LineMessage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str
    id: str | None = None
    text: str | None = None


class LineEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    type: str
    message: LineMessage | None = None
    reply_token: str | None = Field(default=None, alias="replyToken")
    source: dict[str, Any] | None = None
    timestamp: int | None = None

    @classmethod
    def from_payload(cls, raw: object) -> LineEvent | None:
        """Validate one raw webhook event; None when it has an unexpected shape."""
        try:
            return cls.model_validate(raw)
        except ValidationError:
            return None

    @property
    def is_text_message(self) -> bool:
        return (
            self.type == "message"
            and self.message is not None
            and self.message.type == "text"
        )


def extract_events(body: bytes) -> list[dict[str, Any]]:
    """Return the raw events of a delivery body.

    Invalid JSON, a non-object root, or a missing or non-list ``events``
    field all yield an empty list. Entries that are not objects are dropped.
    Other top-level fields are not inspected.
    """
    try:
        payload = json.loads(body) if body else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Webhook body is not valid JSON; treating as empty delivery")
        return []
    if not isinstance(payload, dict):
        return []
    events = payload.get("events")
    if not isinstance(events, list):
        return []
    return [event for event in events if isinstance(event, dict)]


# --- Health ---


class CredentialPresence(BaseModel):
    model_config = ConfigDict(frozen=True)

    hasOpenAI: bool  # noqa: N815
    hasLineToken: bool  # noqa: N815
    hasLineSecret: bool  # noqa: N815


class HealthStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    message: str = "LINE + OpenAI Bot is running."
    env: CredentialPresence
