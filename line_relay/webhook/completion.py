"""Chat-completion requests against an OpenAI-compatible API.

The requester never sends chat messages itself. It returns generated text or
raises CompletionError; callers turn the error into reply text with
error_reply_text().
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from line_relay.config import DEFAULT_OPENAI_BASE_URL, DEFAULT_OPENAI_MODEL
from line_relay.models import ErrorKind

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "你是一個友善、有幫助的 LINE 機器人助手。請用簡潔、自然的繁體中文回覆。"
FALLBACK_REPLY = "抱歉，我暫時無法產生回覆。"
CREDENTIAL_INVALID_REPLY = "OpenAI API 金鑰無效或未設定，請檢查環境變數。"
GENERIC_ERROR_PREFIX = "發生錯誤："
GENERIC_ERROR_DETAIL = "請稍後再試"

_DEFAULT_MAX_TOKENS = 1024
_TRANSIENT_STATUS_CODES = frozenset({408, 409, 429})


def classify_error(status_code: int | None, message: str) -> ErrorKind:
    """Map a provider failure to an ErrorKind.

    A 401 or a message mentioning "API key" is a credential problem. Transport
    failures (no status), timeouts, conflicts, rate limits and 5xx responses
    are transient. Everything else is unknown.
    """
    if status_code == 401 or "API key" in (message or ""):
        return ErrorKind.CREDENTIAL_INVALID
    if status_code is None:
        return ErrorKind.TRANSIENT
    if status_code in _TRANSIENT_STATUS_CODES or status_code >= 500:
        return ErrorKind.TRANSIENT
    return ErrorKind.UNKNOWN


class CompletionError(Exception):
    """Raised when the completion service call fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        kind: ErrorKind | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.kind = kind if kind is not None else classify_error(status_code, message)
        super().__init__(message)


def error_reply_text(error: CompletionError) -> str:
    """User-facing reply text for a failed completion."""
    if error.kind == ErrorKind.CREDENTIAL_INVALID:
        return CREDENTIAL_INVALID_REPLY
    return f"{GENERIC_ERROR_PREFIX}{error.message or GENERIC_ERROR_DETAIL}"


class CompletionClient:
    """Requests single-turn completions with a fixed assistant persona."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_OPENAI_MODEL,
        max_tokens: int = _DEFAULT_MAX_TOKENS,
        base_url: str = DEFAULT_OPENAI_BASE_URL,
        timeout: float = 60.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._base_url = base_url
        self._timeout = timeout

    def build_request(self, user_text: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_text},
            ],
            "max_tokens": self._max_tokens,
        }

    async def complete(self, user_text: str) -> str:
        """Return the generated reply for ``user_text``.

        Empty or missing content yields FALLBACK_REPLY, never an empty string.
        """
        url = f"{self._base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.post(
                    url,
                    json=self.build_request(user_text),
                    headers=headers,
                    timeout=self._timeout,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise CompletionError(str(exc) or type(exc).__name__) from exc

        if resp.status_code >= 400:
            raise CompletionError(
                _error_message(resp), status_code=resp.status_code,
            )

        try:
            resp_json = resp.json()
        except ValueError as exc:
            raise CompletionError(
                "Invalid response from completion service",
                status_code=resp.status_code,
                kind=ErrorKind.UNKNOWN,
            ) from exc

        return _first_choice_text(resp_json) or FALLBACK_REPLY


def _first_choice_text(resp_json: object) -> str:
    if not isinstance(resp_json, dict):
        return ""
    choices = resp_json.get("choices") or []
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    return content.strip() if isinstance(content, str) else ""


def _error_message(resp: httpx.Response) -> str:
    """Extract the provider's error message from an error response."""
    try:
        body = resp.json()
        message = body.get("error", {}).get("message")
        if isinstance(message, str) and message:
            return message
    except (ValueError, AttributeError):
        pass
    return resp.text or f"HTTP {resp.status_code}"
