"""Process configuration loaded from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

DEFAULT_PORT = 3000
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"


class RelayConfig(BaseModel):
    """Read-only relay configuration.

    Every credential is optional: a missing one degrades the feature that
    needs it instead of preventing startup.
    """

    model_config = ConfigDict(frozen=True)

    port: int = DEFAULT_PORT
    line_channel_access_token: str | None = None
    line_channel_secret: str | None = None
    openai_api_key: str | None = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RelayConfig:
        """Create RelayConfig from environment variables.

        Empty values are treated the same as unset ones.
        """
        env = os.environ if environ is None else environ

        def _get(name: str) -> str | None:
            value = env.get(name, "").strip()
            return value or None

        raw_port = _get("PORT")
        try:
            port = int(raw_port) if raw_port else DEFAULT_PORT
        except ValueError:
            raise ValueError(f"PORT must be an integer, got {raw_port!r}") from None

        return cls(
            port=port,
            line_channel_access_token=_get("LINE_CHANNEL_ACCESS_TOKEN"),
            line_channel_secret=_get("LINE_CHANNEL_SECRET"),
            openai_api_key=_get("OPENAI_API_KEY"),
            openai_model=_get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
            openai_base_url=_get("OPENAI_BASE_URL") or DEFAULT_OPENAI_BASE_URL,
            log_level=(_get("LOG_LEVEL") or "INFO").upper(),
        )

    @property
    def has_openai(self) -> bool:
        return self.openai_api_key is not None

    @property
    def has_line_token(self) -> bool:
        return self.line_channel_access_token is not None

    @property
    def has_line_secret(self) -> bool:
        return self.line_channel_secret is not None
