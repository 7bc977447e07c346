"""Data models for the event dispatch pipeline."""

from __future__ import annotations

from enum import Enum


class DispatchOutcome(str, Enum):
    """Terminal state of one event's processing."""

    FILTERED = "filtered"  # not a text message
    DEGRADED = "degraded"  # no LINE access token configured
    REPLIED = "replied"
    REPLIED_WITH_ERROR = "replied_with_error"
    FAILED = "failed"  # exception caught at the dispatcher boundary
