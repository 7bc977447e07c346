"""Tests for webhook payload models."""

from __future__ import annotations

import json

import pytest

from line_relay.models import LineEvent, extract_events
from tests.conftest import make_delivery, make_sticker_event, make_text_event


class TestLineEvent:
    def test_parses_text_message_event(self) -> None:
        event = LineEvent.from_payload(make_text_event(text="hi", reply_token="tok"))
        assert event is not None
        assert event.is_text_message
        assert event.reply_token == "tok"
        assert event.message is not None
        assert event.message.text == "hi"

    def test_sticker_is_not_text_message(self) -> None:
        event = LineEvent.from_payload(make_sticker_event())
        assert event is not None
        assert not event.is_text_message

    def test_non_message_event(self) -> None:
        event = LineEvent.from_payload({"type": "unfollow", "source": {"type": "user"}})
        assert event is not None
        assert event.reply_token is None
        assert not event.is_text_message

    @pytest.mark.parametrize("raw", [None, "text", 42, [], {"message": {"type": "text"}}])
    def test_unexpected_shapes_return_none(self, raw: object) -> None:
        assert LineEvent.from_payload(raw) is None


class TestExtractEvents:
    def test_returns_events_in_order(self) -> None:
        events = [make_text_event(text="a"), make_sticker_event(), make_text_event(text="b")]
        body = json.dumps(make_delivery(*events)).encode()
        assert extract_events(body) == events

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"not json",
            b"[]",
            b"null",
            b"{}",
            b'{"events": null}',
            b'{"events": "oops"}',
            b'{"events": {"type": "message"}}',
            b"\xff\xfe",
        ],
    )
    def test_malformed_deliveries_yield_no_events(self, body: bytes) -> None:
        assert extract_events(body) == []

    def test_non_object_entries_are_dropped(self) -> None:
        body = json.dumps({"events": [1, "x", None, make_sticker_event()]}).encode()
        assert extract_events(body) == [make_sticker_event()]

    @pytest.mark.parametrize("destination", [123, None, ["U1"], {"id": "U1"}])
    def test_malformed_destination_keeps_events(self, destination: object) -> None:
        events = [make_text_event(text="hi"), make_sticker_event()]
        body = json.dumps({"destination": destination, "events": events}).encode()
        assert extract_events(body) == events
