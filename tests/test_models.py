"""Tests for Pydantic model parsing with TakBaseModel."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from takmap.models.entity import EntityCategory, EntityRecord
from takmap.models.events import ChatEvent, DeleteEvent, UnitEvent, parse_push_event
from takmap.models.message import ChatMessage, Conversation, OutgoingMessage
from takmap.models.server_config import ServerConfig

# ------------------------------------------------------------------
# EntityRecord
# ------------------------------------------------------------------


class TestEntityRecord:
    def test_full_payload(self) -> None:
        record = EntityRecord.model_validate(
            {
                "uid": "ANDROID-1",
                "category": "contact",
                "callsign": "Alpha",
                "team": "Cyan",
                "role": "Team Lead",
                "type": "a-f-G-U-C",
                "sidc": "SFGPUC----",
                "lat": 59.9,
                "lon": 30.3,
                "hae": 12.5,
                "speed": 1.5,
                "course": 45,
                "last_seen": "2026-01-01T10:00:00Z",
                "stale_time": "2026-01-01T10:05:00Z",
                "missions": None,
                "unknown_field": "ignored",
            }
        )

        assert record.uid == "ANDROID-1"
        assert record.is_contact
        assert not record.is_airborne
        assert record.course == 45.0
        assert record.last_seen == datetime(2026, 1, 1, 10, 0, tzinfo=UTC)
        assert record.missions == []
        assert not hasattr(record, "unknown_field")
        assert record.raw["unknown_field"] == "ignored"

    def test_nulls_fall_back_to_defaults(self) -> None:
        record = EntityRecord.model_validate({"uid": "x", "callsign": None, "lat": None, "text": None})

        assert record.callsign == ""
        assert record.lat == 0.0
        assert record.text == ""
        assert "callsign" not in record.model_fields_set

    @pytest.mark.parametrize("payload", [{}, {"uid": ""}, {"uid": "   "}])
    def test_uid_is_required(self, payload: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            EntityRecord.model_validate(payload)

    def test_negative_speed_is_clamped(self) -> None:
        assert EntityRecord(uid="x", speed=-3.0).speed == 0.0

    def test_category_enum_compares_with_plain_strings(self) -> None:
        record = EntityRecord(uid="x", category="point")

        assert record.category == EntityCategory.POINT

    def test_payload_excludes_raw(self) -> None:
        record = EntityRecord.model_validate({"uid": "x", "callsign": "P", "local": True})

        payload = record.to_payload()

        assert "raw" not in payload
        assert payload["callsign"] == "P"
        assert payload["local"] is True


# ------------------------------------------------------------------
# Push events
# ------------------------------------------------------------------


class TestPushEvents:
    def test_unit_event(self) -> None:
        event = parse_push_event({"type": "unit", "unit": {"uid": "u1", "callsign": "A"}})

        assert isinstance(event, UnitEvent)
        assert event.unit.callsign == "A"

    def test_delete_event(self) -> None:
        event = parse_push_event({"type": "delete", "uid": "u1"})

        assert isinstance(event, DeleteEvent)
        assert event.uid == "u1"

    def test_chat_event(self) -> None:
        assert isinstance(parse_push_event({"type": "chat"}), ChatEvent)

    def test_bare_record_is_a_unit_event(self) -> None:
        event = parse_push_event({"uid": "u1", "category": "unit", "lat": 1.0})

        assert isinstance(event, UnitEvent)
        assert event.unit.lat == 1.0

    def test_bare_record_with_delete_category(self) -> None:
        event = parse_push_event({"uid": "u1", "category": "delete"})

        assert isinstance(event, DeleteEvent)
        assert event.uid == "u1"

    @pytest.mark.parametrize(
        "payload",
        [{"type": "bogus"}, {"type": "unit"}, {"type": "delete"}, {"foo": "bar"}],
    )
    def test_unknown_or_malformed_events_raise(self, payload: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            parse_push_event(payload)


# ------------------------------------------------------------------
# Chat
# ------------------------------------------------------------------


class TestChat:
    def test_conversation_aliases(self) -> None:
        conversation = Conversation.model_validate(
            {
                "from": "All Chat Rooms",
                "uid": "All Chat Rooms",
                "messages": [
                    {
                        "message_id": "m1",
                        "from": "Alpha",
                        "from_uid": "ANDROID-1",
                        "chatroom": "All Chat Rooms",
                        "text": "hello",
                        "time": "2026-01-01T10:00:00Z",
                    }
                ],
            }
        )

        assert conversation.title == "All Chat Rooms"
        message = conversation.messages[0]
        assert isinstance(message, ChatMessage)
        assert message.sender == "Alpha"
        assert message.text == "hello"

    def test_null_message_list(self) -> None:
        assert Conversation.model_validate({"uid": "x", "messages": None}).messages == []

    def test_outgoing_payload_uses_wire_names(self) -> None:
        message = OutgoingMessage(sender="Me", from_uid="me-1", chatroom="All Chat Rooms", text="hi")

        assert message.to_payload() == {
            "from": "Me",
            "from_uid": "me-1",
            "chatroom": "All Chat Rooms",
            "to_uid": "",
            "text": "hi",
        }


# ------------------------------------------------------------------
# Server config
# ------------------------------------------------------------------


class TestServerConfig:
    def test_layers_and_identity(self) -> None:
        config = ServerConfig.model_validate(
            {
                "version": "0.9",
                "uid": "me-1",
                "callsign": "Operator",
                "lat": 59.9,
                "lon": 30.3,
                "zoom": 13,
                "layers": [
                    {"name": "OSM", "url": "https://{s}.tile.osm.org/{z}/{x}/{y}.png", "maxZoom": 19, "parts": ["a", "b"]},
                ],
            }
        )

        assert config.is_authenticated
        assert config.zoom == 13
        layer = config.layers[0]
        assert layer.max_zoom == 19
        assert layer.min_zoom == 1
        assert layer.parts == ["a", "b"]

    def test_anonymous_defaults(self) -> None:
        config = ServerConfig.model_validate({})

        assert not config.is_authenticated
        assert config.zoom == 11
        assert config.layers == []
