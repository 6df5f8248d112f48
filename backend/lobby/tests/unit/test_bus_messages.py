"""Tests for lobby bus message parsing and wire encoding."""

import pytest
from pydantic import ValidationError

from lobby.rooms.messages import (
    GameStartedMessage,
    JoinAcceptedMessage,
    JoinRequestMessage,
    parse_bus_message,
)


class TestParseBusMessage:
    def test_parse_join_request(self):
        msg = parse_bus_message({"type": "JOIN_REQUEST", "name": "Alex", "roomCode": "K7M2X", "avatar": "pink"})
        assert isinstance(msg, JoinRequestMessage)
        assert msg.name == "Alex"
        assert msg.room_code == "K7M2X"
        assert msg.avatar == "pink"

    def test_parse_join_accepted(self):
        msg = parse_bus_message({"type": "JOIN_ACCEPTED", "playerId": "p-1", "roomCode": "K7M2X"})
        assert isinstance(msg, JoinAcceptedMessage)
        assert msg.player_id == "p-1"

    def test_parse_game_started(self):
        msg = parse_bus_message({"type": "GAME_STARTED", "roomCode": "K7M2X"})
        assert isinstance(msg, GameStartedMessage)
        assert msg.room_code == "K7M2X"

    def test_room_code_is_uppercased(self):
        msg = parse_bus_message({"type": "GAME_STARTED", "roomCode": "k7m2x"})
        assert msg is not None
        assert msg.room_code == "K7M2X"

    def test_unknown_type_is_ignored(self):
        assert parse_bus_message({"type": "HOST_LEFT", "roomCode": "K7M2X"}) is None

    def test_missing_type_is_ignored(self):
        assert parse_bus_message({"roomCode": "K7M2X"}) is None

    @pytest.mark.parametrize("message_type", [[], {}, ["GAME_STARTED"], 7, None])
    def test_non_string_type_is_ignored(self, message_type):
        assert parse_bus_message({"type": message_type, "roomCode": "K7M2X"}) is None

    def test_non_mapping_is_ignored(self):
        assert parse_bus_message(["GAME_STARTED"]) is None
        assert parse_bus_message("GAME_STARTED") is None

    def test_extra_fields_are_ignored(self):
        msg = parse_bus_message({"type": "GAME_STARTED", "roomCode": "K7M2X", "round": 3})
        assert isinstance(msg, GameStartedMessage)

    def test_known_type_missing_field_raises(self):
        with pytest.raises(ValidationError, match="playerId"):
            parse_bus_message({"type": "JOIN_ACCEPTED", "roomCode": "K7M2X"})

    def test_room_code_too_long_raises(self):
        with pytest.raises(ValidationError, match="roomCode"):
            parse_bus_message({"type": "GAME_STARTED", "roomCode": "K7M2XX"})

    def test_name_rejects_control_characters(self):
        with pytest.raises(ValidationError, match="control characters"):
            parse_bus_message({"type": "JOIN_REQUEST", "name": "Al\u0000ex", "roomCode": "K7M2X", "avatar": "pink"})

    def test_name_rejects_empty(self):
        with pytest.raises(ValidationError, match="at least 1 character"):
            parse_bus_message({"type": "JOIN_REQUEST", "name": "", "roomCode": "K7M2X", "avatar": "pink"})


class TestToWire:
    def test_join_request_uses_camel_case(self):
        wire = JoinRequestMessage(name="Alex", room_code="K7M2X", avatar="pink").to_wire()
        assert wire == {"type": "JOIN_REQUEST", "name": "Alex", "roomCode": "K7M2X", "avatar": "pink"}

    def test_join_accepted_uses_camel_case(self):
        wire = JoinAcceptedMessage(player_id="p-1", room_code="K7M2X").to_wire()
        assert wire == {"type": "JOIN_ACCEPTED", "playerId": "p-1", "roomCode": "K7M2X"}

    def test_game_started(self):
        assert GameStartedMessage(room_code="K7M2X").to_wire() == {"type": "GAME_STARTED", "roomCode": "K7M2X"}
