"""Typed message models for the lobby bus wire contract.

All three messages travel on one shared channel and carry a ``type``
discriminant. Wire names are camelCase (``roomCode``, ``playerId``).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from lobby.rooms.codes import ROOM_CODE_LENGTH

MAX_NAME_LENGTH = 64
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F

JOIN_REQUEST = "JOIN_REQUEST"
JOIN_ACCEPTED = "JOIN_ACCEPTED"
GAME_STARTED = "GAME_STARTED"


class _BusMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    room_code: str = Field(alias="roomCode", min_length=1, max_length=ROOM_CODE_LENGTH)

    @field_validator("room_code")
    @classmethod
    def _upper_room_code(cls, v: str) -> str:
        return v.upper()

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class JoinRequestMessage(_BusMessage):
    type: Literal["JOIN_REQUEST"] = JOIN_REQUEST
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    avatar: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if any(ord(c) < _SPACE_ORD or ord(c) == _DEL_ORD for c in v):
            raise ValueError("name must not contain control characters")
        return v


class JoinAcceptedMessage(_BusMessage):
    type: Literal["JOIN_ACCEPTED"] = JOIN_ACCEPTED
    player_id: str = Field(alias="playerId", min_length=1)


class GameStartedMessage(_BusMessage):
    type: Literal["GAME_STARTED"] = GAME_STARTED


BusMessage = Annotated[
    JoinRequestMessage | JoinAcceptedMessage | GameStartedMessage,
    Field(discriminator="type"),
]

_bus_message_adapter: TypeAdapter[BusMessage] = TypeAdapter(BusMessage)

_KNOWN_TYPES = frozenset({JOIN_REQUEST, JOIN_ACCEPTED, GAME_STARTED})


def parse_bus_message(data: object) -> JoinRequestMessage | JoinAcceptedMessage | GameStartedMessage | None:
    """Validate a decoded bus payload into a typed message.

    Returns None for anything that is not a mapping with a known ``type``;
    such messages belong to someone else and are ignored without error.
    Raises ValidationError for a known type with a malformed payload.
    """
    if not isinstance(data, Mapping):
        return None
    message_type = data.get("type")
    if not isinstance(message_type, str) or message_type not in _KNOWN_TYPES:
        return None
    return _bus_message_adapter.validate_python(dict(data))
