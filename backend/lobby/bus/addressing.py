"""Room-addressed messaging on top of a broadcast bus.

The bus has no notion of a destination, so every message is published to
everyone and carries its room code; receivers discard what is not theirs.
Keeping that filter here lets a transport with real addressing replace the
bus without touching the lobby state machine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from lobby.rooms.messages import parse_bus_message

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from lobby.bus.protocol import BusSubscription, MessageBus
    from lobby.rooms.messages import GameStartedMessage, JoinAcceptedMessage, JoinRequestMessage

    RoomMessage = JoinRequestMessage | JoinAcceptedMessage | GameStartedMessage
    RoomHandler = Callable[[RoomMessage], Awaitable[None]]

logger = structlog.get_logger()


class RoomMessenger:
    def __init__(self, bus: MessageBus) -> None:
        self._bus = bus

    async def send_to_room(
        self,
        room_code: str,
        message: RoomMessage,
        *,
        sender: BusSubscription | None = None,
    ) -> None:
        """Publish a message for the room. Every subscriber receives it."""
        if message.room_code != room_code:
            raise ValueError(f"message addressed to {message.room_code!r}, not {room_code!r}")
        await self._bus.publish(message.to_wire(), sender=sender)

    def on_room_message(self, room_code: str, handler: RoomHandler) -> BusSubscription:
        """Attach a handler that only sees well-formed messages for ``room_code``."""

        async def _filter(raw: dict[str, Any]) -> None:
            try:
                message = parse_bus_message(raw)
            except ValidationError as e:
                logger.warning("malformed bus message dropped", room_code=room_code, error=str(e))
                return
            if message is None or message.room_code != room_code:
                return
            await handler(message)

        return self._bus.subscribe(_filter)
