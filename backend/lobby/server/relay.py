"""WebSocket connection registry for relayed broadcast channels."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from starlette.websockets import WebSocket


class ChannelConnectionManager:
    """Track relay sockets per channel name and fan frames out between them."""

    def __init__(self) -> None:
        self._connections: dict[str, dict[str, WebSocket]] = {}  # channel -> {conn_id -> ws}
        self._connection_channels: dict[str, str] = {}  # conn_id -> channel (reverse index)

    @property
    def connection_count(self) -> int:
        return len(self._connection_channels)

    def subscriber_count(self, channel: str) -> int:
        return len(self._connections.get(channel, {}))

    def add(self, channel: str, connection_id: str, websocket: WebSocket) -> None:
        self._connections.setdefault(channel, {})[connection_id] = websocket
        self._connection_channels[connection_id] = channel

    def remove(self, connection_id: str) -> str | None:
        """Remove a connection and return the channel it was on, or None."""
        channel = self._connection_channels.pop(connection_id, None)
        if channel is not None and channel in self._connections:
            self._connections[channel].pop(connection_id, None)
            if not self._connections[channel]:
                del self._connections[channel]
        return channel

    async def relay(self, channel: str, payload: str, *, exclude: str) -> int:
        """Send a text frame to every socket on the channel except the sender.

        Returns the number of sockets the frame was written to. Broken sockets
        are skipped; their own handler removes them when the receive fails.
        """
        delivered = 0
        for conn_id, ws in list(self._connections.get(channel, {}).items()):
            if conn_id == exclude:
                continue
            with contextlib.suppress(ConnectionError, RuntimeError):
                await ws.send_text(payload)
                delivered += 1
        return delivered
