"""WebSocket relay giving browser tabs broadcast-channel semantics."""

from __future__ import annotations

import json
import uuid
from typing import TYPE_CHECKING

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

if TYPE_CHECKING:
    from lobby.server.relay import ChannelConnectionManager
    from lobby.server.settings import LobbySettings

logger = structlog.get_logger()

FORBIDDEN_ORIGIN_CLOSE_CODE = 4003


async def channel_websocket(websocket: WebSocket) -> None:
    """Relay every text frame to the other sockets on the same channel.

    Frames are never echoed to the sender and nothing is stored, so a socket
    that connects late never sees earlier frames. Lobby messages pass through
    uninterpreted.
    """
    settings: LobbySettings = websocket.app.state.settings
    if not _check_origin(websocket, settings):
        await websocket.close(code=FORBIDDEN_ORIGIN_CLOSE_CODE, reason="forbidden_origin")
        return

    await websocket.accept()
    channel: str = websocket.path_params["channel"]
    connections: ChannelConnectionManager = websocket.app.state.channel_connections
    connection_id = str(uuid.uuid4())
    connections.add(channel, connection_id, websocket)

    log = logger.bind(channel=channel, connection_id=connection_id)
    log.info("relay socket attached", subscribers=connections.subscriber_count(channel))

    try:
        while True:
            raw = await websocket.receive_text()
            error = _frame_error(raw, settings.max_message_bytes)
            if error is not None:
                await websocket.send_json({"type": "error", "message": error})
                continue
            delivered = await connections.relay(channel, raw, exclude=connection_id)
            log.debug("frame relayed", delivered=delivered)
    except WebSocketDisconnect:
        pass
    except Exception:  # pragma: no cover - keep the relay alive for other sockets
        log.exception("unexpected error in relay websocket")
    finally:
        connections.remove(connection_id)
        log.info("relay socket detached")


def _check_origin(websocket: WebSocket, settings: LobbySettings) -> bool:
    if not settings.ws_allowed_origin:
        return True
    return websocket.headers.get("origin", "") == settings.ws_allowed_origin


def _frame_error(raw: str, max_bytes: int) -> str | None:
    byte_len = len(raw.encode("utf-8"))
    if byte_len > max_bytes:
        return f"Message too large ({byte_len} bytes, max {max_bytes})"
    try:
        data = json.loads(raw)
    except ValueError as e:
        return f"Invalid JSON: {e}"
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        return "Message must be an object with a string 'type'"
    return None
