from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from lobby.server.relay import ChannelConnectionManager
from lobby.server.settings import LobbySettings
from lobby.server.websocket import channel_websocket
from shared.logging import setup_logging

if TYPE_CHECKING:
    from starlette.requests import Request

logger = structlog.get_logger()


async def health(request: Request) -> JSONResponse:
    connections: ChannelConnectionManager = request.app.state.channel_connections
    return JSONResponse({"status": "ok", "connections": connections.connection_count})


def create_app(settings: LobbySettings | None = None) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = LobbySettings()

    routes = [
        Route("/health", health, methods=["GET"], name="health"),
        WebSocketRoute("/ws/channels/{channel}", channel_websocket, name="channel_websocket"),
    ]

    app = Starlette(routes=routes)
    app.state.settings = settings
    app.state.channel_connections = ChannelConnectionManager()

    logger.info("bus relay ready", allowed_origin=settings.ws_allowed_origin)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory lobby.server.app:get_app."""
    settings = LobbySettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
