"""Lobby configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class LobbySettings(BaseSettings):
    model_config = {"env_prefix": "LOBBY_"}

    min_players: int = Field(default=3, ge=1)
    channel_name: str = Field(default="mememaster_lobby", min_length=1)
    random_image_url: str = "https://picsum.photos/600/600"
    image_fetch_timeout: float = Field(default=10.0, gt=0)
    max_message_bytes: int = Field(default=4096, ge=64)
    ws_allowed_origin: str | None = None  # e.g. "http://localhost:5173"; unset accepts any origin
    log_dir: str | None = None
