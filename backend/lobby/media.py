"""Image acquisition for the phase the lobby hands control to.

The selected image is an opaque ``data:`` URL. Failures are reported to the
player and reset the picker; they never affect lobby state.
"""

from __future__ import annotations

import base64
import mimetypes
from http import HTTPStatus
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import structlog

from lobby.errors import ImageAcquisitionError

if TYPE_CHECKING:
    from collections.abc import Callable

    from lobby.server.settings import LobbySettings

logger = structlog.get_logger()

DEFAULT_IMAGE_TYPE = "image/jpeg"


def image_from_bytes(data: bytes, content_type: str = DEFAULT_IMAGE_TYPE) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def image_from_file(path: Path | str) -> str:
    """Read an uploaded image file into a data URL."""
    file_path = Path(path)
    content_type, _ = mimetypes.guess_type(file_path.name)
    if content_type is None or not content_type.startswith("image/"):
        raise ImageAcquisitionError(f"Not an image file: {file_path.name}")
    try:
        data = file_path.read_bytes()
    except OSError as e:
        raise ImageAcquisitionError(f"Failed to read {file_path.name}: {e}") from e
    return image_from_bytes(data, content_type)


async def fetch_random_image(url: str, *, timeout: float = 10.0) -> str:
    """Download a random picture and return it as a data URL."""
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        try:
            response = await client.get(url)
        except httpx.RequestError as e:
            raise ImageAcquisitionError(f"Failed to fetch random image: {e}") from e

    if response.status_code != HTTPStatus.OK:
        raise ImageAcquisitionError(f"Image service returned {response.status_code}")

    content_type = response.headers.get("content-type", DEFAULT_IMAGE_TYPE).split(";")[0].strip()
    return image_from_bytes(response.content, content_type or DEFAULT_IMAGE_TYPE)


class ImagePicker:
    """Tracks one player's image choice: upload from disk or a random picture."""

    def __init__(self, on_image_selected: Callable[[str], None], settings: LobbySettings) -> None:
        self._on_image_selected = on_image_selected
        self._settings = settings
        self.is_processing = False
        self.error: str | None = None

    def pick_file(self, path: Path | str) -> bool:
        self._begin()
        try:
            image = image_from_file(path)
        except ImageAcquisitionError as e:
            return self._fail("Could not read that image", e)
        return self._finish(image)

    async def pick_random(self) -> bool:
        self._begin()
        try:
            image = await fetch_random_image(
                self._settings.random_image_url,
                timeout=self._settings.image_fetch_timeout,
            )
        except ImageAcquisitionError as e:
            return self._fail("Could not load a random image", e)
        return self._finish(image)

    def _begin(self) -> None:
        self.is_processing = True
        self.error = None

    def _finish(self, image: str) -> bool:
        self.is_processing = False
        self._on_image_selected(image)
        return True

    def _fail(self, message: str, exc: ImageAcquisitionError) -> bool:
        logger.warning("image acquisition failed", error=str(exc))
        self.is_processing = False
        self.error = message
        return False
