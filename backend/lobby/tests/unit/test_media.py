"""Tests for image acquisition helpers."""

import base64
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from lobby.errors import ImageAcquisitionError
from lobby.media import ImagePicker, fetch_random_image, image_from_bytes, image_from_file
from lobby.server.settings import LobbySettings


def _mock_response(status_code: int = 200, content: bytes = b"\xff\xd8jpeg", content_type: str = "image/jpeg"):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.headers = {"content-type": content_type}
    return response


class TestImageFromBytes:
    def test_builds_data_url(self):
        url = image_from_bytes(b"abc", "image/png")
        assert url == "data:image/png;base64," + base64.b64encode(b"abc").decode()


class TestImageFromFile:
    def test_reads_image_file(self, tmp_path):
        path = tmp_path / "meme.png"
        path.write_bytes(b"\x89PNG")
        url = image_from_file(path)
        assert url.startswith("data:image/png;base64,")
        assert base64.b64decode(url.split(",", 1)[1]) == b"\x89PNG"

    def test_rejects_non_image(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(ImageAcquisitionError, match="Not an image"):
            image_from_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageAcquisitionError, match="Failed to read"):
            image_from_file(tmp_path / "gone.jpg")


class TestFetchRandomImage:
    @pytest.mark.asyncio
    async def test_returns_data_url(self):
        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = _mock_response(content_type="image/jpeg; charset=binary")

            url = await fetch_random_image("https://images.test/600/600")

        mock_instance.get.assert_called_once_with("https://images.test/600/600")
        assert url == image_from_bytes(b"\xff\xd8jpeg", "image/jpeg")

    @pytest.mark.asyncio
    async def test_non_200_raises(self):
        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = _mock_response(status_code=503)

            with pytest.raises(ImageAcquisitionError, match="503"):
                await fetch_random_image("https://images.test/600/600")

    @pytest.mark.asyncio
    async def test_connection_error_raises(self):
        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.side_effect = httpx.RequestError("Connection refused")

            with pytest.raises(ImageAcquisitionError, match="Connection refused"):
                await fetch_random_image("https://images.test/600/600")


class TestImagePicker:
    def test_pick_file_selects_image(self, tmp_path):
        selected: list[str] = []
        picker = ImagePicker(selected.append, LobbySettings())
        path = tmp_path / "meme.jpg"
        path.write_bytes(b"jpeg")

        assert picker.pick_file(path) is True
        assert picker.is_processing is False
        assert picker.error is None
        assert len(selected) == 1

    def test_pick_file_failure_resets_state(self, tmp_path):
        selected: list[str] = []
        picker = ImagePicker(selected.append, LobbySettings())

        assert picker.pick_file(tmp_path / "missing.jpg") is False
        assert picker.is_processing is False
        assert picker.error == "Could not read that image"
        assert selected == []

    @pytest.mark.asyncio
    async def test_pick_random_failure_reports_error(self):
        selected: list[str] = []
        picker = ImagePicker(selected.append, LobbySettings())

        with patch("lobby.media.fetch_random_image", AsyncMock(side_effect=ImageAcquisitionError("down"))):
            assert await picker.pick_random() is False

        assert picker.is_processing is False
        assert picker.error == "Could not load a random image"
        assert selected == []

    @pytest.mark.asyncio
    async def test_pick_random_success_clears_previous_error(self):
        selected: list[str] = []
        settings = LobbySettings(random_image_url="https://images.test/r", image_fetch_timeout=2.5)
        picker = ImagePicker(selected.append, settings)
        picker.error = "Could not load a random image"

        fetch = AsyncMock(return_value="data:image/jpeg;base64,AA==")
        with patch("lobby.media.fetch_random_image", fetch):
            assert await picker.pick_random() is True

        fetch.assert_awaited_once_with("https://images.test/r", timeout=2.5)
        assert picker.error is None
        assert selected == ["data:image/jpeg;base64,AA=="]
