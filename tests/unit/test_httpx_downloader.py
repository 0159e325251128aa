from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest

from src.app.domain.errors import ImageDownloadError
from src.app.infra.storage.httpx_downloader import HttpxImageDownloader


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def _download(handler, url: str, target: Path) -> Path:
    async with _client(handler) as client:
        downloader = HttpxImageDownloader(client=client)
        return await downloader.download(url, target)


class TestHttpxImageDownloader:
    def test_writes_body_to_target(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"image-bytes")

        target = tmp_path / "soup.jpg"
        saved = asyncio.run(_download(handler, "https://cdn.example.com/soup.jpg", target))

        assert saved == target
        assert target.read_bytes() == b"image-bytes"
        assert not (tmp_path / "soup.jpg.part").exists()

    def test_http_error_raises_and_leaves_no_file(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        target = tmp_path / "missing.jpg"
        with pytest.raises(ImageDownloadError) as exc_info:
            asyncio.run(_download(handler, "https://cdn.example.com/missing.jpg", target))

        assert "404" in exc_info.value.reason
        assert not target.exists()
        assert not (tmp_path / "missing.jpg.part").exists()

    def test_transport_error_raises_image_download_error(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ImageDownloadError):
            asyncio.run(_download(handler, "https://cdn.example.com/soup.jpg", tmp_path / "soup.jpg"))

    def test_timeout_raises_image_download_error(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(ImageDownloadError) as exc_info:
            asyncio.run(_download(handler, "https://cdn.example.com/soup.jpg", tmp_path / "soup.jpg"))

        assert "timed out" in exc_info.value.reason
