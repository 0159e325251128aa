# src/app/infra/storage/httpx_downloader.py
"""
HTTP image downloader backed by httpx.
The body is streamed to a sibling ".part" file and renamed into place, so a
half-written file is never visible under the final name.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx

from src.app.domain.errors import ImageDownloadError
from src.app.infra.storage.base import ImageDownloader

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


class HttpxImageDownloader(ImageDownloader):

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def download(self, url: str, target_path: Path) -> Path:
        partial_path = target_path.with_name(target_path.name + ".part")
        logger.info("Downloading image: %s -> %s", url, target_path)

        try:
            if self._client is not None:
                await self._stream_to(self._client, url, partial_path)
            else:
                async with httpx.AsyncClient(
                    timeout=self.timeout_seconds,
                    follow_redirects=True,
                ) as client:
                    await self._stream_to(client, url, partial_path)
            partial_path.replace(target_path)
        except httpx.TimeoutException as error:
            partial_path.unlink(missing_ok=True)
            raise ImageDownloadError(url, f"timed out after {self.timeout_seconds}s") from error
        except httpx.HTTPStatusError as error:
            partial_path.unlink(missing_ok=True)
            raise ImageDownloadError(url, f"HTTP {error.response.status_code}") from error
        except (httpx.HTTPError, OSError) as error:
            partial_path.unlink(missing_ok=True)
            raise ImageDownloadError(url, str(error) or type(error).__name__) from error

        logger.info("Downloaded image: %s, size=%d bytes", target_path, target_path.stat().st_size)
        return target_path

    async def _stream_to(self, client: httpx.AsyncClient, url: str, path: Path) -> None:
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            with path.open("wb") as fh:
                async for chunk in response.aiter_bytes():
                    fh.write(chunk)
