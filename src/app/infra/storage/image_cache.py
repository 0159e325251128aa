from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

from src.app.infra.storage.base import ImageDownloader

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
_REMOTE_SCHEMES = ("http", "https")


def cache_key_for(remote_url: str) -> str | None:
    """Filename used on disk for a remote URL: the last segment of its path."""
    parsed = urlparse(remote_url)
    if parsed.scheme not in _REMOTE_SCHEMES:
        return None
    name = PurePosixPath(unquote(parsed.path)).name
    if not name or name in (".", ".."):
        return None
    return _UNSAFE_FILENAME_CHARS.sub("_", name)


class ImageCacheManager:
    """
    Maps remote recipe image URLs to files under a local cache directory.

    The cache is best effort: when the directory cannot be created or a
    download fails, resolve() hands back the remote URL so the image can
    still be shown. Files are never evicted.
    """

    def __init__(self, cache_dir: Path | str, downloader: ImageDownloader):
        self.cache_dir = Path(cache_dir).expanduser()
        self._downloader = downloader
        self.ensure_cache_directory()

    def ensure_cache_directory(self) -> None:
        if self.cache_dir.is_dir():
            return
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            logger.info("Created image cache directory: %s", self.cache_dir)
        except OSError as error:
            logger.warning("Could not create image cache directory %s: %s", self.cache_dir, error)

    def local_path_for(self, remote_url: str) -> Path | None:
        key = cache_key_for(remote_url)
        return self.cache_dir / key if key else None

    async def resolve(self, remote_url: str) -> str:
        local_path = self.local_path_for(remote_url)
        if local_path is None:
            logger.debug("image_cache.uncacheable url=%s", remote_url)
            return remote_url

        if local_path.exists():
            logger.debug("image_cache.hit url=%s path=%s", remote_url, local_path)
            return str(local_path)

        logger.debug("image_cache.miss url=%s", remote_url)
        try:
            saved = await self._downloader.download(remote_url, local_path)
        except Exception as error:
            logger.warning("image_cache.fallback url=%s error=%s", remote_url, error)
            return remote_url
        return str(saved)
