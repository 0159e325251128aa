# src/app/infra/storage/base.py
"""
Abstract base class for image downloaders.
This interface lets the image cache swap transports (httpx, a test stub, ...).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class ImageDownloader(ABC):
    """
    Abstract interface for fetching a remote image onto local disk.

    Implementations:
    - HttpxImageDownloader: streamed HTTP GET with httpx
    """

    @abstractmethod
    async def download(self, url: str, target_path: Path) -> Path:
        """
        Download a remote file to a local path.

        Args:
            url: The remote URL
            target_path: Local path where the file must end up

        Returns:
            The path where the file was saved

        Raises:
            ImageDownloadError: If the file could not be fetched or written
        """
        pass
