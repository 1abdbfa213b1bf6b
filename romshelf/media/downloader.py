"""
Image downloader with optional validation.

Streams images to a temporary file and renames it into place; Pillow can
check the result is a readable image. Images are never transformed.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import httpx
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


class DownloadError(Exception):
    """Base exception for download errors."""
    pass


class ImageDownloader:
    """
    Downloads image files.

    Features:
    - Streaming HTTP download through the shared httpx client
    - Atomic placement (temporary file, then rename)
    - Optional readability check with Pillow
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        validate_images: bool = False,
        chunk_size: int = 64 * 1024
    ):
        """
        Initialize image downloader.

        Args:
            client: httpx.AsyncClient for HTTP requests
            validate_images: Reject downloads Pillow cannot identify
            chunk_size: Bytes per streamed chunk
        """
        self.client = client
        self.validate_images = validate_images
        self.chunk_size = chunk_size

    async def download(self, url: str, output_path: Path) -> Tuple[bool, Optional[str]]:
        """
        Download an image from URL to output path.

        Failures are logged and reported, never raised.

        Args:
            url: Image URL to download
            output_path: Path where image should be saved

        Returns:
            Tuple of (success: bool, error_message: str or None)
        """
        temp_path = output_path.with_name(output_path.name + '.tmp')
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)

            async with self.client.stream('GET', url) as response:
                response.raise_for_status()
                with open(temp_path, 'wb') as f:
                    async for chunk in response.aiter_bytes(self.chunk_size):
                        f.write(chunk)

            if self.validate_images:
                self._validate_image_file(temp_path)

            temp_path.replace(output_path)
            logger.debug(f"Downloaded {url} -> {output_path}")
            return True, None

        except (httpx.HTTPError, OSError, DownloadError) as e:
            if temp_path.exists():
                temp_path.unlink()
            error = f"Failed to download image from {url}: {e}"
            logger.error(error)
            return False, error

    def _validate_image_file(self, path: Path) -> None:
        """
        Check a file is an image Pillow can read.

        Raises:
            DownloadError: If the file is not a readable image
        """
        try:
            with Image.open(path) as img:
                img.verify()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
            raise DownloadError(f"Invalid image: {e}") from e
