"""
Image asset locations.

Local layout:
    <images>/<console>/<title>/cover.jpg
    <images>/<console>/<title>/screenshots/<n>.jpg

Records store local images as "/<images relative to cwd>/..." paths and
lazily referenced images as IGDB URLs.
"""

import os
from pathlib import Path
from typing import Optional

from romshelf.library.store import sanitize_filename


IMAGE_BASE_URL = "https://images.igdb.com/igdb/image/upload"
COVER_SIZE = "t_cover_big"
SCREENSHOT_SIZE = "t_screenshot_big"

# Screenshots kept per game
MAX_SCREENSHOTS = 3


def cover_url(image_id: str) -> str:
    return f"{IMAGE_BASE_URL}/{COVER_SIZE}/{image_id}.jpg"


def screenshot_url(image_id: str) -> str:
    return f"{IMAGE_BASE_URL}/{SCREENSHOT_SIZE}/{image_id}.jpg"


class AssetLocator:
    """Maps (console, title) to image files and the paths stored in records."""

    def __init__(self, images_dir: Path, base_dir: Optional[Path] = None):
        """
        Args:
            images_dir: Root directory for downloaded images
            base_dir: Directory the stored paths are relative to (default: cwd)
        """
        self.images_dir = Path(images_dir)
        self.url_prefix = self._build_prefix(base_dir or Path.cwd())

    def _build_prefix(self, base_dir: Path) -> str:
        try:
            relative = os.path.relpath(self.images_dir.resolve(), Path(base_dir).resolve())
        except ValueError:
            # Different drive on Windows
            relative = self.images_dir.as_posix()
        relative = relative.replace('\\', '/')
        if relative == '.':
            relative = ''
        return '/' + relative.strip('/')

    def _game_dir(self, console: str, title: str) -> Path:
        return self.images_dir / sanitize_filename(console) / sanitize_filename(title)

    def _game_prefix(self, console: str, title: str) -> str:
        prefix = self.url_prefix.rstrip('/')
        return f"{prefix}/{sanitize_filename(console)}/{sanitize_filename(title)}"

    def cover_path(self, console: str, title: str) -> Path:
        return self._game_dir(console, title) / 'cover.jpg'

    def screenshot_path(self, console: str, title: str, index: int) -> Path:
        return self._game_dir(console, title) / 'screenshots' / f"{index}.jpg"

    def cover_ref(self, console: str, title: str) -> str:
        return f"{self._game_prefix(console, title)}/cover.jpg"

    def screenshot_ref(self, console: str, title: str, index: int) -> str:
        return f"{self._game_prefix(console, title)}/screenshots/{index}.jpg"
