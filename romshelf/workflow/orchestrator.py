"""
Workflow orchestrator for romshelf enrichment runs.

Coordinates the enrichment of discovered ROMs:
1. Merge each entry into the library (new record or extra ROM path)
2. Query IGDB for metadata when needed
3. Attach cover and screenshot assets (downloaded or as URLs)
4. Save checkpoints periodically and once more at the end
"""

import asyncio
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..api.client import IGDBClient
from ..api.matching import normalize_title
from ..api.search import find_game_metadata
from ..config.platforms import get_core_path, get_platform_id
from ..library.game_record import GameRecord, make_key
from ..library.metadata import apply_metadata, merge_metadata
from ..library.store import LibraryStore
from ..logging_utils import log_success
from ..media.assets import MAX_SCREENSHOTS, AssetLocator, cover_url, screenshot_url
from ..media.downloader import ImageDownloader
from ..scanner.rom_types import DiscoveredEntry
from .progress import ProgressTracker

logger = logging.getLogger(__name__)


DISK_PATTERN = re.compile(r"\(Disk\s*(\d+)\s*of\s*(\d+)\)", re.IGNORECASE)

# Outcomes reported per entry
STATUS_FOUND = 'found'
STATUS_REFRESHED = 'refreshed'
STATUS_NOT_FOUND = 'not_found'
STATUS_SKIPPED = 'skipped'
STATUS_OFFLINE = 'offline'


@dataclass
class RunResult:
    """Result of an enrichment run."""
    total_entries: int
    processed: int
    total_records: int
    unmatched: int
    interrupted: bool = False


class LibraryOrchestrator:
    """
    Orchestrates an enrichment run over discovered entries.

    Entries are processed one at a time in scan order; only the IGDB
    client overlaps network I/O. The merge map (self.records) is owned
    here and flushed through the LibraryStore.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        api_client: IGDBClient,
        store: LibraryStore,
        assets: AssetLocator,
        downloader: Optional[ImageDownloader] = None,
        progress: Optional[ProgressTracker] = None,
        shutdown_event: Optional[asyncio.Event] = None
    ):
        """
        Initialize library orchestrator.

        Args:
            config: Configuration dictionary
            api_client: IGDB client (may be offline)
            store: Library store for loading and saving
            assets: Image path and URL locator
            downloader: Image downloader (required for eager downloads online)
            progress: Progress tracker (default: disabled tracker)
            shutdown_event: Set to stop before the next entry
        """
        settings = config.get('settings', {})
        self.offline = settings.get('offline_mode', False)
        self.skip_existing = settings.get('skip_existing_metadata', False)
        self.lazy_download = settings.get('lazy_download', False)
        self.tag_generation = settings.get('tag_generation', False)
        self.save_every = settings.get('save_every', 20)
        self.cores_dir = Path(config.get('paths', {}).get('cores') or '')

        self.api_client = api_client
        self.store = store
        self.assets = assets
        self.downloader = downloader
        self.progress = progress or ProgressTracker(enabled=False)
        self.shutdown_event = shutdown_event or asyncio.Event()

        self.records: Dict[str, GameRecord] = {}
        self.unmatched: List[Dict[str, str]] = []

    def load_existing(self) -> int:
        """
        Load previously saved records into the merge map.

        Returns:
            Number of records loaded
        """
        self.records = self.store.load()
        return len(self.records)

    async def run(self, entries: List[DiscoveredEntry]) -> RunResult:
        """
        Process all entries, then save.

        Stops before the next entry once the shutdown event is set; the
        final save happens either way.

        Args:
            entries: Discovered entries in scan order

        Returns:
            RunResult summary

        Raises:
            OSError: If the final save fails
        """
        if not entries:
            logger.warning("No games found in the ROM directory")

        self.progress.start(len(entries))
        processed = 0
        since_save = 0
        interrupted = False

        try:
            for entry in entries:
                if self.shutdown_event.is_set():
                    interrupted = True
                    logger.warning(
                        f"Stopping after {processed}/{len(entries)} entries (interrupted)"
                    )
                    break

                await self.process_entry(entry)
                self.progress.advance()
                processed += 1
                since_save += 1

                if since_save >= self.save_every:
                    self.checkpoint()
                    since_save = 0
        finally:
            self.progress.finish()

        self.save()

        return RunResult(
            total_entries=len(entries),
            processed=processed,
            total_records=len(self.records),
            unmatched=len(self.unmatched),
            interrupted=interrupted or self.shutdown_event.is_set(),
        )

    async def process_entry(self, entry: DiscoveredEntry) -> str:
        """
        Merge one discovered entry into the library.

        Args:
            entry: Discovered ROM

        Returns:
            Outcome (found, refreshed, not_found, skipped or offline)
        """
        key = make_key(entry.console_name, entry.title)
        rom_path = str(entry.rom_path)
        self.progress.update(entry.title)

        file_size = self._get_file_size(entry.rom_path)

        record = self.records.get(key)
        if record is None:
            status = await self._create_record(key, entry, rom_path, file_size)
        else:
            status = await self._refresh_record(record, entry, rom_path, file_size)

        self._update_disk_count(self.records[key], rom_path)
        self.progress.update(entry.title, status)
        return status

    def checkpoint(self) -> None:
        """Periodic save; failures are logged and the run continues."""
        try:
            self.save()
        except OSError as e:
            logger.error(f"Checkpoint save failed: {e}")

    def save(self) -> None:
        """Write the full library, unmatched list and index."""
        self.store.save(self.records.values(), self.unmatched)

    async def _create_record(
        self,
        key: str,
        entry: DiscoveredEntry,
        rom_path: str,
        file_size: int
    ) -> str:
        """Create the record for a first-seen game and fetch its metadata."""
        console = entry.console_name
        record = GameRecord(
            title=entry.title,
            console=console,
            platform_id=get_platform_id(console) or 0,
            rom_paths=[rom_path],
            core_path=get_core_path(console, self.cores_dir),
            file_size=file_size,
        )
        self.records[key] = record

        if self.offline:
            return STATUS_OFFLINE

        metadata = await find_game_metadata(
            self.api_client, normalize_title(entry.title), console
        )
        if not metadata:
            logger.warning(f"No metadata found for '{entry.title}' on '{console}'")
            self._add_unmatched(entry)
            return STATUS_NOT_FOUND

        apply_metadata(record, metadata, self.tag_generation)
        await self._attach_assets(record, metadata, backfill=False)
        log_success(logger, f"Metadata found for '{entry.title}' on '{console}'")
        return STATUS_FOUND

    async def _refresh_record(
        self,
        record: GameRecord,
        entry: DiscoveredEntry,
        rom_path: str,
        file_size: int
    ) -> str:
        """Merge another sighting of a known game, refreshing metadata if allowed."""
        # Size only counts once per ROM path, so reruns do not inflate it
        if record.add_rom_path(rom_path):
            record.file_size = (record.file_size or 0) + file_size

        if self.offline:
            return STATUS_OFFLINE
        if self.skip_existing and record.metadata_fetched:
            return STATUS_SKIPPED

        metadata = await find_game_metadata(
            self.api_client, normalize_title(entry.title), entry.console_name
        )
        if not metadata:
            logger.warning(
                f"No new metadata for '{entry.title}' on '{entry.console_name}'"
            )
            self._add_unmatched(entry)
            return STATUS_NOT_FOUND

        changed = merge_metadata(record, metadata, self.tag_generation)
        await self._attach_assets(record, metadata, backfill=True)
        log_success(
            logger,
            f"Refreshed metadata for '{entry.title}' on '{entry.console_name}' "
            f"({len(changed)} fields changed)"
        )
        return STATUS_REFRESHED

    async def _attach_assets(
        self,
        record: GameRecord,
        metadata: Dict[str, Any],
        backfill: bool
    ) -> None:
        """
        Fill CoverImage and Screenshots from IGDB image ids.

        Lazy mode stores URLs. Eager mode downloads into the images
        directory and stores local paths; a failed download leaves the
        field empty. With backfill, only empty fields are filled and
        files already on disk are reused instead of downloaded again.
        """
        cover_id = (metadata.get('cover') or {}).get('image_id')
        screenshot_ids = [
            (index, shot.get('image_id'))
            for index, shot in enumerate((metadata.get('screenshots') or [])[:MAX_SCREENSHOTS], start=1)
            if shot.get('image_id')
        ]

        want_cover = bool(cover_id) and not (backfill and record.cover_image)
        want_screenshots = bool(screenshot_ids) and not (backfill and record.screenshots)

        if self.lazy_download:
            if want_cover:
                record.cover_image = cover_url(cover_id)
            if want_screenshots:
                record.screenshots = [screenshot_url(image_id) for _, image_id in screenshot_ids]
            return

        if want_cover:
            path = self.assets.cover_path(record.console, record.title)
            if await self._ensure_image(cover_url(cover_id), path, reuse=backfill):
                record.cover_image = self.assets.cover_ref(record.console, record.title)

        if want_screenshots:
            refs = []
            for index, image_id in screenshot_ids:
                path = self.assets.screenshot_path(record.console, record.title, index)
                if await self._ensure_image(screenshot_url(image_id), path, reuse=backfill):
                    refs.append(self.assets.screenshot_ref(record.console, record.title, index))
            record.screenshots = refs

    async def _ensure_image(self, url: str, path: Path, reuse: bool) -> bool:
        if reuse and path.exists():
            logger.debug(f"Reusing existing image {path}")
            return True
        if self.downloader is None:
            logger.warning(f"No downloader configured, skipping {url}")
            return False
        success, _ = await self.downloader.download(url, path)
        return success

    def _update_disk_count(self, record: GameRecord, rom_path: str) -> None:
        match = DISK_PATTERN.search(rom_path)
        if match:
            record.raise_disk_count(int(match.group(2)))

    def _add_unmatched(self, entry: DiscoveredEntry) -> None:
        self.unmatched.append({
            'title': entry.title,
            'console': entry.console_name,
            'romPath': str(entry.rom_path),
        })

    @staticmethod
    def _get_file_size(rom_path: Path) -> int:
        try:
            return os.stat(rom_path).st_size
        except OSError as e:
            logger.error(f"Failed to get file size for ROM '{rom_path}': {e}")
            return 0
