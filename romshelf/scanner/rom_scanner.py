"""Recursive ROM library scanner."""

import logging
import os
import re
from pathlib import Path
from typing import List

from romshelf.scanner.rom_types import DiscoveredEntry, VALID_ROM_EXTENSIONS

logger = logging.getLogger(__name__)

CONSOLE_SEPARATOR = ' / '

# "(USA)", "[!]", "{Proto}" and any whitespace following them
_TAG_GROUP_RE = re.compile(r"[(\[{][^)\]}]+[)\]}]\s*")


class ScannerError(Exception):
    """ROM scanning errors."""
    pass


def get_base_game_name(filename: str) -> str:
    """
    Strip extension and bracketed annotations from a ROM filename.

    Args:
        filename: ROM filename (e.g., 'Zelda II (USA) [!].nes')

    Returns:
        Clean title (e.g., 'Zelda II')
    """
    base_name = os.path.splitext(filename)[0]
    return _TAG_GROUP_RE.sub('', base_name).strip()


def is_valid_rom_extension(filename: str) -> bool:
    """Check if a filename carries an allowed ROM extension."""
    return os.path.splitext(filename)[1].lower() in VALID_ROM_EXTENSIONS


def scan_library(rom_root: Path) -> List[DiscoveredEntry]:
    """
    Discover all ROM files below a root directory.

    A directory that directly contains at least one file is a console
    folder; its path relative to the root (parts joined with ' / ')
    becomes the console name. Directories holding only subdirectories
    are transparent.

    Args:
        rom_root: Root ROM directory

    Returns:
        DiscoveredEntry list in scan order

    Raises:
        ScannerError: If the root directory does not exist
    """
    rom_root = Path(rom_root)
    if not rom_root.is_dir():
        raise ScannerError(f"ROM root directory not found: {rom_root}")

    entries: List[DiscoveredEntry] = []
    _scan_for_consoles(rom_root, [], entries)

    logger.info(f"Scan complete: {len(entries)} ROMs found under {rom_root}")
    return entries


def _list_directory(directory: Path):
    try:
        return sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as e:
        logger.error(f"Failed to read directory \"{directory}\": {e}")
        return None


def _scan_for_consoles(
    folder: Path,
    relative_parts: List[str],
    entries: List[DiscoveredEntry]
) -> None:
    """Walk folders, treating every folder that holds files as a console."""
    sub_entries = _list_directory(folder)
    if sub_entries is None:
        return

    for entry in sub_entries:
        if entry.is_dir():
            _scan_for_consoles(Path(entry.path), relative_parts + [entry.name], entries)

    has_files = any(not entry.is_dir() for entry in sub_entries)
    if has_files:
        console_name = CONSOLE_SEPARATOR.join(relative_parts).strip()
        _scan_console_directory(folder, console_name, entries)


def _scan_console_directory(
    directory: Path,
    console_name: str,
    entries: List[DiscoveredEntry]
) -> None:
    """Collect ROM files in a console folder and all of its subfolders."""
    dir_entries = _list_directory(directory)
    if dir_entries is None:
        return

    for entry in dir_entries:
        if entry.is_dir():
            _scan_console_directory(Path(entry.path), console_name, entries)
        elif is_valid_rom_extension(entry.name):
            entries.append(DiscoveredEntry(
                title=get_base_game_name(entry.name),
                console_name=console_name,
                rom_path=Path(entry.path),
            ))
        else:
            logger.debug(f"Skipping non-ROM file: {entry.path}")
